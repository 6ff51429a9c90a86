"""Local web API over the assessment record store."""

__version__ = "1.0.0"
