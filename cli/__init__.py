"""Command line access to the local assessment history."""
