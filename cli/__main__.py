"""
Entry point for running the history CLI as a module.

Usage:
    python -m cli history list
    python -m cli history view 3
    python -m cli history delete 3
    python -m cli --db path/to/history.db history clear --yes
"""

import asyncio
from .commands import main

if __name__ == "__main__":
    asyncio.run(main())
