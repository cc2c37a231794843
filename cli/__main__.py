"""
Entry point for running dojo-log as a module.

Usage:
    python -m cli add Ikkyo --notes "omote and ura" --teacher "Sensei A"
    python -m cli history --limit 10
    python -m cli search ikkyo
"""

import asyncio
from .commands import main

if __name__ == "__main__":
    asyncio.run(main())
