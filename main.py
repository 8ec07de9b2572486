"""
R6 Tracker - entry point

Runs the command-line interface; `python main.py serve` keeps the
per-group schedules armed until SIGINT/SIGTERM.
"""

import asyncio
import sys

# Windows-specific asyncio policy to avoid 'Event loop is closed' and transport warnings
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from r6tracker.apps.cli import cli

if __name__ == "__main__":
    cli()
