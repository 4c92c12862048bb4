#!/usr/bin/env python3

"""
Entry point script that launches the command-line interface.
"""

import asyncio
import sys

from efis_checklists.ui.cli import main

if __name__ == '__main__':
    if sys.platform == 'win32':
        # Set event loop policy for Windows
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

    sys.exit(main())
