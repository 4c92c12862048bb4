"""
Command-line interface for EFIS Checklists.
Provides subcommands for detecting, inspecting and converting checklist files.
"""

import argparse
import asyncio
import logging
import os
import sys
import time
from typing import List, Optional

from ..config.constants import APP_NAME, APP_VERSION, APP_DESCRIPTION
from ..config.settings import settings
from ..data.models import ChecklistFile, ChecklistFormat
from ..data.errors import ChecklistFormatError
from ..formats.registry import detect_format
from ..io.files import add_recent_file, export_checklist_file, get_recent_files, read_checklist_file

# Configure logger
logger = logging.getLogger("efis_checklists.ui.cli")

FORMAT_CHOICES = [f.value for f in ChecklistFormat]


class CLI:
    """
    Command-line interface for EFIS Checklists.
    Each public coroutine handles one subcommand and returns an exit status.
    """

    async def detect(self, path: str) -> int:
        """Print the detected format of a file"""
        content = None
        if os.path.splitext(path)[1].lower() == '.txt':
            with open(path, 'rb') as f:
                content = f.read()

        format = detect_format(path, content)
        if format is None:
            print(f"Unknown format: {path}")
            return 1
        print(format.value)
        return 0

    async def info(self, path: str) -> int:
        """Print a summary of a checklist file"""
        file = await self._open(path)

        print(f"\n----- {file.name} -----")
        print(f"Format: {file.format.value}")
        if file.metadata.make_model:
            print(f"Make and model: {file.metadata.make_model}")
        if file.metadata.aircraft_registration:
            print(f"Aircraft: {file.metadata.aircraft_registration}")
        if file.metadata.copyright:
            print(f"Copyright: {file.metadata.copyright}")

        print(f"\nGroups: {len(file.groups)}")
        for group in file.groups:
            item_count = sum(len(checklist.items) for checklist in group.checklists)
            print(f"  {group.name} [{group.category.value}]: "
                  f"{len(group.checklists)} checklists, {item_count} items")
        return 0

    async def convert(self, source: str, destination: str, target: Optional[str] = None) -> int:
        """Convert a file to another format"""
        if target:
            format = ChecklistFormat(target)
        else:
            format = detect_format(destination)
            if format is None:
                default = settings.get('default_export_format')
                try:
                    format = ChecklistFormat(default)
                except ValueError:
                    print(f"Cannot tell the target format from {destination}; use --to")
                    return 1
                logger.info(f"Unknown extension on {destination}, using default format {format.value}")

        file = await self._open(source)
        written = await export_checklist_file(file, format, destination)
        print(f"Converted {source} ({file.format.value}) to {written} ({format.value})")
        return 0

    async def recent(self) -> int:
        """List recently opened files"""
        entries = get_recent_files()
        if not entries:
            print("No recent files")
            return 0

        for i, entry in enumerate(entries):
            date = time.strftime('%Y-%m-%d %H:%M', time.localtime(entry.last_opened))
            print(f"{i+1}: {entry.file_name} ({entry.format.value}, {date}) {entry.file_path}")
        return 0

    async def _open(self, path: str) -> ChecklistFile:
        file = await read_checklist_file(path)
        add_recent_file(path, file.name, file.format)
        return file


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser"""
    parser = argparse.ArgumentParser(prog='efis-checklists', description=f"{APP_NAME} - {APP_DESCRIPTION}")
    parser.add_argument('--version', action='version', version=f"{APP_NAME} {APP_VERSION}")
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    detect_parser = subparsers.add_parser('detect', help='Print the detected format of a file')
    detect_parser.add_argument('file')

    info_parser = subparsers.add_parser('info', help='Show a summary of a checklist file')
    info_parser.add_argument('file')

    convert_parser = subparsers.add_parser('convert', help='Convert a checklist file to another format')
    convert_parser.add_argument('source')
    convert_parser.add_argument('destination')
    convert_parser.add_argument(
        '--to',
        dest='target',
        choices=FORMAT_CHOICES,
        help='Target format (default: from the destination extension, '
             'else the default_export_format setting)'
    )

    subparsers.add_parser('recent', help='List recently opened files')
    return parser


async def run(args: argparse.Namespace) -> int:
    """Dispatch parsed arguments to the CLI"""
    cli = CLI()
    if args.command == 'detect':
        return await cli.detect(args.file)
    if args.command == 'info':
        return await cli.info(args.file)
    if args.command == 'convert':
        return await cli.convert(args.source, args.destination, args.target)
    return await cli.recent()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = create_parser().parse_args(argv)

    if args.debug:
        logging.getLogger("efis_checklists").setLevel(logging.DEBUG)

    try:
        return asyncio.run(run(args))
    except ChecklistFormatError as e:
        logger.error(f"Invalid checklist file: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        logger.error(f"File error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
