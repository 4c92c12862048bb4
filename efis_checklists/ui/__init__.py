"""
UI package for EFIS Checklists.
Contains the command-line interface.
"""

from .cli import CLI, create_parser, main

__all__ = [
    'CLI',
    'create_parser',
    'main'
]
