"""
I/O package for EFIS Checklists.
Contains the caller-side file operations around the codecs.
"""

from .files import (
    RecentFileEntry,
    read_checklist_file,
    save_checklist_file,
    export_checklist_file,
    get_recent_files,
    get_recent_files_path,
    add_recent_file,
)

__all__ = [
    'RecentFileEntry',
    'read_checklist_file',
    'save_checklist_file',
    'export_checklist_file',
    'get_recent_files',
    'get_recent_files_path',
    'add_recent_file',
]
