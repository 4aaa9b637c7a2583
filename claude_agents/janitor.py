"""Prune managed directories left empty after a removal pass."""

from __future__ import annotations

import os
from pathlib import Path

from .config import Directories
from .paths import validate_managed_path
from .ui import UI


def _empty_subdirectories(tree: Path) -> list[Path]:
    # Deepest first so parents empty out before they are checked.
    found = []
    for dirpath, _dirnames, _filenames in os.walk(tree, topdown=False):
        p = Path(dirpath)
        if p != tree:
            found.append(p)
    return found


def _remove_if_empty(directory: Path, directories: Directories, ui: UI) -> bool:
    if directory.is_symlink() or not directory.is_dir():
        return False
    validate_managed_path(directory, directories.managed_roots)
    try:
        if any(directory.iterdir()):
            return False
        directory.rmdir()
    except OSError as e:
        ui.warn(f"Could not remove directory {directory}: {e}")
        return False
    ui.removed(f"empty directory: {directory.name}")
    return True


def cleanup_empty_directories(directories: Directories, ui: UI) -> list[Path]:
    """Remove empty tools/workflows trees and an empty commands directory.

    Failures (another process writing, permissions) are warnings, never fatal.
    Returns the directories that were removed.
    """
    removed: list[Path] = []
    for tree in (directories.tools_dir, directories.workflows_dir):
        if tree.is_dir() and not tree.is_symlink():
            for sub in _empty_subdirectories(tree):
                if _remove_if_empty(sub, directories, ui):
                    removed.append(sub)
    for d in (directories.tools_dir, directories.workflows_dir, directories.commands_dir):
        if _remove_if_empty(d, directories, ui):
            removed.append(d)
    return removed
