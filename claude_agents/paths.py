"""Containment checks for every path the tool writes or deletes."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from .errors import PathEscapeError


def expand_path(p: str | os.PathLike[str]) -> Path:
    # Absolute and normalised only. "~" and "$VAR" are expanded once, on the
    # configured directories; names from upstream are taken literally. No
    # symlink resolution: a destination that does not exist yet must validate.
    return Path(os.path.normpath(os.path.abspath(os.fspath(p))))


def is_within_any_root(path: str | os.PathLike[str], roots: Iterable[Path]) -> bool:
    p = str(expand_path(path))
    for root in roots:
        r = str(expand_path(root))
        if p == r or p.startswith(r.rstrip(os.sep) + os.sep):
            return True
    return False


def validate_managed_path(path: str | os.PathLike[str], roots: Iterable[Path]) -> Path:
    """Return the expanded absolute path, or raise PathEscapeError."""
    expanded = expand_path(path)
    if not is_within_any_root(expanded, roots):
        raise PathEscapeError(str(path))
    return expanded
