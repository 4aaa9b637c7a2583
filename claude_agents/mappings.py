"""Compute (source, destination, display name) triples for a collection."""

from __future__ import annotations

import fnmatch
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .config import (
    SKIP_NAME_PREFIXES,
    SKIP_PATTERNS,
    Collection,
    CollectionRegistry,
    Directories,
    NamingStrategy,
)
from .errors import ConfigurationError, FileOperationError, SourceMissingError
from .paths import expand_path, validate_managed_path

_CATEGORY_ORDER = re.compile(r"^\d+-")


@dataclass(frozen=True)
class Mapping:
    source: Path
    destination: Path
    display_name: str


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------


def should_skip(path: Path, source_root: Path, extra_patterns: Iterable[str] = ()) -> bool:
    """True for directories and for files upstream ships that are not agents."""
    if path.is_dir():
        return True
    name = path.name.lower()
    if name.startswith(SKIP_NAME_PREFIXES):
        return True
    if any(fnmatch.fnmatchcase(name, p.lower()) for p in SKIP_PATTERNS):
        return True

    try:
        parts = path.relative_to(source_root).parts[:-1]
    except ValueError:
        parts = path.parts[:-1]
    if "examples" in parts:
        return True
    for pattern in extra_patterns:
        if fnmatch.fnmatchcase(path.name, pattern):
            return True
        if any(fnmatch.fnmatchcase(part, pattern) for part in parts):
            return True
    return False


def _eligible(files: Iterable[Path], source_root: Path, collection: Collection) -> list[Path]:
    return [
        f for f in files
        if f.is_file() and not should_skip(f, source_root, collection.extra_skip_patterns)
    ]


def _list_flat(directory: Path) -> list[Path]:
    try:
        return sorted(directory.iterdir())
    except PermissionError as e:
        raise FileOperationError(f"Permission denied accessing directory: {directory}", str(e)) from e


def _list_tree(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    try:
        return sorted(directory.rglob("*"))
    except PermissionError as e:
        raise FileOperationError(f"Permission denied accessing directory: {directory}", str(e)) from e


def strip_category_order(name: str) -> str:
    """'01-core-development' -> 'core-development'."""
    stripped = _CATEGORY_ORDER.sub("", name)
    return stripped or name


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class MappingBuilder:
    def __init__(self, registry: CollectionRegistry, directories: Directories) -> None:
        self.registry = registry
        self.directories = directories

    def build_mappings(self, collection_key: str, source_root: Optional[Path] = None) -> list[Mapping]:
        """Plan one symlink per eligible upstream file of ``collection_key``.

        Raises UnknownCollectionError for unregistered keys and
        SourceMissingError when the source directory is absent. An existing
        source directory with nothing eligible yields an empty list.
        """
        collection = self.registry.get(collection_key)
        root = expand_path(source_root or self.directories.source_for(collection))
        if not root.is_dir():
            raise SourceMissingError(
                f"Source directory for {collection_key} does not exist: {root}. "
                "Please run the installation first.",
                str(root),
            )

        strategy = collection.strategy
        if strategy is NamingStrategy.PREFIXED:
            mappings = self._prefixed(collection, root)
        elif strategy is NamingStrategy.CATEGORY_FLATTEN:
            mappings = self._category_flatten(collection, root)
        elif strategy is NamingStrategy.TOOL_WORKFLOW_SPLIT:
            mappings = self._tool_workflow_split(collection, root)
        else:
            raise ConfigurationError(f"Unknown naming strategy: {strategy}")

        roots = self.directories.managed_roots
        for m in mappings:
            validate_managed_path(m.destination, roots)
        return mappings

    def _mapping(self, source: Path, destination: Path, display_name: str) -> Mapping:
        return Mapping(source=expand_path(source), destination=expand_path(destination),
                       display_name=display_name)

    def _prefixed(self, collection: Collection, root: Path) -> list[Mapping]:
        dest_root = self.directories.destination_root(collection.destination)
        result = []
        for f in _eligible(_list_flat(root), root, collection):
            display = f"{collection.prefix}{f.name}"
            result.append(self._mapping(f, dest_root / display, display))
        return result

    def _category_flatten(self, collection: Collection, root: Path) -> list[Mapping]:
        categories = root / "categories"
        dest_root = self.directories.destination_root(collection.destination)
        result = []
        for f in _eligible(_list_tree(categories), root, collection):
            if f.suffix != ".md":
                continue
            rel = f.relative_to(categories)
            if len(rel.parts) == 1:
                display = f.name
            else:
                # Deeper nesting still flattens onto the top-level category.
                display = f"{strip_category_order(rel.parts[0])}-{f.name}"
            result.append(self._mapping(f, dest_root / display, display))
        return result

    def _tool_workflow_split(self, collection: Collection, root: Path) -> list[Mapping]:
        result = []
        for sub, dest_base in (("tools", self.directories.tools_dir),
                               ("workflows", self.directories.workflows_dir)):
            base = root / sub
            for f in _eligible(_list_tree(base), root, collection):
                rel = f.relative_to(base)
                result.append(self._mapping(f, dest_base / rel, f"{sub}/{rel.as_posix()}"))

        commands_root = self.directories.commands_dir
        for f in _eligible(_list_flat(root), root, collection):
            display = f"{collection.prefix}{f.name}"
            result.append(self._mapping(f, commands_root / display, display))
        return result
