"""Create and remove managed symlinks with safety checks and reporting."""

from __future__ import annotations

import glob
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .config import Collection, CollectionRegistry, Directories, NamingStrategy
from .errors import ConfigurationError, SourceMissingError, SymlinkError
from .mappings import Mapping
from .paths import expand_path, validate_managed_path
from .ui import UI

ALREADY_EXISTS = "already exists"
NOT_A_SYMLINK = "not a symlink"
IS_DIRECTORY = "is directory"
BROKEN_LINK = "broken link"


class LinkStatus(str, Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    ERROR = "error"
    NOT_FOUND = "not_found"
    DRY_RUN = "dry_run"
    REMOVED = "removed"


@dataclass(frozen=True)
class LinkResult:
    status: LinkStatus
    display_name: str
    reason: Optional[str] = None
    error: Optional[str] = None
    broken: bool = False


@dataclass(frozen=True)
class OperationResult:
    total_files: int = 0
    created_links: int = 0
    skipped_files: int = 0
    error_count: int = 0
    dry_run_count: int = 0
    results: tuple[LinkResult, ...] = ()


@dataclass(frozen=True)
class RemovalResult:
    removed_count: int = 0
    error_count: int = 0
    skipped_count: int = 0
    results: tuple[LinkResult, ...] = ()

    def __add__(self, other: "RemovalResult") -> "RemovalResult":
        return RemovalResult(
            removed_count=self.removed_count + other.removed_count,
            error_count=self.error_count + other.error_count,
            skipped_count=self.skipped_count + other.skipped_count,
            results=self.results + other.results,
        )


@dataclass(frozen=True)
class RemovalPattern:
    pattern: str
    description: str
    exclude_prefixes: tuple[str, ...] = field(default_factory=tuple)


def _glob_in(directory: Path, tail: str) -> str:
    return os.path.join(glob.escape(str(directory)), tail)


class SymlinkManager:
    """Symlink lifecycle for the managed directories.

    Every path is checked against the managed roots before it is touched, and
    every mutation re-checks the filesystem at the moment it runs.
    """

    def __init__(self, ui: UI, directories: Directories, registry: CollectionRegistry,
                 dry_run: bool = False) -> None:
        self.ui = ui
        self.directories = directories
        self.registry = registry
        self.dry_run = dry_run

    @property
    def roots(self) -> tuple[Path, ...]:
        return self.directories.managed_roots

    # -----------------------------------------------------------------------
    # Creation
    # -----------------------------------------------------------------------

    def create_link(self, source: Path | str, destination: Path | str,
                    display_name: Optional[str] = None) -> LinkResult:
        dest = validate_managed_path(destination, self.roots)
        display_name = display_name or dest.name
        src = expand_path(source)

        if not src.exists():
            raise SourceMissingError(f"Source file does not exist: {src}", str(src))

        if not self.dry_run:
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError as e:
                raise SymlinkError(f"Permission denied creating directory: {dest.parent}",
                                   str(dest.parent)) from e
            except OSError as e:
                raise SymlinkError(f"Failed to create directory {dest.parent}: {e}",
                                   str(dest.parent)) from e

        if os.path.lexists(dest):
            return LinkResult(LinkStatus.SKIPPED, display_name, reason=ALREADY_EXISTS)

        if self.dry_run:
            self.ui.verbose(f"[dry-run] Would link {display_name} -> {src}")
            return LinkResult(LinkStatus.DRY_RUN, display_name)

        try:
            os.symlink(src, dest)
        except FileExistsError:
            # Another process won the race between the check and the link.
            return LinkResult(LinkStatus.SKIPPED, display_name, reason=ALREADY_EXISTS)
        except PermissionError as e:
            raise SymlinkError(f"Permission denied creating symlink: {dest}", str(dest)) from e
        except OSError as e:
            raise SymlinkError(f"Failed to create symlink {dest}: {e}", str(dest)) from e

        self.ui.linked(display_name)
        return LinkResult(LinkStatus.CREATED, display_name)

    def create_links(self, mappings: Sequence[Mapping]) -> OperationResult:
        """Create every mapping in order.

        A failing item is recorded and the batch carries on, except when the
        batch holds a single mapping: then the error is raised to the caller.
        """
        if not mappings:
            return OperationResult()

        results: list[LinkResult] = []
        created = skipped = errors = planned = 0
        single = len(mappings) == 1

        for m in mappings:
            try:
                result = self.create_link(m.source, m.destination, m.display_name)
            except (SymlinkError, SourceMissingError) as e:
                self.ui.error(f"Failed to create symlink for {m.display_name}: {e}")
                if single:
                    raise
                result = LinkResult(LinkStatus.ERROR, m.display_name, error=str(e))

            results.append(result)
            if result.status is LinkStatus.CREATED:
                created += 1
            elif result.status is LinkStatus.SKIPPED:
                skipped += 1
                self.ui.verbose(f"{result.display_name} ({result.reason})")
            elif result.status is LinkStatus.DRY_RUN:
                planned += 1
            else:
                errors += 1

        if created:
            self.ui.success(f"Created {created} symlink{'s' if created != 1 else ''}")
        if planned:
            self.ui.info(f"[dry-run] Would create {planned} symlink{'s' if planned != 1 else ''}")

        return OperationResult(
            total_files=len(mappings),
            created_links=created,
            skipped_files=skipped,
            error_count=errors,
            dry_run_count=planned,
            results=tuple(results),
        )

    # -----------------------------------------------------------------------
    # Removal
    # -----------------------------------------------------------------------

    def remove_link(self, path: Path | str, display_name: Optional[str] = None) -> LinkResult:
        target = validate_managed_path(path, self.roots)
        display_name = display_name or target.name

        if not os.path.lexists(target):
            return LinkResult(LinkStatus.NOT_FOUND, display_name)

        if target.is_symlink():
            broken = not target.exists()
            label = f"{display_name} (broken)" if broken else display_name
            reason = BROKEN_LINK if broken else None
            if self.dry_run:
                self.ui.verbose(f"[dry-run] Would remove {label}")
                return LinkResult(LinkStatus.DRY_RUN, display_name, reason=reason, broken=broken)
            try:
                target.unlink()
            except FileNotFoundError:
                return LinkResult(LinkStatus.NOT_FOUND, display_name)
            except PermissionError as e:
                raise SymlinkError(f"Permission denied removing symlink: {target}", str(target)) from e
            except OSError as e:
                raise SymlinkError(f"Failed to remove symlink {target}: {e}", str(target)) from e
            self.ui.removed(label)
            return LinkResult(LinkStatus.REMOVED, display_name, reason=reason, broken=broken)

        if target.is_dir():
            self.ui.skipped(f"{display_name} (directory)")
            return LinkResult(LinkStatus.SKIPPED, display_name, reason=IS_DIRECTORY)

        self.ui.skipped(f"{display_name} (not a symlink)")
        return LinkResult(LinkStatus.SKIPPED, display_name, reason=NOT_A_SYMLINK)

    def _matching(self, pattern: str, exclude_prefixes: Iterable[str] = (),
                  links_only: bool = False) -> list[Path]:
        excluded = tuple(exclude_prefixes)
        found = []
        for raw in sorted(glob.glob(pattern, recursive=True)):
            p = Path(raw)
            if excluded and p.name.startswith(excluded):
                continue
            if p.is_symlink() or (not links_only and p.is_file()):
                found.append(p)
        return found

    def remove_by_pattern(self, pattern: str, description: Optional[str] = None,
                          exclude_prefixes: Iterable[str] = ()) -> RemovalResult:
        """Remove every symlink matching a glob pattern.

        Regular files that match are reported as skipped and left alone.
        """
        label = description or "symlinks"
        paths = self._matching(pattern, exclude_prefixes)
        if not paths:
            self.ui.info(f"No {label.lower()} found to remove")
            return RemovalResult()

        self.ui.verbose(f"Removing {len(paths)} {label.lower()}")
        results: list[LinkResult] = []
        removed = errors = skipped = 0
        for p in paths:
            try:
                result = self.remove_link(p, p.name)
            except SymlinkError as e:
                self.ui.error(f"Failed to remove {p.name}: {e}")
                result = LinkResult(LinkStatus.ERROR, p.name, error=str(e))
            results.append(result)
            if result.status in (LinkStatus.REMOVED, LinkStatus.DRY_RUN):
                removed += 1
            elif result.status is LinkStatus.SKIPPED:
                skipped += 1
            elif result.status is LinkStatus.ERROR:
                errors += 1

        return RemovalResult(removed_count=removed, error_count=errors,
                             skipped_count=skipped, results=tuple(results))

    def removal_patterns(self, collection: Collection) -> list[RemovalPattern]:
        d = self.directories
        strategy = collection.strategy
        if strategy is NamingStrategy.PREFIXED:
            if not collection.prefix:
                raise ConfigurationError(
                    f"Collection {collection.key} has no prefix; refusing to remove by pattern")
            root = d.destination_root(collection.destination)
            return [RemovalPattern(_glob_in(root, f"{glob.escape(collection.prefix)}*"),
                                   f"{collection.name} symlinks")]
        if strategy is NamingStrategy.CATEGORY_FLATTEN:
            # Everything shaped like "<category>-<file>" that does not belong
            # to a prefixed collection sharing the same directory.
            root = d.destination_root(collection.destination)
            others = self.registry.prefixes_for(collection.destination, exclude=collection.key)
            return [RemovalPattern(_glob_in(root, "*-*"), f"{collection.name} symlinks",
                                   tuple(others))]
        if strategy is NamingStrategy.TOOL_WORKFLOW_SPLIT:
            patterns = [
                RemovalPattern(_glob_in(d.tools_dir, "**/*"), "Tool symlinks"),
                RemovalPattern(_glob_in(d.workflows_dir, "**/*"), "Workflow symlinks"),
            ]
            if collection.prefix:
                patterns.append(RemovalPattern(
                    _glob_in(d.commands_dir, f"{glob.escape(collection.prefix)}*"),
                    f"{collection.name} root command symlinks"))
            return patterns
        raise ConfigurationError(f"Unknown naming strategy: {strategy}")

    def remove_component_symlinks(self, collection_key: str) -> RemovalResult:
        collection = self.registry.get(collection_key)
        total = RemovalResult()
        for rp in self.removal_patterns(collection):
            total = total + self.remove_by_pattern(rp.pattern, rp.description, rp.exclude_prefixes)
        return total

    def component_links(self, collection_key: str) -> list[Path]:
        """Symlinks currently present that belong to a collection."""
        collection = self.registry.get(collection_key)
        found: list[Path] = []
        for rp in self.removal_patterns(collection):
            found.extend(self._matching(rp.pattern, rp.exclude_prefixes, links_only=True))
        return found

    # -----------------------------------------------------------------------
    # Broken links
    # -----------------------------------------------------------------------

    def find_broken_symlinks(self) -> list[Path]:
        d = self.directories
        candidates: list[Path] = []
        for flat in (d.agents_dir, d.commands_dir):
            if flat.is_dir():
                candidates.extend(sorted(flat.iterdir()))
        for tree in (d.tools_dir, d.workflows_dir):
            if tree.is_dir():
                candidates.extend(sorted(tree.rglob("*")))
        return [p for p in candidates if p.is_symlink() and not p.exists()]

    def cleanup_broken_symlinks(self) -> int:
        """Unlink symlinks whose target is gone. Returns how many were removed."""
        count = 0
        for link in self.find_broken_symlinks():
            target = validate_managed_path(link, self.roots)
            name = self._relative_name(target)
            if self.dry_run:
                self.ui.verbose(f"[dry-run] Would remove broken symlink {name}")
                count += 1
                continue
            try:
                target.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                self.ui.warn(f"Could not remove broken symlink {target}: {e}")
                continue
            self.ui.removed(f"{name} (broken)")
            count += 1
        if count:
            self.ui.info(f"Cleaned up {count} broken symlink{'s' if count != 1 else ''}")
        return count

    def _relative_name(self, path: Path) -> str:
        try:
            return path.relative_to(expand_path(self.directories.claude_dir)).as_posix()
        except ValueError:
            return path.name
