"""Removal workflow: per-collection link removal followed by cleanup."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from .config import CollectionRegistry, Directories
from .errors import ConfigurationError, SymlinkError
from .janitor import cleanup_empty_directories
from .status import installed_components
from .symlinks import RemovalResult, SymlinkManager
from .ui import UI


@dataclass(frozen=True)
class RemoveResult:
    key: str
    success: bool
    error: Optional[str] = None
    removal: RemovalResult = field(default_factory=RemovalResult)


class Remover:
    def __init__(self, ui: UI, registry: CollectionRegistry, directories: Directories,
                 symlinks: SymlinkManager) -> None:
        self.ui = ui
        self.registry = registry
        self.directories = directories
        self.symlinks = symlinks

    def remove_component(self, key: str) -> RemoveResult:
        collection = self.registry.get(key)
        self.ui.section(f"Removing {collection.name}")
        if not self.symlinks.component_links(key):
            self.ui.info(f"No {collection.name} found to remove")
            return RemoveResult(key, True)
        return RemoveResult(key, True, removal=self.symlinks.remove_component_symlinks(key))

    def remove_components(self, keys: Sequence[str]) -> dict[str, RemoveResult]:
        if not keys:
            self.ui.info("No components selected for removal.")
            return {}

        results: dict[str, RemoveResult] = {}
        for key in keys:
            try:
                results[key] = self.remove_component(key)
            except (ConfigurationError, SymlinkError) as e:
                self.ui.error(f"Failed to remove {key}: {e}")
                results[key] = RemoveResult(key, False, error=str(e),
                                            removal=RemovalResult(error_count=1))

        self.ui.section("Cleaning up")
        self.symlinks.cleanup_broken_symlinks()
        if not self.symlinks.dry_run:
            cleanup_empty_directories(self.directories, self.ui)
        return results

    def installed(self) -> list[str]:
        return installed_components(self.registry, self.symlinks)

    def remove_all(self) -> dict[str, RemoveResult]:
        return self.remove_components(self.installed())

    def verify_removal(self, key: str) -> bool:
        return not self.symlinks.component_links(key)
