"""Install workflow: sync sources, plan mappings, create links."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from .config import Collection, CollectionRegistry, Directories, NamingStrategy
from .errors import ConfigurationError, FileOperationError, RepositoryError, SymlinkError
from .mappings import MappingBuilder
from .repositories import RepositorySync
from .symlinks import OperationResult, SymlinkManager
from .ui import UI


@dataclass(frozen=True)
class InstallResult:
    key: str
    success: bool
    error: Optional[str] = None
    operation: OperationResult = field(default_factory=OperationResult)


class Installer:
    def __init__(self, ui: UI, registry: CollectionRegistry, directories: Directories,
                 symlinks: SymlinkManager, mappings: MappingBuilder,
                 repositories: RepositorySync) -> None:
        self.ui = ui
        self.registry = registry
        self.directories = directories
        self.symlinks = symlinks
        self.mappings = mappings
        self.repositories = repositories

    @property
    def dry_run(self) -> bool:
        return self.symlinks.dry_run

    def install_component(self, key: str, ensure_repo: bool = True) -> InstallResult:
        """Install one collection. Expected failures become a failed result."""
        try:
            collection = self.registry.get(key)
            self.ui.section(f"Installing {collection.name}")
            if ensure_repo:
                self.repositories.ensure(collection)
            self._ensure_preconditions(collection)

            mappings = self.mappings.build_mappings(key)
            if not mappings:
                self.ui.warn(f"No files found to install for {collection.name}")
                return InstallResult(key, True)

            operation = self.symlinks.create_links(mappings)
        except (ConfigurationError, FileOperationError, SymlinkError, RepositoryError) as e:
            self.ui.error(str(e))
            return InstallResult(key, False, error=str(e))

        return InstallResult(key, True, operation=operation)

    def install_components(self, keys: Sequence[str]) -> dict[str, InstallResult]:
        if not keys:
            self.ui.info("No components selected. Exiting.")
            return {}

        if not self.dry_run:
            self.directories.ensure()
        known = [self.registry.get(k) for k in keys if k in self.registry]
        self.repositories.ensure_all(known)

        results: dict[str, InstallResult] = {}
        for key in keys:
            results[key] = self.install_component(key, ensure_repo=False)
        return results

    def install_all(self) -> dict[str, InstallResult]:
        return self.install_components(self.registry.keys())

    def _ensure_preconditions(self, collection: Collection) -> None:
        if self.dry_run:
            return
        if collection.strategy is NamingStrategy.TOOL_WORKFLOW_SPLIT:
            for d in (self.directories.tools_dir, self.directories.workflows_dir):
                try:
                    d.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    raise FileOperationError(f"Could not create directory {d}",
                                             e.strerror or str(e)) from e
