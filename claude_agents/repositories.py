"""Clone or update the upstream repositories that back remote collections."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from .config import Collection, Directories
from .errors import RepositoryError
from .ui import UI

Runner = Callable[..., subprocess.CompletedProcess]


def run_command(cmd: Sequence[str], cwd: Optional[Path] = None) -> subprocess.CompletedProcess:
    return subprocess.run(list(cmd), cwd=cwd, capture_output=True, text=True, check=False)


class RepositorySync:
    def __init__(self, ui: UI, directories: Directories, runner: Runner = run_command,
                 which: Callable[[str], Optional[str]] = shutil.which,
                 update: bool = True) -> None:
        self.ui = ui
        self.directories = directories
        self.runner = runner
        self.which = which
        self.update = update

    def git_available(self) -> bool:
        return self.which("git") is not None

    def gh_available(self) -> bool:
        return self.which("gh") is not None

    def ensure_all(self, collections: Iterable[Collection]) -> dict[str, Optional[str]]:
        """Sync every remote collection; returns an error message per failed key."""
        remote = [c for c in collections if c.repository]
        failures: dict[str, Optional[str]] = {}
        if not remote:
            return failures
        self.ui.section("Repository Management")
        for c in remote:
            try:
                self.ensure(c)
            except RepositoryError as e:
                self.ui.error(str(e))
                failures[c.key] = str(e)
        return failures

    def ensure(self, collection: Collection) -> Optional[Path]:
        if not collection.repository:
            return None
        target = self.directories.source_for(collection)
        if target.is_dir():
            if self.update:
                self._pull(target)
            else:
                self.ui.verbose(f"Repository {target.name} already exists")
        else:
            self._clone(collection.repository, target)
        return target

    def _run(self, cmd: list[str], cwd: Optional[Path] = None) -> subprocess.CompletedProcess:
        try:
            return self.runner(cmd, cwd=cwd)
        except OSError as e:
            raise RepositoryError(f"Could not run {cmd[0]}", str(e)) from e

    def _clone(self, repository: str, target: Path) -> None:
        if not self.git_available():
            raise RepositoryError("Git is required but not available. Please install Git.")
        target.parent.mkdir(parents=True, exist_ok=True)
        if self.gh_available():
            cmd = ["gh", "repo", "clone", repository, str(target)]
        else:
            cmd = ["git", "clone", f"https://github.com/{repository}.git", str(target)]
        self.ui.info(f"Cloning {repository}...")
        res = self._run(cmd)
        if res.returncode != 0:
            stderr = (res.stderr or "").strip()
            raise RepositoryError(f"Failed to clone repository: {repository}", stderr or None)
        self.ui.success(f"Successfully cloned {repository}")

    def _pull(self, target: Path) -> None:
        self.ui.info(f"Updating {target.name}...")
        try:
            res = self._run(["git", "pull", "--ff-only"], cwd=target)
        except RepositoryError as e:
            self.ui.warn(f"Failed to update {target.name}, continuing with existing version ({e})")
            return
        if res.returncode != 0:
            self.ui.warn(f"Failed to update {target.name}, continuing with existing version")
            stderr = (res.stderr or "").strip()
            if stderr:
                self.ui.verbose(stderr)
            return
        self.ui.success(f"Successfully updated {target.name}")
