"""Shared fixtures for claude_agents tests."""

from __future__ import annotations

import argparse
import subprocess
from pathlib import Path
from typing import Any, Iterable, Optional

import pytest

from claude_agents.config import (
    CLAUDE_DIR_ENV,
    SOURCE_DIR_ENV,
    CollectionRegistry,
    Directories,
    default_registry,
)
from claude_agents.mappings import MappingBuilder
from claude_agents.repositories import RepositorySync
from claude_agents.symlinks import SymlinkManager

# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class RecordingUI:
    """Satisfies the UI protocol and keeps every message for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def _record(self, kind: str, msg: str) -> None:
        self.calls.append((kind, msg))

    def info(self, msg: str) -> None:
        self._record("info", msg)

    def success(self, msg: str) -> None:
        self._record("success", msg)

    def warn(self, msg: str) -> None:
        self._record("warn", msg)

    def error(self, msg: str) -> None:
        self._record("error", msg)

    def verbose(self, msg: str) -> None:
        self._record("verbose", msg)

    def section(self, title: str) -> None:
        self._record("section", title)

    def linked(self, name: str) -> None:
        self._record("linked", name)

    def skipped(self, name: str) -> None:
        self._record("skipped", name)

    def removed(self, name: str) -> None:
        self._record("removed", name)

    def messages(self, kind: str) -> list[str]:
        return [m for k, m in self.calls if k == kind]


class FakeRunner:
    """Stands in for subprocess.run; records commands and returns canned results."""

    def __init__(self, returncode: int = 0, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        self.commands: list[tuple[list[str], Optional[Path]]] = []

    def __call__(self, cmd: list[str], cwd: Optional[Path] = None) -> subprocess.CompletedProcess:
        self.commands.append((list(cmd), cwd))
        if self.returncode == 0 and cmd[:2] in (["gh", "repo"], ["git", "clone"]):
            Path(cmd[-1]).mkdir(parents=True, exist_ok=True)
        return subprocess.CompletedProcess(cmd, self.returncode, stdout="", stderr=self.stderr)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_home(tmp_path, monkeypatch):
    """Redirect the home directory and clear overrides into a temp directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", staticmethod(lambda: home))
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.delenv(CLAUDE_DIR_ENV, raising=False)
    monkeypatch.delenv(SOURCE_DIR_ENV, raising=False)
    return home


@pytest.fixture
def directories(fake_home) -> Directories:
    return Directories(claude_dir=fake_home / ".claude", source_dir=fake_home / ".claude-agents")


@pytest.fixture
def registry() -> CollectionRegistry:
    return default_registry()


@pytest.fixture
def ui() -> RecordingUI:
    return RecordingUI()


@pytest.fixture
def symlinks(ui, directories, registry) -> SymlinkManager:
    return SymlinkManager(ui, directories, registry)


@pytest.fixture
def builder(registry, directories) -> MappingBuilder:
    return MappingBuilder(registry, directories)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def repositories(ui, directories, runner) -> RepositorySync:
    return RepositorySync(ui, directories, runner=runner, which=lambda name: f"/usr/bin/{name}",
                          update=False)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def seed_files(root: Path, rel_paths: Iterable[str]) -> list[Path]:
    """Create files under root with a small markdown body. Returns their paths."""
    created = []
    for rel in rel_paths:
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(f"# {p.stem}\n\nAgent body.\n")
        created.append(p)
    return created


def seed_collection(directories: Directories, registry: CollectionRegistry, key: str,
                    rel_paths: Iterable[str]) -> Path:
    root = directories.source_for(registry.get(key))
    root.mkdir(parents=True, exist_ok=True)
    seed_files(root, rel_paths)
    return root


DLABS_FILES = [
    "code-reviewer.md",
    "debugger.md",
    "architect.md",
    "tester.md",
    "writer.md",
]

AWESOME_FILES = [
    "categories/01-frontend/a.md",
    "categories/02-backend/b.md",
    "README.md",
]

WSHOBSON_AGENT_FILES = ["backend-architect.md", "security-auditor.md"]

WSHOBSON_COMMAND_FILES = [
    "tools/git.md",
    "tools/deploy/k8s.md",
    "workflows/ci.md",
    "feature.md",
]


def seed_all(directories: Directories, registry: CollectionRegistry) -> None:
    seed_collection(directories, registry, "dlabs", DLABS_FILES)
    seed_collection(directories, registry, "awesome", AWESOME_FILES)
    seed_collection(directories, registry, "wshobson_agents", WSHOBSON_AGENT_FILES)
    seed_collection(directories, registry, "wshobson_commands", WSHOBSON_COMMAND_FILES)


def make_args(directories: Optional[Directories] = None, **overrides: Any) -> argparse.Namespace:
    """Create an argparse.Namespace with sensible test defaults."""
    defaults: dict[str, Any] = {
        "dry_run": False,
        "verbose": False,
        "yes": True,
        "no_color": True,
        "claude_dir": str(directories.claude_dir) if directories else None,
        "source_dir": str(directories.source_dir) if directories else None,
        "skip_update": True,
    }
    defaults.update(overrides)
    return argparse.Namespace(**defaults)
