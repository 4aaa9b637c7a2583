"""Collection registry, managed directory layout and settings loading."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

from .errors import ConfigurationError, FileOperationError, UnknownCollectionError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SETTINGS_FILENAME = "config.json"
CLAUDE_DIR_ENV = "CLAUDE_AGENTS_CLAUDE_DIR"
SOURCE_DIR_ENV = "CLAUDE_AGENTS_SOURCE_DIR"

# Both matched case-insensitively against the file name.
SKIP_NAME_PREFIXES = ("readme", "license", "contributing", "examples")
SKIP_PATTERNS = ("setup_*.sh", ".*", "*.tmp", "*.swp", "*.json", "*.txt", "*.log")


def _expand(raw: str | os.PathLike[str]) -> Path:
    # Literal expansion only: never resolve through symlinks here.
    return Path(os.path.abspath(os.path.expandvars(os.path.expanduser(str(raw)))))


# ---------------------------------------------------------------------------
# Managed directories
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Directories:
    claude_dir: Path
    source_dir: Path

    @property
    def agents_dir(self) -> Path:
        return self.claude_dir / "agents"

    @property
    def commands_dir(self) -> Path:
        return self.claude_dir / "commands"

    @property
    def tools_dir(self) -> Path:
        return self.commands_dir / "tools"

    @property
    def workflows_dir(self) -> Path:
        return self.commands_dir / "workflows"

    @property
    def managed_roots(self) -> tuple[Path, ...]:
        """The only directories the tool may create or delete entries in."""
        roots: list[Path] = []
        for d in (self.agents_dir, self.commands_dir, self.tools_dir, self.workflows_dir):
            expanded = _expand(d)
            if expanded not in roots:
                roots.append(expanded)
        return tuple(roots)

    def destination_root(self, kind: "DestinationKind") -> Path:
        if kind is DestinationKind.AGENTS:
            return self.agents_dir
        if kind is DestinationKind.COMMANDS:
            return self.commands_dir
        raise ConfigurationError(f"Unknown destination type: {kind}")

    def source_for(self, collection: "Collection") -> Path:
        return self.source_dir / collection.source_subdir

    def ensure(self) -> None:
        for d in (self.claude_dir, self.agents_dir, self.commands_dir,
                  self.tools_dir, self.workflows_dir, self.source_dir):
            try:
                d.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FileOperationError(f"Could not create directory {d}", e.strerror or str(e)) from e


def default_claude_dir() -> Path:
    return Path.home() / ".claude"


def default_source_dir() -> Path:
    return Path.home() / ".claude-agents"


def read_settings(path: Path) -> dict[str, Any]:
    """Read the optional JSON settings file. Missing file means no overrides."""
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read settings file {path}", str(e)) from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a JSON object")
    return data


def load_directories(
    claude_dir: Optional[str] = None,
    source_dir: Optional[str] = None,
    settings_path: Optional[Path] = None,
) -> Directories:
    """Resolve directories from settings file, environment and explicit arguments.

    Precedence, lowest first: defaults, settings file, environment, arguments.
    """
    if settings_path is None:
        settings_path = default_source_dir() / SETTINGS_FILENAME
    settings = read_settings(settings_path)

    claude = claude_dir or os.environ.get(CLAUDE_DIR_ENV) or settings.get("claude_dir")
    source = source_dir or os.environ.get(SOURCE_DIR_ENV) or settings.get("source_dir")

    return Directories(
        claude_dir=_expand(claude) if claude else _expand(default_claude_dir()),
        source_dir=_expand(source) if source else _expand(default_source_dir()),
    )


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


class DestinationKind(str, Enum):
    AGENTS = "agents"
    COMMANDS = "commands"


class NamingStrategy(str, Enum):
    PREFIXED = "prefixed"
    CATEGORY_FLATTEN = "category-flatten"
    TOOL_WORKFLOW_SPLIT = "tool-workflow-split"


@dataclass(frozen=True)
class Collection:
    key: str
    name: str
    description: str
    count: int
    source_subdir: str
    destination: DestinationKind
    strategy: NamingStrategy
    prefix: str = ""
    repository: Optional[str] = None
    extra_skip_patterns: tuple[str, ...] = field(default_factory=tuple)


class CollectionRegistry:
    """Immutable lookup table of known collections, built once at startup."""

    def __init__(self, collections: list[Collection]) -> None:
        table: dict[str, Collection] = {}
        for c in collections:
            if c.key in table:
                raise ConfigurationError(f"Duplicate collection key: {c.key}")
            table[c.key] = c
        self._table: Mapping[str, Collection] = MappingProxyType(table)

    def __iter__(self) -> Iterator[Collection]:
        return iter(self._table.values())

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, key: object) -> bool:
        return key in self._table

    def keys(self) -> list[str]:
        return list(self._table)

    def get(self, key: str) -> Collection:
        try:
            return self._table[key]
        except KeyError:
            raise UnknownCollectionError(key, self.keys()) from None

    def prefixes_for(self, destination: DestinationKind, *, exclude: str = "") -> list[str]:
        """Prefixes used by other collections that link into the same root."""
        return [
            c.prefix for c in self
            if c.destination is destination and c.prefix and c.key != exclude
        ]


def default_registry() -> CollectionRegistry:
    return CollectionRegistry([
        Collection(
            key="dlabs",
            name="dLabs agents",
            description="Local specialized agents",
            count=5,
            source_subdir="dallasLabs",
            destination=DestinationKind.AGENTS,
            strategy=NamingStrategy.PREFIXED,
            prefix="dLabs-",
            extra_skip_patterns=("*.example",),
        ),
        Collection(
            key="awesome",
            name="awesome-claude-code-subagents",
            description="116 industry-standard agents",
            count=116,
            source_subdir="awesome-claude-code-subagents",
            destination=DestinationKind.AGENTS,
            strategy=NamingStrategy.CATEGORY_FLATTEN,
            repository="VoltAgent/awesome-claude-code-subagents",
            extra_skip_patterns=("node_modules",),
        ),
        Collection(
            key="wshobson_agents",
            name="wshobson agents",
            description="82 production-ready agents",
            count=82,
            source_subdir="wshobson-agents",
            destination=DestinationKind.AGENTS,
            strategy=NamingStrategy.PREFIXED,
            prefix="wshobson-",
            repository="wshobson/agents",
        ),
        Collection(
            key="wshobson_commands",
            name="wshobson commands",
            description="56 workflow tools",
            count=56,
            source_subdir="wshobson-commands",
            destination=DestinationKind.COMMANDS,
            strategy=NamingStrategy.TOOL_WORKFLOW_SPLIT,
            prefix="wshobson-",
            repository="wshobson/commands",
        ),
    ])
