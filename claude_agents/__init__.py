"""Install Claude Code agent and command collections as managed symlinks."""

__version__ = "0.3.0"

from .config import (  # noqa: E402
    Collection,
    CollectionRegistry,
    DestinationKind,
    Directories,
    NamingStrategy,
    default_registry,
    load_directories,
)
from .errors import (  # noqa: E402
    ClaudeAgentsError,
    ConfigurationError,
    FileOperationError,
    PathEscapeError,
    RepositoryError,
    SourceMissingError,
    SymlinkError,
    UnknownCollectionError,
    UserCancelledError,
)
from .janitor import cleanup_empty_directories  # noqa: E402
from .mappings import Mapping, MappingBuilder  # noqa: E402
from .paths import validate_managed_path  # noqa: E402
from .symlinks import LinkResult, LinkStatus, OperationResult, RemovalResult, SymlinkManager  # noqa: E402

__all__ = [
    "ClaudeAgentsError",
    "Collection",
    "CollectionRegistry",
    "ConfigurationError",
    "DestinationKind",
    "Directories",
    "FileOperationError",
    "LinkResult",
    "LinkStatus",
    "Mapping",
    "MappingBuilder",
    "NamingStrategy",
    "OperationResult",
    "PathEscapeError",
    "RemovalResult",
    "RepositoryError",
    "SourceMissingError",
    "SymlinkError",
    "SymlinkManager",
    "UnknownCollectionError",
    "UserCancelledError",
    "cleanup_empty_directories",
    "default_registry",
    "load_directories",
    "validate_managed_path",
]
