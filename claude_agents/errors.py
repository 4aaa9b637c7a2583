"""Exception types raised across claude_agents."""

from __future__ import annotations

from typing import Optional


class ClaudeAgentsError(Exception):
    """Base class for every error the tool raises on purpose."""

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class ConfigurationError(ClaudeAgentsError):
    pass


class UnknownCollectionError(ConfigurationError):
    def __init__(self, key: str, available: Optional[list[str]] = None) -> None:
        details = f"available: {', '.join(available)}" if available else None
        super().__init__(f"Unknown collection: {key}", details)
        self.key = key


class FileOperationError(ClaudeAgentsError):
    pass


class SourceMissingError(FileOperationError):
    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class SymlinkError(ClaudeAgentsError):
    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class PathEscapeError(ClaudeAgentsError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Refusing to touch path outside managed directories: {path}")
        self.path = path


class RepositoryError(ClaudeAgentsError):
    pass


class UserCancelledError(ClaudeAgentsError):
    def __init__(self, message: str = "Operation cancelled by user") -> None:
        super().__init__(message)
