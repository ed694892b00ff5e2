"""Application-level exception types for multivocal."""

from __future__ import annotations


class MultivocalError(Exception):
    """Base exception for multivocal."""


class ConfigurationError(MultivocalError):
    """Base exception for configuration and startup validation errors."""


class ConfigLoadError(ConfigurationError):
    """Raised when the conversation config document cannot be loaded."""


class HandlerNotFoundError(MultivocalError):
    """Raised when no handler is registered for intent, action, or DEFAULT."""

    def __init__(self, keys: list[str]) -> None:
        super().__init__(f"no handler registered for any of {keys}")
        self.keys = keys


class StorageKeyError(MultivocalError, KeyError):
    """Raised when a storage key is outside the session.* and user.* namespaces."""
