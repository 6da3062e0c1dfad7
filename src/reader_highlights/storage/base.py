from __future__ import annotations

from abc import ABC, abstractmethod


class PersistenceError(RuntimeError):
    """Raised when a backend cannot read or write a stored value."""


class KeyValueStore(ABC):
    """String key/value persistence consumed by the highlight store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> bool:
        """Store value under key and report whether the write succeeded."""
        raise NotImplementedError
