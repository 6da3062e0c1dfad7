from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .base import KeyValueStore, PersistenceError
from .json_file import JsonFileStore
from .memory import InMemoryStore

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from ..config import ReaderConfig

__all__ = [
    "KeyValueStore",
    "PersistenceError",
    "InMemoryStore",
    "JsonFileStore",
    "create_backend",
    "build_backend_from_config",
]


def create_backend(name: str, **kwargs: Any) -> KeyValueStore:
    """Factory for building persistence backends by name."""
    normalized = name.lower().strip()
    if normalized == "memory":
        return InMemoryStore()
    if normalized in {"file", "json", "json_file"}:
        return JsonFileStore(**kwargs)
    raise ValueError(f"Unknown storage backend '{name}'.")


def build_backend_from_config(config: "ReaderConfig") -> KeyValueStore:
    """Convenience helper to build a backend from ReaderConfig."""
    normalized = config.storage_backend.lower().strip()
    if normalized in {"file", "json", "json_file"}:
        return create_backend(config.storage_backend, directory=config.storage_dir)
    return create_backend(config.storage_backend)
