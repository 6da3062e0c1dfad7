from __future__ import annotations

from typing import Dict

from .base import KeyValueStore


class InMemoryStore(KeyValueStore):
    """Process-local store; contents vanish with the process."""

    def __init__(self, initial: Dict[str, str] | None = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> bool:
        self._values[key] = value
        return True

    def keys(self) -> list[str]:
        return sorted(self._values)
