from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml


@dataclass(slots=True)
class DisplaySettings:
    """Configuration block for terminal rendering of highlights."""

    highlight_fg: str = "yellow"
    highlight_bold: bool = True
    show_block_numbers: bool = False


@dataclass(slots=True)
class ReaderConfig:
    """Configuration options for the reader and its highlight storage."""

    storage_backend: str = "file"
    storage_dir: str = ".highlights"
    key_prefix: str = "highlights-"
    display: DisplaySettings = field(default_factory=DisplaySettings)

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable dictionary representation of the configuration."""
        return dict(asdict(self))


def _build_kwargs(data: Mapping[str, Any]) -> dict[str, Any]:
    allowed = {field.name for field in fields(ReaderConfig)}
    kwargs = {key: data[key] for key in data if key in allowed}
    if "display" in data:
        display_value = data["display"]
        if isinstance(display_value, DisplaySettings):
            kwargs["display"] = display_value
        elif isinstance(display_value, Mapping):
            kwargs["display"] = _build_display_settings(display_value)
        else:
            kwargs.pop("display")
    return kwargs


def _build_display_settings(data: Mapping[str, Any]) -> DisplaySettings:
    display_allowed = {field.name for field in fields(DisplaySettings)}
    filtered = {key: data[key] for key in data if key in display_allowed}
    return DisplaySettings(**filtered)


def config_from_dict(data: Mapping[str, Any] | None) -> ReaderConfig:
    """Build a ReaderConfig from a dictionary-like input."""
    if data is None:
        return ReaderConfig()
    return ReaderConfig(**_build_kwargs(data))


def config_from_yaml(path: str | Path) -> ReaderConfig:
    """Load configuration from a YAML file."""
    contents = Path(path).read_text(encoding="utf-8")
    parsed = yaml.safe_load(contents) or {}
    if not isinstance(parsed, MutableMapping):
        raise ValueError("Configuration YAML must define a mapping.")
    return config_from_dict(parsed)


def load_config(path: str | Path | None = None) -> ReaderConfig:
    """Load configuration from YAML when provided, otherwise return defaults."""
    if path is None:
        return ReaderConfig()
    return config_from_yaml(path)
