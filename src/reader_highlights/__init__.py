"""
reader_highlights package exports convenience helpers for library consumers.
"""

from __future__ import annotations

from .config import ReaderConfig, config_from_dict, config_from_yaml, load_config
from .content import load_book
from .models import Block, Book, Document, Range, Segment, SelectionAnchor
from .offsets import resolve_offset
from .ranges import InvalidRangeError, merge_ranges
from .session import ReaderSession
from .storage import build_backend_from_config, create_backend
from .store import HighlightStore, LoadResult, SaveResult

__all__ = [
    "ReaderConfig",
    "config_from_dict",
    "config_from_yaml",
    "load_config",
    "load_book",
    "Block",
    "Book",
    "Document",
    "Range",
    "Segment",
    "SelectionAnchor",
    "resolve_offset",
    "merge_ranges",
    "InvalidRangeError",
    "HighlightStore",
    "LoadResult",
    "SaveResult",
    "ReaderSession",
    "create_backend",
    "build_backend_from_config",
]

__version__ = "0.1.0"
