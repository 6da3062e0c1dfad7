from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple

from .codec import MalformedHighlightsError, dumps_highlights, loads_highlights
from .models import HighlightSet, Range, Segment, SelectionAnchor
from .ranges import clamp_range, merge_ranges, validate_range
from .storage import KeyValueStore, PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "highlights-"


class StoreNotLoadedError(RuntimeError):
    """Raised when a document-scoped operation runs before load()."""


@dataclass(slots=True)
class LoadResult:
    """Outcome of loading a document's highlights."""

    document_id: str
    highlights: HighlightSet
    found: bool = False
    warning: str | None = None


@dataclass(slots=True)
class SaveResult:
    """Outcome of a mutation; saved is False when the write did not land."""

    document_id: str
    highlights: HighlightSet = field(default_factory=dict)
    saved: bool = True
    error: str | None = None


def _copy(highlights: Mapping[int, List[Range]]) -> HighlightSet:
    return {index: list(ranges) for index, ranges in highlights.items() if ranges}


class HighlightStore:
    """Owns the highlight set of the currently open document.

    Every mutation is written through to the backend before returning. The
    in-memory set keeps the change even when the write fails, and the failure
    is reported on the returned SaveResult.
    """

    def __init__(
        self, backend: KeyValueStore, *, key_prefix: str = DEFAULT_KEY_PREFIX
    ) -> None:
        self._backend = backend
        self._key_prefix = key_prefix
        self._document_id: str | None = None
        self._highlights: HighlightSet = {}

    @property
    def document_id(self) -> str | None:
        return self._document_id

    @property
    def is_loaded(self) -> bool:
        return self._document_id is not None

    @property
    def highlights(self) -> HighlightSet:
        return _copy(self._highlights)

    @property
    def has_highlights(self) -> bool:
        return any(self._highlights.values())

    def key_for(self, document_id: str) -> str:
        return f"{self._key_prefix}{document_id}"

    def ranges_for(self, block_index: int) -> Tuple[Range, ...]:
        return tuple(self._highlights.get(block_index, ()))

    def load(self, document_id: str) -> LoadResult:
        """Make document_id the active document, reading its stored set."""
        if self._document_id is not None and self._document_id != document_id:
            self.unload()

        raw = self._backend.get(self.key_for(document_id))
        self._document_id = document_id
        if raw is None:
            self._highlights = {}
            logger.debug("No stored highlights for %s", document_id)
            return LoadResult(document_id=document_id, highlights={})

        try:
            self._highlights = loads_highlights(raw)
        except MalformedHighlightsError as exc:
            logger.warning(
                "Discarding malformed highlights for %s: %s", document_id, exc
            )
            self._highlights = {}
            return LoadResult(
                document_id=document_id, highlights={}, found=True, warning=str(exc)
            )

        logger.info(
            "Loaded %d highlighted block(s) for %s",
            len(self._highlights),
            document_id,
        )
        return LoadResult(
            document_id=document_id, highlights=self.highlights, found=True
        )

    def unload(self) -> None:
        """Drop the resident set; the last write-through is the durable copy."""
        if self._document_id is not None:
            logger.debug("Unloading highlights for %s", self._document_id)
        self._document_id = None
        self._highlights = {}

    def add_selection(
        self,
        start: SelectionAnchor,
        end: SelectionAnchor,
        block_text_lengths: Mapping[int, int],
    ) -> SaveResult:
        """Highlight the text between two selection anchors and save."""
        document_id = self._require_loaded()
        if start.block_index > end.block_index:
            start, end = end, start
        lo_index, hi_index = start.block_index, end.block_index

        touched: Dict[int, List[Range]] = {}
        for index in range(lo_index, hi_index + 1):
            length = block_text_lengths.get(index)
            if length is None:
                continue

            start_here = index == start.block_index
            end_here = index == end.block_index
            if (
                start_here
                and end_here
                and not start.resolved
                and not end.resolved
            ):
                logger.debug("Neither endpoint resolved in block %d; skipping", index)
                continue

            effective_start = start.raw_offset if start_here and start.resolved else 0
            effective_end = end.raw_offset if end_here and end.resolved else length
            if start_here and not start.resolved:
                logger.debug("Start endpoint unresolved; using 0 in block %d", index)
            if end_here and not end.resolved:
                logger.debug(
                    "End endpoint unresolved; using %d in block %d", length, index
                )

            if lo_index == hi_index and effective_start > effective_end:
                effective_start, effective_end = effective_end, effective_start
            effective_start, effective_end = clamp_range(
                effective_start, effective_end, length
            )
            if effective_start < effective_end:
                ranges = touched.setdefault(
                    index, list(self._highlights.get(index, []))
                )
                ranges.append(Range(effective_start, effective_end))

        for index, ranges in touched.items():
            self._highlights[index] = merge_ranges(ranges)
        return self._save(document_id)

    def add_range(self, block_index: int, start: int, end: int) -> SaveResult:
        """Add a validated range directly to one block and save."""
        document_id = self._require_loaded()
        new_range = validate_range(start, end)
        ranges = list(self._highlights.get(block_index, []))
        ranges.append(new_range)
        self._highlights[block_index] = merge_ranges(ranges)
        return self._save(document_id)

    def clear(self, document_id: str | None = None) -> SaveResult:
        """Remove every highlight of the document and save the empty set.

        Irreversible; confirming the user's intent is up to the caller.
        """
        if document_id is not None and document_id != self._document_id:
            self.load(document_id)
        document_id = self._require_loaded()
        self._highlights = {}
        logger.info("Clearing highlights for %s", document_id)
        return self._save(document_id)

    def render_segments(self, block_index: int, text: str) -> List[Segment]:
        """Split text into alternating plain and highlighted segments."""
        segments: List[Segment] = []
        cursor = 0
        for stored in self._highlights.get(block_index, []):
            start, end = clamp_range(stored.start, stored.end, len(text))
            start = max(start, cursor)
            if start >= end:
                continue
            if start > cursor:
                segments.append(Segment(text[cursor:start], highlighted=False))
            segments.append(Segment(text[start:end], highlighted=True))
            cursor = end
        if cursor < len(text):
            segments.append(Segment(text[cursor:], highlighted=False))
        return segments

    def _require_loaded(self) -> str:
        if self._document_id is None:
            raise StoreNotLoadedError("No document is loaded in the highlight store.")
        return self._document_id

    def _save(self, document_id: str) -> SaveResult:
        payload = dumps_highlights(self._highlights)
        key = self.key_for(document_id)
        try:
            saved = self._backend.set(key, payload)
        except PersistenceError as exc:
            logger.error("Failed to save highlights for %s: %s", document_id, exc)
            return SaveResult(
                document_id=document_id,
                highlights=self.highlights,
                saved=False,
                error=str(exc),
            )
        if not saved:
            logger.error("Backend rejected highlights for %s", document_id)
            return SaveResult(
                document_id=document_id,
                highlights=self.highlights,
                saved=False,
                error=f"Backend failed to store key '{key}'.",
            )
        logger.info("Saved highlights for %s", document_id)
        return SaveResult(document_id=document_id, highlights=self.highlights)
