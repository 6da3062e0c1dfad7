from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping

from .models import HighlightSet, Range
from .ranges import merge_ranges


class MalformedHighlightsError(ValueError):
    """Raised when persisted highlight data does not have the expected shape."""


def highlights_to_payload(highlights: Mapping[int, List[Range]]) -> Dict[str, Any]:
    """Return the JSON-compatible layout, keys ascending by block index."""
    payload: Dict[str, Any] = {}
    for block_index in sorted(highlights):
        ranges = highlights[block_index]
        if not ranges:
            continue
        payload[str(block_index)] = [r.to_dict() for r in ranges]
    return payload


def dumps_highlights(highlights: Mapping[int, List[Range]]) -> str:
    """Serialize a HighlightSet to its canonical compact JSON string."""
    return json.dumps(highlights_to_payload(highlights), separators=(",", ":"))


def highlights_from_payload(payload: Any) -> HighlightSet:
    """Rebuild a HighlightSet from decoded JSON, normalizing each block."""
    if not isinstance(payload, Mapping):
        raise MalformedHighlightsError("Highlight data must be a JSON object.")
    highlights: HighlightSet = {}
    for key, entries in payload.items():
        block_index = _parse_block_index(key)
        if not isinstance(entries, list):
            raise MalformedHighlightsError(
                f"Highlights for block {key!r} must be a list."
            )
        # "1" and "01" name the same block; their ranges are merged.
        ranges = merge_ranges(
            [
                *highlights.get(block_index, []),
                *(_parse_range(key, entry) for entry in entries),
            ]
        )
        if ranges:
            highlights[block_index] = ranges
    return highlights


def loads_highlights(raw: str) -> HighlightSet:
    """Parse the canonical JSON string produced by dumps_highlights."""
    try:
        payload = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        raise MalformedHighlightsError(f"Invalid highlight JSON: {exc}") from exc
    return highlights_from_payload(payload)


def _parse_block_index(key: Any) -> int:
    try:
        block_index = int(key)
    except (TypeError, ValueError) as exc:
        raise MalformedHighlightsError(f"Invalid block index {key!r}.") from exc
    if block_index < 0:
        raise MalformedHighlightsError(f"Invalid block index {key!r}.")
    return block_index


def _parse_range(key: Any, entry: Any) -> Range:
    if not isinstance(entry, Mapping):
        raise MalformedHighlightsError(f"Range in block {key!r} must be an object.")
    start = entry.get("start")
    end = entry.get("end")
    for value in (start, end):
        # bool is an int subclass; JSON true/false is never an offset.
        if not isinstance(value, int) or isinstance(value, bool):
            raise MalformedHighlightsError(
                f"Range in block {key!r} has non-integer bounds: {dict(entry)!r}"
            )
    if start < 0:
        raise MalformedHighlightsError(
            f"Range in block {key!r} starts before 0: {start}"
        )
    return Range(start, end)
