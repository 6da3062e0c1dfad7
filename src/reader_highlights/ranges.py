from __future__ import annotations

from typing import Iterable, List, Tuple

from .models import Range


class InvalidRangeError(ValueError):
    """Raised when a caller hands a lower-level range operation start >= end."""


def validate_range(start: int, end: int) -> Range:
    """Return a Range for (start, end) or raise InvalidRangeError."""
    if start < 0:
        raise InvalidRangeError(f"Range start must be non-negative, got {start}")
    if start >= end:
        raise InvalidRangeError(f"Range start {start} must be below end {end}")
    return Range(start, end)


def clamp_range(start: int, end: int, length: int) -> Tuple[int, int]:
    """Clamp both offsets into [0, length]."""
    return max(0, min(start, length)), max(0, min(end, length))


def merge_ranges(ranges: Iterable[Range]) -> List[Range]:
    """
    Normalize ranges into the minimal sorted, strictly separated form.

    Overlapping and touching ranges (a.end == b.start) collapse into one.
    Degenerate input ranges with start >= end cover no characters and are
    dropped.
    """
    ordered = sorted(
        (r for r in ranges if r.start < r.end), key=lambda r: (r.start, r.end)
    )
    if not ordered:
        return []

    merged: List[Range] = []
    current_start, current_end = ordered[0].start, ordered[0].end
    for candidate in ordered[1:]:
        if candidate.start <= current_end:
            current_end = max(current_end, candidate.end)
        else:
            merged.append(Range(current_start, current_end))
            current_start, current_end = candidate.start, candidate.end
    merged.append(Range(current_start, current_end))
    return merged
