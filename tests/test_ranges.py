import pytest

from reader_highlights.models import Range
from reader_highlights.ranges import (
    InvalidRangeError,
    clamp_range,
    merge_ranges,
    validate_range,
)

SAMPLES = [
    [],
    [Range(3, 7)],
    [Range(0, 10), Range(2, 5), Range(4, 6)],
    [Range(10, 12), Range(0, 3), Range(5, 6)],
    [Range(4, 9), Range(9, 15), Range(20, 21), Range(15, 16)],
    [Range(8, 9), Range(1, 2), Range(2, 3), Range(0, 1)],
]


def _assert_canonical(ranges: list[Range]) -> None:
    for current in ranges:
        assert current.start < current.end
    for left, right in zip(ranges, ranges[1:]):
        assert left.end < right.start


def test_merge_ranges_empty_input():
    assert merge_ranges([]) == []


def test_merge_ranges_keeps_disjoint_ranges_sorted():
    merged = merge_ranges([Range(10, 15), Range(4, 9)])
    assert merged == [Range(4, 9), Range(10, 15)]


def test_merge_ranges_collapses_overlap_and_nesting():
    assert merge_ranges([Range(4, 9), Range(7, 15)]) == [Range(4, 15)]
    assert merge_ranges([Range(0, 10), Range(2, 5)]) == [Range(0, 10)]


def test_merge_ranges_joins_touching_ranges():
    """a.end == b.start merges into one range."""
    assert merge_ranges([Range(9, 15), Range(4, 9)]) == [Range(4, 15)]


def test_merge_ranges_drops_degenerate_input():
    assert merge_ranges([Range(5, 5), Range(7, 3)]) == []
    assert merge_ranges([Range(5, 5), Range(1, 2)]) == [Range(1, 2)]


@pytest.mark.parametrize("ranges", SAMPLES)
def test_merge_ranges_output_is_canonical_and_idempotent(ranges):
    merged = merge_ranges(ranges)
    _assert_canonical(merged)
    assert merge_ranges(merged) == merged


def test_merge_ranges_preserves_covered_characters():
    ranges = [Range(4, 9), Range(9, 15), Range(20, 21), Range(15, 16)]
    covered = {i for r in ranges for i in range(r.start, r.end)}
    merged_covered = {i for r in merge_ranges(ranges) for i in range(r.start, r.end)}
    assert merged_covered == covered


def test_validate_range_rejects_empty_and_reversed():
    with pytest.raises(InvalidRangeError):
        validate_range(5, 5)
    with pytest.raises(InvalidRangeError):
        validate_range(9, 4)
    with pytest.raises(InvalidRangeError):
        validate_range(-1, 3)
    assert validate_range(1, 2) == Range(1, 2)


def test_clamp_range_bounds_both_offsets():
    assert clamp_range(-3, 50, 10) == (0, 10)
    assert clamp_range(4, 6, 10) == (4, 6)
