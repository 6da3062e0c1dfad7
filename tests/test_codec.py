import json

import pytest

from reader_highlights.codec import (
    MalformedHighlightsError,
    dumps_highlights,
    highlights_to_payload,
    loads_highlights,
)
from reader_highlights.models import Range


def test_dumps_highlights_uses_compact_numeric_key_order():
    highlights = {10: [Range(0, 2)], 2: [Range(4, 9), Range(10, 15)]}
    assert dumps_highlights(highlights) == (
        '{"2":[{"start":4,"end":9},{"start":10,"end":15}],'
        '"10":[{"start":0,"end":2}]}'
    )


def test_dumps_highlights_omits_empty_blocks():
    assert highlights_to_payload({0: [], 3: [Range(1, 2)]}) == {
        "3": [{"start": 1, "end": 2}]
    }
    assert dumps_highlights({}) == "{}"


def test_loads_highlights_accepts_empty_lists():
    assert loads_highlights('{"0": [], "4": [{"start": 0, "end": 3}]}') == {
        4: [Range(0, 3)]
    }


def test_loads_highlights_normalizes_unmerged_data():
    raw = json.dumps({"1": [{"start": 7, "end": 15}, {"start": 4, "end": 9}]})
    assert loads_highlights(raw) == {1: [Range(4, 15)]}


def test_loads_highlights_merges_keys_naming_the_same_block():
    """Keys "1" and "01" both address block 1 and their ranges merge."""
    raw = json.dumps(
        {
            "1": [{"start": 0, "end": 3}],
            "01": [{"start": 2, "end": 6}, {"start": 9, "end": 10}],
        }
    )
    assert loads_highlights(raw) == {1: [Range(0, 6), Range(9, 10)]}


@pytest.mark.parametrize(
    "highlights",
    [
        {},
        {0: [Range(0, 3)]},
        {0: [Range(0, 4), Range(16, 19)], 5: [Range(2, 8)]},
    ],
)
def test_highlights_survive_round_trip(highlights):
    assert loads_highlights(dumps_highlights(highlights)) == highlights


@pytest.mark.parametrize(
    "raw",
    [
        "{",
        "[]",
        '"text"',
        '{"x": []}',
        '{"-1": []}',
        '{"0": {}}',
        '{"0": ["oops"]}',
        '{"0": [{"start": "1", "end": 2}]}',
        '{"0": [{"start": true, "end": 2}]}',
        '{"0": [{"start": 1}]}',
        '{"0": [{"start": -2, "end": 2}]}',
    ],
)
def test_loads_highlights_rejects_malformed_payloads(raw):
    with pytest.raises(MalformedHighlightsError):
        loads_highlights(raw)


@pytest.mark.parametrize(
    "raw",
    [
        '{"0":[{"start":0,"end":' + "9" * 5000 + "}]}",
        "[" * 100000,
    ],
    ids=["oversized-integer", "deep-nesting"],
)
def test_loads_highlights_rejects_undecodable_json(raw):
    """Decoder limits surface as malformed data rather than crashing."""
    with pytest.raises(MalformedHighlightsError):
        loads_highlights(raw)
