import pytest

from reader_highlights.models import SelectionAnchor
from reader_highlights.offsets import (
    BLOCK_INDEX_ATTR,
    ElementNode,
    TextNode,
    find_block_element,
    iter_text_nodes,
    locate_anchor,
    resolve_offset,
)


def _build_block(index: int = 0):
    """<p>the <em>quick</em> brown<span><b> fox</b></span></p>"""
    block = ElementNode("p", attrs={BLOCK_INDEX_ATTR: str(index)})
    first = block.append_text("the ")
    em = block.append(ElementNode("em"))
    quick = em.append_text("quick")
    brown = block.append_text(" brown")
    span = block.append(ElementNode("span"))
    bold = span.append(ElementNode("b"))
    fox = bold.append_text(" fox")
    return block, [first, quick, brown, fox]


def test_iter_text_nodes_follows_document_order():
    block, leaves = _build_block()
    assert list(iter_text_nodes(block)) == leaves
    assert block.text_content == "the quick brown fox"


def test_resolve_offset_counts_through_nested_markup():
    block, (first, quick, brown, fox) = _build_block()
    assert resolve_offset(block, first, 0) == 0
    assert resolve_offset(block, quick, 2) == 6
    assert resolve_offset(block, brown, 0) == 9
    assert resolve_offset(block, fox, len(fox.text)) == len(block.text_content)


def test_resolve_offset_stays_within_text_length():
    """Every valid leaf/offset pair maps into [0, total length]."""
    block, leaves = _build_block()
    total = len(block.text_content)
    for leaf in leaves:
        for offset in range(len(leaf.text) + 1):
            assert 0 <= resolve_offset(block, leaf, offset) <= total


def test_resolve_offset_returns_sentinel_for_foreign_node():
    block, _ = _build_block()
    other, (foreign, *_rest) = _build_block(1)
    assert resolve_offset(block, foreign, 1) == SelectionAnchor.UNRESOLVED
    assert resolve_offset(block, TextNode("loose"), 0) == -1


def test_resolve_offset_returns_sentinel_for_element_target():
    block, _ = _build_block()
    em = block.children[1]
    assert resolve_offset(block, em, 0) == SelectionAnchor.UNRESOLVED


def test_resolve_offset_rejects_offset_outside_node():
    block, (first, *_rest) = _build_block()
    with pytest.raises(ValueError):
        resolve_offset(block, first, len(first.text) + 1)
    with pytest.raises(ValueError):
        resolve_offset(block, first, -1)


def test_locate_anchor_finds_enclosing_block():
    container = ElementNode("article")
    header = container.append(ElementNode("header"))
    title = header.append_text("Title")
    first_block, _ = _build_block(0)
    second_block, (_, quick, _, _) = _build_block(1)
    container.append(first_block)
    container.append(second_block)

    assert locate_anchor(container, quick, 1) == SelectionAnchor(1, 5)
    assert find_block_element(quick, container) is second_block
    assert locate_anchor(container, title, 2) is None


def test_find_block_element_stops_at_container():
    container = ElementNode("div", attrs={BLOCK_INDEX_ATTR: "7"})
    leaf = container.append_text("inside")
    assert find_block_element(leaf, container) is None
