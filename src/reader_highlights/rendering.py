from __future__ import annotations

from typing import List

import typer

from .config import DisplaySettings
from .models import (
    CODE_BLOCK,
    EMPHASIS,
    HEADING,
    QUOTE,
    SCRIPTURE_LINE,
    SEPARATOR,
    VERSE,
    Document,
    Segment,
)
from .offsets import BLOCK_INDEX_ATTR, ElementNode
from .store import HighlightStore

BLOCK_TAGS = {
    HEADING: "h3",
    VERSE: "div",
    QUOTE: "blockquote",
    EMPHASIS: "p",
    CODE_BLOCK: "div",
    SCRIPTURE_LINE: "div",
}
HIGHLIGHT_TAG = "mark"


def build_document_tree(document: Document, store: HighlightStore) -> ElementNode:
    """
    Build the rendered node tree for a document.

    Each selectable block becomes an element tagged with ``data-block-index``
    whose text leaves concatenate to exactly the block text; highlighted runs
    are wrapped in ``mark`` elements. Separators carry no block index and
    cannot anchor a selection.
    """
    container = ElementNode("article")
    for index, block in enumerate(document.blocks):
        if block.type == SEPARATOR:
            container.append(ElementNode("hr"))
            continue
        element = ElementNode(
            BLOCK_TAGS.get(block.type, "p"),
            attrs={BLOCK_INDEX_ATTR: str(index), "class": block.type},
        )
        for segment in store.render_segments(index, block.text):
            if segment.highlighted:
                mark = ElementNode(HIGHLIGHT_TAG)
                element.append(mark)
                mark.append_text(segment.text)
            else:
                element.append_text(segment.text)
        container.append(element)
    return container


def style_segments(segments: List[Segment], display: DisplaySettings) -> str:
    """Join segments into one string, styling the highlighted ones."""
    return "".join(
        typer.style(
            segment.text, fg=display.highlight_fg, bold=display.highlight_bold
        )
        if segment.highlighted
        else segment.text
        for segment in segments
    )


def render_document_text(
    document: Document, store: HighlightStore, display: DisplaySettings
) -> str:
    """Render a document with its highlights for a terminal."""
    lines: List[str] = [typer.style(document.title, bold=True)]
    if document.subtitle:
        lines.append(document.subtitle)
    lines.append("")
    for index, block in enumerate(document.blocks):
        if block.type == SEPARATOR:
            lines.append("* * *")
            continue
        body = style_segments(store.render_segments(index, block.text), display)
        if block.type == HEADING:
            body = typer.style(body, bold=True)
        elif block.type == QUOTE:
            body = f'"{body}"'
        elif block.type in (VERSE, SCRIPTURE_LINE):
            body = f"    {body}"
        if display.show_block_numbers:
            body = f"[{index}] {body}"
        lines.append(body)
    return "\n".join(lines)
