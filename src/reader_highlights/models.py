from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, List

PARAGRAPH = "paragraph"
VERSE = "verse"
HEADING = "heading"
QUOTE = "quote"
SEPARATOR = "separator"
EMPHASIS = "emphasis"
CODE_BLOCK = "code-block"
SCRIPTURE_LINE = "scripture-line"

CONTENT_TYPES = frozenset(
    {
        PARAGRAPH,
        VERSE,
        HEADING,
        QUOTE,
        SEPARATOR,
        EMPHASIS,
        CODE_BLOCK,
        SCRIPTURE_LINE,
    }
)


@dataclass(frozen=True, slots=True)
class Block:
    """One contiguous unit of document content."""

    type: str
    text: str

    @property
    def selectable(self) -> bool:
        return self.type != SEPARATOR


@dataclass(slots=True)
class Document:
    """An ordered run of blocks that carries its own highlights."""

    doc_id: str
    title: str
    blocks: List[Block] = field(default_factory=list)
    subtitle: str | None = None
    label: str | None = None
    index_label: str | None = None
    audio_src: str | None = None

    def text_lengths(self) -> Dict[int, int]:
        """Return block index -> text length for every selectable block."""
        return {
            index: len(block.text)
            for index, block in enumerate(self.blocks)
            if block.selectable
        }


@dataclass(slots=True)
class Book:
    """Ordered collection of documents, navigated one at a time."""

    title: str
    documents: List[Document] = field(default_factory=list)

    def index_of(self, doc_id: str) -> int:
        for index, document in enumerate(self.documents):
            if document.doc_id == doc_id:
                return index
        raise KeyError(doc_id)

    def get(self, doc_id: str) -> Document:
        return self.documents[self.index_of(doc_id)]


@dataclass(frozen=True, slots=True, order=True)
class Range:
    """Half-open character interval [start, end) within one block's text."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start, "end": self.end}


HighlightSet = Dict[int, List[Range]]


@dataclass(frozen=True, slots=True)
class SelectionAnchor:
    """Resolved (or sentinel) offset for one endpoint of a text selection."""

    UNRESOLVED: ClassVar[int] = -1

    block_index: int
    raw_offset: int

    @property
    def resolved(self) -> bool:
        return self.raw_offset != self.UNRESOLVED


@dataclass(frozen=True, slots=True)
class Segment:
    """A run of block text that is either highlighted or plain."""

    text: str
    highlighted: bool
