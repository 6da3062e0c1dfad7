from __future__ import annotations

import logging

from .models import Book, Document, SelectionAnchor
from .offsets import ElementNode, Node, locate_anchor
from .rendering import build_document_tree
from .store import HighlightStore, LoadResult, SaveResult

logger = logging.getLogger(__name__)


class ReaderSession:
    """Tracks the open document of a book and routes selections to the store."""

    def __init__(self, book: Book, store: HighlightStore) -> None:
        if not book.documents:
            raise ValueError("A reading session needs at least one document.")
        self._book = book
        self._store = store
        self._index = 0
        self.last_load: LoadResult | None = None

    @property
    def book(self) -> Book:
        return self._book

    @property
    def store(self) -> HighlightStore:
        return self._store

    @property
    def current(self) -> Document:
        return self._book.documents[self._index]

    @property
    def is_first(self) -> bool:
        return self._index == 0

    @property
    def is_last(self) -> bool:
        return self._index == len(self._book.documents) - 1

    def open(self, doc_id: str | None = None) -> LoadResult:
        """Activate a document (the current one by default) and load its highlights."""
        index = self._index if doc_id is None else self._book.index_of(doc_id)
        return self._activate(index)

    def next(self) -> LoadResult | None:
        if self.is_last:
            return None
        return self._activate(self._index + 1)

    def previous(self) -> LoadResult | None:
        if self.is_first:
            return None
        return self._activate(self._index - 1)

    def render_tree(self) -> ElementNode:
        return build_document_tree(self.current, self._store)

    def apply_selection(
        self, start: SelectionAnchor, end: SelectionAnchor
    ) -> SaveResult:
        """Highlight between two anchors in the current document."""
        self._ensure_current_loaded()
        return self._store.add_selection(start, end, self.current.text_lengths())

    def apply_node_selection(
        self,
        container: ElementNode,
        start_node: Node,
        start_offset: int,
        end_node: Node,
        end_offset: int,
    ) -> SaveResult | None:
        """Highlight a selection given as endpoints in a rendered tree.

        Returns None, leaving highlights untouched, when either endpoint lies
        outside every block of the container.
        """
        start = locate_anchor(container, start_node, start_offset)
        end = locate_anchor(container, end_node, end_offset)
        if start is None or end is None:
            logger.debug("Selection endpoint outside any block; ignoring")
            return None
        return self.apply_selection(start, end)

    def clear(self) -> SaveResult:
        self._ensure_current_loaded()
        return self._store.clear(self.current.doc_id)

    def _activate(self, index: int) -> LoadResult:
        # The position only moves once the store has read the document.
        result = self._store.load(self._book.documents[index].doc_id)
        self._index = index
        self.last_load = result
        return result

    def _ensure_current_loaded(self) -> None:
        if self._store.document_id != self.current.doc_id:
            self.open()
