from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Mapping

import yaml

from .epub import EPUBParseError, book_from_epub
from .models import CONTENT_TYPES, PARAGRAPH, Block, Book, Document

LOGGER = logging.getLogger(__name__)

# File types load_book knows how to expand into a Book.
SUPPORTED_CONTENT_EXTENSIONS = {".yaml", ".yml", ".json", ".epub"}


class ContentError(ValueError):
    """Raised when a content file does not describe a valid book."""


def book_from_dict(data: Mapping[str, Any], default_title: str = "Untitled") -> Book:
    """Build a Book from a mapping with a ``sections`` list."""
    sections = data.get("sections")
    if not isinstance(sections, list) or not sections:
        raise ContentError("Content must define a non-empty 'sections' list.")

    documents: List[Document] = []
    seen: set[str] = set()
    for position, section in enumerate(sections):
        document = _document_from_dict(section, position)
        if document.doc_id in seen:
            raise ContentError(f"Duplicate section id '{document.doc_id}'.")
        seen.add(document.doc_id)
        documents.append(document)
    return Book(title=str(data.get("title") or default_title), documents=documents)


def load_book(path: str | Path) -> Book:
    """Load a Book from a YAML/JSON section file or an EPUB archive."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_CONTENT_EXTENSIONS:
        raise ContentError(f"Unsupported content file type: {path.name}")
    if suffix == ".epub":
        try:
            return book_from_epub(path)
        except EPUBParseError as exc:
            raise ContentError(str(exc)) from exc

    try:
        contents = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ContentError(f"Unable to read {path}: {exc}") from exc
    try:
        # JSON documents are valid YAML, so one parser covers both.
        parsed = yaml.safe_load(contents)
    except yaml.YAMLError as exc:
        raise ContentError(f"Unable to parse {path.name}: {exc}") from exc
    if not isinstance(parsed, Mapping):
        raise ContentError("Content file must define a mapping.")
    book = book_from_dict(parsed, default_title=path.stem)
    LOGGER.info("Loaded %d section(s) from %s", len(book.documents), path)
    return book


def _document_from_dict(data: Any, position: int) -> Document:
    if not isinstance(data, Mapping):
        raise ContentError(f"Section #{position} must be a mapping.")
    doc_id = data.get("id")
    if not doc_id:
        raise ContentError(f"Section #{position} is missing an 'id'.")
    raw_blocks = data.get("content", [])
    if not isinstance(raw_blocks, list):
        raise ContentError(f"Section '{doc_id}' content must be a list.")
    return Document(
        doc_id=str(doc_id),
        title=str(data.get("title") or doc_id),
        blocks=[_block_from_dict(doc_id, raw) for raw in raw_blocks],
        subtitle=data.get("subtitle"),
        label=data.get("label"),
        index_label=data.get("indexLabel", data.get("index_label")),
        audio_src=data.get("audioSrc", data.get("audio_src")),
    )


def _block_from_dict(doc_id: Any, data: Any) -> Block:
    if isinstance(data, str):
        return Block(type=PARAGRAPH, text=data)
    if not isinstance(data, Mapping):
        raise ContentError(f"Blocks in section '{doc_id}' must be mappings.")
    block_type = str(data.get("type") or PARAGRAPH)
    if block_type not in CONTENT_TYPES:
        LOGGER.warning(
            "Unknown block type %r in section %s; treating as paragraph.",
            block_type,
            doc_id,
        )
        block_type = PARAGRAPH
    text = data.get("text", "")
    if not isinstance(text, str):
        raise ContentError(f"Block text in section '{doc_id}' must be a string.")
    return Block(type=block_type, text=text)
