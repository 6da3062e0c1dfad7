from __future__ import annotations

import re
import xml.etree.ElementTree as ET
import zipfile
from html.parser import HTMLParser
from pathlib import Path, PurePosixPath

from .models import (
    CODE_BLOCK,
    HEADING,
    PARAGRAPH,
    QUOTE,
    SEPARATOR,
    Block,
    Book,
    Document,
)

_WHITESPACE_RE = re.compile(r"\s+")


class EPUBParseError(RuntimeError):
    """Raised when an EPUB archive cannot be parsed."""


def book_from_epub(epub_path: Path) -> Book:
    """Return a Book with one Document per readable spine chapter."""
    if not epub_path.exists():
        raise EPUBParseError(f"EPUB file not found: {epub_path}")

    try:
        with zipfile.ZipFile(epub_path, "r") as zf:
            opf_path = _locate_opf(zf)
            spine = _spine_items(zf, opf_path)
            if not spine:
                spine = _fallback_text_items(zf)
            title = _book_title(zf, opf_path) or epub_path.stem
            documents: list[Document] = []
            seen: set[str] = set()
            for item_id, rel_path in spine:
                try:
                    raw_html = zf.read(rel_path).decode("utf-8", errors="ignore")
                except KeyError:
                    continue
                blocks = _html_to_blocks(raw_html)
                if not any(block.text for block in blocks):
                    continue
                doc_id = _unique_id(item_id, seen)
                documents.append(
                    Document(
                        doc_id=doc_id,
                        title=_chapter_title(blocks) or doc_id,
                        blocks=blocks,
                        index_label=str(len(documents) + 1),
                    )
                )
    except zipfile.BadZipFile as exc:
        raise EPUBParseError(f"Invalid EPUB archive: {epub_path}") from exc

    if not documents:
        raise EPUBParseError(f"EPUB contains no readable chapters: {epub_path}")
    return Book(title=title, documents=documents)


def _locate_opf(zf: zipfile.ZipFile) -> str:
    try:
        container_xml = zf.read("META-INF/container.xml")
    except KeyError as exc:
        raise EPUBParseError("EPUB missing META-INF/container.xml") from exc
    try:
        root = ET.fromstring(container_xml)
    except ET.ParseError as exc:
        raise EPUBParseError("Unable to parse container.xml") from exc
    rootfile = root.find(".//{*}rootfile")
    if rootfile is None:
        raise EPUBParseError("container.xml missing rootfile element")
    opf_path = rootfile.attrib.get("full-path")
    if not opf_path:
        raise EPUBParseError("rootfile missing full-path attribute")
    return opf_path


def _read_opf(zf: zipfile.ZipFile, opf_path: str) -> ET.Element | None:
    try:
        return ET.fromstring(zf.read(opf_path))
    except (KeyError, ET.ParseError):
        return None


def _book_title(zf: zipfile.ZipFile, opf_path: str) -> str | None:
    root = _read_opf(zf, opf_path)
    if root is None:
        return None
    title_el = root.find(".//{*}metadata/{*}title")
    if title_el is None or not (title_el.text or "").strip():
        return None
    return (title_el.text or "").strip()


def _spine_items(zf: zipfile.ZipFile, opf_path: str) -> list[tuple[str, str]]:
    root = _read_opf(zf, opf_path)
    if root is None:
        return []
    manifest: dict[str, dict[str, str]] = {}
    manifest_el = root.find(".//{*}manifest")
    if manifest_el is not None:
        for item in manifest_el.findall("{*}item"):
            item_id = item.attrib.get("id")
            href = item.attrib.get("href")
            media_type = item.attrib.get("media-type", "")
            if item_id and href:
                manifest[item_id] = {"href": href, "media_type": media_type}

    spine: list[tuple[str, str]] = []
    spine_el = root.find(".//{*}spine")
    if spine_el is not None:
        for itemref in spine_el.findall("{*}itemref"):
            item_id = itemref.attrib.get("idref")
            if not item_id:
                continue
            manifest_item = manifest.get(item_id)
            if not manifest_item:
                continue
            if not _is_text_media(manifest_item["media_type"].lower()):
                continue
            spine.append((item_id, _resolve_href(opf_path, manifest_item["href"])))
    return spine


def _fallback_text_items(zf: zipfile.ZipFile) -> list[tuple[str, str]]:
    text_suffixes = {".xhtml", ".html", ".htm"}
    return [
        (PurePosixPath(name).stem, name)
        for name in sorted(zf.namelist())
        if PurePosixPath(name).suffix.lower() in text_suffixes
    ]


def _resolve_href(opf_path: str, href: str) -> str:
    base = PurePosixPath(opf_path).parent
    if str(base) in ("", "."):
        return PurePosixPath(href).as_posix()
    return (base / PurePosixPath(href)).as_posix()


def _is_text_media(media_type: str) -> bool:
    return any(
        media_type.startswith(prefix) for prefix in ("application/xhtml", "text/html")
    )


def _unique_id(candidate: str, seen: set[str]) -> str:
    doc_id = candidate
    suffix = 2
    while doc_id in seen:
        doc_id = f"{candidate}-{suffix}"
        suffix += 1
    seen.add(doc_id)
    return doc_id


def _chapter_title(blocks: list[Block]) -> str | None:
    for block in blocks:
        if block.type == HEADING and block.text:
            return block.text
    return None


class _HTMLBlockExtractor(HTMLParser):
    BLOCK_TYPES = {
        "p": PARAGRAPH,
        "li": PARAGRAPH,
        "div": PARAGRAPH,
        "h1": HEADING,
        "h2": HEADING,
        "h3": HEADING,
        "h4": HEADING,
        "h5": HEADING,
        "h6": HEADING,
        "blockquote": QUOTE,
        "pre": CODE_BLOCK,
    }
    SKIPPED_TAGS = {"head", "script", "style", "title"}

    def __init__(self) -> None:
        super().__init__()
        self.blocks: list[Block] = []
        self._open: list[str] = []
        self._chunks: list[str] = []
        self._skip_depth = 0

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag in self.SKIPPED_TAGS:
            self._skip_depth += 1
            return
        if tag == "br":
            self._chunks.append("\n")
        elif tag == "hr":
            self._flush()
            self.blocks.append(Block(type=SEPARATOR, text=""))
        elif tag in self.BLOCK_TYPES:
            self._flush()
            self._open.append(tag)

    def handle_endtag(self, tag: str) -> None:
        if tag in self.SKIPPED_TAGS:
            self._skip_depth = max(0, self._skip_depth - 1)
            return
        if tag in self.BLOCK_TYPES and tag in self._open:
            self._flush()
            while self._open:
                if self._open.pop() == tag:
                    break

    def handle_data(self, data: str) -> None:
        if self._skip_depth:
            return
        if "pre" not in self._open:
            # Only <br> breaks lines outside preformatted text.
            data = _WHITESPACE_RE.sub(" ", data)
        self._chunks.append(data)

    def close(self) -> None:
        super().close()
        self._flush()

    def _current_type(self) -> str:
        types = [self.BLOCK_TYPES[tag] for tag in self._open]
        for preferred in (CODE_BLOCK, QUOTE, HEADING):
            if preferred in types:
                return preferred
        return PARAGRAPH

    def _flush(self) -> None:
        raw = "".join(self._chunks)
        self._chunks = []
        block_type = self._current_type()
        if block_type == CODE_BLOCK:
            text = raw.strip("\n")
        else:
            lines = (line.strip() for line in raw.split("\n"))
            text = "\n".join(line for line in lines if line)
        if text:
            self.blocks.append(Block(type=block_type, text=text))


def _html_to_blocks(html: str) -> list[Block]:
    parser = _HTMLBlockExtractor()
    parser.feed(html)
    parser.close()
    return parser.blocks
