"""
Node trees for rendered blocks and the offset arithmetic over them.

A rendered document is a tree of ``ElementNode`` and ``TextNode`` objects.
Selection endpoints arrive as ``(node, offset)`` pairs pointing anywhere in
that tree; ``resolve_offset`` flattens the block back to its plain text and
reports where the endpoint falls in it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Union

from .models import SelectionAnchor

BLOCK_INDEX_ATTR = "data-block-index"


@dataclass(eq=False, slots=True)
class TextNode:
    """Text-bearing leaf."""

    text: str
    parent: "ElementNode | None" = field(default=None, repr=False)


@dataclass(eq=False, slots=True)
class ElementNode:
    """Element with attributes and ordered children."""

    tag: str
    attrs: Dict[str, str] = field(default_factory=dict)
    children: List["Node"] = field(default_factory=list)
    parent: "ElementNode | None" = field(default=None, repr=False)

    def append(self, child: "Node") -> "Node":
        child.parent = self
        self.children.append(child)
        return child

    def append_text(self, text: str) -> TextNode:
        node = TextNode(text)
        self.append(node)
        return node

    @property
    def text_content(self) -> str:
        return "".join(node.text for node in iter_text_nodes(self))


Node = Union[ElementNode, TextNode]


def iter_text_nodes(root: Node) -> Iterator[TextNode]:
    """Yield text leaves under root in document order."""
    stack: List[Node] = [root]
    while stack:
        node = stack.pop()
        if isinstance(node, TextNode):
            yield node
        else:
            stack.extend(reversed(node.children))


def resolve_offset(root: Node, target: Node, offset: int) -> int:
    """
    Map an intra-node offset to an offset in root's flattened text.

    Returns ``SelectionAnchor.UNRESOLVED`` (-1) when target is not a text
    leaf under root.
    """
    if isinstance(target, TextNode) and not 0 <= offset <= len(target.text):
        raise ValueError(
            f"Offset {offset} outside text node of length {len(target.text)}"
        )
    running = 0
    for node in iter_text_nodes(root):
        if node is target:
            return running + offset
        running += len(node.text)
    return SelectionAnchor.UNRESOLVED


def find_block_element(node: Node | None, container: ElementNode) -> ElementNode | None:
    """Return the nearest block wrapper enclosing node, stopping at container."""
    current = node
    while current is not None and current is not container:
        if isinstance(current, ElementNode) and BLOCK_INDEX_ATTR in current.attrs:
            return current
        current = current.parent
    return None


def block_index_of(element: ElementNode) -> int:
    return int(element.attrs[BLOCK_INDEX_ATTR])


def locate_anchor(
    container: ElementNode, node: Node, offset: int
) -> SelectionAnchor | None:
    """Translate a raw selection endpoint into a SelectionAnchor.

    Returns None when the node does not sit inside any block wrapper.
    """
    block = find_block_element(node, container)
    if block is None:
        return None
    return SelectionAnchor(
        block_index=block_index_of(block),
        raw_offset=resolve_offset(block, node, offset),
    )
