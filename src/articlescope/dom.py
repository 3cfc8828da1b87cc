"""
Small helpers over the BeautifulSoup tree handed in by the renderer.
"""

from __future__ import annotations

import copy
import re
from typing import Iterable, Optional

from bs4 import BeautifulSoup, Tag

WHITESPACE_RE = re.compile(r"\s+")

PARSER = "html.parser"


def parse_html(markup: str) -> BeautifulSoup:
    """Parse markup with the stdlib-backed parser used throughout the package."""
    return BeautifulSoup(markup or "", PARSER)


def normalize_whitespace(text: str) -> str:
    return WHITESPACE_RE.sub(" ", text or "").strip()


def text_of(node: Optional[Tag]) -> str:
    """Visible text of ``node`` with runs of whitespace collapsed."""
    if node is None:
        return ""
    return normalize_whitespace(node.get_text())


def clone_node(node: Tag) -> Tag:
    """Detached deep copy; edits to the copy never reach the live tree."""
    return copy.copy(node)


def inner_html(node: Tag) -> str:
    return node.decode_contents()


def is_element(node: object) -> bool:
    return isinstance(node, Tag) and not isinstance(node, BeautifulSoup)


def class_string(node: Tag) -> str:
    classes = node.get("class") or []
    if isinstance(classes, str):
        return classes
    return " ".join(classes)


def identifying_attributes(node: Tag) -> str:
    """class, id, role and aria-label joined into one lowercase string."""
    parts: list[str] = [class_string(node)]
    for attr in ("id", "role", "aria-label"):
        value = node.get(attr)
        if isinstance(value, list):
            value = " ".join(value)
        if value:
            parts.append(str(value))
    return " ".join(p for p in parts if p).lower()


def xpath(node: Tag) -> str:
    """
    Absolute path of ``node`` such as ``/HTML/BODY[1]/DIV[2]``.

    Every step carries its 1-based position among same-tag siblings except
    the topmost element.
    """
    if not is_element(node):
        return ""
    parts: list[str] = []
    current: Tag = node
    while is_element(current.parent):
        index = 1 + sum(
            1 for sib in current.previous_siblings if isinstance(sib, Tag) and sib.name == current.name
        )
        parts.append(f"{current.name.upper()}[{index}]")
        current = current.parent  # type: ignore[assignment]
    parts.append(current.name.upper())
    return "/" + "/".join(reversed(parts))


def document_positions(tree: Tag) -> dict[int, int]:
    """Map ``id(element)`` to its pre-order position in ``tree``."""
    return {id(el): i for i, el in enumerate(tree.find_all(True))}


def unique_by_identity(nodes: Iterable[Tag]) -> list[Tag]:
    seen: set[int] = set()
    out: list[Tag] = []
    for node in nodes:
        if id(node) in seen:
            continue
        seen.add(id(node))
        out.append(node)
    return out
