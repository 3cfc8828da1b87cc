"""
Structured Data Extractor - JSON-LD articles and structured body markup

Reads publisher-declared article metadata (Schema.org JSON-LD) as an
authoritative seed for content detection, and collects tables, definition
lists and figures from the body as a supplementary payload.
"""

from __future__ import annotations

import json
import re
from collections import deque
from typing import Any, Deque, Dict, List, Optional

import structlog
from bs4 import Tag

from ..dom import text_of
from ..protocols import BodyStructuredData, StructuredData

logger = structlog.get_logger(__name__)

ARTICLE_TYPE_RE = re.compile(r"(Article|BlogPosting)$", re.IGNORECASE)
JSON_WRAPPER_RE = re.compile(r"^\s*(?:<!--|//\s*<!\[CDATA\[|<!\[CDATA\[)|(?:-->|//\s*\]\]>|\]\]>)\s*$")

MAX_COLSPAN = 100


def _types_of(obj: Dict[str, Any]) -> List[str]:
    value = obj.get("@type")
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)] if value else []


def is_article_object(obj: Any) -> bool:
    return isinstance(obj, dict) and any(ARTICLE_TYPE_RE.search(t) for t in _types_of(obj))


class JsonLdParser:
    """Breadth-first walk over every JSON-LD block of a page."""

    @staticmethod
    def load_blocks(tree: Tag) -> List[Any]:
        blocks: List[Any] = []
        for script in tree.find_all("script", attrs={"type": re.compile(r"^\s*application/ld\+json\s*$", re.I)}):
            raw = script.string if script.string is not None else script.get_text()
            raw = JSON_WRAPPER_RE.sub("", raw or "").strip()
            if not raw:
                continue
            try:
                blocks.append(json.loads(raw))
            except (ValueError, RecursionError) as e:
                logger.debug("Skipping malformed JSON-LD block", error=str(e)[:200])
        return blocks

    @staticmethod
    def walk(block: Any) -> List[Dict[str, Any]]:
        """Article objects of ``block`` in breadth-first order, at any depth."""
        found: List[Dict[str, Any]] = []
        queue: Deque[Any] = deque([block])
        while queue:
            item = queue.popleft()
            if isinstance(item, dict):
                if is_article_object(item):
                    found.append(item)
                queue.extend(item.values())
            elif isinstance(item, list):
                queue.extend(item)
        return found


class TableParser:
    """Converts ``<table>`` markup into header/row arrays."""

    @staticmethod
    def _span(cell: Tag) -> int:
        try:
            span = int(str(cell.get("colspan", 1)).strip())
        except ValueError:
            return 1
        return min(max(span, 1), MAX_COLSPAN)

    @classmethod
    def expand_row(cls, row: Tag) -> List[str]:
        cells: List[str] = []
        for cell in row.find_all(["th", "td"], recursive=False):
            cells.extend([text_of(cell)] * cls._span(cell))
        return cells

    @staticmethod
    def own_rows(table: Tag) -> List[Tag]:
        """Rows belonging to ``table`` itself, not to tables nested inside it."""
        return [row for row in table.find_all("tr") if row.find_parent("table") is table]

    @classmethod
    def header_row(cls, table: Tag, rows: List[Tag]) -> Optional[Tag]:
        thead = table.find("thead")
        if thead is not None and thead.find_parent("table") is table:
            head_rows = [row for row in rows if row.find_parent("thead") is thead]
            if head_rows:
                return head_rows[0]
        for row in rows:
            if row.find("th", recursive=False) is not None:
                return row
        if rows and any(cls.expand_row(rows[0])):
            return rows[0]
        return None

    @classmethod
    def parse(cls, table: Tag) -> Dict[str, Any]:
        rows = cls.own_rows(table)
        header = cls.header_row(table, rows)
        caption = table.find("caption")
        return {
            "caption": text_of(caption) if caption is not None else None,
            "headers": cls.expand_row(header) if header is not None else [],
            "rows": [cls.expand_row(row) for row in rows if row is not header],
        }


class BodyMarkupParser:
    """Tables, definition lists and figures from the page body."""

    def __init__(self) -> None:
        self.tables = TableParser()

    def parse(self, tree: Tag) -> BodyStructuredData:
        body = BodyStructuredData()
        for table in tree.find_all("table"):
            if table.find_parent("figure") is None:
                body.tables.append(self.tables.parse(table))
        for dl in tree.find_all("dl"):
            body.definition_lists.append(self._definition_list(dl))
        for figure in tree.find_all("figure"):
            body.figures.append(self._figure(figure))
        return body

    @staticmethod
    def _definition_list(dl: Tag) -> Dict[str, Any]:
        items: List[Dict[str, str]] = []
        term = ""
        for child in dl.find_all(["dt", "dd"]):
            if child.find_parent("dl") is not dl:
                continue
            if child.name == "dt":
                term = text_of(child)
            else:
                items.append({"term": term, "description": text_of(child)})
        return {"items": items}

    def _figure(self, figure: Tag) -> Dict[str, Any]:
        caption = figure.find("figcaption")
        images = [
            {"src": img.get("src") or img.get("data-src") or "", "alt": img.get("alt") or ""}
            for img in figure.find_all("img")
        ]
        return {
            "caption": text_of(caption) if caption is not None else None,
            "images": images,
            "tables": [self.tables.parse(t) for t in figure.find_all("table")],
        }


class StructuredDataExtractor:
    """
    Structured data extractor.

    Never raises: malformed blocks are skipped, and an unexpected failure
    keeps whatever the other blocks already contributed.
    """

    def __init__(self) -> None:
        self.json_ld = JsonLdParser()
        self.body_markup = BodyMarkupParser()

    def extract(self, tree: Tag) -> StructuredData:
        result = StructuredData()
        try:
            blocks = self.json_ld.load_blocks(tree)
        except Exception as e:
            logger.warning("JSON-LD extraction failed", error=str(e)[:200])
            blocks = []

        for block in blocks:
            try:
                for article in self.json_ld.walk(block):
                    self._absorb(result, article)
            except Exception as e:
                logger.warning("Skipping JSON-LD block", error=str(e)[:200])

        try:
            result.body = self.body_markup.parse(tree)
        except Exception as e:
            logger.warning("Body markup extraction failed", error=str(e))
            result.body = BodyStructuredData()

        logger.debug(
            "Structured data extracted",
            articles=len(result.articles),
            has_headline=result.headline is not None,
            has_body=result.article_body is not None,
        )
        return result

    @staticmethod
    def _absorb(result: StructuredData, article: Dict[str, Any]) -> None:
        if article not in result.articles:
            result.articles.append(article)

        headline = article.get("headline")
        if result.headline is None and isinstance(headline, str) and headline.strip():
            result.headline = headline.strip()

        body = article.get("articleBody")
        if result.article_body is None and isinstance(body, str) and body.strip():
            result.article_body = body
