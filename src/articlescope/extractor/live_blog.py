"""
Live-blog detection: digest rolling, timestamped update pages.
"""

from __future__ import annotations

import html
from typing import Callable, List, Optional, Set

import structlog
from bs4 import Tag

from ..dom import document_positions, text_of
from ..observability import increment
from ..protocols import LiveBlogDigest, LiveBlogItem

logger = structlog.get_logger(__name__)

TIMESTAMP_SELECTOR = "time, [datetime]"
HEADLINE_SELECTOR = "h1, h2, h3, h4, .headline, .title"
LIVE_CONTAINER_SELECTOR = (
    '.live, .live-blog, .liveblog, .timeline, .live_updates, .updates, .update, .post, [role="article"]'
)
LIVE_LIST_TAG = "amp-live-list"
LIVE_LIST_ITEM_SELECTOR = '[role="article"], article, li, .update, .post'
BLOCK_TAGS = frozenset({"article", "section", "li", "div"})

MAX_TIMESTAMPS = 200
MAX_TIER_CANDIDATES = 40
MAX_LIVE_LISTS = 5
MAX_ITEMS = 40
MAX_ANCESTOR_STEPS = 5
DIGEST_ITEMS = 5

MIN_HEADLINE_CHARS = 12
MIN_BODY_CHARS = 60
FALLBACK_HEADLINE_CHARS = 15
FALLBACK_BODY_CHARS = 120
TIMESTAMP_TIER_TARGET = 5
CONTAINER_TIER_TARGET = 3
MIN_ITEMS = 3
MIN_PAIR_BODY_CHARS = 500


def containing_block(node: Tag) -> Optional[Tag]:
    """Nearest article/section/li/div within five steps, starting at ``node``."""
    current: Optional[Tag] = node
    steps = 0
    while isinstance(current, Tag) and steps < MAX_ANCESTOR_STEPS:
        if current.name in BLOCK_TAGS:
            return current
        current = current.parent
        steps += 1
    parent = node.parent
    return parent if isinstance(parent, Tag) else None


def _signals(block: Tag, timestamp: Optional[Tag]) -> tuple[str, str, str]:
    return (
        text_of(timestamp),
        text_of(block.select_one(HEADLINE_SELECTOR)),
        text_of(block.find("p")),
    )


def timestamped_update(time_text: str, headline: str, body: str) -> bool:
    signals = (bool(time_text), len(headline) > MIN_HEADLINE_CHARS, len(body) > MIN_BODY_CHARS)
    return sum(signals) >= 2


def container_update(time_text: str, headline: str, body: str) -> bool:
    return len(body) > FALLBACK_BODY_CHARS or (len(headline) > FALLBACK_HEADLINE_CHARS and len(body) > MIN_BODY_CHARS)


def live_list_update(time_text: str, headline: str, body: str) -> bool:
    return container_update(time_text, headline, body) or (bool(time_text) and len(body) > MIN_BODY_CHARS)


class LiveBlogDetector:
    """
    Collects update blocks through three fallback tiers and digests them.

    The digest shows the first five accepted items in document order, not
    in the order the tiers accepted them, so an update found by a later
    tier can displace one found earlier when it sits higher on the page.
    """

    def __init__(self) -> None:
        self.logger = logger.bind(component="LiveBlogDetector")

    def detect(self, tree: Tag) -> LiveBlogDigest:
        try:
            items = self.collect(tree)
        except Exception as e:
            self.logger.warning("Live-blog scan failed", error=str(e))
            items = []
        digest = self.digest(items)
        increment("live_blog_digests", labels={"outcome": "accepted" if digest.ok else "rejected"})
        return digest

    def collect(self, tree: Tag) -> List[LiveBlogItem]:
        positions = document_positions(tree)
        seen: Set[int] = set()
        items: List[LiveBlogItem] = []

        def accept(block: Tag, time_text: str, headline: str, body: str) -> None:
            items.append(LiveBlogItem(time_text, headline, body, positions.get(id(block), len(positions))))

        for stamp in tree.select(TIMESTAMP_SELECTOR, limit=MAX_TIMESTAMPS):
            block = containing_block(stamp)
            if block is None or id(block) in seen:
                continue
            seen.add(id(block))
            time_text, headline, body = _signals(block, stamp)
            if timestamped_update(time_text, headline, body):
                accept(block, time_text, headline, body)
            if len(items) >= MAX_ITEMS:
                break

        if len(items) < TIMESTAMP_TIER_TARGET:
            roots = tree.select(LIVE_CONTAINER_SELECTOR, limit=MAX_TIER_CANDIDATES)
            self._scan(roots, seen, items, accept, container_update, with_time=False)

        if len(items) < CONTAINER_TIER_TARGET:
            candidates: List[Tag] = []
            for live_list in tree.find_all(LIVE_LIST_TAG, limit=MAX_LIVE_LISTS):
                candidates.extend(live_list.select(LIVE_LIST_ITEM_SELECTOR))
                if len(candidates) >= MAX_TIER_CANDIDATES:
                    break
            self._scan(candidates[:MAX_TIER_CANDIDATES], seen, items, accept, live_list_update, with_time=True)

        return items

    @staticmethod
    def _scan(
        nodes: List[Tag],
        seen: Set[int],
        items: List[LiveBlogItem],
        accept: Callable[[Tag, str, str, str], None],
        qualifies: Callable[[str, str, str], bool],
        with_time: bool,
    ) -> None:
        for node in nodes:
            if len(items) >= MAX_ITEMS:
                return
            if id(node) in seen:
                continue
            seen.add(id(node))
            stamp = node.select_one(TIMESTAMP_SELECTOR) if with_time else None
            time_text, headline, body = _signals(node, stamp)
            if qualifies(time_text, headline, body):
                accept(node, time_text, headline, body)

    def digest(self, items: List[LiveBlogItem]) -> LiveBlogDigest:
        total_body = sum(len(item.body) for item in items)
        enough = len(items) >= MIN_ITEMS or (len(items) >= 2 and total_body >= MIN_PAIR_BODY_CHARS)
        if not enough:
            self.logger.debug("Not a live blog", items=len(items), body_chars=total_body)
            return LiveBlogDigest(ok=False)

        used = sorted(items, key=lambda item: item.position)[:DIGEST_ITEMS]
        parts = ['<div class="live-summary">']
        for item in used:
            parts.append('<div class="entry">')
            if item.time:
                parts.append(f'<div class="time">{html.escape(item.time)}</div>')
            if item.title:
                parts.append(f'<div class="title">{html.escape(item.title)}</div>')
            if item.body:
                parts.append(f"<p>{html.escape(item.body)}</p>")
            parts.append("</div>")
        parts.append("</div>")

        chars = sum(len(item.body) for item in used)
        self.logger.debug("Live blog digested", items=len(items), used=len(used), chars=chars)
        return LiveBlogDigest(ok=True, html="".join(parts), count=len(used), chars=chars)

