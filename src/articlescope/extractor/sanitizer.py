"""
Boilerplate and call-to-action sanitization of the selected article HTML.

Two policies share one pass:

* Strict drops every non-text element, media included.
* Lenient keeps images, drops their captions, unwraps image-only links and
  collapses single-image wrappers.

Removal decisions are made bottom-up: a node is judged only after all of
its descendants have been settled, so re-running the pass on its own
output changes nothing.
"""

from __future__ import annotations

import re
from typing import Optional

import structlog
from bs4 import NavigableString, Tag

from ..dom import identifying_attributes, parse_html, text_of
from ..observability import increment
from ..protocols import SanitizationPolicy

logger = structlog.get_logger(__name__)

ALWAYS_REMOVE_TAGS = (
    "script",
    "style",
    "noscript",
    "template",
    "iframe",
    "embed",
    "object",
    "video",
    "audio",
    "track",
    "canvas",
    "svg",
    "map",
    "form",
    "input",
    "button",
    "select",
    "textarea",
    "option",
    "nav",
    "footer",
)
IMAGE_TAGS = ("img", "picture", "source")
FLATTEN_TAGS = frozenset({"picture", "div", "span", "p"})
BLOCK_TAGS = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "dd",
        "div",
        "dl",
        "dt",
        "figcaption",
        "figure",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "li",
        "main",
        "ol",
        "p",
        "section",
        "table",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "tr",
        "ul",
    }
)

BOILERPLATE_ATTR_RE = re.compile(
    r"(?:^|[\s_-])(?:cta|call-to-action|newsletters?|subscribe|subscription|signup|sign-up|social|share|sharing"
    r"|follow|promo|promotion|sponsor|sponsored|advert|advertisement|adverts|ad|ads|adslot|dfp)(?:$|[\s_-])"
)
CAPTION_ATTR_RE = re.compile(r"(?:^|[\s_-])(?:caption|captions|credit|credits)(?:$|[\s_-])")
CTA_PHRASE_RE = re.compile(
    r"\b(?:subscribe|sign up|signup|click here|read more|learn more|follow us|join (?:now|us|our)"
    r"|register (?:now|today)|download (?:the|our) app|get the app|buy now|shop now|share (?:this|on)"
    r"|newsletter|support our journalism|donate)\b",
    re.IGNORECASE,
)
SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
WORD_CHAR_RE = re.compile(r"\w")

ATTR_SIGNAL_MAX_CHARS = 800
CTA_MAX_CHARS = 400
CTA_MAX_SENTENCES = 2
LINK_DOMINATED_RATIO = 0.9
LINK_DOMINATED_MAX_CHARS = 600


def sentence_count(text: str) -> int:
    return sum(1 for part in SENTENCE_SPLIT_RE.split(text) if part.strip())


def link_text_ratio(node: Tag, text: str) -> float:
    if not text:
        return 0.0
    return sum(len(text_of(a)) for a in node.find_all("a")) / len(text)


def _neighbour_text(node: Optional[object]) -> str:
    if node is None:
        return ""
    if isinstance(node, NavigableString):
        return str(node)
    if isinstance(node, Tag):
        return node.get_text()
    return ""


def _joins_words(left: str, right: str) -> bool:
    return bool(left and right and WORD_CHAR_RE.match(left[-1]) and WORD_CHAR_RE.match(right[0]))


def unwrap_node_preserving_children(node: Tag) -> None:
    """
    Replace ``node`` with its children, in order.

    A single space is inserted on either side where the unwrapped content
    would otherwise run straight into a word-bearing sibling. Content with
    no text (a lone image) still separates the words around it.
    """
    if node.parent is None:
        return
    before = _neighbour_text(node.previous_sibling)
    after = _neighbour_text(node.next_sibling)
    inner = node.get_text()
    if not inner:
        if node.find(True) is not None and _joins_words(before, after):
            node.insert_before(NavigableString(" "))
        node.unwrap()
        return
    if _joins_words(before, inner):
        node.insert_before(NavigableString(" "))
    if _joins_words(inner, after):
        node.insert_after(NavigableString(" "))
    node.unwrap()


class Sanitizer:
    """Applies one ``SanitizationPolicy`` to an HTML fragment."""

    def __init__(self, policy: Optional[SanitizationPolicy] = None) -> None:
        self.policy = policy or SanitizationPolicy.strict()
        self.logger = logger.bind(component="Sanitizer", policy=self.policy.kind.value)

    def sanitize(self, html: str) -> str:
        soup = parse_html(html)
        removed = self._remove_unconditional(soup)
        removed += self._settle_bottom_up(soup)
        if removed:
            increment("sanitizer_removed_nodes", removed, labels={"policy": self.policy.kind.value})
        self.logger.debug("Sanitized fragment", removed=removed)
        return soup.decode()

    def _remove_unconditional(self, soup: Tag) -> int:
        names = list(ALWAYS_REMOVE_TAGS)
        if not self.policy.protects_images:
            names.extend(IMAGE_TAGS)
        removed = 0
        for node in soup.find_all(names):
            if not node.decomposed:
                node.decompose()
                removed += 1
        return removed

    def _settle_bottom_up(self, soup: Tag) -> int:
        removed = 0
        # Reverse pre-order visits every descendant before its ancestor.
        for node in reversed(soup.find_all(True)):
            if node.decomposed or node.parent is None:
                continue
            if self._settle(node):
                removed += 1
        return removed

    def _settle(self, node: Tag) -> bool:
        """Resolve one node; returns True when it was removed."""
        if node.name == "br":
            return False

        text = text_of(node)
        attributes = identifying_attributes(node)
        if BOILERPLATE_ATTR_RE.search(attributes) and len(text) <= ATTR_SIGNAL_MAX_CHARS:
            node.decompose()
            return True

        protects = self.policy.protects_images
        if protects and node.name == "img":
            return False
        has_image = protects and node.find("img") is not None

        # Image captions and credits go, the image itself stays.
        if protects and not has_image and (node.name == "figcaption" or CAPTION_ATTR_RE.search(attributes)):
            node.decompose()
            return True

        if has_image and not text and self.policy.unwrap_images:
            if node.name == "a":
                unwrap_node_preserving_children(node)
                return False
            if node.name in FLATTEN_TAGS and self._single_image(node):
                image = node.find("img").extract()
                node.replace_with(image)
                return False

        if not text and not has_image:
            node.decompose()
            return True

        if node.name in BLOCK_TAGS and self._is_block_boilerplate(node, text):
            node.decompose()
            return True
        return False

    @staticmethod
    def _single_image(node: Tag) -> bool:
        descendants = node.find_all(True)
        return sum(1 for d in descendants if d.name == "img") == 1 and all(
            d.name in ("img", "source") for d in descendants
        )

    @staticmethod
    def _is_block_boilerplate(node: Tag, text: str) -> bool:
        if len(text) <= CTA_MAX_CHARS and CTA_PHRASE_RE.search(text) and sentence_count(text) <= CTA_MAX_SENTENCES:
            return True
        return len(text) <= LINK_DOMINATED_MAX_CHARS and link_text_ratio(node, text) >= LINK_DOMINATED_RATIO
