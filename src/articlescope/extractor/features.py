"""
Candidate feature extraction and the fixed heuristic score.

``to_vector`` is the only place raw signals are scaled into the canonical
six-slot vector. The live detector and the offline trainer both call it, so
a model trained on dumped rows sees exactly the numbers it is later scored
against.
"""

from __future__ import annotations

import math
import re

import structlog
from bs4 import Tag

from ..dom import clone_node, text_of
from ..protocols import Candidate, FeatureSet, FeatureVector

logger = structlog.get_logger(__name__)

NEGATIVE_CONTAINER_SELECTOR = ", ".join(
    [
        "nav",
        "aside",
        "footer",
        "form",
        "header",
        "noscript",
        "template",
        ".comments",
        ".comment",
        ".related",
        ".recirculation",
        ".share",
        ".social",
        ".promo",
        ".sponsor",
        ".newsletter",
        ".consent",
    ]
)

PUNCTUATION_RE = re.compile(r"[.!?,;:]")
ARTICLE_ITEMTYPE_RE = re.compile(r"Article", re.IGNORECASE)

SEMANTIC_TAGS = frozenset({"article", "main"})
MAX_BOILERPLATE_PENALTY = 3

# Heuristic weights. Fixed constants, not tuning knobs.
SEMANTIC_BONUS = 2.0
LINK_DENSITY_PENALTY = 10.0


def strip_negative_containers(node: Tag) -> Tag:
    """Return a deep copy of ``node`` without its negative-container descendants."""
    clone = clone_node(node)
    for bad in clone.select(NEGATIVE_CONTAINER_SELECTOR):
        # An earlier match may already have taken this one out with its ancestor.
        if not bad.decomposed:
            bad.decompose()
    return clone


def link_density(node: Tag) -> float:
    text = text_of(node)
    if not text:
        return 0.0
    anchor_chars = sum(len(text_of(a)) for a in node.find_all("a"))
    return anchor_chars / len(text)


def is_semantic(node: Tag) -> bool:
    if node.name in SEMANTIC_TAGS:
        return True
    if node.get("role") == "main":
        return True
    itemtype = node.get("itemtype")
    return bool(itemtype and ARTICLE_ITEMTYPE_RE.search(str(itemtype)))


def boilerplate_hits(node: Tag) -> int:
    return min(len(node.select(NEGATIVE_CONTAINER_SELECTOR)), MAX_BOILERPLATE_PENALTY)


def compute_features(original: Tag, cleaned: Tag) -> FeatureSet:
    """Signals of ``cleaned``, plus the semantic and boilerplate signals of ``original``."""
    text = text_of(cleaned)
    return FeatureSet(
        length=len(text),
        punctuation=len(PUNCTUATION_RE.findall(text)),
        link_density=link_density(cleaned),
        paragraphs=len(cleaned.find_all(["p", "br"])),
        semantic=is_semantic(original),
        boilerplate=boilerplate_hits(original),
    )


def to_vector(features: FeatureSet) -> FeatureVector:
    """Scale raw signals into ``(lengthLog, punctuation, linkDensity, paragraphs, semantic, boilerplate)``."""
    return (
        math.log1p(features.length),
        min(features.punctuation / 10, 5.0),
        float(features.link_density),
        min(features.paragraphs / 5, 5.0),
        1.0 if features.semantic else 0.0,
        float(features.boilerplate),
    )


def heuristic_score(vector: FeatureVector) -> float:
    length_log, punctuation, density, paragraphs, semantic, boilerplate = vector
    return (
        length_log
        + punctuation
        + paragraphs
        + SEMANTIC_BONUS * semantic
        - LINK_DENSITY_PENALTY * density
        - boilerplate
    )


class FeatureExtractor:
    """Builds scored ``Candidate`` objects from live tree nodes."""

    def build(self, node: Tag, order: int) -> Candidate:
        clone = strip_negative_containers(node)
        features = compute_features(node, clone)
        vector = to_vector(features)
        return Candidate(
            node=node,
            clone=clone,
            features=features,
            vector=vector,
            heuristic_score=heuristic_score(vector),
            order=order,
        )
