"""
Candidate container gathering.
"""

from __future__ import annotations

from typing import List

import structlog
from bs4 import Tag

from ..dom import text_of, unique_by_identity

logger = structlog.get_logger(__name__)

CANDIDATE_SELECTORS = (
    "article",
    "main",
    '[role="main"]',
    '[itemtype*="Article"]',
    ".content, .article, .post, .story, .entry",
)

GENERIC_BLOCK_TAG = "div"
GENERIC_BLOCK_MIN_CHARS = 400


class CandidateGatherer:
    """Selects the containers that may hold the article body."""

    def __init__(self, min_block_chars: int = GENERIC_BLOCK_MIN_CHARS) -> None:
        self.min_block_chars = min_block_chars

    def gather(self, tree: Tag) -> List[Tag]:
        """
        Return candidate nodes in first-seen order, unique by identity.

        Semantic selectors are visited first, in their fixed order; any
        ``div`` whose text exceeds the block threshold follows.
        """
        found: List[Tag] = []
        for selector in CANDIDATE_SELECTORS:
            found.extend(tree.select(selector))
        for block in tree.find_all(GENERIC_BLOCK_TAG):
            if len(text_of(block)) > self.min_block_chars:
                found.append(block)

        candidates = unique_by_identity(found)
        logger.debug("Gathered candidates", count=len(candidates))
        return candidates
