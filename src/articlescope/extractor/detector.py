"""
Content detector: structured-data seed, candidate ranking and gated selection.
"""

from __future__ import annotations

from typing import List, Optional

import structlog
from bs4 import Tag

from ..config.config import ContentDetectionConfig
from ..dom import inner_html, xpath
from ..observability import increment, observe
from ..protocols import ArticleSeed, Candidate, DetectionResult
from .candidates import CandidateGatherer
from .dataset import DatasetWriter
from .features import FeatureExtractor
from .reranker import Scoring, scoring_from_config

logger = structlog.get_logger(__name__)


class ContentDetector:
    """
    Picks the article container of a rendered page.

    Features:
    - Publisher ``articleBody`` wins outright when long enough
    - Candidates scored on isolated clones, the live tree is never touched
    - Heuristic or learned ranking, chosen once at construction
    - Single unconditional fallback to the runner-up
    """

    def __init__(
        self,
        config: Optional[ContentDetectionConfig] = None,
        gatherer: Optional[CandidateGatherer] = None,
        feature_extractor: Optional[FeatureExtractor] = None,
    ) -> None:
        self.config = config or ContentDetectionConfig()
        self.gatherer = gatherer or CandidateGatherer()
        self.feature_extractor = feature_extractor or FeatureExtractor()
        self.scoring: Scoring = scoring_from_config(self.config.reranker)
        self.dataset = DatasetWriter(self.config.debug_dump) if self.config.debug_dump else None
        self.logger = logger.bind(component="ContentDetector")

    def rank(self, tree: Tag) -> List[Candidate]:
        nodes = self.gatherer.gather(tree)
        observe("candidates_per_page", len(nodes))
        candidates = [self.feature_extractor.build(node, order) for order, node in enumerate(nodes)]
        return self.scoring.rank(candidates)

    def passes_gate(self, candidate: Candidate) -> bool:
        return (
            candidate.features.length >= self.config.min_length
            and candidate.features.link_density <= self.config.max_link_density
        )

    def detect(
        self,
        tree: Tag,
        seed: Optional[ArticleSeed] = None,
        url: Optional[str] = None,
    ) -> DetectionResult:
        """
        Select the article HTML for ``tree``.

        Args:
            tree: Rendered page tree
            seed: Headline/body recovered from structured data
            url: Page URL, only used for the dataset dump

        Returns:
            DetectionResult; ``html`` is None when nothing qualifies
        """
        seed = seed or ArticleSeed()
        result = DetectionResult(headline=seed.headline)

        if seed.article_body:
            body = seed.article_body.strip()
            if len(body) > self.config.min_length:
                result.html = body
                result.source = "structured_data"

        ranked = self.rank(tree)
        result.candidates = ranked

        if self.dataset is not None:
            self.dataset.write(ranked, url=url)

        if result.html is None and ranked:
            best = ranked[0]
            if self.passes_gate(best):
                chosen: Optional[Candidate] = best
                result.source = "candidate"
            elif len(ranked) > 1:
                chosen = ranked[1]
                result.source = "fallback"
                increment("fallback_selections")
            else:
                chosen = None

            if chosen is not None:
                result.html = inner_html(chosen.clone)
                result.xpath = xpath(chosen.node)

        increment("documents_extracted", labels={"source": result.source or "none"})
        self.logger.debug(
            "Content detection finished",
            candidates=len(ranked),
            source=result.source,
            html_chars=len(result.html) if result.html else 0,
        )
        return result
