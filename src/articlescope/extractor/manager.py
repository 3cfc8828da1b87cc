"""
ArticleExtractor: structured data, content detection and sanitization in one call.
"""

from __future__ import annotations

from typing import Optional, Union

import structlog
from bs4 import Tag
from structlog.contextvars import bound_contextvars

from ..config.config import Config, SanitizerConfig
from ..dom import parse_html
from ..protocols import ExtractionResult, LiveBlogDigest, SanitizationPolicy
from .detector import ContentDetector
from .live_blog import LiveBlogDetector
from .sanitizer import Sanitizer
from .structured_data import StructuredDataExtractor

logger = structlog.get_logger(__name__)


def policy_from_config(config: SanitizerConfig) -> SanitizationPolicy:
    if config.policy == "lenient":
        return SanitizationPolicy.lenient(
            preserve_images=config.preserve_images,
            unwrap_images=config.unwrap_images,
        )
    return SanitizationPolicy.strict()


class ArticleExtractor:
    """
    End-to-end main-article extraction for one rendered page.

    The flow is: structured-data seed, candidate ranking and gated
    selection, then sanitization of scored HTML. A publisher body taken
    from structured data is plain text and is returned untouched.
    """

    def __init__(self, config: Optional[Config] = None) -> None:
        self.config = config or Config()
        self.structured_data = StructuredDataExtractor()
        self.detector = ContentDetector(self.config.content_detection)
        self.sanitizer = Sanitizer(policy_from_config(self.config.sanitizer))
        self.live_blog = LiveBlogDetector()
        self.logger = logger.bind(component="ArticleExtractor")

    @staticmethod
    def _as_tree(page: Union[str, Tag]) -> Tag:
        return parse_html(page) if isinstance(page, str) else page

    def extract(self, page: Union[str, Tag], url: Optional[str] = None) -> ExtractionResult:
        """
        Extract the main article.

        Args:
            page: Rendered tree, or markup to parse
            url: Optional page URL for logging and the dataset dump

        Returns:
            ExtractionResult; ``html`` is None when no article was found
        """
        tree = self._as_tree(page)
        with bound_contextvars(page_url=url):
            structured = self.structured_data.extract(tree)
            detection = self.detector.detect(tree, seed=structured.seed, url=url)

            html = detection.html
            if html is not None and detection.source != "structured_data":
                html = self.sanitizer.sanitize(html)

            self.logger.info(
                "Article extracted" if html else "No article found",
                source=detection.source,
                has_headline=detection.headline is not None,
                candidates=len(detection.candidates),
            )
        return ExtractionResult(
            url=url,
            headline=detection.headline,
            html=html,
            xpath=detection.xpath,
            source=detection.source,
            structured=structured,
        )

    def extract_live_blog(self, page: Union[str, Tag], url: Optional[str] = None) -> LiveBlogDigest:
        """Alternate path for rolling/timeline pages."""
        with bound_contextvars(page_url=url):
            return self.live_blog.detect(self._as_tree(page))
