"""
ArticleScope - main-article extraction from rendered web pages.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import Config
from .extractor import ArticleExtractor, LiveBlogDetector, Sanitizer, StructuredDataExtractor
from .protocols import ExtractionResult, LiveBlogDigest, RerankerModel, SanitizationPolicy
from .training import RerankerTrainer

__all__ = [
    "__version__",
    "ArticleExtractor",
    "Config",
    "ExtractionResult",
    "LiveBlogDetector",
    "LiveBlogDigest",
    "RerankerModel",
    "RerankerTrainer",
    "SanitizationPolicy",
    "Sanitizer",
    "StructuredDataExtractor",
]
