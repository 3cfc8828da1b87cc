"""
ArticleScope Content Extraction Module

Pipeline for pulling the main article out of a rendered page:
1. Structured data: publisher JSON-LD ``articleBody`` short-circuits scoring
2. Candidate gathering: semantic containers plus long text blocks
3. Feature scoring: fixed heuristic or a trained logistic-regression reranker
4. Gated selection with a single runner-up fallback
5. Sanitization: strict or image-preserving lenient policy

Live blogs take an alternate path that digests timestamped updates.
"""

from .candidates import CandidateGatherer
from .dataset import DatasetWriter
from .detector import ContentDetector
from .features import FeatureExtractor, heuristic_score, to_vector
from .live_blog import LiveBlogDetector
from .manager import ArticleExtractor
from .reranker import HeuristicScoring, LearnedScoring, Reranker, scoring_from_config
from .sanitizer import Sanitizer, unwrap_node_preserving_children
from .structured_data import StructuredDataExtractor

__all__ = [
    "ArticleExtractor",
    "CandidateGatherer",
    "ContentDetector",
    "DatasetWriter",
    "FeatureExtractor",
    "HeuristicScoring",
    "LearnedScoring",
    "LiveBlogDetector",
    "Reranker",
    "Sanitizer",
    "StructuredDataExtractor",
    "heuristic_score",
    "scoring_from_config",
    "to_vector",
    "unwrap_node_preserving_children",
]
