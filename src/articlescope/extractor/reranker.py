"""
Optional learned reranker over candidate feature vectors.

Scoring is a two-case variant picked once per extraction call:
``HeuristicScoring`` keeps the fixed additive score, ``LearnedScoring``
orders by a logistic-regression probability. The heuristic score is always
computed either way.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import structlog

from ..config.config import RerankerConfig
from ..protocols import Candidate, RerankerModel

logger = structlog.get_logger(__name__)


def sigmoid(z: float) -> float:
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    ez = math.exp(z)
    return ez / (1.0 + ez)


class Reranker:
    """Logistic-regression inference with immutable weights."""

    def __init__(self, model: RerankerModel) -> None:
        self.model = model

    def score(self, vector: Sequence[float]) -> float:
        z = self.model.bias
        for weight, value in zip(self.model.weights, vector):
            z += weight * value
        return sigmoid(z)


@dataclass(frozen=True)
class HeuristicScoring:
    def rank(self, candidates: List[Candidate]) -> List[Candidate]:
        return sorted(candidates, key=lambda c: (-c.heuristic_score, c.order))


@dataclass(frozen=True)
class LearnedScoring:
    model: RerankerModel

    def rank(self, candidates: List[Candidate]) -> List[Candidate]:
        reranker = Reranker(self.model)
        for candidate in candidates:
            candidate.model_score = reranker.score(candidate.vector)
        return sorted(candidates, key=lambda c: (-(c.model_score or 0.0), c.order))


Scoring = Union[HeuristicScoring, LearnedScoring]


def scoring_from_config(config: Optional[RerankerConfig]) -> Scoring:
    """
    Resolve the scoring mode for one extraction call.

    An unreadable weights file degrades to heuristic scoring rather than
    failing the extraction.
    """
    if config is None or not config.enabled:
        return HeuristicScoring()
    if config.weights is not None:
        return LearnedScoring(RerankerModel.from_dict(config.weights.model_dump()))
    if config.weights_path is not None:
        try:
            return LearnedScoring(RerankerModel.from_file(config.weights_path))
        except (OSError, ValueError) as e:
            logger.warning("Could not load reranker weights", path=str(config.weights_path), error=str(e))
    return HeuristicScoring()
