"""
Core data types shared by the extraction, scoring and training modules.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

if TYPE_CHECKING:
    from bs4 import Tag

FeatureVector = Tuple[float, float, float, float, float, float]

FEATURE_NAMES: Tuple[str, ...] = ("len", "punct", "ld", "pc", "sem", "boiler")


@dataclass(frozen=True)
class FeatureSet:
    """Raw per-candidate signals, the values written to the training dataset."""

    length: int
    punctuation: int
    link_density: float
    paragraphs: int
    semantic: bool
    boilerplate: int


@dataclass
class Candidate:
    """A container considered as the article body."""

    node: Tag  # reference into the live tree, never mutated
    clone: Tag  # exclusively owned, negative containers stripped
    features: FeatureSet
    vector: FeatureVector
    heuristic_score: float
    order: int
    model_score: Optional[float] = None

    @property
    def ranking_score(self) -> float:
        return self.model_score if self.model_score is not None else self.heuristic_score


@dataclass(frozen=True)
class ArticleSeed:
    """Headline and body declared by the publisher in structured data."""

    headline: Optional[str] = None
    article_body: Optional[str] = None


@dataclass
class BodyStructuredData:
    tables: List[Dict[str, Any]] = field(default_factory=list)
    definition_lists: List[Dict[str, Any]] = field(default_factory=list)
    figures: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tables": self.tables,
            "definitionLists": self.definition_lists,
            "figures": self.figures,
        }


@dataclass
class StructuredData:
    """Everything recovered from JSON-LD and structured body markup."""

    headline: Optional[str] = None
    article_body: Optional[str] = None
    articles: List[Dict[str, Any]] = field(default_factory=list)
    body: BodyStructuredData = field(default_factory=BodyStructuredData)

    @property
    def seed(self) -> ArticleSeed:
        return ArticleSeed(headline=self.headline, article_body=self.article_body)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headline": self.headline,
            "articleBody": self.article_body,
            "articles": self.articles,
            "body": self.body.to_dict(),
        }


@dataclass(frozen=True)
class RerankerModel:
    """Logistic-regression weights; produced only by offline training."""

    weights: Tuple[float, ...]
    bias: float

    @classmethod
    def zero(cls, dimensions: int = len(FEATURE_NAMES)) -> RerankerModel:
        return cls(weights=(0.0,) * dimensions, bias=0.0)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RerankerModel:
        weights = data.get("weights")
        if not isinstance(weights, (list, tuple)):
            raise ValueError("model 'weights' must be a list of numbers")
        return cls(weights=tuple(float(w) for w in weights), bias=float(data.get("bias", 0.0) or 0.0))

    @classmethod
    def from_file(cls, path: Path) -> RerankerModel:
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> Dict[str, Any]:
        return {"weights": list(self.weights), "bias": self.bias}


@dataclass(frozen=True)
class TrainingRow:
    """One labelled candidate read back from a dataset file."""

    features: FeatureSet
    label: int
    extras: Dict[str, float] = field(default_factory=dict)


class PolicyKind(Enum):
    STRICT = "strict"
    LENIENT = "lenient"


@dataclass(frozen=True)
class SanitizationPolicy:
    """Node-removal rules applied to the selected HTML."""

    kind: PolicyKind = PolicyKind.STRICT
    preserve_images: bool = False
    unwrap_images: bool = False

    def __post_init__(self) -> None:
        if self.kind is PolicyKind.STRICT and (self.preserve_images or self.unwrap_images):
            raise ValueError("image options only apply to the lenient policy")

    @classmethod
    def strict(cls) -> SanitizationPolicy:
        return cls(PolicyKind.STRICT)

    @classmethod
    def lenient(cls, preserve_images: bool = True, unwrap_images: bool = True) -> SanitizationPolicy:
        return cls(PolicyKind.LENIENT, preserve_images=preserve_images, unwrap_images=unwrap_images)

    @property
    def protects_images(self) -> bool:
        return self.kind is PolicyKind.LENIENT and self.preserve_images


@dataclass
class DetectionResult:
    """Outcome of candidate ranking and gated selection."""

    headline: Optional[str] = None
    html: Optional[str] = None
    xpath: Optional[str] = None
    source: Optional[str] = None  # "structured_data", "candidate", "fallback"
    candidates: List[Candidate] = field(default_factory=list)


@dataclass
class ExtractionResult:
    """Final article returned to the ingestion pipeline."""

    url: Optional[str]
    headline: Optional[str]
    html: Optional[str]
    xpath: Optional[str] = None
    source: Optional[str] = None
    structured: StructuredData = field(default_factory=StructuredData)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "headline": self.headline,
            "html": self.html,
            "xpath": self.xpath,
            "source": self.source,
            "structured": self.structured.to_dict(),
        }


@dataclass(frozen=True)
class LiveBlogItem:
    time: str
    title: str
    body: str
    position: int


@dataclass
class LiveBlogDigest:
    ok: bool
    html: Optional[str] = None
    count: Optional[int] = None
    chars: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        if not self.ok:
            return {"ok": False}
        return {"ok": True, "html": self.html, "count": self.count, "chars": self.chars}
