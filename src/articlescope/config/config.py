"""
Configuration management for ArticleScope using Pydantic.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)

# --- Nested Configuration Models ---


class RerankerWeights(BaseModel):
    """Persisted logistic-regression weights as produced by the trainer."""

    weights: List[float] = Field(default_factory=list, description="One weight per feature vector slot.")
    bias: float = Field(default=0.0, description="Intercept term.")


class RerankerConfig(BaseModel):
    """Optional learned reranker over the candidate feature vectors."""

    enabled: bool = Field(default=False, description="Rank candidates by model score instead of heuristic score.")
    weights: Optional[RerankerWeights] = Field(default=None, description="Inline model weights.")
    weights_path: Optional[Path] = Field(default=None, description="JSON file holding {weights, bias}.")

    @model_validator(mode="after")
    def require_weights_when_enabled(self) -> "RerankerConfig":
        if self.enabled and self.weights is None and self.weights_path is None:
            raise ValueError("reranker.enabled requires either 'weights' or 'weights_path'")
        return self


class DebugDumpConfig(BaseModel):
    """Append candidate feature rows to a CSV dataset for later labelling."""

    path: Path = Field(description="Dataset file the rows are appended to.")
    top_n: int = Field(default=5, ge=1, description="Number of top-ranked candidates dumped per page.")
    add_url: bool = Field(default=False, description="Prefix every row with the page URL.")


class ContentDetectionConfig(BaseModel):
    """Candidate gating and scoring configuration."""

    min_length: int = Field(default=400, ge=0, description="Minimum visible characters for the top candidate.")
    max_link_density: float = Field(default=0.5, ge=0.0, description="Maximum anchor-text share for the top candidate.")
    reranker: Optional[RerankerConfig] = Field(default=None, description="Optional learned reranker.")
    debug_dump: Optional[DebugDumpConfig] = Field(default=None, description="Optional training-row dump.")


class SanitizerConfig(BaseModel):
    """Which sanitization policy is applied to the selected HTML."""

    policy: Literal["strict", "lenient"] = Field(default="strict", description="Node-removal policy.")
    preserve_images: bool = Field(default=True, description="Lenient only: keep images.")
    unwrap_images: bool = Field(default=True, description="Lenient only: unwrap image links and wrappers.")


class TrainerConfig(BaseModel):
    """Gradient-descent settings for the offline reranker trainer."""

    learning_rate: float = Field(default=0.01, gt=0.0, description="Step size.")
    epochs: int = Field(default=200, ge=0, description="Full-batch passes over the dataset.")
    l2: float = Field(default=0.0, ge=0.0, description="L2 regularization strength.")


class MonitoringConfig(BaseModel):
    """Configuration for logging."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: str | None = Field(
        default=None,
        description="Path to log file. If None, logs to console.",
    )

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "ArticleScope"
    version: str = "0.1.0"
    content_detection: ContentDetectionConfig = Field(default_factory=ContentDetectionConfig)
    sanitizer: SanitizerConfig = Field(default_factory=SanitizerConfig)
    trainer: TrainerConfig = Field(default_factory=TrainerConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="ARTICLESCOPE_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)


def find_config_file() -> Path | None:
    current_dir = Path.cwd()
    for path in (current_dir / "articlescope.yaml", current_dir / "articlescope.yml"):
        if path.exists():
            return path
    return None

