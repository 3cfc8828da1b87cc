"""Configuration models for ArticleScope."""

from .config import (
    Config,
    ContentDetectionConfig,
    DebugDumpConfig,
    MonitoringConfig,
    RerankerConfig,
    RerankerWeights,
    SanitizerConfig,
    TrainerConfig,
    find_config_file,
)

__all__ = [
    "Config",
    "ContentDetectionConfig",
    "DebugDumpConfig",
    "MonitoringConfig",
    "RerankerConfig",
    "RerankerWeights",
    "SanitizerConfig",
    "TrainerConfig",
    "find_config_file",
]
