"""
Offline reranker training from labelled dataset dumps.
"""

from .trainer import RerankerTrainer, canonical_column, log_loss, parse_dataset, row_from_values, training_vector

__all__ = [
    "RerankerTrainer",
    "canonical_column",
    "log_loss",
    "parse_dataset",
    "row_from_values",
    "training_vector",
]
