"""
Defines Prometheus metrics for the extraction engine.
"""

from __future__ import annotations

from typing import Any, Dict

from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram

# ---------------------------------------------------------------------------
# Duplicate-safe Prometheus metric wrappers
# ---------------------------------------------------------------------------
# Re-importing this module (test reloads, multiple entry points) must reuse
# the collectors already registered under the same name.


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        existing = _PROM_REGISTRY._names_to_collectors.get(name)
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


def _create_metrics() -> Dict[str, Any]:
    return {
        "documents_extracted": Counter(
            "articlescope_documents_extracted_total",
            "Documents run through content detection, by where the body came from",
            ["source"],
        ),
        "fallback_selections": Counter(
            "articlescope_fallback_selections_total",
            "Pages where the top candidate failed the gate and the runner-up was used",
        ),
        "candidates_per_page": Histogram(
            "articlescope_candidates_per_page",
            "Number of candidate containers gathered per page",
            buckets=[0, 1, 2, 5, 10, 20, 50, 100, 250],
        ),
        "live_blog_digests": Counter(
            "articlescope_live_blog_digests_total",
            "Live-blog detection outcomes",
            ["outcome"],
        ),
        "dataset_rows_written": Counter(
            "articlescope_dataset_rows_written_total",
            "Candidate feature rows appended to the training dataset",
        ),
        "sanitizer_removed_nodes": Counter(
            "articlescope_sanitizer_removed_nodes_total",
            "Nodes removed by the sanitizer",
            ["policy"],
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()
