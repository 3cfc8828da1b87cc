"""
Candidate feature dump used to build reranker training data.

Rows are appended best-effort: failures are logged and never reach the
extraction result.
"""

from __future__ import annotations

import csv
import io
import os
from pathlib import Path
from typing import List, Optional, Sequence

import structlog

from ..config.config import DebugDumpConfig
from ..dom import xpath
from ..observability import increment
from ..protocols import FEATURE_NAMES, Candidate
from ..utils.atomic import append_record, create_with_header

logger = structlog.get_logger(__name__)

# Rows are written unlabelled; a reviewer flips the label later.
LABEL_PLACEHOLDER = 0


def dataset_header(add_url: bool) -> List[str]:
    columns = ["xpath", *FEATURE_NAMES, "label"]
    return ["url", *columns] if add_url else columns


def _format_csv_line(values: Sequence[object]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(values)
    return buffer.getvalue()


def format_row(candidate: Candidate, url: Optional[str] = None, add_url: bool = False) -> str:
    f = candidate.features
    values: List[object] = [
        xpath(candidate.node),
        f.length,
        f.punctuation,
        f.link_density,
        f.paragraphs,
        1 if f.semantic else 0,
        f.boilerplate,
        LABEL_PLACEHOLDER,
    ]
    if add_url:
        values.insert(0, url or "")
    return _format_csv_line(values)


class DatasetWriter:
    """Appends the top-ranked candidates of each page to a CSV dataset."""

    def __init__(self, config: DebugDumpConfig) -> None:
        self.config = config
        self.path = Path(config.path)
        self.header = _format_csv_line(dataset_header(config.add_url))

    def _prepare(self) -> None:
        if self.path.exists():
            with open(self.path, "r", encoding="utf-8", errors="replace") as f:
                first = f.readline()
            if first == self.header:
                return
            backup = self.path.with_name(self.path.name + ".bak")
            logger.info("Dataset header changed, moving old file aside", path=str(self.path), backup=str(backup))
            os.replace(self.path, backup)
        create_with_header(self.path, self.header)

    def write(self, ranked: Sequence[Candidate], url: Optional[str] = None) -> int:
        """Append up to ``top_n`` rows; returns how many were written."""
        if not ranked:
            return 0
        written = 0
        try:
            self._prepare()
            for candidate in ranked[: self.config.top_n]:
                append_record(self.path, format_row(candidate, url=url, add_url=self.config.add_url))
                written += 1
        except (OSError, ValueError) as e:
            logger.warning("Dataset dump failed", path=str(self.path), error=str(e), rows_written=written)
        if written:
            increment("dataset_rows_written", written)
        return written
