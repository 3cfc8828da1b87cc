"""
Offline trainer for the candidate reranker.

Reads the CSV rows written by the content detector's dataset dump (after a
reviewer has filled in the labels) and fits an L2-regularized logistic
regression by full-batch gradient descent. Feature vectors are built with
the same ``to_vector`` the detector uses at inference time.
"""

from __future__ import annotations

import csv
import io
import math
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np
import structlog

from ..config.config import TrainerConfig
from ..extractor.features import to_vector
from ..protocols import FEATURE_NAMES, FeatureSet, RerankerModel, TrainingRow
from ..utils.atomic import atomic_write_json

logger = structlog.get_logger(__name__)

REQUIRED_COLUMNS = (*FEATURE_NAMES, "label")

COLUMN_ALIASES: Dict[str, tuple[str, ...]] = {
    "len": ("len", "length", "textlength"),
    "punct": ("punct", "punctuation"),
    "ld": ("ld", "linkdensity"),
    "pc": ("pc", "paragraphs", "paragraphcount"),
    "sem": ("sem", "semantic"),
    "boiler": ("boiler", "boilerplate"),
    "label": ("label", "y", "target"),
    # Extended structural signals, kept alongside the canonical six.
    "dp": ("dp", "directparagraphs"),
    "db": ("db", "directblocks"),
    "dr": ("dr", "paragraphblockratio"),
    "avgP": ("avgp", "avgparagraphlength"),
    "depth": ("depth", "domdepth"),
    "heads": ("heads", "headings", "headingcount"),
    "roleMain": ("rolemain",),
    "roleNeg": ("roleneg",),
    "ariaHidden": ("ariahidden",),
    "imgAltRatio": ("imgaltratio", "imagealtratio"),
    "imgCount": ("imgcount", "imagecount"),
}
_ALIAS_LOOKUP = {alias: canonical for canonical, aliases in COLUMN_ALIASES.items() for alias in aliases}
EXTENDED_COLUMNS = tuple(name for name in COLUMN_ALIASES if name not in REQUIRED_COLUMNS)


def canonical_column(name: str) -> Optional[str]:
    key = name.strip().lower().replace("_", "").replace("-", "").replace(" ", "")
    return _ALIAS_LOOKUP.get(key)


def _number(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _count(value: float) -> Optional[int]:
    if value < 0 or not value.is_integer():
        return None
    return int(value)


def _flag(value: float) -> Optional[int]:
    return int(value) if value in (0.0, 1.0) else None


def row_from_values(values: Dict[str, Optional[str]]) -> Optional[TrainingRow]:
    """
    Build a ``TrainingRow`` from raw column strings keyed by canonical name.

    Returns None when any required field is missing or malformed.
    """
    numbers = {name: _number(values.get(name)) for name in REQUIRED_COLUMNS}
    if any(v is None for v in numbers.values()):
        return None

    length = _count(numbers["len"])  # type: ignore[arg-type]
    punctuation = _count(numbers["punct"])  # type: ignore[arg-type]
    paragraphs = _count(numbers["pc"])  # type: ignore[arg-type]
    boilerplate = _count(numbers["boiler"])  # type: ignore[arg-type]
    semantic = _flag(numbers["sem"])  # type: ignore[arg-type]
    label = _flag(numbers["label"])  # type: ignore[arg-type]
    density = numbers["ld"]
    if None in (length, punctuation, paragraphs, boilerplate, semantic, label) or density < 0:  # type: ignore[operator]
        return None

    extras: Dict[str, float] = {}
    for name in EXTENDED_COLUMNS:
        value = _number(values.get(name))
        if value is not None:
            extras[name] = value

    return TrainingRow(
        features=FeatureSet(
            length=length,  # type: ignore[arg-type]
            punctuation=punctuation,  # type: ignore[arg-type]
            link_density=density,  # type: ignore[arg-type]
            paragraphs=paragraphs,  # type: ignore[arg-type]
            semantic=bool(semantic),
            boilerplate=boilerplate,  # type: ignore[arg-type]
        ),
        label=label,  # type: ignore[arg-type]
        extras=extras,
    )


def training_vector(row: TrainingRow) -> tuple[float, ...]:
    return to_vector(row.features)


def _looks_like_header(cells: Sequence[str]) -> bool:
    return any(canonical_column(cell) == "len" for cell in cells)


def _legacy_values(cells: List[str]) -> Optional[Dict[str, Optional[str]]]:
    """Positional ``[url,][xpath,]len,punct,ld,pc,sem,boiler,label`` rows."""
    fields = [c.strip() for c in cells]
    while len(fields) > len(REQUIRED_COLUMNS) and _number(fields[0]) is None:
        fields = fields[1:]
    if len(fields) < len(REQUIRED_COLUMNS):
        return None
    return dict(zip(REQUIRED_COLUMNS, fields))


def parse_dataset(text: str) -> List[TrainingRow]:
    """
    Parse dataset CSV text into training rows.

    Headers may use any of the aliases in ``COLUMN_ALIASES``; headerless
    files are read positionally. Rows missing a required field are dropped.
    """
    reader = csv.reader(io.StringIO(text))
    rows: List[TrainingRow] = []
    columns: Optional[Dict[str, int]] = None
    dropped = 0

    for cells in reader:
        if not cells or not any(c.strip() for c in cells):
            continue
        if _looks_like_header(cells):
            columns = {}
            for index, cell in enumerate(cells):
                name = canonical_column(cell)
                if name is not None and name not in columns:
                    columns[name] = index
            continue

        if columns is not None:
            values: Optional[Dict[str, Optional[str]]] = {
                name: (cells[index] if index < len(cells) else None) for name, index in columns.items()
            }
        else:
            values = _legacy_values(cells)

        row = row_from_values(values) if values is not None else None
        if row is None:
            dropped += 1
            continue
        rows.append(row)

    logger.info("Parsed training dataset", rows=len(rows), dropped=dropped)
    return rows


def _sigmoid(z: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-np.clip(z, -500.0, 500.0)))


def log_loss(model: RerankerModel, rows: Sequence[TrainingRow], l2: float = 0.0) -> float:
    """Mean L2-regularized binary cross-entropy of ``model`` on ``rows``."""
    if not rows:
        return 0.0
    x = np.array([training_vector(r) for r in rows], dtype=float)
    y = np.array([r.label for r in rows], dtype=float)
    w = np.array(model.weights, dtype=float)
    p = np.clip(_sigmoid(x @ w + model.bias), 1e-12, 1.0 - 1e-12)
    loss = -np.mean(y * np.log(p) + (1.0 - y) * np.log(1.0 - p))
    return float(loss + 0.5 * l2 * np.dot(w, w))


class RerankerTrainer:
    """Full-batch gradient descent on L2-regularized logistic loss."""

    def __init__(self, config: Optional[TrainerConfig] = None) -> None:
        self.config = config or TrainerConfig()
        self.logger = logger.bind(component="RerankerTrainer")

    def load_dataset(self, path: Path) -> List[TrainingRow]:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return parse_dataset(f.read())

    def train(self, rows: Sequence[TrainingRow]) -> RerankerModel:
        if not rows:
            self.logger.warning("No valid training rows, returning zero model")
            return RerankerModel.zero()

        x = np.array([training_vector(r) for r in rows], dtype=float)
        y = np.array([r.label for r in rows], dtype=float)
        n, d = x.shape
        w = np.zeros(d)
        b = 0.0
        lr = self.config.learning_rate
        l2 = self.config.l2

        for _ in range(self.config.epochs):
            diff = _sigmoid(x @ w + b) - y
            w -= lr * (x.T @ diff / n + l2 * w)
            b -= lr * float(diff.mean())

        model = RerankerModel(weights=tuple(float(v) for v in w), bias=float(b))
        self.logger.info(
            "Reranker trained",
            rows=n,
            epochs=self.config.epochs,
            learning_rate=lr,
            l2=l2,
            loss=round(log_loss(model, rows, l2), 6),
        )
        return model

    def train_file(self, dataset: Path) -> RerankerModel:
        return self.train(self.load_dataset(dataset))

    @staticmethod
    def save_model(model: RerankerModel, path: Path) -> None:
        atomic_write_json(path, model.to_dict())
