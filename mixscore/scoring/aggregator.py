"""Category sub-scores and the weighted overall score."""
from __future__ import annotations
import logging

import numpy as np

from mixscore.types import Category, MetricScore

logger = logging.getLogger(__name__)

LEGACY_WEIGHTS = {
    "loudness": 0.25,
    "dynamics": 0.25,
    "peak": 0.20,
    "stereo": 0.15,
    "spectral": 0.15,
    "technical": 0.10,
}

DEFAULT_CLASSIFICATION_THRESHOLDS = ((90.0, "World-class"), (75.0, "Advanced"), (60.0, "Intermediate"))


def category_scores(metric_scores: list[MetricScore]) -> dict[str, float]:
    """
    Mean sub-score per category over scored (non-NA) metrics.

    Categories without any scored metric are absent, never zero. Output
    keys follow the Category declaration order.
    """
    buckets: dict[str, list[float]] = {}
    for ms in metric_scores:
        if ms.sub_score is None:
            continue
        buckets.setdefault(ms.category.value, []).append(ms.sub_score)
    return {
        c.value: float(np.mean(buckets[c.value]))
        for c in Category
        if c.value in buckets
    }


def effective_weights(
    categories: list[str],
    strategy: str = "legacy",
    weights: dict[str, float] | None = None
) -> dict[str, float]:
    """Weights over the present categories, renormalized to sum to 1."""
    if not categories:
        return {}
    if strategy == "equalWeight":
        return {c: 1.0 / len(categories) for c in categories}
    if strategy != "legacy":
        raise ValueError(f"unknown weighting strategy: {strategy}")
    base = LEGACY_WEIGHTS if weights is None else weights
    raw = np.array([float(base.get(c, 0.0)) for c in categories], dtype=np.float64)
    total = float(raw.sum())
    if total <= 0.0:
        # every present category has zero weight
        return {c: 1.0 / len(categories) for c in categories}
    return {c: float(w / total) for c, w in zip(categories, raw)}


def aggregate(
    sub_scores: dict[str, float],
    strategy: str = "legacy",
    weights: dict[str, float] | None = None
) -> tuple[float, dict[str, float]]:
    """
    Weighted overall score from category sub-scores.

    Args:
        sub_scores: Category name -> 0-100 sub-score (absent categories omitted)
        strategy: "legacy" or "equalWeight"
        weights: Legacy weight table override

    Returns:
        (overall score rounded to 0.1, effective weights used)
    """
    present = [c for c, s in sub_scores.items() if s is not None]
    w = effective_weights(present, strategy, weights)
    if not w:
        logger.warning("no category could be scored; overall score is 0")
        return 0.0, {}
    overall = float(np.sum([sub_scores[c] * w[c] for c in present]))
    return round(overall, 1), w


def classify_overall(
    score: float,
    thresholds=DEFAULT_CLASSIFICATION_THRESHOLDS,
    floor: str = "Basic"
) -> str:
    for minimum, label in sorted(thresholds, key=lambda t: -t[0]):
        if score >= minimum:
            return label
    return floor
