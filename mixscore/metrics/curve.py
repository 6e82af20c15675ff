"""Deviation-to-score curve shared by all metric scorers."""
from __future__ import annotations
import logging

import numpy as np

from mixscore.errors import MissingMetricWarning, warning_message
from mixscore.thresholds.classifier import classify
from mixscore.types import Category, MetricScore, MetricTarget, Status

logger = logging.getLogger(__name__)

DEFAULT_SCORE_CURVE: tuple[tuple[float, float], ...] = ((0.0, 100.0), (1.0, 50.0), (2.0, 0.0))


def score_curve(ratio: float | None, curve=DEFAULT_SCORE_CURVE) -> float | None:
    """
    Map a tolerance ratio to a 0-100 sub-score.

    Piecewise-linear between the ``(ratio, score)`` breakpoints; beyond the
    last breakpoint the last score holds, and the result never drops below 0.
    """
    if ratio is None:
        return None
    xs = np.array([p[0] for p in curve], dtype=np.float64)
    ys = np.array([p[1] for p in curve], dtype=np.float64)
    s = float(np.interp(max(float(ratio), 0.0), xs, ys, left=ys[0], right=ys[-1]))
    return max(0.0, min(100.0, s))


def score_metric(
    key: str,
    value: float | None,
    target: MetricTarget,
    *,
    category: Category,
    units: str,
    label: str,
    curve=DEFAULT_SCORE_CURVE,
    upper_only: bool = False
) -> MetricScore:
    """Classify ``value`` against ``target`` and score it on ``curve``."""
    c = classify(
        value,
        target.target,
        target.tolerance,
        tol_min=target.tol_min,
        tol_max=target.tol_max,
        upper_only=upper_only,
        metric_key=key,
    )
    sub = None if c.status == Status.NA else score_curve(c.ratio, curve)
    return MetricScore(
        metric_key=key,
        category=category,
        sub_score=sub,
        classification=c,
        units=units,
        label=label,
    )


def score_expected(
    key: str,
    value: float | None,
    target: MetricTarget | None,
    **kwargs
) -> tuple[MetricScore | None, list[str]]:
    """
    Score a metric the reference may expect.

    No target: nothing to score. Target but no measured value: an NA score
    (rendered as N/A, excluded from the category mean) plus a
    MissingMetricWarning.
    """
    if target is None:
        if value is not None:
            logger.debug("%s measured but reference has no target; skipped", key)
        return None, []
    warnings: list[str] = []
    if value is None:
        text = f"{key}: reference expects it but the metrics vector has no value; excluded"
        logger.warning(text)
        warnings.append(warning_message(MissingMetricWarning, text))
    return score_metric(key, value, target, **kwargs), warnings
