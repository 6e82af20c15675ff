"""Technical scorers: sample clipping and DC offset.

These are physical limits, not genre taste. A reference may override them;
otherwise the configured ``technical_limits`` apply.
"""
from __future__ import annotations

from mixscore.metrics.curve import DEFAULT_SCORE_CURVE, score_expected, score_metric
from mixscore.types import Category, MetricScore, MetricsVector, MetricTarget, ReferenceDocument

DEFAULT_TECHNICAL_LIMITS = {
    "clipping_pct": {"target": 0.0, "tol": 0.5},
    "dc_offset": {"target": 0.0, "tol": 0.02},
}

_LABELS = {
    "clipping_pct": ("Clipped samples", "%"),
    "dc_offset": ("DC offset", ""),
}


def _limit(key: str, reference: ReferenceDocument, limits: dict) -> MetricTarget:
    if key in reference.targets:
        return reference.targets[key]
    lim = limits[key]
    return MetricTarget(lim["target"], lim["tol"], lim["tol"])


def score_technical(
    metrics: MetricsVector,
    reference: ReferenceDocument,
    *,
    limits: dict | None = None,
    curve=DEFAULT_SCORE_CURVE
) -> tuple[list[MetricScore], list[str]]:
    """Score clipping percentage and absolute DC offset, both as ceilings."""
    limits = {**DEFAULT_TECHNICAL_LIMITS, **(limits or {})}
    values = {
        "clipping_pct": metrics.clipping_pct,
        "dc_offset": abs(metrics.dc_offset) if metrics.dc_offset is not None else None,
    }
    scores: list[MetricScore] = []
    warnings: list[str] = []
    for key, value in values.items():
        label, units = _LABELS[key]
        kwargs = dict(category=Category.TECHNICAL, units=units, label=label, curve=curve, upper_only=True)
        if value is None:
            # only a reference that names the limit expects the measurement
            score, w = score_expected(key, None, reference.targets.get(key), **kwargs)
            warnings.extend(w)
            if score is not None:
                scores.append(score)
            continue
        scores.append(score_metric(key, value, _limit(key, reference, limits), **kwargs))
    return scores, warnings
