"""Loudness scorers: integrated loudness and loudness range."""
from __future__ import annotations

from mixscore.metrics.curve import DEFAULT_SCORE_CURVE, score_expected
from mixscore.types import Category, MetricScore, MetricsVector, ReferenceDocument


def score_loudness(
    metrics: MetricsVector,
    reference: ReferenceDocument,
    *,
    curve=DEFAULT_SCORE_CURVE
) -> tuple[MetricScore | None, list[str]]:
    """Integrated loudness (LUFS) against the genre target."""
    return score_expected(
        "lufs",
        metrics.lufs_integrated,
        reference.targets.get("lufs"),
        category=Category.LOUDNESS,
        units="LUFS",
        label="Integrated loudness",
        curve=curve,
    )


def score_lra(
    metrics: MetricsVector,
    reference: ReferenceDocument,
    *,
    curve=DEFAULT_SCORE_CURVE
) -> tuple[MetricScore | None, list[str]]:
    """Loudness range (LU); counted under dynamics."""
    return score_expected(
        "lra",
        metrics.lra,
        reference.targets.get("lra"),
        category=Category.DYNAMICS,
        units="LU",
        label="Loudness range",
        curve=curve,
    )
