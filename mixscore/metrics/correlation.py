from __future__ import annotations

from mixscore.metrics.curve import DEFAULT_SCORE_CURVE, score_expected
from mixscore.types import Category, MetricScore, MetricsVector, ReferenceDocument


def score_stereo(
    metrics: MetricsVector,
    reference: ReferenceDocument,
    *,
    curve=DEFAULT_SCORE_CURVE
) -> tuple[MetricScore | None, list[str]]:
    """Stereo correlation (-1..1) against the genre target."""
    return score_expected(
        "stereo",
        metrics.stereo_correlation,
        reference.targets.get("stereo"),
        category=Category.STEREO,
        units="",
        label="Stereo correlation",
        curve=curve,
    )
