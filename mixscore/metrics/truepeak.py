"""True peak scorer."""
from __future__ import annotations

from mixscore.metrics.curve import DEFAULT_SCORE_CURVE, score_expected
from mixscore.types import Category, MetricScore, ReferenceDocument


def score_true_peak(
    reported_true_peak_dbtp: float | None,
    reference: ReferenceDocument,
    *,
    curve=DEFAULT_SCORE_CURVE
) -> tuple[MetricScore | None, list[str]]:
    """
    Score the reported true peak (after clipping precedence) as a ceiling.

    Only overshoot counts: a peak below the target is ideal.
    """
    return score_expected(
        "true_peak",
        reported_true_peak_dbtp,
        reference.targets.get("true_peak"),
        category=Category.PEAK,
        units="dBTP",
        label="True peak",
        curve=curve,
        upper_only=True,
    )
