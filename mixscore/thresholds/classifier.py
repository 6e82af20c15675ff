from __future__ import annotations
from mixscore.types import Status, ToleranceClassification, finite_or_none

# Absorbs float rounding so that value == target + tolerance stays IDEAL.
_RATIO_EPS = 1e-9


def status_for_ratio(ratio: float) -> Status:
    """Three-tier rule: <=1 IDEAL, <=2 ADJUST, otherwise FIX."""
    if ratio <= 1.0 + _RATIO_EPS:
        return Status.IDEAL
    if ratio <= 2.0 + _RATIO_EPS:
        return Status.ADJUST
    return Status.FIX


def _na(metric_key: str, value, target, tolerance) -> ToleranceClassification:
    return ToleranceClassification(
        metric_key=metric_key,
        value=value,
        target=target,
        tolerance=tolerance,
        deviation=None,
        abs_deviation=None,
        ratio=None,
        status=Status.NA,
    )


def classify(
    value: float | None,
    target: float,
    tolerance: float | None,
    *,
    tol_min: float | None = None,
    tol_max: float | None = None,
    upper_only: bool = False,
    metric_key: str = ""
) -> ToleranceClassification:
    """
    Classify a measured value against a target and tolerance.

    Args:
        value: Measured value (None/NaN means not measured)
        target: Reference target
        tolerance: Symmetric tolerance, used for any side without its own
        tol_min: Tolerance below the target
        tol_max: Tolerance above the target
        upper_only: Only values above the target count as deviations
        metric_key: Identifier carried into the result

    Returns:
        ToleranceClassification; status NA when the value is missing or the
        applicable tolerance is not strictly positive.
    """
    v = finite_or_none(value)
    t = finite_or_none(target)
    if v is None or t is None:
        return _na(metric_key, v, t, finite_or_none(tolerance))

    deviation = v - t
    if deviation > 0:
        side_tol = tol_max if tol_max is not None else tolerance
    elif deviation < 0:
        side_tol = tol_min if tol_min is not None else tolerance
    else:
        candidates = [x for x in (tol_min, tol_max, tolerance) if x is not None]
        side_tol = max(candidates) if candidates else None
    side_tol = finite_or_none(side_tol)
    if side_tol is None or side_tol <= 0:
        return _na(metric_key, v, t, side_tol)

    abs_dev = abs(deviation)
    if upper_only and deviation <= 0:
        ratio = 0.0
    else:
        ratio = abs_dev / side_tol

    return ToleranceClassification(
        metric_key=metric_key,
        value=v,
        target=t,
        tolerance=side_tol,
        deviation=deviation,
        abs_deviation=abs_dev,
        ratio=ratio,
        status=status_for_ratio(ratio),
    )
