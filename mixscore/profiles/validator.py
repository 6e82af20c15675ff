"""Reference entry validation helpers."""
from __future__ import annotations
from typing import Any
import logging
import math

from mixscore.errors import InvalidToleranceWarning, warning_message
from mixscore.types import BandTarget, MetricTarget

logger = logging.getLogger(__name__)


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) \
        and not math.isnan(v) and not math.isinf(v)


def _side_tolerances(raw: dict) -> tuple[Any, Any, bool]:
    """Return (tol_min, tol_max, any_given) from a raw adapter entry."""
    tol = raw.get("tol")
    tol_min = raw.get("tol_min")
    tol_max = raw.get("tol_max")
    given = any(v is not None for v in (tol, tol_min, tol_max))
    # One-sided entries borrow the symmetric tolerance, then the other side.
    if tol_min is None:
        tol_min = tol if tol is not None else tol_max
    if tol_max is None:
        tol_max = tol if tol is not None else tol_min
    return tol_min, tol_max, given


def validate_metric_entry(key: str, raw: dict) -> tuple[MetricTarget | None, list[str]]:
    """
    Validate a flat metric entry from a schema adapter.

    A target needs a strictly positive tolerance on both sides; anything
    else excludes the metric and yields an InvalidToleranceWarning.
    """
    target = raw.get("target")
    if not _is_number(target):
        return None, [warning_message(
            InvalidToleranceWarning, f"{key}: target {target!r} is not a finite number; metric excluded"
        )]
    tol_min, tol_max, given = _side_tolerances(raw)
    if not given:
        return None, [warning_message(
            InvalidToleranceWarning, f"{key}: target without tolerance; metric excluded"
        )]
    for side, tol in (("min", tol_min), ("max", tol_max)):
        if not _is_number(tol) or tol <= 0:
            return None, [warning_message(
                InvalidToleranceWarning, f"{key}: tolerance ({side}) {tol!r} must be > 0; metric excluded"
            )]
    return MetricTarget(float(target), float(tol_min), float(tol_max)), []


def validate_band_entry(
    name: str,
    raw: dict,
    *,
    default_tolerance_db: float
) -> tuple[BandTarget | None, list[str]]:
    """
    Validate a band entry; a missing tolerance gets the default tolerance.

    Explicitly non-positive tolerances are invalid and exclude the band.
    """
    target = raw.get("target")
    scale = raw.get("scale", "rms_db")
    if not _is_number(target):
        return None, [warning_message(
            InvalidToleranceWarning, f"band {name}: target {target!r} is not a finite number; band excluded"
        )]
    tol_min, tol_max, given = _side_tolerances(raw)
    if not given:
        logger.warning("band %s has no tolerance; applying default %.1f dB", name, default_tolerance_db)
        return BandTarget(float(target), default_tolerance_db, default_tolerance_db, scale), [warning_message(
            InvalidToleranceWarning,
            f"band {name}: no tolerance given; default {default_tolerance_db:g} dB applied",
        )]
    for side, tol in (("min", tol_min), ("max", tol_max)):
        if not _is_number(tol) or tol <= 0:
            return None, [warning_message(
                InvalidToleranceWarning, f"band {name}: tolerance ({side}) {tol!r} must be > 0; band excluded"
            )]
    return BandTarget(float(target), float(tol_min), float(tol_max), scale), []
