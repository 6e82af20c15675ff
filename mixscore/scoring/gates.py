"""Clipping precedence and safety-gate caps."""
from __future__ import annotations
from dataclasses import dataclass
import logging

from mixscore.errors import SafetyGateWarning, warning_message
from mixscore.types import ClippingState, GateAction, MetricsVector

logger = logging.getLogger(__name__)

DEFAULT_GATE_CAPS = {
    "loudness": 70.0,
    "technical": 60.0,
    "dynamics": 50.0,
}


@dataclass(frozen=True)
class ClippingAssessment:
    state: ClippingState
    sample_peak_db: float | None
    raw_true_peak_dbtp: float | None
    reported_true_peak_dbtp: float | None
    warnings: tuple[str, ...] = ()


def assess_clipping(metrics: MetricsVector) -> ClippingAssessment:
    """
    Resolve sample-peak versus true-peak precedence.

    Sample peaks above 0 dBFS mean real clipping, whatever the true-peak
    meter said; the reported true peak is then raised to at least the
    sample peak. A true peak above 0 dBTP with clean samples is an
    inter-sample over and only warrants a warning.
    """
    channels = (metrics.sample_peak_db, metrics.sample_peak_left_db, metrics.sample_peak_right_db)
    peaks = [p for p in channels if p is not None]
    sample_peak = max(peaks) if peaks else None
    raw_tp = metrics.true_peak_dbtp
    warnings: list[str] = []

    if sample_peak is not None and sample_peak > 0.0:
        reported = sample_peak if raw_tp is None else max(raw_tp, sample_peak)
        text = f"sample peak {sample_peak:+.2f} dBFS: track is clipped"
        if raw_tp is not None and reported != raw_tp:
            text += f"; true peak {raw_tp:+.2f} dBTP raised to {reported:+.2f} dBTP"
        logger.warning(text)
        warnings.append(warning_message(SafetyGateWarning, text))
        return ClippingAssessment(ClippingState.CLIPPED, sample_peak, raw_tp, reported, tuple(warnings))

    if raw_tp is not None and raw_tp > 0.0:
        text = f"true peak {raw_tp:+.2f} dBTP above 0 with clean sample peaks (inter-sample over)"
        logger.warning(text)
        warnings.append(warning_message(SafetyGateWarning, text))
        return ClippingAssessment(ClippingState.TRUE_PEAK_OVER, sample_peak, raw_tp, raw_tp, tuple(warnings))

    return ClippingAssessment(ClippingState.CLEAN, sample_peak, raw_tp, raw_tp)


def apply_safety_gates(
    sub_scores: dict[str, float],
    state: ClippingState,
    caps: dict[str, float] | None = None,
    *,
    enabled: bool = True
) -> tuple[dict[str, float], list[GateAction]]:
    """
    Cap category sub-scores when the track is clipped.

    Returns:
        (new sub-score mapping, the caps that changed a value)
    """
    out = dict(sub_scores)
    actions: list[GateAction] = []
    if not enabled or state != ClippingState.CLIPPED:
        return out, actions
    caps = DEFAULT_GATE_CAPS if caps is None else caps
    for category, cap in caps.items():
        original = out.get(category)
        if original is None or original <= cap:
            continue
        out[category] = float(cap)
        actions.append(GateAction("clipping", category, original, float(cap)))
        logger.warning("safety gate: %s capped %.1f -> %.1f (clipped)", category, original, cap)
    return out, actions
