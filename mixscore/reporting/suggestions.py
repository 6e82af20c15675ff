from __future__ import annotations

from mixscore.analysis.bands import FrequencyBand, band_info, band_range_label
from mixscore.metrics.spectral import band_name_from_key
from mixscore.scoring.gates import ClippingAssessment
from mixscore.types import (
    ClippingState,
    Direction,
    MetricScore,
    Status,
    Suggestion,
    ToleranceClassification,
    Urgency,
)

_URGENCY_ORDER = {Urgency.HIGH: 0, Urgency.MEDIUM: 1, Urgency.LOW: 2}

# Display precision per unit; unitless ratios (correlation, DC offset) need three places.
_UNIT_DECIMALS = {"": 3, "%": 2}


def _decimals(units: str) -> int:
    return _UNIT_DECIMALS.get(units, 1)


def _with_units(x: float, units: str) -> str:
    return f"{x:.{_decimals(units)}f} {units}".rstrip()


def _format_metric_text(c: ToleranceClassification, direction: Direction, magnitude: float,
                        *, label: str, units: str) -> str:
    verb = "Increase" if direction == Direction.INCREASE else "Reduce"
    target = f"{c.target:g} {units}".rstrip()
    if not label:
        name = c.metric_key
    elif label[:2].isupper():
        name = label
    else:
        name = label[:1].lower() + label[1:]
    return f"{verb} {name} by ~{_with_units(magnitude, units)} (target {target})."


def _format_band_text(direction: Direction, magnitude: float, band: FrequencyBand) -> str:
    verb = "Boost" if direction == Direction.INCREASE else "Cut"
    if band.shape == "bell":
        shape = ""
    else:
        shape = f", {band.shape}"
    return f"{verb} ~{magnitude:.1f} dB around {band_range_label(band)} ({band.label}{shape}, Q≈{band.q:g})."


def generate_suggestion(
    classification: ToleranceClassification,
    *,
    label: str,
    units: str,
    band: FrequencyBand | None = None
) -> Suggestion | None:
    """
    Turn an ADJUST/FIX classification into a directional correction.

    IDEAL and NA classifications never produce a suggestion.
    """
    c = classification
    if c.status not in (Status.ADJUST, Status.FIX) or c.deviation is None:
        return None
    direction = Direction.INCREASE if c.deviation < 0 else Direction.DECREASE
    magnitude = round(abs(c.deviation), 1 if band is not None else _decimals(units))
    urgency = Urgency.HIGH if c.status == Status.FIX else Urgency.MEDIUM
    if band is not None:
        return Suggestion(
            metric_key=c.metric_key,
            direction=direction,
            magnitude=magnitude,
            units="dB",
            text=_format_band_text(direction, magnitude, band),
            urgency=urgency,
            frequency_hz=float(band.center_hz),
            q=float(band.q),
        )
    return Suggestion(
        metric_key=c.metric_key,
        direction=direction,
        magnitude=magnitude,
        units=units,
        text=_format_metric_text(c, direction, magnitude, label=label, units=units),
        urgency=urgency,
    )


def generate_suggestions(metric_scores: list[MetricScore]) -> list[Suggestion]:
    """Suggestions for every out-of-tolerance metric, most urgent first."""
    out: list[Suggestion] = []
    for ms in metric_scores:
        band_name = band_name_from_key(ms.metric_key)
        band = band_info(band_name) if band_name else None
        s = generate_suggestion(ms.classification, label=ms.label, units=ms.units, band=band)
        if s is not None:
            out.append(s)
    return sorted(out, key=lambda s: _URGENCY_ORDER[s.urgency])


def clipping_suggestion(assessment: ClippingAssessment) -> Suggestion | None:
    """HIGH-urgency gain fix for a clipped track."""
    if assessment.state != ClippingState.CLIPPED or assessment.sample_peak_db is None:
        return None
    over = max(round(assessment.sample_peak_db, 1), 0.1)
    return Suggestion(
        metric_key="sample_peak",
        direction=Direction.DECREASE,
        magnitude=over,
        units="dB",
        text=(
            f"Track clips (sample peak {assessment.sample_peak_db:+.1f} dBFS): reduce gain by at "
            f"least {over:.1f} dB or use a true-peak limiter."
        ),
        urgency=Urgency.HIGH,
    )
