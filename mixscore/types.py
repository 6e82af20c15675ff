from __future__ import annotations
from dataclasses import dataclass, field, fields
from enum import Enum
import math


class Status(str, Enum):
    IDEAL = "ideal"
    ADJUST = "adjust"
    FIX = "fix"
    NA = "na"


class Direction(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ClippingState(str, Enum):
    CLEAN = "clean"
    TRUE_PEAK_OVER = "true_peak_over"
    CLIPPED = "clipped"


class BandStatus(str, Enum):
    MEASURED = "measured"
    ESTIMATED = "estimated"
    MISSING = "missing"


class Category(str, Enum):
    LOUDNESS = "loudness"
    DYNAMICS = "dynamics"
    PEAK = "peak"
    STEREO = "stereo"
    SPECTRAL = "spectral"
    TECHNICAL = "technical"


def finite_or_none(value) -> float | None:
    """Coerce to float, mapping missing/non-numeric/non-finite values to None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(v) or math.isinf(v):
        return None
    return v


# Collaborator payload key -> MetricsVector field.
_METRIC_ALIASES = {
    "lufsIntegrated": "lufs_integrated",
    "lufs_integrated": "lufs_integrated",
    "lufs_i": "lufs_integrated",
    "truePeakDbtp": "true_peak_dbtp",
    "truePeakDbTP": "true_peak_dbtp",
    "true_peak_dbtp": "true_peak_dbtp",
    "samplePeakDbFS": "sample_peak_db",
    "samplePeakMaxDbFS": "sample_peak_db",
    "samplePeakDb": "sample_peak_db",
    "sample_peak_db": "sample_peak_db",
    "samplePeakLeftDb": "sample_peak_left_db",
    "sample_peak_left_db": "sample_peak_left_db",
    "samplePeakRightDb": "sample_peak_right_db",
    "sample_peak_right_db": "sample_peak_right_db",
    "dynamicRange": "dynamic_range",
    "dynamic_range": "dynamic_range",
    "ttDr": "tt_dr",
    "tt_dr": "tt_dr",
    "drStat": "dr_stat",
    "dr_stat": "dr_stat",
    "crestFactor": "crest_factor",
    "crest_factor": "crest_factor",
    "lra": "lra",
    "stereoCorrelation": "stereo_correlation",
    "stereo_correlation": "stereo_correlation",
    "clippingPct": "clipping_pct",
    "clipping_pct": "clipping_pct",
    "dcOffset": "dc_offset",
    "dc_offset": "dc_offset",
}

_BAND_PAYLOAD_ALIASES = {
    "bandEnergies": "band_energies",
    "band_energies": "band_energies",
    "tonalBalance": "tonal_balance",
    "tonal_balance": "tonal_balance",
    "spectralBalance": "spectral_balance",
    "spectral_balance": "spectral_balance",
}


@dataclass(frozen=True)
class MetricsVector:
    """Measured metrics for one track. Every field is optional."""
    lufs_integrated: float | None = None
    true_peak_dbtp: float | None = None
    sample_peak_db: float | None = None
    sample_peak_left_db: float | None = None
    sample_peak_right_db: float | None = None
    dynamic_range: float | None = None
    tt_dr: float | None = None
    dr_stat: float | None = None
    crest_factor: float | None = None
    lra: float | None = None
    stereo_correlation: float | None = None
    clipping_pct: float | None = None
    dc_offset: float | None = None
    band_energies: dict | None = None
    tonal_balance: dict | None = None
    spectral_balance: dict | None = None

    @classmethod
    def from_dict(cls, d: dict) -> "MetricsVector":
        """Build from an analysis payload (camelCase or snake_case keys)."""
        if not isinstance(d, dict):
            raise ValueError("Metrics payload must be a JSON object.")
        src = d.get("technicalData") if isinstance(d.get("technicalData"), dict) else d
        kwargs: dict = {}
        for key, value in src.items():
            name = _METRIC_ALIASES.get(key)
            if name is not None:
                v = finite_or_none(value)
                if v is not None or name not in kwargs:
                    kwargs[name] = v
                continue
            name = _BAND_PAYLOAD_ALIASES.get(key)
            if name is not None and isinstance(value, dict):
                kwargs[name] = value
        return cls(**kwargs)

    def present_fields(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]


@dataclass(frozen=True)
class MetricTarget:
    target: float
    tol_min: float
    tol_max: float

    @property
    def symmetric(self) -> bool:
        return self.tol_min == self.tol_max

    @property
    def tolerance(self) -> float:
        return (self.tol_min + self.tol_max) / 2.0


@dataclass(frozen=True)
class BandTarget:
    target_db: float
    tol_min: float
    tol_max: float
    scale: str = "rms_db"

    @property
    def tolerance(self) -> float:
        return (self.tol_min + self.tol_max) / 2.0


@dataclass(frozen=True)
class ReferenceDocument:
    genre: str | None
    targets: dict[str, MetricTarget]
    bands: dict[str, BandTarget]
    version: str = ""
    schema_variants: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    content_hash: str = ""

    def to_dict(self) -> dict:
        """Render the canonical flat shape (``{metric}_target`` / ``tol_{metric}``)."""
        out: dict = {"genre": self.genre, "version": self.version}
        for key, t in self.targets.items():
            out[f"{key}_target"] = t.target
            out[f"tol_{key}"] = t.tolerance
            if not t.symmetric:
                out[f"tol_{key}_min"] = t.tol_min
                out[f"tol_{key}_max"] = t.tol_max
        bands: dict = {}
        for name, b in self.bands.items():
            entry: dict = {"target_db": b.target_db, "scale": b.scale}
            if b.tol_min == b.tol_max:
                entry["tol_db"] = b.tol_min
            else:
                entry["tol_min"] = b.tol_min
                entry["tol_max"] = b.tol_max
            bands[name] = entry
        out["bands"] = bands
        return out


@dataclass(frozen=True)
class ToleranceClassification:
    metric_key: str
    value: float | None
    target: float | None
    tolerance: float | None
    deviation: float | None
    abs_deviation: float | None
    ratio: float | None
    status: Status

    def to_dict(self) -> dict:
        return {
            "metric_key": self.metric_key,
            "value": self.value,
            "target": self.target,
            "tolerance": self.tolerance,
            "deviation": self.deviation,
            "abs_deviation": self.abs_deviation,
            "ratio": self.ratio,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class MetricScore:
    metric_key: str
    category: Category
    sub_score: float | None
    classification: ToleranceClassification
    units: str = ""
    label: str = ""


@dataclass(frozen=True)
class Suggestion:
    metric_key: str
    direction: Direction
    magnitude: float
    units: str
    text: str
    urgency: Urgency
    frequency_hz: float | None = None
    q: float | None = None

    def to_dict(self) -> dict:
        return {
            "metric_key": self.metric_key,
            "direction": self.direction.value,
            "magnitude": self.magnitude,
            "units": self.units,
            "text": self.text,
            "urgency": self.urgency.value,
            "frequency_hz": self.frequency_hz,
            "q": self.q,
        }


@dataclass(frozen=True)
class GateAction:
    gate: str
    category: str
    original: float
    capped: float


@dataclass(frozen=True)
class ScoringResult:
    overall_score_pct: float
    classification: str
    sub_scores: dict[str, float]
    per_metric: list[ToleranceClassification]
    metric_scores: list[MetricScore]
    suggestions: list[Suggestion]
    method: dict
    warnings: list[str]
    clipping_state: ClippingState
    reported_true_peak_dbtp: float | None = None
    gates: list[GateAction] = field(default_factory=list)
    highlights: dict[str, list[str]] = field(default_factory=dict)
    reference_hash: str = ""

    def to_dict(self) -> dict:
        return {
            "overall_score_pct": self.overall_score_pct,
            "classification": self.classification,
            "sub_scores": dict(self.sub_scores),
            "per_metric": [c.to_dict() for c in self.per_metric],
            "metric_scores": [
                {
                    "metric_key": m.metric_key,
                    "category": m.category.value,
                    "sub_score": m.sub_score,
                    "status": m.classification.status.value,
                    "units": m.units,
                    "label": m.label,
                }
                for m in self.metric_scores
            ],
            "suggestions": [s.to_dict() for s in self.suggestions],
            "method": dict(self.method),
            "warnings": list(self.warnings),
            "clipping_state": self.clipping_state.value,
            "reported_true_peak_dbtp": self.reported_true_peak_dbtp,
            "gates": [
                {"gate": g.gate, "category": g.category, "original": g.original, "capped": g.capped}
                for g in self.gates
            ],
            "highlights": {k: list(v) for k, v in self.highlights.items()},
            "reference_hash": self.reference_hash,
        }
