"""Explicit scoring configuration.

All behavior switches of the engine live here and are passed to the
orchestrator as a frozen :class:`ScoringConfig`. Nothing reads environment
variables or module globals at scoring time.
"""
from __future__ import annotations
from dataclasses import dataclass
import json
import math

from mixscore.metrics.curve import DEFAULT_SCORE_CURVE
from mixscore.metrics.technical import DEFAULT_TECHNICAL_LIMITS
from mixscore.scoring.aggregator import DEFAULT_CLASSIFICATION_THRESHOLDS, LEGACY_WEIGHTS
from mixscore.scoring.gates import DEFAULT_GATE_CAPS


WEIGHTING_STRATEGIES = ("legacy", "equalWeight")
DR_SOURCES = ("auto", "ttdr", "drStat", "crestFactor")

DEFAULT_SCORING_CONFIG = {
    "weighting_strategy": "legacy",
    "dynamic_range_source": "auto",
    "enable_safety_gates": True,
    # (tolerance ratio, sub-score) breakpoints; 100 -> 50 inside tolerance, 50 -> 0 up to 2x.
    "score_curve": [list(p) for p in DEFAULT_SCORE_CURVE],
    "legacy_weights": dict(LEGACY_WEIGHTS),
    "gate_caps": dict(DEFAULT_GATE_CAPS),
    "default_band_tolerance_db": 2.0,
    "technical_limits": {k: dict(v) for k, v in DEFAULT_TECHNICAL_LIMITS.items()},
    "classification_thresholds": [list(t) for t in DEFAULT_CLASSIFICATION_THRESHOLDS],
    "classification_floor": "Basic",
}

_KEY_ALIASES = {
    "weightingStrategy": "weighting_strategy",
    "dynamicRangeSource": "dynamic_range_source",
    "enableSafetyGates": "enable_safety_gates",
    "scoreCurve": "score_curve",
    "legacyWeights": "legacy_weights",
    "gateCaps": "gate_caps",
    "defaultBandToleranceDb": "default_band_tolerance_db",
    "technicalLimits": "technical_limits",
    "classificationThresholds": "classification_thresholds",
    "classificationFloor": "classification_floor",
}

_STRATEGY_ALIASES = {
    "legacy": "legacy",
    "equalweight": "equalWeight",
    "equal_weight": "equalWeight",
    "equal": "equalWeight",
    "equal_weight_v3": "equalWeight",
}

_DR_SOURCE_ALIASES = {
    "auto": "auto",
    "ttdr": "ttdr",
    "tt_dr": "ttdr",
    "drstat": "drStat",
    "dr_stat": "drStat",
    "crestfactor": "crestFactor",
    "crest_factor": "crestFactor",
    "crest": "crestFactor",
}


@dataclass(frozen=True)
class ScoringConfig:
    weighting_strategy: str
    dynamic_range_source: str
    enable_safety_gates: bool
    score_curve: tuple[tuple[float, float], ...]
    legacy_weights: dict[str, float]
    gate_caps: dict[str, float]
    default_band_tolerance_db: float
    technical_limits: dict[str, dict[str, float]]
    classification_thresholds: tuple[tuple[float, str], ...]
    classification_floor: str

    def describe(self) -> dict:
        """JSON-safe summary recorded in scoring results."""
        return {
            "weighting_strategy": self.weighting_strategy,
            "dynamic_range_source": self.dynamic_range_source,
            "enable_safety_gates": self.enable_safety_gates,
            "score_curve": [list(p) for p in self.score_curve],
        }


def _merge_config(base: dict, overrides: dict | None) -> dict:
    if not overrides:
        return dict(base)
    merged = {**base}
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = _merge_config(base[key], value)
        else:
            merged[key] = value
    return merged


def _canonical_keys(overrides: dict | None) -> dict:
    if not overrides:
        return {}
    return {_KEY_ALIASES.get(k, k): v for k, v in overrides.items()}


def _is_number(v) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def _validate_curve(curve) -> tuple[tuple[float, float], ...]:
    if not isinstance(curve, (list, tuple)) or len(curve) < 2:
        raise ValueError("score_curve must list at least two [ratio, score] points.")
    points: list[tuple[float, float]] = []
    for i, p in enumerate(curve):
        if not isinstance(p, (list, tuple)) or len(p) != 2 or not all(_is_number(v) for v in p):
            raise ValueError(f"score_curve[{i}] must be a [ratio, score] pair of numbers.")
        points.append((float(p[0]), float(p[1])))
    if points[0][0] != 0.0:
        raise ValueError("score_curve must start at ratio 0.")
    for (r0, s0), (r1, s1) in zip(points, points[1:]):
        if r1 <= r0:
            raise ValueError("score_curve ratios must be strictly increasing.")
        if s1 > s0:
            raise ValueError("score_curve scores must be non-increasing.")
    for _, s in points:
        if s < 0.0 or s > 100.0:
            raise ValueError("score_curve scores must lie within 0..100.")
    return tuple(points)


def build_scoring_config(overrides: dict | None = None) -> ScoringConfig:
    """Return a validated ScoringConfig with defaults applied."""
    cfg = _merge_config(DEFAULT_SCORING_CONFIG, _canonical_keys(overrides))
    errors: list[str] = []

    unknown = sorted(set(cfg) - set(DEFAULT_SCORING_CONFIG))
    if unknown:
        errors.append(f"unknown config keys: {', '.join(unknown)}")

    strategy = _STRATEGY_ALIASES.get(str(cfg["weighting_strategy"]).strip().lower())
    if strategy is None:
        errors.append(f"weighting_strategy must be one of {', '.join(WEIGHTING_STRATEGIES)}.")

    dr_source = _DR_SOURCE_ALIASES.get(str(cfg["dynamic_range_source"]).strip().lower())
    if dr_source is None:
        errors.append(f"dynamic_range_source must be one of {', '.join(DR_SOURCES)}.")

    if not isinstance(cfg["enable_safety_gates"], bool):
        errors.append("enable_safety_gates must be boolean.")

    weights = cfg["legacy_weights"]
    for name, w in weights.items():
        if not _is_number(w) or w < 0:
            errors.append(f"legacy_weights.{name} must be a non-negative number.")

    caps = cfg["gate_caps"]
    for name, c in caps.items():
        if not _is_number(c) or c < 0 or c > 100:
            errors.append(f"gate_caps.{name} must be a number within 0..100.")

    band_tol = cfg["default_band_tolerance_db"]
    if not _is_number(band_tol) or band_tol <= 0:
        errors.append("default_band_tolerance_db must be > 0.")

    limits = cfg["technical_limits"]
    for name, lim in limits.items():
        if not isinstance(lim, dict) or not _is_number(lim.get("target")) \
                or not _is_number(lim.get("tol")) or lim["tol"] <= 0:
            errors.append(f"technical_limits.{name} needs a numeric target and tol > 0.")

    thresholds = cfg["classification_thresholds"]
    if not isinstance(thresholds, (list, tuple)) or not all(
        isinstance(t, (list, tuple)) and len(t) == 2 and _is_number(t[0]) for t in thresholds
    ):
        errors.append("classification_thresholds must be a list of [min_score, label] pairs.")

    try:
        curve = _validate_curve(cfg["score_curve"])
    except ValueError as exc:
        errors.append(str(exc))
        curve = ()

    if errors:
        raise ValueError("; ".join(errors))

    return ScoringConfig(
        weighting_strategy=strategy,
        dynamic_range_source=dr_source,
        enable_safety_gates=cfg["enable_safety_gates"],
        score_curve=curve,
        legacy_weights={k: float(v) for k, v in weights.items()},
        gate_caps={k: float(v) for k, v in caps.items()},
        default_band_tolerance_db=float(band_tol),
        technical_limits={
            k: {"target": float(v["target"]), "tol": float(v["tol"])} for k, v in limits.items()
        },
        classification_thresholds=tuple(
            sorted(((float(t[0]), str(t[1])) for t in thresholds), key=lambda t: -t[0])
        ),
        classification_floor=str(cfg["classification_floor"]),
    )


def load_scoring_config(path: str) -> ScoringConfig:
    """Load configuration overrides from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        overrides = json.load(f)
    if not isinstance(overrides, dict):
        raise ValueError("Scoring config file must contain a JSON object.")
    return build_scoring_config(overrides)
