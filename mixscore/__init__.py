"""
mixscore - Reference-driven mix scoring

Scores measured track metrics against genre reference targets.
"""
from mixscore.version import __version__
from mixscore.types import (
    Status,
    Direction,
    Urgency,
    ClippingState,
    BandStatus,
    Category,
    MetricsVector,
    MetricTarget,
    BandTarget,
    ReferenceDocument,
    ToleranceClassification,
    MetricScore,
    Suggestion,
    GateAction,
    ScoringResult,
)
from mixscore.errors import (
    ReferenceResolutionError,
    ScoringWarning,
    InvalidToleranceWarning,
    MissingMetricWarning,
    BandMappingWarning,
    DynamicRangeSourceWarning,
    SafetyGateWarning,
)
from mixscore.config import ScoringConfig, build_scoring_config, load_scoring_config
from mixscore.thresholds.classifier import classify
from mixscore.profiles.resolver import resolve_reference
from mixscore.profiles.loader import DirectoryReferenceSource, load_reference
from mixscore.profiles.cache import ReferenceCache, CachedReferenceSource
from mixscore.analysis.normalizer import normalize_band_energies
from mixscore.scoring.orchestrator import compute_mix_score

__all__ = [
    "__version__",
    "Status",
    "Direction",
    "Urgency",
    "ClippingState",
    "BandStatus",
    "Category",
    "MetricsVector",
    "MetricTarget",
    "BandTarget",
    "ReferenceDocument",
    "ToleranceClassification",
    "MetricScore",
    "Suggestion",
    "GateAction",
    "ScoringResult",
    "ReferenceResolutionError",
    "ScoringWarning",
    "InvalidToleranceWarning",
    "MissingMetricWarning",
    "BandMappingWarning",
    "DynamicRangeSourceWarning",
    "SafetyGateWarning",
    "ScoringConfig",
    "build_scoring_config",
    "load_scoring_config",
    "classify",
    "resolve_reference",
    "DirectoryReferenceSource",
    "load_reference",
    "ReferenceCache",
    "CachedReferenceSource",
    "normalize_band_energies",
    "compute_mix_score",
]
