"""Error and warning taxonomy for the scoring engine."""
from __future__ import annotations


class ReferenceResolutionError(Exception):
    """No usable reference data for the requested genre."""

    def __init__(self, message: str, *, genre: str | None = None):
        super().__init__(message)
        self.genre = genre


class ScoringWarning(UserWarning):
    """Base class for non-fatal conditions reported in ``warnings`` lists."""


class InvalidToleranceWarning(ScoringWarning):
    """Reference entry with a missing or non-positive tolerance."""


class MissingMetricWarning(ScoringWarning):
    """Metric expected by the reference is absent from the metrics vector."""


class BandMappingWarning(ScoringWarning):
    """Band data that could not be mapped to a canonical band without estimation."""


class DynamicRangeSourceWarning(ScoringWarning):
    """Configured dynamic-range source unavailable; a fallback source was used."""


class SafetyGateWarning(ScoringWarning):
    """A safety gate fired or a peak-consistency correction was applied."""


def warning_message(category: type[ScoringWarning], text: str) -> str:
    """Render a warning entry as ``"<CategoryName>: text"``."""
    return f"{category.__name__}: {text}"
