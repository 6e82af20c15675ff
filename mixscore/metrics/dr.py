"""Dynamic range scorer with source selection."""
from __future__ import annotations
from dataclasses import dataclass
import logging

from mixscore.errors import DynamicRangeSourceWarning, warning_message
from mixscore.metrics.curve import DEFAULT_SCORE_CURVE, score_expected, score_metric
from mixscore.types import Category, MetricScore, MetricsVector, MetricTarget, ReferenceDocument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Source:
    key: str
    label: str
    target_keys: tuple[str, ...]


_SOURCES = {
    "tt_dr": _Source("tt_dr", "Dynamic range (TT DR)", ("tt_dr", "dr")),
    "dr_stat": _Source("dr_stat", "Dynamic range (DR stat)", ("dr_stat", "dr")),
    "crest_factor": _Source("crest_factor", "Crest factor", ("crest_factor",)),
    # legacy dynamicRange is peak minus RMS, scored against the generic dr target
    "dr_legacy": _Source("dr_legacy", "Dynamic range (legacy crest)", ("dr",)),
}

# Configured source -> candidates in fallback order.
DR_SOURCE_CHAINS = {
    "auto": ("tt_dr", "dr_stat", "crest_factor", "dr_legacy"),
    "ttdr": ("tt_dr", "dr_stat", "crest_factor", "dr_legacy"),
    "drStat": ("dr_stat", "crest_factor", "dr_legacy"),
    "crestFactor": ("crest_factor",),
}


def _measured(metrics: MetricsVector, key: str) -> float | None:
    if key == "tt_dr":
        return metrics.tt_dr
    if key == "dr_stat":
        return metrics.dr_stat
    if key == "dr_legacy":
        return metrics.dynamic_range
    return metrics.crest_factor


def _target(reference: ReferenceDocument, source: _Source) -> MetricTarget | None:
    for k in source.target_keys:
        if k in reference.targets:
            return reference.targets[k]
    return None


def score_dynamic_range(
    metrics: MetricsVector,
    reference: ReferenceDocument,
    *,
    source: str = "auto",
    curve=DEFAULT_SCORE_CURVE
) -> tuple[MetricScore | None, str | None, list[str]]:
    """
    Score dynamic range using the first usable source of the configured chain.

    A source is usable when it is both measured and has its own reference
    target. Falling back from an explicitly configured source is reported
    with a DynamicRangeSourceWarning; ``auto`` takes the best available
    source silently.

    Returns:
        (score, source used, warnings)
    """
    chain = DR_SOURCE_CHAINS.get(source)
    if chain is None:
        raise ValueError(f"unknown dynamic range source: {source}")

    for key in chain:
        src = _SOURCES[key]
        value = _measured(metrics, key)
        target = _target(reference, src)
        if value is None or target is None:
            continue
        warnings: list[str] = []
        if key != chain[0]:
            text = f"configured source {chain[0]} unavailable; fell back to {key}"
            if source == "auto":
                logger.info("dynamic range: %s", text)
            else:
                logger.warning("dynamic range: %s", text)
                warnings.append(warning_message(DynamicRangeSourceWarning, text))
        return score_metric(
            key,
            value,
            target,
            category=Category.DYNAMICS,
            units="dB",
            label=src.label,
            curve=curve,
        ), key, warnings

    # Nothing usable: report NA for the first source the reference expects.
    for key in chain:
        src = _SOURCES[key]
        target = _target(reference, src)
        if target is not None:
            score, warnings = score_expected(
                key,
                None,
                target,
                category=Category.DYNAMICS,
                units="dB",
                label=src.label,
                curve=curve,
            )
            return score, None, warnings
    return None, None, []
