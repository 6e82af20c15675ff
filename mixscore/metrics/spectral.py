"""Per-band spectral scorer."""
from __future__ import annotations
import logging

from mixscore.analysis.bands import CANONICAL_BAND_NAMES, band_info
from mixscore.analysis.normalizer import BandNormalization
from mixscore.errors import BandMappingWarning, warning_message
from mixscore.metrics.curve import DEFAULT_SCORE_CURVE, score_expected, score_metric
from mixscore.types import BandStatus, Category, MetricScore, MetricTarget, ReferenceDocument

logger = logging.getLogger(__name__)

BAND_KEY_PREFIX = "band_"


def band_metric_key(name: str) -> str:
    return f"{BAND_KEY_PREFIX}{name}"


def band_name_from_key(key: str) -> str | None:
    if key.startswith(BAND_KEY_PREFIX):
        return key[len(BAND_KEY_PREFIX):]
    return None


def score_bands(
    normalization: BandNormalization,
    reference: ReferenceDocument,
    *,
    curve=DEFAULT_SCORE_CURVE
) -> tuple[list[MetricScore], list[str]]:
    """
    Score every reference band against its normalized measurement.

    Only MEASURED bands on the same scale as their target get a sub-score.
    Estimated, missing and scale-mismatched bands yield NA entries.
    """
    scores: list[MetricScore] = []
    warnings: list[str] = []
    for name in CANONICAL_BAND_NAMES:
        bt = reference.bands.get(name)
        if bt is None:
            continue
        key = band_metric_key(name)
        band = normalization.bands.get(name)
        target = MetricTarget(bt.target_db, bt.tol_min, bt.tol_max)
        kwargs = dict(category=Category.SPECTRAL, units="dB", label=band_info(name).label, curve=curve)

        if band is None or band.status == BandStatus.MISSING:
            score, w = score_expected(key, None, target, **kwargs)
            warnings.extend(w)
        elif band.status == BandStatus.ESTIMATED:
            # already reported by the normalizer
            score = score_metric(key, None, target, **kwargs)
        elif band.scale != bt.scale:
            text = (
                f"band {name}: measured on scale {band.scale} but reference uses {bt.scale}; "
                "excluded"
            )
            logger.warning(text)
            warnings.append(warning_message(BandMappingWarning, text))
            score = score_metric(key, None, target, **kwargs)
        else:
            score = score_metric(key, band.value_db, target, **kwargs)
        scores.append(score)
    return scores, warnings
