"""Map analysis band output onto the canonical band schema."""
from __future__ import annotations
from dataclasses import dataclass, field
import logging

import numpy as np

from mixscore.analysis.bands import (
    CANONICAL_BAND_NAMES,
    COARSE_BAND_COVERAGE,
    canonical_band_name,
)
from mixscore.errors import BandMappingWarning, warning_message
from mixscore.types import BandStatus, MetricsVector, finite_or_none

logger = logging.getLogger(__name__)

_PCT_KEYS = ("energy_pct", "energyPct", "pct", "percent", "pctUser", "target_pct")


@dataclass(frozen=True)
class NormalizedBand:
    name: str
    value_db: float | None
    status: BandStatus
    scale: str | None = None
    source: str | None = None
    estimated_from: str | None = None


@dataclass(frozen=True)
class BandNormalization:
    bands: dict[str, NormalizedBand]
    warnings: list[str] = field(default_factory=list)

    def measured(self) -> dict[str, NormalizedBand]:
        return {k: b for k, b in self.bands.items() if b.status == BandStatus.MEASURED}


def energy_pct_to_db(pct) -> float | None:
    """Share of total energy (percent) as dB relative to the total."""
    p = finite_or_none(pct)
    if p is None or p <= 0.0 or p > 100.0:
        return None
    return float(10.0 * np.log10(p / 100.0))


def _rms_db(entry) -> float | None:
    if isinstance(entry, dict):
        return finite_or_none(entry.get("rms_db"))
    return finite_or_none(entry)


def _pct(entry) -> float | None:
    if isinstance(entry, dict):
        for key in _PCT_KEYS:
            if key in entry:
                return finite_or_none(entry[key])
        return None
    return finite_or_none(entry)


def _iter_spectral_balance(payload: dict):
    bands = payload.get("bands", payload)
    if isinstance(bands, dict):
        yield from bands.items()
    elif isinstance(bands, list):
        for item in bands:
            if isinstance(item, dict):
                yield item.get("name", item.get("band")), item


def normalize_band_energies(metrics: MetricsVector) -> BandNormalization:
    """
    Normalize raw per-band analysis output into the canonical schema.

    Direct per-band measurements are used as-is. Coarse tonal-balance bands
    that span several canonical bands never produce a measured value: the
    covered bands are marked ESTIMATED and excluded from scoring.

    Returns:
        BandNormalization with an entry for every canonical band
    """
    found: dict[str, NormalizedBand] = {}
    warnings: list[str] = []

    def warn(text: str) -> None:
        logger.debug("band mapping: %s", text)
        warnings.append(warning_message(BandMappingWarning, text))

    if metrics.band_energies:
        for raw_name, entry in metrics.band_energies.items():
            name = canonical_band_name(raw_name)
            if name is None:
                warn(f"unknown band '{raw_name}' in bandEnergies ignored")
                continue
            value = _rms_db(entry)
            if value is None:
                warn(f"band '{raw_name}' has no finite rms_db")
                continue
            if name not in found:
                found[name] = NormalizedBand(name, value, BandStatus.MEASURED, "rms_db", "bandEnergies")

    if metrics.spectral_balance:
        for raw_name, entry in _iter_spectral_balance(metrics.spectral_balance):
            name = canonical_band_name(raw_name) if raw_name is not None else None
            if name is None:
                warn(f"unknown band '{raw_name}' in spectralBalance ignored")
                continue
            if name in found:
                continue
            value = energy_pct_to_db(_pct(entry))
            if value is None:
                warn(f"band '{raw_name}' has no usable energy percentage")
                continue
            found[name] = NormalizedBand(name, value, BandStatus.MEASURED, "energy_pct", "spectralBalance")

    estimated: dict[str, NormalizedBand] = {}
    if metrics.tonal_balance:
        for coarse, covered in COARSE_BAND_COVERAGE.items():
            value = _rms_db(metrics.tonal_balance.get(coarse))
            if value is None:
                continue
            if len(covered) == 1:
                name = covered[0]
                if name not in found:
                    found[name] = NormalizedBand(name, value, BandStatus.MEASURED, "rms_db", "tonalBalance")
                continue
            for name in covered:
                if name in found or name in estimated:
                    continue
                estimated[name] = NormalizedBand(
                    name, value, BandStatus.ESTIMATED, "rms_db", "tonalBalance", estimated_from=coarse
                )
                warn(f"band '{name}' only available as coarse tonalBalance.{coarse}; excluded from scoring")

    bands: dict[str, NormalizedBand] = {}
    for name in CANONICAL_BAND_NAMES:
        if name in found:
            bands[name] = found[name]
        elif name in estimated:
            bands[name] = estimated[name]
        else:
            bands[name] = NormalizedBand(name, None, BandStatus.MISSING)
    return BandNormalization(bands=bands, warnings=warnings)
