from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class FrequencyBand:
    name: str
    f_low: float
    f_high: float
    center_hz: float
    q: float
    label: str
    shape: str = "bell"


CANONICAL_BANDS: tuple[FrequencyBand, ...] = (
    FrequencyBand("sub", 20, 60, 35, 0.9, "sub", "low shelf"),
    FrequencyBand("low_bass", 60, 120, 85, 1.4, "low bass"),
    FrequencyBand("upper_bass", 120, 250, 175, 1.3, "upper bass"),
    FrequencyBand("low_mid", 250, 500, 355, 1.4, "low mid"),
    FrequencyBand("mid", 500, 2000, 1000, 0.7, "mid"),
    FrequencyBand("high_mid", 2000, 6000, 3500, 0.9, "high mid"),
    FrequencyBand("brilho", 6000, 12000, 8500, 1.4, "brilliance"),
    FrequencyBand("presenca", 12000, 18000, 14700, 0.7, "presence / air", "high shelf"),
)

CANONICAL_BAND_NAMES: tuple[str, ...] = tuple(b.name for b in CANONICAL_BANDS)

_BANDS_BY_NAME = {b.name: b for b in CANONICAL_BANDS}

_BAND_ALIASES = {
    "sub": "sub",
    "sub_bass": "sub",
    "subbass": "sub",
    "low_bass": "low_bass",
    "lowbass": "low_bass",
    "bass": "low_bass",
    "upper_bass": "upper_bass",
    "upperbass": "upper_bass",
    "high_bass": "upper_bass",
    "low_mid": "low_mid",
    "lowmid": "low_mid",
    "low_mids": "low_mid",
    "mid": "mid",
    "mids": "mid",
    "high_mid": "high_mid",
    "highmid": "high_mid",
    "upper_mid": "high_mid",
    "brilho": "brilho",
    "high_mid2": "brilho",
    "brilliance": "brilho",
    "presenca": "presenca",
    "presence": "presenca",
}

# Coarse tonal-balance bands and the canonical bands each one spans.
COARSE_BAND_COVERAGE = {
    "sub": ("sub",),
    "low": ("low_bass", "upper_bass"),
    "mid": ("low_mid", "mid", "high_mid"),
    "high": ("brilho", "presenca"),
}


def canonical_band_name(name: str) -> str | None:
    """Map a band name variant to its canonical name, or None if unknown."""
    key = str(name).strip().lower().replace("-", "_").replace(" ", "_")
    return _BAND_ALIASES.get(key)


def band_info(name: str) -> FrequencyBand | None:
    return _BANDS_BY_NAME.get(name)


def format_hz(hz: float) -> str:
    """Compact frequency label: 250 -> '250 Hz', 6000 -> '6 kHz'."""
    if hz >= 1000:
        k = hz / 1000.0
        return f"{k:g} kHz"
    return f"{hz:g} Hz"


def band_range_label(band: FrequencyBand) -> str:
    if band.f_high >= 1000 and band.f_low >= 1000:
        return f"{band.f_low / 1000:g}-{band.f_high / 1000:g} kHz"
    return f"{format_hz(band.f_low)}-{format_hz(band.f_high)}"
