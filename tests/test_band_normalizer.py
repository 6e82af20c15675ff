from __future__ import annotations

import math

import pytest

from mixscore.analysis.bands import CANONICAL_BAND_NAMES, band_range_label, band_info, canonical_band_name
from mixscore.analysis.normalizer import energy_pct_to_db, normalize_band_energies
from mixscore.types import BandStatus, MetricsVector


def test_canonical_band_order_and_ranges():
    assert CANONICAL_BAND_NAMES == (
        "sub", "low_bass", "upper_bass", "low_mid", "mid", "high_mid", "brilho", "presenca"
    )
    assert band_range_label(band_info("high_mid")) == "2-6 kHz"
    assert band_range_label(band_info("mid")) == "500 Hz-2 kHz"


def test_canonical_band_name_aliases():
    assert canonical_band_name("Low-Bass") == "low_bass"
    assert canonical_band_name("brilliance") == "brilho"
    assert canonical_band_name("nonsense") is None


def test_band_energies_are_measured():
    m = MetricsVector(band_energies={"sub": {"rms_db": -17.0}, "bass": -16.0})
    norm = normalize_band_energies(m)
    assert list(norm.bands) == list(CANONICAL_BAND_NAMES)
    assert norm.bands["sub"].status == BandStatus.MEASURED
    assert norm.bands["sub"].value_db == -17.0
    assert norm.bands["low_bass"].value_db == -16.0
    assert norm.bands["mid"].status == BandStatus.MISSING
    assert norm.bands["mid"].value_db is None


def test_spectral_balance_percent_converted_to_db():
    m = MetricsVector(spectral_balance={"bands": {"mid": {"energy_pct": 25.0}}})
    band = normalize_band_energies(m).bands["mid"]
    assert band.status == BandStatus.MEASURED
    assert band.scale == "energy_pct"
    assert band.value_db == pytest.approx(10 * math.log10(0.25))


def test_band_energies_take_priority_over_spectral_balance():
    m = MetricsVector(
        band_energies={"mid": {"rms_db": -20.0}},
        spectral_balance={"bands": {"mid": 25.0}},
    )
    band = normalize_band_energies(m).bands["mid"]
    assert band.source == "bandEnergies"
    assert band.value_db == -20.0


def test_coarse_tonal_balance_is_estimated_never_compensated():
    m = MetricsVector(tonal_balance={"sub": {"rms_db": -18.0}, "low": {"rms_db": -15.0}, "mid": -21.0})
    norm = normalize_band_energies(m)
    assert norm.bands["sub"].status == BandStatus.MEASURED
    for name in ("low_bass", "upper_bass"):
        band = norm.bands[name]
        assert band.status == BandStatus.ESTIMATED
        assert band.value_db == -15.0
        assert band.estimated_from == "low"
    for name in ("low_mid", "mid", "high_mid"):
        assert norm.bands[name].value_db == -21.0
    assert norm.bands["brilho"].status == BandStatus.MISSING
    assert set(norm.measured()) == {"sub"}
    assert any(w.startswith("BandMappingWarning") for w in norm.warnings)


def test_direct_measurement_overrides_coarse_estimate():
    m = MetricsVector(
        band_energies={"low_bass": {"rms_db": -16.0}},
        tonal_balance={"low": {"rms_db": -15.0}},
    )
    norm = normalize_band_energies(m)
    assert norm.bands["low_bass"].status == BandStatus.MEASURED
    assert norm.bands["low_bass"].value_db == -16.0
    assert norm.bands["upper_bass"].status == BandStatus.ESTIMATED


def test_unknown_band_names_are_warned():
    m = MetricsVector(band_energies={"ultrasonic": {"rms_db": -50.0}})
    norm = normalize_band_energies(m)
    assert any("ultrasonic" in w for w in norm.warnings)
    assert norm.measured() == {}


@pytest.mark.parametrize("pct", [0.0, -5.0, 120.0, None, "x"])
def test_energy_pct_to_db_rejects_out_of_range(pct):
    assert energy_pct_to_db(pct) is None
