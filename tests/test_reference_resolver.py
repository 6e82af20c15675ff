from __future__ import annotations

import copy
import math

import pytest

from mixscore.errors import ReferenceResolutionError
from mixscore.profiles.resolver import resolve_reference

from tests.conftest import build_reference_dict


def _has_warning(doc, prefix: str, fragment: str = "") -> bool:
    return any(w.startswith(prefix) and fragment in w for w in doc.warnings)


def test_resolve_flat_reference():
    doc = resolve_reference(build_reference_dict())
    assert doc.genre == "funk"
    assert doc.version == "v1"
    assert doc.schema_variants == ["flat"]
    assert doc.targets["lufs"].target == -14.0
    assert doc.targets["lufs"].tol_min == doc.targets["lufs"].tol_max == 1.0
    assert set(doc.bands) == {"sub", "low_bass", "mid", "high_mid"}
    assert len(doc.content_hash) == 64
    assert doc.warnings == []


def test_resolve_is_idempotent_and_does_not_mutate_payload():
    payload = build_reference_dict()
    before = copy.deepcopy(payload)
    a = resolve_reference(payload)
    b = resolve_reference(payload)
    assert payload == before
    assert a == b
    assert a.content_hash == b.content_hash


def test_resolved_document_round_trips_through_flat_shape():
    doc = resolve_reference(build_reference_dict())
    again = resolve_reference(doc.to_dict())
    assert again.content_hash == doc.content_hash


def test_resolve_unwraps_genre_key():
    payload = {"funk": build_reference_dict()}
    assert resolve_reference(payload, "funk").genre == "funk"
    assert resolve_reference(payload).genre == "funk"


def test_resolve_library_selects_requested_genre():
    library = {
        "funk": build_reference_dict(genre="funk"),
        "trap": {**build_reference_dict(genre="trap"), "lufs_target": -8.0},
    }
    assert resolve_reference(library, "trap").targets["lufs"].target == -8.0


def test_resolve_library_missing_genre_raises():
    library = {"funk": build_reference_dict(), "trap": build_reference_dict(genre="trap")}
    with pytest.raises(ReferenceResolutionError, match="house") as exc:
        resolve_reference(library, "house")
    assert exc.value.genre == "house"


def test_resolve_library_without_genre_key_raises():
    library = {"funk": build_reference_dict(), "trap": build_reference_dict(genre="trap")}
    with pytest.raises(ReferenceResolutionError, match="genre key is required"):
        resolve_reference(library)


def test_resolve_fixed_flex_variant():
    payload = {
        "version": "v2",
        "fixed": {
            "lufs": {"integrated": {"target": -9.0, "tolerance": 1.5}},
            "truePeak": {"streamingMax": -1.0, "baileMax": 0.0},
            "dynamicRange": {"dr": {"target": 6.0, "tolerance": 1.5}},
        },
        "flex": {
            "lra": {"min": 4.0, "max": 10.0},
            "clipping": {"samplePctMax": 0.02},
            "tonalCurve": {"bands": [{"name": "Sub", "target_db": -17.0, "toleranceDb": 2.0}]},
        },
    }
    doc = resolve_reference(payload, "funk")
    assert doc.schema_variants == ["fixed_flex"]
    assert doc.targets["lufs"].target == -9.0
    assert doc.targets["true_peak"].target == -1.0
    assert doc.targets["true_peak"].tol_max == pytest.approx(1.0)
    assert doc.targets["dr"].target == 6.0
    assert doc.targets["lra"].target == pytest.approx(7.0)
    assert doc.targets["lra"].tol_max == pytest.approx(3.0)
    assert doc.targets["clipping_pct"].target == 0.0
    assert doc.targets["clipping_pct"].tol_max == pytest.approx(2.0)
    assert doc.bands["sub"].target_db == -17.0


def test_resolve_first_adapter_wins_and_later_variants_fill_gaps():
    payload = {
        "lufs_target": -14.0,
        "tol_lufs": 1.0,
        "legacy_compatibility": {
            "lufs_target": -8.0,
            "tol_lufs": 1.0,
            "dr_target": 7.0,
            "tol_dr": 1.5,
        },
    }
    doc = resolve_reference(payload)
    assert doc.schema_variants == ["flat", "legacy_compatibility"]
    assert doc.targets["lufs"].target == -14.0
    assert doc.targets["dr"].target == 7.0


def test_resolve_spectral_balance_percent_targets():
    payload = {
        "spectralBalance": {
            "tolerance_pp": 5.0,
            "bands": {
                "mid": 20.0,
                "sub": {"target_pct": 4.0, "tol_pp": 2.0},
                "high_mid": {"target_pct": 2.0, "tol_pp": 3.0},
            },
        }
    }
    doc = resolve_reference(payload, "funk")
    mid = doc.bands["mid"]
    assert mid.scale == "energy_pct"
    assert mid.target_db == pytest.approx(10 * math.log10(0.2))
    assert mid.tol_max == pytest.approx(10 * math.log10(25 / 20))
    assert mid.tol_min == pytest.approx(10 * math.log10(20 / 15))
    sub = doc.bands["sub"]
    assert sub.tol_max == pytest.approx(10 * math.log10(6 / 4))
    assert sub.tol_min == pytest.approx(10 * math.log10(4 / 2))
    # tolerance wider than the target percentage: symmetric upper tolerance
    hm = doc.bands["high_mid"]
    assert hm.tol_min == hm.tol_max == pytest.approx(10 * math.log10(5 / 2))


def test_band_without_tolerance_gets_default():
    payload = build_reference_dict()
    payload["bands"]["mid"] = {"target_db": -20.0}
    doc = resolve_reference(payload, default_band_tolerance_db=2.0)
    assert doc.bands["mid"].tol_min == doc.bands["mid"].tol_max == 2.0
    assert _has_warning(doc, "InvalidToleranceWarning", "default")


def test_invalid_metric_tolerance_is_dropped():
    payload = build_reference_dict()
    payload["tol_lra"] = 0.0
    payload["crest_factor_target"] = 10.0
    doc = resolve_reference(payload)
    assert "lra" not in doc.targets
    assert "crest_factor" not in doc.targets
    assert _has_warning(doc, "InvalidToleranceWarning", "lra")
    assert _has_warning(doc, "InvalidToleranceWarning", "crest_factor")


def test_non_positive_band_tolerance_drops_band():
    payload = build_reference_dict()
    payload["bands"]["sub"]["tol_db"] = -1.0
    doc = resolve_reference(payload)
    assert "sub" not in doc.bands


def test_unknown_reference_band_is_warned():
    payload = build_reference_dict()
    payload["bands"]["ultrasonic"] = {"target_db": -40.0, "tol_db": 3.0}
    doc = resolve_reference(payload)
    assert "ultrasonic" not in doc.bands
    assert _has_warning(doc, "BandMappingWarning", "ultrasonic")


def test_band_aliases_map_to_canonical_names():
    payload = {
        "bands": {
            "bass": {"target_db": -16.0, "tol_db": 3.0},
            "presence": {"target_db": -30.0, "tol_db": 3.0},
            "high_mid2": {"target_db": -28.0, "tol_db": 3.0},
        }
    }
    doc = resolve_reference(payload, "funk")
    assert set(doc.bands) == {"low_bass", "presenca", "brilho"}


def test_no_usable_targets_raises():
    with pytest.raises(ReferenceResolutionError, match="no usable targets"):
        resolve_reference({"lufs_target": -14.0, "tol_lufs": 0.0}, "funk")


def test_unrecognized_payload_raises():
    with pytest.raises(ReferenceResolutionError):
        resolve_reference({"hello": "world"})
    with pytest.raises(ReferenceResolutionError):
        resolve_reference(["not", "a", "mapping"])
