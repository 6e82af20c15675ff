from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from mixscore.config import build_scoring_config
from mixscore.errors import ReferenceResolutionError
from mixscore.profiles.loader import DirectoryReferenceSource
from mixscore.profiles.resolver import resolve_reference
from mixscore.scoring.orchestrator import compute_mix_score
from mixscore.types import ClippingState, Direction, MetricsVector, Status
from mixscore.utils.canonical import canonical_dumps

from tests.conftest import build_metrics_dict, build_reference_dict, write_reference


def _status(result, key):
    return {c.metric_key: c.status for c in result.per_metric}[key]


def test_on_target_track_scores_world_class():
    result = compute_mix_score(build_metrics_dict(), build_reference_dict())
    assert result.overall_score_pct == 100.0
    assert result.classification == "World-class"
    assert result.clipping_state == ClippingState.CLEAN
    assert result.suggestions == []
    assert set(result.sub_scores) == {"loudness", "dynamics", "peak", "stereo", "spectral"}
    assert result.method["dynamic_range_source_used"] == "dr_legacy"
    assert result.method["weighting_strategy"] == "legacy"
    assert len(result.highlights["excellent"]) == 5
    assert result.highlights["needs_attention"] == []


def test_scenario_a_ideal_loudness_no_suggestion():
    result = compute_mix_score(build_metrics_dict(lufsIntegrated=-14.0), build_reference_dict())
    assert _status(result, "lufs") == Status.IDEAL
    assert not [s for s in result.suggestions if s.metric_key == "lufs"]


def test_scenario_b_adjust_loudness_suggests_increase():
    result = compute_mix_score(build_metrics_dict(lufsIntegrated=-15.5), build_reference_dict())
    lufs = next(c for c in result.per_metric if c.metric_key == "lufs")
    assert lufs.ratio == pytest.approx(1.5)
    assert lufs.status == Status.ADJUST
    s = next(s for s in result.suggestions if s.metric_key == "lufs")
    assert s.direction == Direction.INCREASE
    assert s.magnitude == 1.5
    assert result.sub_scores["loudness"] == pytest.approx(25.0)
    assert "lufs" in result.highlights["needs_attention"]


def test_scenario_c_fix_loudness():
    result = compute_mix_score(build_metrics_dict(lufsIntegrated=-17.0), build_reference_dict())
    assert _status(result, "lufs") == Status.FIX
    assert result.sub_scores["loudness"] == 0.0


def test_scenario_d_missing_stereo_reweights_remaining_categories():
    result = compute_mix_score(build_metrics_dict(stereoCorrelation=None), build_reference_dict())
    assert _status(result, "stereo") == Status.NA
    assert "stereo" not in result.sub_scores
    assert any(w.startswith("MissingMetricWarning") and "stereo" in w for w in result.warnings)
    weights = result.method["effective_weights"]
    assert "stereo" not in weights
    assert sum(weights.values()) == pytest.approx(1.0, abs=1e-5)
    assert result.overall_score_pct == 100.0


def test_clipped_track_applies_precedence_and_gates():
    metrics = build_metrics_dict(truePeakDbtp=-0.5, samplePeakLeftDb=0.5)
    result = compute_mix_score(metrics, build_reference_dict())
    assert result.clipping_state == ClippingState.CLIPPED
    assert result.reported_true_peak_dbtp == 0.5
    assert _status(result, "true_peak") == Status.ADJUST
    assert result.sub_scores["loudness"] == 70.0
    assert result.sub_scores["dynamics"] == 50.0
    assert {g.category for g in result.gates} == {"loudness", "dynamics"}
    assert result.suggestions[0].metric_key == "sample_peak"
    assert any(w.startswith("SafetyGateWarning") for w in result.warnings)


def test_overall_sample_peak_keys_mark_track_clipped():
    metrics = build_metrics_dict(
        truePeakDbtp=None, samplePeakLeftDb=None, samplePeakRightDb=None,
        samplePeakDbFS=2.1, truePeakDbTP=3.2,
    )
    result = compute_mix_score(metrics, build_reference_dict())
    assert result.clipping_state == ClippingState.CLIPPED
    assert result.reported_true_peak_dbtp == 3.2
    assert result.sub_scores["loudness"] <= 70.0
    assert result.sub_scores["dynamics"] <= 50.0
    assert result.suggestions[0].metric_key == "sample_peak"


def test_sample_peak_max_key_is_read():
    metrics = build_metrics_dict(samplePeakLeftDb=None, samplePeakRightDb=None, samplePeakMaxDbFS=0.4)
    result = compute_mix_score(metrics, build_reference_dict())
    assert result.clipping_state == ClippingState.CLIPPED
    assert result.reported_true_peak_dbtp == 0.4


def test_clipped_track_caps_technical_score():
    metrics = build_metrics_dict(samplePeakLeftDb=0.5, clippingPct=0.0, dcOffset=0.0)
    result = compute_mix_score(metrics, build_reference_dict())
    assert result.sub_scores["technical"] == 60.0
    gate = next(g for g in result.gates if g.category == "technical")
    assert gate.original == 100.0
    assert gate.capped == 60.0


def test_safety_gates_disabled_keeps_precedence():
    config = build_scoring_config({"enableSafetyGates": False})
    metrics = build_metrics_dict(truePeakDbtp=-0.5, samplePeakLeftDb=0.5)
    result = compute_mix_score(metrics, build_reference_dict(), config)
    assert result.gates == []
    assert result.sub_scores["loudness"] == 100.0
    assert result.reported_true_peak_dbtp == 0.5
    assert result.clipping_state == ClippingState.CLIPPED


def test_equal_weight_strategy():
    config = build_scoring_config({"weightingStrategy": "equalWeight"})
    result = compute_mix_score(build_metrics_dict(lufsIntegrated=-17.0), build_reference_dict(), config)
    # five categories, loudness scores 0
    assert result.overall_score_pct == 80.0
    assert result.method["weighting_strategy"] == "equalWeight"


def test_accepts_resolved_document_and_metrics_vector():
    doc = resolve_reference(build_reference_dict())
    metrics = MetricsVector.from_dict(build_metrics_dict())
    result = compute_mix_score(metrics, doc)
    assert result.reference_hash == doc.content_hash


def test_genre_key_requires_source():
    with pytest.raises(ReferenceResolutionError, match="without a reference source"):
        compute_mix_score(build_metrics_dict(), "funk")


def test_genre_key_with_directory_source(tmp_path):
    write_reference(tmp_path, build_reference_dict(), name="funk")
    result = compute_mix_score(build_metrics_dict(), "funk", source=DirectoryReferenceSource(tmp_path))
    assert result.overall_score_pct == 100.0


def test_genre_key_with_callable_source():
    result = compute_mix_score(build_metrics_dict(), "funk", source=lambda genre: build_reference_dict(genre=genre))
    assert result.overall_score_pct == 100.0


def test_unknown_genre_propagates(tmp_path):
    with pytest.raises(ReferenceResolutionError):
        compute_mix_score(build_metrics_dict(), "house", source=DirectoryReferenceSource(tmp_path))


def test_scoring_is_idempotent():
    metrics = build_metrics_dict(lufsIntegrated=-15.5, lra=12.0)
    ref = build_reference_dict()
    a = compute_mix_score(metrics, ref)
    b = compute_mix_score(metrics, ref)
    assert canonical_dumps(a.to_dict()) == canonical_dumps(b.to_dict())


def test_concurrent_scoring_is_independent():
    ref = resolve_reference(build_reference_dict())
    inputs = [build_metrics_dict(lufsIntegrated=-14.0 - i * 0.5) for i in range(12)]
    serial = [canonical_dumps(compute_mix_score(m, ref).to_dict()) for m in inputs]
    with ThreadPoolExecutor(max_workers=4) as pool:
        parallel = list(pool.map(lambda m: canonical_dumps(compute_mix_score(m, ref).to_dict()), inputs))
    assert parallel == serial


def test_estimated_bands_are_not_scored():
    metrics = build_metrics_dict(bandEnergies=None)
    metrics["tonalBalance"] = {"sub": {"rms_db": -17.0}, "low": {"rms_db": -16.0}, "mid": {"rms_db": -20.0}}
    result = compute_mix_score(metrics, build_reference_dict())
    scored = {m.metric_key for m in result.metric_scores if m.sub_score is not None}
    assert "band_sub" in scored
    assert "band_low_bass" not in scored
    assert "band_mid" not in scored
    assert result.sub_scores["spectral"] == 100.0
    assert any(w.startswith("BandMappingWarning") for w in result.warnings)
