from __future__ import annotations

import json

import pytest

from mixscore.config import build_scoring_config, load_scoring_config


def test_defaults():
    cfg = build_scoring_config()
    assert cfg.weighting_strategy == "legacy"
    assert cfg.dynamic_range_source == "auto"
    assert cfg.enable_safety_gates is True
    assert cfg.score_curve == ((0.0, 100.0), (1.0, 50.0), (2.0, 0.0))
    assert cfg.legacy_weights["loudness"] == 0.25
    assert cfg.gate_caps == {"loudness": 70.0, "technical": 60.0, "dynamics": 50.0}
    assert cfg.classification_thresholds[0] == (90.0, "World-class")


def test_camel_case_overrides_and_aliases():
    cfg = build_scoring_config({
        "weightingStrategy": "equal_weight",
        "dynamicRangeSource": "crest",
        "enableSafetyGates": False,
    })
    assert cfg.weighting_strategy == "equalWeight"
    assert cfg.dynamic_range_source == "crestFactor"
    assert cfg.enable_safety_gates is False


def test_nested_overrides_merge_with_defaults():
    cfg = build_scoring_config({"gate_caps": {"loudness": 80}})
    assert cfg.gate_caps["loudness"] == 80.0
    assert cfg.gate_caps["dynamics"] == 50.0


def test_invalid_values_are_collected():
    with pytest.raises(ValueError) as exc:
        build_scoring_config({
            "weighting_strategy": "median",
            "enable_safety_gates": "yes",
            "bogus": 1,
        })
    msg = str(exc.value)
    assert "unknown config keys: bogus" in msg
    assert "weighting_strategy" in msg
    assert "enable_safety_gates" in msg


@pytest.mark.parametrize(
    "curve,fragment",
    [
        ([[0, 100]], "at least two"),
        ([[0.5, 100], [2, 0]], "start at ratio 0"),
        ([[0, 100], [1, 50], [1, 0]], "strictly increasing"),
        ([[0, 50], [1, 80]], "non-increasing"),
    ],
)
def test_invalid_score_curve(curve, fragment):
    with pytest.raises(ValueError, match=fragment):
        build_scoring_config({"score_curve": curve})


def test_load_scoring_config(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"weightingStrategy": "equalWeight"}), encoding="utf-8")
    assert load_scoring_config(str(path)).weighting_strategy == "equalWeight"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError, match="JSON object"):
        load_scoring_config(str(path))
