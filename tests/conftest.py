from __future__ import annotations

import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def build_reference_dict(
    *,
    genre: str = "funk",
    version: str = "v1",
    with_bands: bool = True,
    with_stereo: bool = True
) -> dict:
    ref = {
        "genre": genre,
        "version": version,
        "lufs_target": -14.0,
        "tol_lufs": 1.0,
        "true_peak_target": -1.0,
        "tol_true_peak": 1.0,
        "dr_target": 8.0,
        "tol_dr": 2.0,
        "lra_target": 7.0,
        "tol_lra": 3.0,
    }
    if with_stereo:
        ref["stereo_target"] = 0.3
        ref["tol_stereo"] = 0.2
    if with_bands:
        ref["bands"] = {
            "sub": {"target_db": -17.0, "tol_db": 3.0},
            "low_bass": {"target_db": -16.0, "tol_db": 3.0},
            "mid": {"target_db": -20.0, "tol_db": 2.5},
            "high_mid": {"target_db": -25.0, "tol_db": 3.0},
        }
    return ref


def build_metrics_dict(**overrides) -> dict:
    """Collaborator-style (camelCase) metrics payload close to the default reference."""
    metrics = {
        "lufsIntegrated": -14.0,
        "truePeakDbtp": -1.2,
        "samplePeakLeftDb": -1.5,
        "samplePeakRightDb": -1.6,
        "dynamicRange": 8.0,
        "lra": 7.0,
        "stereoCorrelation": 0.3,
        "bandEnergies": {
            "sub": {"rms_db": -17.0},
            "low_bass": {"rms_db": -16.0},
            "mid": {"rms_db": -20.0},
            "high_mid": {"rms_db": -25.0},
        },
    }
    for key, value in overrides.items():
        if value is None:
            metrics.pop(key, None)
        else:
            metrics[key] = value
    return metrics


def write_reference(tmp_path: Path, reference: dict, name: str = "funk") -> Path:
    path = tmp_path / f"{name}.json"
    path.write_text(json.dumps(reference), encoding="utf-8")
    return path


def write_json(tmp_path: Path, name: str, payload) -> Path:
    path = tmp_path / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path
