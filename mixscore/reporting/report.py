from __future__ import annotations
import platform

import numpy as np

from mixscore.types import ReferenceDocument, ScoringResult
from mixscore.utils.canonical import content_hash, quantize
from mixscore.version import __version__

REPORT_SCHEMA_VERSION = "1.0"

_CLASSIFICATION_FIELDS = ("value", "target", "tolerance", "deviation", "abs_deviation")


def build_engine_meta() -> dict:
    """Engine metadata recorded in every report."""
    return {
        "name": "mixscore",
        "version": __version__,
        "build": {
            "platform": platform.platform(),
            "python": platform.python_version(),
            "deps": [{"name": "numpy", "version": np.__version__}],
        },
    }


def _quantize_result(r: dict) -> None:
    r["overall_score_pct"] = quantize(r["overall_score_pct"], 0.1)
    r["sub_scores"] = {k: quantize(v, 0.1) for k, v in r["sub_scores"].items()}
    for c in r["per_metric"]:
        for k in _CLASSIFICATION_FIELDS:
            if c.get(k) is not None:
                c[k] = quantize(float(c[k]), 0.001)
        if c.get("ratio") is not None:
            c["ratio"] = quantize(float(c["ratio"]), 0.0001)
    for m in r["metric_scores"]:
        if m.get("sub_score") is not None:
            m["sub_score"] = quantize(float(m["sub_score"]), 0.01)
    for g in r["gates"]:
        g["original"] = quantize(float(g["original"]), 0.01)
    if r.get("reported_true_peak_dbtp") is not None:
        r["reported_true_peak_dbtp"] = quantize(float(r["reported_true_peak_dbtp"]), 0.01)
    weights = r["method"].get("effective_weights", {})
    r["method"]["effective_weights"] = {k: quantize(v, 0.0001) for k, v in weights.items()}


def build_report_dict(
    result: ScoringResult,
    *,
    reference: ReferenceDocument | None = None,
    input_meta: dict | None = None,
    engine: dict | None = None
) -> dict:
    """
    Build a scoring report with quantized values and an integrity hash.

    The hash covers every section except ``integrity`` itself.
    """
    result_dict = result.to_dict()
    _quantize_result(result_dict)
    report = {
        "schema_version": REPORT_SCHEMA_VERSION,
        "engine": engine if engine is not None else build_engine_meta(),
        "input": input_meta or {},
        "reference": {
            "genre": reference.genre if reference else None,
            "version": reference.version if reference else "",
            "schema_variants": list(reference.schema_variants) if reference else [],
            "content_hash_sha256": result.reference_hash,
        },
        "result": result_dict,
        "integrity": {"report_hash_sha256": ""},
    }
    # Compute integrity hash (excluding integrity object itself)
    tmp = dict(report)
    tmp.pop("integrity", None)
    report["integrity"]["report_hash_sha256"] = content_hash(tmp)
    return report
