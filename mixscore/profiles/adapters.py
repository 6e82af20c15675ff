"""
Adapters for the historical reference-document shapes.

Each adapter reads one known schema variant and returns raw entries in a
common form: metric entries ``{"target", "tol" | "tol_min"/"tol_max"}`` and
band entries of the same shape plus ``scale``. Validation happens later in
the resolver; adapters only translate.
"""
from __future__ import annotations
from dataclasses import dataclass, field
import math

from mixscore.analysis.bands import canonical_band_name
from mixscore.analysis.normalizer import energy_pct_to_db
from mixscore.types import finite_or_none


# metric key -> (target field, tolerance field) in the flat shape
FLAT_METRIC_FIELDS = {
    "lufs": ("lufs_target", "tol_lufs"),
    "true_peak": ("true_peak_target", "tol_true_peak"),
    "dr": ("dr_target", "tol_dr"),
    "dr_stat": ("dr_stat_target", "tol_dr_stat"),
    "tt_dr": ("tt_dr_target", "tol_tt_dr"),
    "crest_factor": ("crest_factor_target", "tol_crest_factor"),
    "lra": ("lra_target", "tol_lra"),
    "stereo": ("stereo_target", "tol_stereo"),
    "clipping_pct": ("clipping_pct_target", "tol_clipping_pct"),
    "dc_offset": ("dc_offset_target", "tol_dc_offset"),
}

_BAND_TARGET_KEYS = ("target_db", "target")
_BAND_TOL_KEYS = ("tol_db", "toleranceDb", "tolerance")


@dataclass
class AdaptedReference:
    variant: str
    targets: dict[str, dict] = field(default_factory=dict)
    bands: dict[str, dict] = field(default_factory=dict)
    unknown_bands: list[str] = field(default_factory=list)

    def empty(self) -> bool:
        return not self.targets and not self.bands


def _first(d: dict, keys: tuple[str, ...]):
    for k in keys:
        if d.get(k) is not None:
            return d[k]
    return None


def _band_entry(raw: dict) -> dict:
    entry = {"target": _first(raw, _BAND_TARGET_KEYS), "scale": raw.get("scale", "rms_db")}
    tol = _first(raw, _BAND_TOL_KEYS)
    if tol is not None:
        entry["tol"] = tol
    if raw.get("tol_min") is not None:
        entry["tol_min"] = raw["tol_min"]
    if raw.get("tol_max") is not None:
        entry["tol_max"] = raw["tol_max"]
    return entry


def _add_band(out: AdaptedReference, raw_name, entry: dict) -> None:
    name = canonical_band_name(raw_name) if raw_name is not None else None
    if name is None:
        out.unknown_bands.append(str(raw_name))
        return
    out.bands.setdefault(name, entry)


def _flat_fields(doc: dict, variant: str) -> AdaptedReference:
    out = AdaptedReference(variant)
    for key, (target_field, tol_field) in FLAT_METRIC_FIELDS.items():
        if doc.get(target_field) is None:
            continue
        entry = {"target": doc[target_field]}
        if doc.get(tol_field) is not None:
            entry["tol"] = doc[tol_field]
        if doc.get(f"{tol_field}_min") is not None:
            entry["tol_min"] = doc[f"{tol_field}_min"]
        if doc.get(f"{tol_field}_max") is not None:
            entry["tol_max"] = doc[f"{tol_field}_max"]
        out.targets[key] = entry
    bands = doc.get("bands")
    if isinstance(bands, dict):
        for raw_name, raw in bands.items():
            if isinstance(raw, dict):
                _add_band(out, raw_name, _band_entry(raw))
    return out


def adapt_flat(doc: dict) -> AdaptedReference | None:
    """Canonical flat shape at the top level of the document."""
    out = _flat_fields(doc, "flat")
    return None if out.empty() and not out.unknown_bands else out


def adapt_legacy_compatibility(doc: dict) -> AdaptedReference | None:
    """Flat shape nested in a ``legacy_compatibility`` block."""
    block = doc.get("legacy_compatibility")
    if not isinstance(block, dict):
        return None
    return _flat_fields(block, "legacy_compatibility")


def _target_tol(raw) -> dict | None:
    if not isinstance(raw, dict) or raw.get("target") is None:
        return None
    entry = {"target": raw["target"]}
    tol = _first(raw, ("tolerance", "tol"))
    if tol is not None:
        entry["tol"] = tol
    for k in ("tol_min", "tol_max"):
        if raw.get(k) is not None:
            entry[k] = raw[k]
    return entry


def adapt_fixed_flex(doc: dict) -> AdaptedReference | None:
    """
    ``fixed`` (hard constraints) and ``flex`` (soft constraints) blocks.

    ``flex.lra`` as a min/max range becomes its midpoint with half-range
    tolerance. ``flex.clipping.samplePctMax`` is a fraction of samples and
    becomes an upper limit on the clipping percentage.
    """
    fixed = doc.get("fixed") if isinstance(doc.get("fixed"), dict) else None
    flex = doc.get("flex") if isinstance(doc.get("flex"), dict) else None
    if fixed is None and flex is None:
        return None
    out = AdaptedReference("fixed_flex")

    if fixed:
        lufs = _target_tol((fixed.get("lufs") or {}).get("integrated"))
        if lufs:
            out.targets["lufs"] = lufs
        tp = fixed.get("truePeak")
        if isinstance(tp, dict):
            entry = _target_tol(tp)
            if entry is None and tp.get("streamingMax") is not None:
                entry = {"target": tp["streamingMax"]}
                stream_max = finite_or_none(tp.get("streamingMax"))
                hard_max = finite_or_none(tp.get("baileMax"))
                if stream_max is not None and hard_max is not None:
                    entry["tol"] = hard_max - stream_max
            if entry:
                out.targets["true_peak"] = entry
        dr = _target_tol((fixed.get("dynamicRange") or {}).get("dr"))
        if dr:
            out.targets["dr"] = dr

    if flex:
        lra = flex.get("lra")
        if isinstance(lra, dict):
            entry = _target_tol(lra)
            lo, hi = finite_or_none(lra.get("min")), finite_or_none(lra.get("max"))
            if entry is None and lo is not None and hi is not None:
                entry = {"target": (lo + hi) / 2.0, "tol": (hi - lo) / 2.0}
            if entry:
                out.targets.setdefault("lra", entry)
        clipping = flex.get("clipping")
        if isinstance(clipping, dict):
            frac = finite_or_none(clipping.get("samplePctMax"))
            if frac is not None:
                out.targets["clipping_pct"] = {"target": 0.0, "tol": frac * 100.0}
        curve = (flex.get("tonalCurve") or {}).get("bands")
        if isinstance(curve, list):
            for raw in curve:
                if isinstance(raw, dict):
                    _add_band(out, raw.get("name"), _band_entry(raw))
    return out


def _pct_band_entry(pct, tol_pp) -> dict:
    entry = {"target": energy_pct_to_db(pct), "scale": "energy_pct"}
    p, pp = finite_or_none(pct), finite_or_none(tol_pp)
    if p is None or p <= 0 or pp is None:
        return entry
    if pp <= 0:
        entry["tol"] = pp
        return entry
    tol_max = 10.0 * math.log10((p + pp) / p)
    tol_min = 10.0 * math.log10(p / (p - pp)) if p > pp else tol_max
    entry["tol_min"] = tol_min
    entry["tol_max"] = tol_max
    return entry


def adapt_spectral_balance(doc: dict) -> AdaptedReference | None:
    """
    ``spectralBalance.bands`` expressed as percent of total energy.

    Targets become dB of relative energy; a +/- percentage-point tolerance
    becomes the (asymmetric) dB tolerance it implies.
    """
    block = doc.get("spectralBalance")
    if not isinstance(block, dict):
        return None
    default_pp = _first(block, ("tolerance_pp", "tolerancePP", "defaultTolerancePP"))
    bands = block.get("bands")
    items: list[tuple] = []
    if isinstance(bands, dict):
        items = list(bands.items())
    elif isinstance(bands, list):
        items = [(b.get("name", b.get("band")), b) for b in bands if isinstance(b, dict)]
    out = AdaptedReference("spectral_balance")
    for raw_name, raw in items:
        if isinstance(raw, dict):
            pct = _first(raw, ("target_pct", "pct", "energy_pct", "energyPct", "pctRef"))
            pp = _first(raw, ("tol_pp", "tolerance_pp", "tolerance"))
        else:
            pct, pp = raw, None
        if pp is None:
            pp = default_pp
        _add_band(out, raw_name, _pct_band_entry(pct, pp))
    return out


# Precedence order: the first adapter supplying a valid entry wins.
ADAPTERS = (
    ("flat", adapt_flat),
    ("fixed_flex", adapt_fixed_flex),
    ("legacy_compatibility", adapt_legacy_compatibility),
    ("spectral_balance", adapt_spectral_balance),
)

REFERENCE_MARKER_KEYS = frozenset(
    [f for pair in FLAT_METRIC_FIELDS.values() for f in pair]
    + ["bands", "legacy_compatibility", "fixed", "flex", "spectralBalance"]
)


def looks_like_reference(doc) -> bool:
    """True if ``doc`` carries any field a schema adapter understands."""
    return isinstance(doc, dict) and any(k in doc for k in REFERENCE_MARKER_KEYS)
