"""Canonical JSON, content hashing and quantization helpers."""
from __future__ import annotations
from dataclasses import asdict, is_dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
import hashlib
import json
import math


def _json_default(obj):
    if isinstance(obj, Enum):
        return obj.value
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    if hasattr(obj, "item"):
        # numpy scalars
        return obj.item()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonical_dumps(obj, *, allow_nan: bool = False) -> str:
    """
    Serialize to canonical JSON: sorted keys, compact separators.

    Reports are strict JSON. Raw reference payloads may still carry NaN
    (``json.load`` accepts it) and are hashed with ``allow_nan=True``.
    """
    return json.dumps(
        obj,
        ensure_ascii=False,
        sort_keys=True,
        separators=(",", ":"),
        default=_json_default,
        allow_nan=allow_nan,
    )


def content_hash(obj, *, allow_nan: bool = False) -> str:
    """SHA-256 hex digest of the canonical JSON form of ``obj``."""
    return hashlib.sha256(canonical_dumps(obj, allow_nan=allow_nan).encode("utf-8")).hexdigest()


def quantize(x: float | None, step: float) -> float | None:
    """Round to a multiple of ``step``, halves away from zero, on the shortest decimal text of ``x``."""
    if x is None or not math.isfinite(x):
        return x
    exact = Decimal(str(float(x))) / Decimal(str(step))
    return float(exact.quantize(Decimal(1), rounding=ROUND_HALF_UP) * Decimal(str(step)))
