"""Resolve heterogeneous reference payloads into one ReferenceDocument."""
from __future__ import annotations
from dataclasses import replace
import logging

from mixscore.errors import BandMappingWarning, ReferenceResolutionError, warning_message
from mixscore.profiles.adapters import ADAPTERS, looks_like_reference
from mixscore.profiles.validator import validate_band_entry, validate_metric_entry
from mixscore.types import BandTarget, MetricTarget, ReferenceDocument
from mixscore.utils.canonical import content_hash

logger = logging.getLogger(__name__)


def _unwrap(payload: dict, genre_key: str | None) -> tuple[dict, str | None]:
    """Pick the single-genre document out of a wrapper or library payload."""
    library = payload.get("genres") if isinstance(payload.get("genres"), dict) else payload

    if genre_key is not None and isinstance(library.get(genre_key), dict):
        return library[genre_key], genre_key
    if looks_like_reference(payload):
        return payload, genre_key if genre_key is not None else payload.get("genre")

    entries = {k: v for k, v in library.items() if looks_like_reference(v)}
    if genre_key is not None:
        raise ReferenceResolutionError(
            f"reference library has no entry for genre '{genre_key}' "
            f"(available: {', '.join(sorted(entries)) or 'none'})",
            genre=genre_key,
        )
    if len(entries) == 1:
        name, doc = next(iter(entries.items()))
        return doc, name
    if not entries:
        raise ReferenceResolutionError("payload does not contain a recognizable reference document")
    raise ReferenceResolutionError(
        f"reference library holds {len(entries)} genres; a genre key is required"
    )


def resolve_reference(
    payload: dict,
    genre_key: str | None = None,
    *,
    default_band_tolerance_db: float = 2.0
) -> ReferenceDocument:
    """
    Resolve a raw reference payload into a validated ReferenceDocument.

    Schema adapters run in precedence order; for every metric and band the
    first adapter supplying a valid entry wins. Entries with missing or
    non-positive tolerances are dropped (bands without any tolerance get
    ``default_band_tolerance_db`` instead).

    Args:
        payload: Parsed reference JSON (single genre, wrapper or library)
        genre_key: Genre to select from wrapped or library payloads
        default_band_tolerance_db: Tolerance applied to bands that carry none

    Returns:
        A new ReferenceDocument; the payload is never modified

    Raises:
        ReferenceResolutionError: if the genre is absent or nothing usable remains
    """
    if not isinstance(payload, dict):
        raise ReferenceResolutionError("reference payload must be a JSON object", genre=genre_key)
    doc, genre = _unwrap(payload, genre_key)

    targets: dict[str, MetricTarget] = {}
    bands: dict[str, BandTarget] = {}
    variants: list[str] = []
    warnings: list[str] = []

    for variant, adapt in ADAPTERS:
        adapted = adapt(doc)
        if adapted is None:
            continue
        variants.append(variant)
        for key, raw in adapted.targets.items():
            if key in targets:
                continue
            target, entry_warnings = validate_metric_entry(key, raw)
            warnings.extend(entry_warnings)
            if target is not None:
                targets[key] = target
        for name, raw in adapted.bands.items():
            if name in bands:
                continue
            band, entry_warnings = validate_band_entry(
                name, raw, default_tolerance_db=default_band_tolerance_db
            )
            warnings.extend(entry_warnings)
            if band is not None:
                bands[name] = band
        for raw_name in adapted.unknown_bands:
            warnings.append(warning_message(
                BandMappingWarning, f"unknown reference band '{raw_name}' ({variant}) ignored"
            ))

    for w in warnings:
        logger.warning("reference %s: %s", genre or "<unnamed>", w)

    if not targets and not bands:
        raise ReferenceResolutionError(
            f"no usable targets in reference for genre '{genre}'", genre=genre
        )

    resolved = ReferenceDocument(
        genre=genre,
        targets=targets,
        bands=bands,
        version=str(doc.get("version", "") or ""),
        schema_variants=variants,
        warnings=warnings,
    )
    return replace(resolved, content_hash=content_hash(resolved.to_dict()))
