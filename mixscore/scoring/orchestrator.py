"""End-to-end scoring of one metrics vector against one reference."""
from __future__ import annotations
import logging

from mixscore.analysis.normalizer import normalize_band_energies
from mixscore.config import ScoringConfig, build_scoring_config
from mixscore.errors import MissingMetricWarning, ReferenceResolutionError, SafetyGateWarning, warning_message
from mixscore.metrics.correlation import score_stereo
from mixscore.metrics.dr import score_dynamic_range
from mixscore.metrics.loudness import score_loudness, score_lra
from mixscore.metrics.spectral import score_bands
from mixscore.metrics.technical import score_technical
from mixscore.metrics.truepeak import score_true_peak
from mixscore.profiles.resolver import resolve_reference
from mixscore.reporting.suggestions import clipping_suggestion, generate_suggestions
from mixscore.scoring.aggregator import aggregate, category_scores, classify_overall
from mixscore.scoring.gates import apply_safety_gates, assess_clipping
from mixscore.types import MetricScore, MetricsVector, ReferenceDocument, ScoringResult

logger = logging.getLogger(__name__)

HIGHLIGHT_EXCELLENT_MIN = 95.0
HIGHLIGHT_ATTENTION_MAX = 60.0
HIGHLIGHT_LIMIT = 5


def _resolve(reference, source, config: ScoringConfig) -> ReferenceDocument:
    if isinstance(reference, ReferenceDocument):
        return reference
    if isinstance(reference, dict):
        return resolve_reference(reference, default_band_tolerance_db=config.default_band_tolerance_db)
    if isinstance(reference, str):
        if source is None:
            raise ReferenceResolutionError(
                f"genre key '{reference}' given without a reference source", genre=reference
            )
        load = getattr(source, "load", source)
        loaded = load(reference)
        if isinstance(loaded, dict):
            return resolve_reference(
                loaded, reference, default_band_tolerance_db=config.default_band_tolerance_db
            )
        if not isinstance(loaded, ReferenceDocument):
            raise ReferenceResolutionError(
                f"reference source returned {type(loaded).__name__} for '{reference}'", genre=reference
            )
        return loaded
    raise ReferenceResolutionError(f"unsupported reference type: {type(reference).__name__}")


def build_highlights(metric_scores: list[MetricScore]) -> dict[str, list[str]]:
    """Best and worst scored metrics, at most HIGHLIGHT_LIMIT of each."""
    scored = [m for m in metric_scores if m.sub_score is not None]
    excellent = sorted(
        (m for m in scored if m.sub_score >= HIGHLIGHT_EXCELLENT_MIN),
        key=lambda m: -m.sub_score,
    )
    attention = sorted(
        (m for m in scored if m.sub_score <= HIGHLIGHT_ATTENTION_MAX),
        key=lambda m: m.sub_score,
    )
    return {
        "excellent": [m.metric_key for m in excellent[:HIGHLIGHT_LIMIT]],
        "needs_attention": [m.metric_key for m in attention[:HIGHLIGHT_LIMIT]],
    }


def compute_mix_score(
    metrics: MetricsVector | dict,
    reference: ReferenceDocument | dict | str,
    config: ScoringConfig | None = None,
    *,
    source=None
) -> ScoringResult:
    """
    Score one track against a genre reference.

    Pure function of its arguments: the reference is resolved per call (or
    taken as given), nothing is cached and no module state is touched.

    Args:
        metrics: MetricsVector or raw analysis payload
        reference: ReferenceDocument, raw reference payload, or genre key
        config: Scoring configuration (defaults when None)
        source: Object with ``load(genre)`` (or a callable) for genre keys

    Returns:
        ScoringResult

    Raises:
        ReferenceResolutionError: if no usable reference can be resolved
    """
    cfg = config if config is not None else build_scoring_config()
    if not isinstance(metrics, MetricsVector):
        metrics = MetricsVector.from_dict(metrics)
    ref = _resolve(reference, source, cfg)
    curve = cfg.score_curve

    warnings: list[str] = list(ref.warnings)
    clipping = assess_clipping(metrics)
    warnings.extend(clipping.warnings)
    bands = normalize_band_energies(metrics)
    warnings.extend(bands.warnings)

    scores: list[MetricScore] = []

    def collect(score, w) -> None:
        warnings.extend(w)
        if score is None:
            return
        if isinstance(score, list):
            scores.extend(score)
        else:
            scores.append(score)

    collect(*score_loudness(metrics, ref, curve=curve))
    dr_score, dr_source, dr_warnings = score_dynamic_range(
        metrics, ref, source=cfg.dynamic_range_source, curve=curve
    )
    collect(dr_score, dr_warnings)
    collect(*score_lra(metrics, ref, curve=curve))
    collect(*score_true_peak(clipping.reported_true_peak_dbtp, ref, curve=curve))
    collect(*score_stereo(metrics, ref, curve=curve))
    collect(*score_bands(bands, ref, curve=curve))
    collect(*score_technical(metrics, ref, limits=cfg.technical_limits, curve=curve))

    sub_scores, gates = apply_safety_gates(
        category_scores(scores),
        clipping.state,
        cfg.gate_caps,
        enabled=cfg.enable_safety_gates,
    )
    for g in gates:
        warnings.append(warning_message(
            SafetyGateWarning, f"{g.category} capped from {g.original:.1f} to {g.capped:.1f} (clipping)"
        ))

    overall, weights = aggregate(sub_scores, cfg.weighting_strategy, cfg.legacy_weights)
    if not sub_scores:
        warnings.append(warning_message(MissingMetricWarning, "no category could be scored"))

    suggestions = generate_suggestions(scores)
    clip_fix = clipping_suggestion(clipping)
    if clip_fix is not None:
        suggestions.insert(0, clip_fix)

    method = {
        **cfg.describe(),
        "effective_weights": {k: round(v, 6) for k, v in weights.items()},
        "dynamic_range_source_used": dr_source,
        "reference_variants": list(ref.schema_variants),
    }
    logger.debug(
        "scored %s: overall %.1f over %d categories (%d metrics)",
        ref.genre or "<unnamed>", overall, len(sub_scores), len(scores),
    )

    return ScoringResult(
        overall_score_pct=overall,
        classification=classify_overall(overall, cfg.classification_thresholds, cfg.classification_floor),
        sub_scores={k: round(v, 1) for k, v in sub_scores.items()},
        per_metric=[m.classification for m in scores],
        metric_scores=scores,
        suggestions=suggestions,
        method=method,
        warnings=warnings,
        clipping_state=clipping.state,
        reported_true_peak_dbtp=clipping.reported_true_peak_dbtp,
        gates=gates,
        highlights=build_highlights(scores),
        reference_hash=ref.content_hash,
    )
