"""mixscore CLI - reference-driven mix scoring."""
from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path

from mixscore.config import (
    DR_SOURCES,
    WEIGHTING_STRATEGIES,
    ScoringConfig,
    build_scoring_config,
)
from mixscore.errors import ReferenceResolutionError
from mixscore.profiles.loader import DirectoryReferenceSource, load_reference_payload
from mixscore.profiles.resolver import resolve_reference
from mixscore.reporting.report import build_report_dict
from mixscore.scoring.orchestrator import compute_mix_score
from mixscore.thresholds.classifier import classify
from mixscore.types import MetricsVector, ReferenceDocument
from mixscore.version import __version__

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_BAD_ARGS = 2
EXIT_INPUT_ERROR = 3
EXIT_REFERENCE_ERROR = 4
EXIT_INTERNAL_ERROR = 5


class CliUsageError(Exception):
    """Invalid combination of command-line options."""


def _read_json_object(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        j = json.load(f)
    if not isinstance(j, dict):
        raise ValueError(f"{path} must contain a JSON object.")
    return j


def _build_config(args) -> ScoringConfig:
    overrides: dict = {}
    if getattr(args, "config", None):
        overrides.update(_read_json_object(args.config))
    if getattr(args, "weighting", None):
        overrides["weighting_strategy"] = args.weighting
    if getattr(args, "dr_source", None):
        overrides["dynamic_range_source"] = args.dr_source
    if getattr(args, "no_safety_gates", False):
        overrides["enable_safety_gates"] = False
    return build_scoring_config(overrides)


def _load_cli_reference(args, config: ScoringConfig) -> ReferenceDocument:
    tol = config.default_band_tolerance_db
    if getattr(args, "reference", None):
        payload = load_reference_payload(args.reference)
        return resolve_reference(payload, getattr(args, "genre", None), default_band_tolerance_db=tol)
    if getattr(args, "genre", None):
        if not getattr(args, "refs_dir", None):
            raise CliUsageError("--genre requires --refs-dir (or pass --reference FILE).")
        return DirectoryReferenceSource(args.refs_dir, default_band_tolerance_db=tol).load(args.genre)
    raise CliUsageError("a reference is required: --reference FILE or --genre G --refs-dir DIR.")


def _emit(text: str, out: str | None) -> None:
    if out:
        Path(out).write_text(text, encoding="utf-8")
        print(f"Report written to: {out}", file=sys.stderr)
    else:
        print(text)


def cmd_score(args) -> int:
    """Handle score command."""
    try:
        config = _build_config(args)
    except (OSError, ValueError) as e:
        print(f"Error: invalid configuration - {e}", file=sys.stderr)
        return EXIT_BAD_ARGS

    try:
        metrics = MetricsVector.from_dict(_read_json_object(args.metrics))
    except FileNotFoundError as e:
        print(f"Error: File not found - {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except (OSError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        print(f"Error: invalid metrics file - {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    try:
        reference = _load_cli_reference(args, config)
        result = compute_mix_score(metrics, reference, config)
        report = build_report_dict(
            result,
            reference=reference,
            input_meta={"metrics_path": str(Path(args.metrics).resolve())},
        )
        _emit(json.dumps(report, indent=2), args.out)
        return EXIT_OK
    except CliUsageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BAD_ARGS
    except ReferenceResolutionError as e:
        print(f"Error: reference - {e}", file=sys.stderr)
        return EXIT_REFERENCE_ERROR
    except Exception as e:
        logger.exception("scoring failed")
        print(f"Internal error: {e}", file=sys.stderr)
        return EXIT_INTERNAL_ERROR


def _format_target(target: float, tol_min: float, tol_max: float) -> str:
    if tol_min == tol_max:
        return f"{target:g} ± {tol_max:g}"
    return f"{target:g} (-{tol_min:.3g} / +{tol_max:.3g})"


def cmd_inspect_ref(args) -> int:
    """Handle inspect-ref command."""
    try:
        reference = _load_cli_reference(args, build_scoring_config())
    except CliUsageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BAD_ARGS
    except ReferenceResolutionError as e:
        print(f"Error: reference - {e}", file=sys.stderr)
        return EXIT_REFERENCE_ERROR
    except Exception as e:
        logger.exception("reference inspection failed")
        print(f"Internal error: {e}", file=sys.stderr)
        return EXIT_INTERNAL_ERROR

    print(f"Genre: {reference.genre or '-'}")
    print(f"Version: {reference.version or '-'}")
    print(f"Schema variants: {', '.join(reference.schema_variants) or '-'}")
    print(f"Hash: {reference.content_hash[:16]}...")
    print()
    print("Targets:")
    for key, t in reference.targets.items():
        print(f"  {key}: {_format_target(t.target, t.tol_min, t.tol_max)}")
    if reference.bands:
        print()
        print("Bands:")
        for name, b in reference.bands.items():
            print(f"  {name}: {_format_target(b.target_db, b.tol_min, b.tol_max)} ({b.scale})")
    if reference.warnings:
        print()
        print("Warnings:")
        for w in reference.warnings:
            print(f"  {w}")
    return EXIT_OK


def cmd_classify(args) -> int:
    """Handle classify command."""
    c = classify(
        args.value,
        args.target,
        args.tolerance,
        tol_min=args.tol_min,
        tol_max=args.tol_max,
        upper_only=args.upper_only,
        metric_key="value",
    )
    print(json.dumps(c.to_dict(), indent=2))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mixscore",
        description="mixscore - reference-driven mix scoring"
    )
    parser.add_argument(
        "--version", action="version",
        version=f"mixscore {__version__}"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_reference_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--reference", help="Reference JSON file")
        p.add_argument("--genre", help="Genre key (selects from a library or {genre}.json)")
        p.add_argument("--refs-dir", help="Directory of {genre}.json reference files")

    # score command
    score_parser = subparsers.add_parser(
        "score",
        help="Score a metrics JSON against a genre reference"
    )
    score_parser.add_argument("metrics", help="Metrics JSON produced by the analyzer")
    add_reference_args(score_parser)
    score_parser.add_argument("--config", help="Scoring config JSON (overrides)")
    score_parser.add_argument("--weighting", choices=list(WEIGHTING_STRATEGIES))
    score_parser.add_argument("--dr-source", choices=list(DR_SOURCES))
    score_parser.add_argument(
        "--no-safety-gates",
        action="store_true",
        help="Do not cap category scores for clipped tracks"
    )
    score_parser.add_argument("--out", help="Write the report here instead of stdout")
    score_parser.set_defaults(func=cmd_score)

    # inspect-ref command
    inspect_parser = subparsers.add_parser(
        "inspect-ref",
        help="Show the resolved targets of a reference"
    )
    add_reference_args(inspect_parser)
    inspect_parser.set_defaults(func=cmd_inspect_ref)

    # classify command
    classify_parser = subparsers.add_parser(
        "classify",
        help="Classify one value against a target and tolerance"
    )
    classify_parser.add_argument("value", type=float)
    classify_parser.add_argument("--target", type=float, required=True)
    classify_parser.add_argument("--tolerance", type=float, required=True)
    classify_parser.add_argument("--tol-min", type=float)
    classify_parser.add_argument("--tol-max", type=float)
    classify_parser.add_argument("--upper-only", action="store_true")
    classify_parser.set_defaults(func=cmd_classify)

    return parser


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if hasattr(args, "func"):
        sys.exit(args.func(args))
    else:
        parser.print_help()
        sys.exit(EXIT_BAD_ARGS)


if __name__ == "__main__":
    main()
