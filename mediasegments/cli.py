"""Command-line interface for mediasegments.

Commands:
    compare   - Find the segment shared by two fingerprint files
    season    - Analyze every item listed in a YAML manifest
"""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any

import yaml

from .aligner import SegmentAligner
from .config import AnalyzerConfig, LoggingConfig, load_config
from .logger import setup_logging
from .matcher import FingerprintMatcher
from .models import AnalysisMode, QueuedMedia, TimeRange
from .queue import build_queued_media
from .rawfingerprint import FileFingerprintProvider, RawFingerprintError, load_raw_fingerprint

MODES = {
    "intro": AnalysisMode.INTRODUCTION,
    "introduction": AnalysisMode.INTRODUCTION,
    "credits": AnalysisMode.CREDITS,
}


class ManifestError(ValueError):
    """Raised when a season manifest is malformed."""
    pass


class ManifestSilenceDetector:
    """Silence intervals listed in the manifest, per item."""

    def __init__(self, silence: dict[str, list[TimeRange]]):
        self.silence = silence

    def detect_silence(self, item: QueuedMedia, limit: int) -> list[TimeRange]:
        return [r for r in self.silence.get(item.item_id, []) if r.start < limit]


def _format_time(seconds: float) -> str:
    minutes, secs = divmod(seconds, 60)
    return f"{int(minutes):02d}:{secs:05.2f}"


def load_manifest(
    path: Path, config: AnalyzerConfig
) -> tuple[list[QueuedMedia], FileFingerprintProvider, ManifestSilenceDetector]:
    """Load a season manifest.

    Relative fingerprint paths are resolved against the manifest directory.

    Raises:
        ManifestError: If the manifest is missing required fields
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    entries = data.get("items") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ManifestError("Manifest must contain an 'items' list")

    queue: list[QueuedMedia] = []
    fingerprint_paths: dict[str, dict[AnalysisMode, Path]] = {}
    silence: dict[str, list[TimeRange]] = {}

    for entry in entries:
        if not isinstance(entry, dict) or "id" not in entry:
            raise ManifestError(f"Manifest item without an 'id': {entry!r}")

        item_id = str(entry["id"])
        try:
            duration = entry.get("duration")
            item = build_queued_media(
                item_id,
                float(duration) if duration is not None else None,
                config,
                name=str(entry.get("name", item_id)),
                path=str(entry.get("path", "")),
                series_name=str(entry.get("series", "")),
                season_number=int(entry.get("season", 0)),
                source_name=str(entry.get("source", "")),
                is_analyzed=bool(entry.get("analyzed", False)),
            )
            if item is None:
                continue

            item_fingerprints = {
                MODES[mode]: path.parent / str(file)
                for mode, file in (entry.get("fingerprints") or {}).items()
                if mode in MODES
            }
            item_silence = [
                TimeRange(float(start), float(end)) for start, end in entry.get("silence") or []
            ]
        except (TypeError, ValueError, AttributeError) as e:
            raise ManifestError(f"Invalid manifest item {item_id!r}: {e}") from e

        queue.append(item)
        fingerprint_paths[item_id] = item_fingerprints
        silence[item_id] = item_silence

    return queue, FileFingerprintProvider(fingerprint_paths), ManifestSilenceDetector(silence)


def cmd_compare(args: argparse.Namespace, config: AnalyzerConfig) -> int:
    """Compare two fingerprint files."""
    try:
        lhs = load_raw_fingerprint(args.lhs)
        rhs = load_raw_fingerprint(args.rhs)
    except (OSError, RawFingerprintError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    aligner = SegmentAligner(config)
    mode = MODES[args.mode]

    start = time.time()
    lhs_segment, rhs_segment = aligner.compare(str(args.lhs), lhs, str(args.rhs), rhs, mode)
    elapsed = time.time() - start

    if not lhs_segment.valid:
        print(f"No shared {mode.value} found ({elapsed:.2f}s).")
        return 0

    print(f"Shared {mode.value} found in {elapsed:.2f}s:")
    for segment in (lhs_segment, rhs_segment):
        print(
            f"  {segment.item_id}: {_format_time(segment.start)} - {_format_time(segment.end)} "
            f"({segment.duration:.1f}s)"
        )
    return 0


def cmd_season(args: argparse.Namespace, config: AnalyzerConfig) -> int:
    """Analyze every item of a manifest."""
    try:
        queue, fingerprints, silence = load_manifest(args.manifest, config)
    except (OSError, yaml.YAMLError, ManifestError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    mode = MODES[args.mode]
    matcher = FingerprintMatcher(fingerprints, silence, config)
    result = matcher.analyze_media_files(queue, mode)

    names = {item.item_id: item.full_name for item in queue}
    for item_id, segment in result.analyzed.items():
        print(
            f"{names.get(item_id, item_id)}: {_format_time(segment.start)} - "
            f"{_format_time(segment.end)}"
        )
    for item in result.not_analyzed:
        print(f"{item.full_name}: no {mode.value} found")
    for item in result.non_comparable:
        print(f"{item.full_name}: too few items to compare")

    if args.output:
        report: dict[str, Any] = {
            "mode": mode.value,
            "segments": {
                item_id: {"start": s.start, "end": s.end, "is_episode": s.is_episode}
                for item_id, s in result.analyzed.items()
            },
            "not_analyzed": [item.item_id for item in result.not_analyzed],
            "non_comparable": [item.item_id for item in result.non_comparable],
        }
        with open(args.output, "w") as f:
            json.dump(report, f, indent=2)
        print(f"Report saved to: {args.output}")

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediasegments",
        description="Detect introductions and end credits from audio fingerprints",
    )
    parser.add_argument("--config", "-c", type=Path, help="Path to a YAML config file")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the configured log level",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # compare command
    compare_parser = subparsers.add_parser("compare", help="Compare two fingerprint files")
    compare_parser.add_argument("lhs", type=Path, help="First fingerprint file")
    compare_parser.add_argument("rhs", type=Path, help="Second fingerprint file")
    compare_parser.add_argument(
        "--mode", "-m",
        choices=sorted(MODES),
        default="intro",
        help="Segment kind (default: intro)",
    )
    compare_parser.set_defaults(func=cmd_compare)

    # season command
    season_parser = subparsers.add_parser("season", help="Analyze a season manifest")
    season_parser.add_argument("manifest", type=Path, help="YAML manifest listing the items")
    season_parser.add_argument(
        "--mode", "-m",
        choices=sorted(MODES),
        default="intro",
        help="Segment kind (default: intro)",
    )
    season_parser.add_argument("--output", "-o", help="Save a JSON report to file")
    season_parser.set_defaults(func=cmd_season)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config) if args.config else AnalyzerConfig()
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: cannot load config: {e}", file=sys.stderr)
        return 1

    logging_config = config.logging
    if args.log_level:
        logging_config = LoggingConfig(level=args.log_level, file=config.logging.file)
    setup_logging(logging_config)

    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
