"""Async wrapper around the pipeline to expose a simple CLI."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import List, Optional

from .config import load_defaults
from .controller import ConversionReport, ConversionRequest, build_orchestrator, convert_links
from .errors import ConfigurationError
from .formats import STREAM_PROFILES, get_stream_profile
from .logging_utils import setup_logging


def _split_links(values: List[str]) -> List[str]:
    links: List[str] = []
    for value in values:
        links.extend(part.strip() for part in value.split(",") if part.strip())
    return links


def build_parser() -> argparse.ArgumentParser:
    defaults = load_defaults()
    parser = argparse.ArgumentParser(
        prog="yt2mp3",
        description="Convert YouTube videos to audio files.",
    )
    parser.add_argument(
        "-l",
        "--links",
        action="extend",
        nargs="+",
        default=[],
        help="YouTube video links (space or comma separated).",
    )
    parser.add_argument("--output-dir", type=Path, default=defaults.output_dir, help="Where to store converted audio.")
    parser.add_argument("--audio-format", default=defaults.audio_format, help="Output audio extension (mp3, m4a, ...).")
    parser.add_argument("--encoder", default=defaults.encoder, help="Path or name of the ffmpeg binary.")
    parser.add_argument("--max-workers", type=int, default=defaults.max_workers, help="Maximum concurrent tasks per stage.")
    parser.add_argument("--temp-dir", type=Path, default=defaults.temp_dir, help="Parent directory for temporary downloads.")
    parser.add_argument(
        "--profile",
        choices=STREAM_PROFILES,
        default=None,
        help=f"Named stream profile (default: {defaults.profile}); --quality overrides it.",
    )
    parser.add_argument(
        "--quality",
        action="extend",
        nargs="+",
        default=None,
        help="Acceptable stream quality labels, best first (e.g. 360p 240p).",
    )
    parser.add_argument("--js-runtime", default=defaults.js_runtime, help="Hint for yt-dlp JS runtime (node, deno, etc.).")
    parser.add_argument(
        "--remote-components",
        action="extend",
        nargs="+",
        default=list(defaults.remote_components),
        help="Enable yt-dlp remote components (e.g., ejs:github).",
    )
    parser.add_argument("--log-level", default=defaults.log_level, help="Logging level (DEBUG, INFO, ...).")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    args = build_parser().parse_args(argv)
    args.links = _split_links(args.links)
    if args.quality is None:
        if args.profile:
            args.quality = list(get_stream_profile(args.profile).quality_labels)
        else:
            args.quality = load_defaults().quality_labels
    return args


def _print_report(report: ConversionReport) -> None:
    if report.artifacts:
        print("Converted audio:")
        for path in report.artifacts:
            print(f"  - {path}")
    print(f"Converted {len(report.artifacts)} of {len(report.result.outcomes)} link(s).")
    if report.errors:
        print("\nThe following issues occurred during execution:")
        for error in report.errors:
            print(f" - {error}")
        print("\nAddress errors and retry.")


async def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if not args.links:
        build_parser().print_help()
        return 0
    setup_logging(args.log_level)

    request = ConversionRequest(
        links=args.links,
        output_dir=args.output_dir,
        audio_format=args.audio_format,
        encoder=args.encoder,
        max_workers=args.max_workers,
        temp_dir=args.temp_dir,
        quality_labels=list(args.quality),
        js_runtime=args.js_runtime,
        remote_components=args.remote_components,
    )
    orchestrator = build_orchestrator(request)
    try:
        report = await asyncio.to_thread(convert_links, request, orchestrator=orchestrator)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}")
        return 2
    except (asyncio.CancelledError, KeyboardInterrupt):
        # the worker thread outlives this coroutine; tell it to stop
        orchestrator.cancel()
        raise

    _print_report(report)
    return 0 if report.ok else 1


def cli_main() -> None:
    try:
        code = asyncio.run(main())
    except KeyboardInterrupt:
        print("Interrupted.")
        code = 130
    raise SystemExit(code)


__all__ = ["main", "cli_main", "parse_args", "build_parser"]
