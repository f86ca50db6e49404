# src/main.py - v1
"""CLI entry point - process and classify commands.

Usage:
    batchview process <files...> [options]
    batchview classify <files...>
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from types import SimpleNamespace

from batchview.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from pydantic import ValidationError

    from batchview.config.settings import ConfigurationError

    try:
        settings = _load_settings(args)
    except (ConfigurationError, ValidationError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="batchview",
        description=f"batchview v{__version__} - Batch file ingestion and presentation routing",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- process ---
    p_process = subparsers.add_parser(
        "process", help="Process files and choose a presentation strategy",
    )
    p_process.add_argument("files", nargs="+", type=Path, help="Files to process")
    p_process.add_argument(
        "-c", "--concurrency", type=int, default=None,
        help="Files processed at once (default: from settings)",
    )
    p_process.add_argument(
        "--no-thumbnails", action="store_true",
        help="Skip PDF page thumbnails",
    )
    p_process.add_argument(
        "--json", action="store_true",
        help="Print the result as JSON",
    )
    p_process.set_defaults(func=_cmd_process)

    # --- classify ---
    p_classify = subparsers.add_parser(
        "classify", help="Print the kind of each file",
    )
    p_classify.add_argument("files", nargs="+", type=Path, help="Files to classify")
    p_classify.set_defaults(func=_cmd_classify)

    return parser


def _load_settings(args: argparse.Namespace):
    from batchview.config.settings import load_settings

    overrides: dict[str, object] = {}
    if getattr(args, "concurrency", None) is not None:
        overrides["concurrency"] = args.concurrency
    if getattr(args, "no_thumbnails", False):
        overrides["generate_thumbnails"] = False
    return load_settings(**overrides)


async def _cmd_process(args: argparse.Namespace, settings) -> int:
    """Process files through a batch session and print the outcome."""
    from batchview.batch.session import BatchSession
    from batchview.core.models import RawFileInput
    from batchview.routing.router import select_strategy
    from batchview.urls.resolver import DualQualityResolver

    paths = _existing_files(args.files)
    if paths is None:
        return 1

    raw_files = [RawFileInput.from_path(p) for p in paths]
    resolver = DualQualityResolver.from_settings(settings)

    async with BatchSession(settings=settings) as session:
        state = await session.submit(raw_files)
        if state.failed:
            logger.error("Batch failed: %s", state.fatal_error)
            return 1
        strategy = select_strategy(state.records, page_size=settings.lightbox_page_size)

        if args.json:
            payload = {
                "run_id": state.run_id,
                "strategy": _strategy_dict(strategy),
                "records": [
                    {
                        **record.model_dump(mode="json", exclude={"thumbnails", "cover_image"}),
                        "thumbnail_count": len(record.thumbnails),
                        "urls": resolver.resolve_urls(record).model_dump(),
                    }
                    for record in state.records
                ],
                "errors": [e.model_dump() for e in state.errors],
            }
            print(json.dumps(payload, indent=2, ensure_ascii=False))
        else:
            _print_state(state, strategy)

    return 0 if not state.errors else 3


async def _cmd_classify(args: argparse.Namespace, settings) -> int:
    """Classify files by name and guessed content type; no bytes are read."""
    from batchview.classify.classifier import classify, classify_batch
    from batchview.core.models import RawFileInput

    paths = _existing_files(args.files)
    if paths is None:
        return 1

    kinds = []
    for path in paths:
        raw = RawFileInput.from_path(path)
        kind = classify(raw.name, raw.content_type)
        kinds.append(kind)
        print(f"{kind.value:<13} {path.name}")

    batch_kind = classify_batch([SimpleNamespace(kind=k) for k in kinds])
    print(f"\nBatch kind: {getattr(batch_kind, 'value', batch_kind)}")
    return 0


def _strategy_dict(strategy) -> dict:
    """Strategy tree with record ids in place of full records."""
    return {
        "name": strategy.name.value,
        "record_ids": [r.id for r in strategy.records],
        "page_size": strategy.page_size,
        "lazy_load": strategy.lazy_load,
        "image_strategy": (
            _strategy_dict(strategy.image_strategy) if strategy.image_strategy else None
        ),
        "item_strategies": [_strategy_dict(s) for s in strategy.item_strategies],
    }


def _existing_files(paths: list[Path]) -> list[Path] | None:
    missing = [p for p in paths if not p.is_file()]
    for path in missing:
        logger.error("File not found: %s", path)
    return None if missing else paths


def _print_state(state, strategy) -> None:
    """Print a human-readable summary of a finished run."""
    from batchview.batch.summary import batch_summary

    summary = batch_summary(state.records)
    print(f"\nBatch {state.run_id}:")
    print(f"  Files:     {summary.total_files} ({summary.total_size_label})")
    print(f"  Kind:      {getattr(summary.primary_kind, 'value', summary.primary_kind)}")
    print(f"  Strategy:  {strategy.name.value}")
    if strategy.is_composite:
        if strategy.image_strategy is not None:
            print(f"    images:  {strategy.image_strategy.name.value}")
        for child in strategy.item_strategies:
            print(f"    {child.records[0].original_name}: {child.name.value}")
    print()
    for record in state.records:
        status = f"ERROR: {record.processing_error}" if record.has_error else "ok"
        print(f"  {record.kind.value:<13} {record.size_label:>10}  {record.original_name}  [{status}]")
    if state.errors:
        print(f"\n  Errors: {len(state.errors)}")


def _setup_logging(settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from batchview.logging.logger import setup_logging_from_settings

    setup_logging_from_settings(settings, verbose=verbose)
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
