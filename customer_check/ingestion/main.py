from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
from collections.abc import Sequence

import httpx
from dotenv import load_dotenv

from customer_check.export import write_json, write_results_json
from customer_check.ingestion.cli import build_parser, read_links_file
from customer_check.ingestion.config import BatchConfig
from customer_check.ingestion.extractors.image import ImageExtractor
from customer_check.ingestion.extractors.office import OfficeExtractor
from customer_check.ingestion.extractors.pdf import PdfExtractor
from customer_check.ingestion.extractors.text import TextExtractor
from customer_check.ingestion.ocr.vision import VisionClient
from customer_check.ingestion.resolver import SourceResolver
from customer_check.ingestion.runner import BatchRunner, remove_downloads
from customer_check.ingestion.types import STATUS_FAILED, ProgressUpdate
from customer_check.logging_config import setup_logging


def _log_progress(update: ProgressUpdate) -> None:
    logger = logging.getLogger("customer_check.ingestion")
    if update.status == STATUS_FAILED:
        logger.info("[%d/%d] FAILED %s - %s", update.current, update.total, update.source, update.error)
    else:
        logger.info("[%d/%d] %s - %s", update.current, update.total, update.source, update.status)


async def _amain(argv: Sequence[str] | None = None) -> int:
    load_dotenv(override=False)

    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level.upper(), json_output=args.log_json)
    logger = logging.getLogger("customer_check.ingestion")

    inputs: list[str] = list(args.input or []) + list(args.inputs or [])
    if args.links_file:
        try:
            inputs.extend(read_links_file(args.links_file))
        except OSError as e:
            logger.error("failed to read links file: %s", e)
            return 2

    kinds: dict[str, str] = {}
    for path, kind in args.file_source:
        inputs.append(path)
        kinds[path] = kind

    if not inputs:
        parser.print_usage()
        return 2

    cfg = BatchConfig.from_env()
    # CLI overrides
    overrides = {
        "max_concurrency": args.concurrency if args.concurrency and args.concurrency > 0 else None,
        "timeout_s": args.timeout if args.timeout and args.timeout > 0 else None,
        "dpi": args.dpi if args.dpi and args.dpi > 0 else None,
        "lang": args.lang,
        "default_kind": args.source,
        "skip_analysis": True if args.skip_analysis else None,
    }
    cfg = dataclasses.replace(cfg, **{k: v for k, v in overrides.items() if v is not None})
    try:
        cfg.validate()
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    async with httpx.AsyncClient(follow_redirects=True) as http:
        return await _run(args, cfg, inputs, kinds, http)


async def _run(
    args: argparse.Namespace,
    cfg: BatchConfig,
    inputs: list[str],
    kinds: dict[str, str],
    http: httpx.AsyncClient,
) -> int:
    logger = logging.getLogger("customer_check.ingestion")

    vision = VisionClient.from_env(http_client=http)
    if not vision.configured:
        logger.warning("GOOGLE_VISION_API_KEY is not set; image and scanned-PDF OCR will fail")

    runner = BatchRunner(
        cfg=cfg,
        resolver=SourceResolver(http_client=http),
        extractors=[
            TextExtractor(),
            PdfExtractor(
                vision=vision,
                lang=cfg.lang,
                dpi=cfg.dpi,
                min_embedded_chars=cfg.min_embedded_text_chars,
            ),
            ImageExtractor(vision=vision, lang=cfg.lang),
            OfficeExtractor(),
        ],
        on_progress=_log_progress if args.progress else None,
    )

    batch = await runner.run(inputs, kinds=kinds)
    stats = batch.stats
    assert stats is not None

    logger.info(
        "Summary: total=%d successful=%d failed=%d skipped=%d rate=%.2f files/s "
        "error_rate=%.1f%% data=%.2f MB",
        stats.total_files,
        stats.successful,
        stats.failed,
        stats.skipped,
        stats.processing_rate,
        stats.error_rate,
        stats.total_size / (1024 * 1024),
    )

    if args.results_json:
        write_results_json(batch.results, args.results_json, stats=stats)
    if args.json:
        if cfg.skip_analysis:
            logger.warning("--json ignored: no customer check data with --skip-analysis")
        else:
            write_json(batch.check, args.json)

    if not args.keep_downloads:
        remove_downloads(batch.results)

    return 0 if stats.failed == 0 else 2


def main() -> None:
    raise SystemExit(asyncio.run(_amain()))


if __name__ == "__main__":
    main()
