from __future__ import annotations

import argparse
import os

from customer_check import kinds


def parse_file_source(value: str) -> tuple[str, str]:
    """``"path:kind"`` -> ``(path, kind)``; the split is on the last colon after any URL scheme."""
    v = value.strip()
    idx = v.rfind(":")
    if v.startswith(("http://", "https://")) and idx <= 7:
        idx = -1
    if idx == -1:
        raise argparse.ArgumentTypeError(f"invalid format, expected 'file_path:source_type', got: {value}")

    path, kind = v[:idx].strip(), v[idx + 1 :].strip()
    if not path:
        raise argparse.ArgumentTypeError(f"missing file path in: {value}")
    if not kinds.is_known_kind(kind):
        raise argparse.ArgumentTypeError(
            f"unknown document kind {kind!r}; expected one of: {', '.join(sorted(kinds.DOCUMENT_KINDS))}"
        )
    return path, kind


def _document_kind(value: str) -> str:
    if not kinds.is_known_kind(value):
        raise argparse.ArgumentTypeError(f"unknown document kind: {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="customer-check-extract",
        description="OCR and AI field extraction of customer due-diligence documents",
    )

    p.add_argument("inputs", nargs="*", help="Input URLs or local paths")
    p.add_argument("--input", action="append", default=[], help="Input URL or local path (repeatable)")
    p.add_argument(
        "--file-source",
        action="append",
        default=[],
        type=parse_file_source,
        metavar="PATH:KIND",
        help="Input with its own document kind, e.g. 'bill.pdf:evn_bill' (repeatable)",
    )
    p.add_argument("--links-file", default=None, help="Text file of URLs/paths, one per line ('#' comments)")

    p.add_argument("--json", default=None, help="Write the aggregated customer check JSON here")
    p.add_argument("--results-json", default=None, help="Write per-file extraction results JSON here")

    p.add_argument("--lang", default=None, help="OCR language(s), e.g. 'eng' or 'eng+vie' (env CC_LANG)")
    p.add_argument(
        "--source",
        default=None,
        type=_document_kind,
        help="Default document kind for inputs without one (env CC_DEFAULT_KIND)",
    )
    p.add_argument("--timeout", type=int, default=0, help="Overall timeout in seconds (env CC_TIMEOUT_SECONDS)")
    p.add_argument("--dpi", type=int, default=0, help="PDF rasterization DPI for OCR (env CC_PDF_DPI)")
    p.add_argument("--skip-analysis", action="store_true", help="Extract text only, no AI analysis")
    p.add_argument(
        "--concurrency",
        type=int,
        default=0,
        help="Maximum files processed concurrently (env CC_MAX_CONCURRENCY)",
    )
    p.add_argument("--progress", action="store_true", help="Log a line per file as it starts and finishes")
    p.add_argument("--keep-downloads", action="store_true", help="Keep downloaded temp files after the run")
    p.add_argument("--log-level", default="INFO", help="Python logging level (INFO, DEBUG, ...)")
    p.add_argument(
        "--log-json",
        action="store_true",
        default=os.getenv("CC_LOG_JSON", "").strip().lower() in ("1", "true", "yes", "on"),
        help="One JSON object per log record (env CC_LOG_JSON)",
    )
    return p


def read_links_file(path: str) -> list[str]:
    lines: list[str] = []
    with open(path, encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if line and not line.startswith("#"):
                lines.append(line)
    return lines
