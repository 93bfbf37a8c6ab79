"""JSON outputs: the aggregate record and the per-file results."""

from __future__ import annotations

import dataclasses
import json
import logging
from collections.abc import Sequence
from pathlib import Path

from customer_check.ingestion.types import ProcessingStats, TaskResult
from customer_check.models import CustomerCheck

logger = logging.getLogger(__name__)


def write_json(check: CustomerCheck, path: str | Path) -> None:
    Path(path).write_text(check.model_dump_json(indent=2), encoding="utf-8")
    logger.info("Wrote structured customer check data to %s", path)


def write_results_json(
    results: Sequence[TaskResult],
    path: str | Path,
    *,
    stats: ProcessingStats | None = None,
) -> None:
    payload: dict[str, object] = {"results": [dataclasses.asdict(r) for r in results]}
    if stats is not None:
        payload["stats"] = dataclasses.asdict(stats)
    Path(path).write_text(
        json.dumps(payload, indent=2, ensure_ascii=False, default=str),
        encoding="utf-8",
    )
    logger.info("Wrote %d extraction results to %s", len(results), path)
