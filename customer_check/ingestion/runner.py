from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol

from customer_check.analysis.addresses import AddressComparer
from customer_check.analysis.aggregator import Aggregator
from customer_check.analysis.gemini_client import GeminiClient
from customer_check.config import DEFAULT_ADDRESS_COMPARE_TIMEOUT_SECONDS
from customer_check.errors import UnsupportedFileTypeError
from customer_check.ingestion import classifier
from customer_check.ingestion.config import BatchConfig
from customer_check.ingestion.extractors.base import Extractor
from customer_check.ingestion.resolver import SourceResolver
from customer_check.ingestion.types import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_PROCESSING,
    BatchResult,
    ProcessingStats,
    ProgressUpdate,
    ResolvedSource,
    Task,
    TaskResult,
)

logger = logging.getLogger(__name__)


class DocumentAnalyzer(Protocol):
    async def analyze_document(self, text: str, kind: str) -> dict[str, Any]: ...


ProgressCallback = Callable[[ProgressUpdate], None]


def _file_size(path: str) -> int:
    return os.path.getsize(path) if os.path.exists(path) else 0


def remove_downloads(results: Sequence[TaskResult]) -> None:
    """Delete temp files the resolver downloaded for these results."""
    for r in results:
        if r.downloaded and r.local_path and os.path.exists(r.local_path):
            os.unlink(r.local_path)


class BatchRunner:
    """Process a batch of sources with bounded concurrency into one aggregate record.

    Every input yields exactly one ``TaskResult``; per-file failures are
    recorded on the result and never abort the batch.
    """

    def __init__(
        self,
        *,
        cfg: BatchConfig,
        resolver: SourceResolver,
        extractors: Sequence[Extractor],
        analyzer: DocumentAnalyzer | None = None,
        address_comparer: AddressComparer | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self._cfg = cfg
        self._resolver = resolver
        self._extractors = list(extractors)
        self._analyzer = analyzer
        self._address_comparer = address_comparer
        self._on_progress = on_progress

    async def run(self, inputs: Sequence[str], *, kinds: Mapping[str, str] | None = None) -> BatchResult:
        kinds = kinds or {}
        tasks = [
            Task(index=i, source=src, kind=kinds.get(src, self._cfg.default_kind))
            for i, src in enumerate(inputs)
        ]
        total = len(tasks)
        concurrency = self._cfg.effective_concurrency
        deadline = asyncio.get_running_loop().time() + self._cfg.timeout_s

        aggregator = Aggregator()
        sem = asyncio.Semaphore(concurrency)
        started = time.monotonic()

        logger.info("Processing %d files with concurrency=%d", total, concurrency)

        async def worker(task: Task) -> TaskResult:
            async with sem:
                self._emit(ProgressUpdate(task.index + 1, total, task.source, STATUS_PROCESSING))
                res = await self._run_task(task, aggregator, deadline)
                status = STATUS_FAILED if res.failed else STATUS_COMPLETED
                self._emit(ProgressUpdate(task.index + 1, total, task.source, status, res.error))
                return res

        results = list(await asyncio.gather(*[worker(t) for t in tasks]))

        if not self._cfg.skip_analysis:
            await aggregator.finalize(self._comparer())

        stats = ProcessingStats.from_results(results, elapsed_s=time.monotonic() - started)
        logger.info(
            "DONE total=%d successful=%d failed=%d skipped=%d in %.1fs",
            stats.total_files,
            stats.successful,
            stats.failed,
            stats.skipped,
            stats.elapsed_s,
        )
        return BatchResult(check=aggregator.check, results=results, stats=stats)

    def _emit(self, update: ProgressUpdate) -> None:
        if self._on_progress is None:
            return
        try:
            self._on_progress(update)
        except Exception:
            logger.exception("Progress callback failed for %s", update.source)

    def _get_analyzer(self) -> DocumentAnalyzer:
        # Built on first use so OCR-only runs never need an API key.
        if self._analyzer is None:
            self._analyzer = GeminiClient.from_env()
        return self._analyzer

    def _comparer(self) -> AddressComparer:
        if self._address_comparer is not None:
            return self._address_comparer
        gemini = self._analyzer if hasattr(self._analyzer, "generate_json") else None
        return AddressComparer(gemini, timeout_s=DEFAULT_ADDRESS_COMPARE_TIMEOUT_SECONDS)

    async def _run_task(self, task: Task, aggregator: Aggregator, deadline: float) -> TaskResult:
        started = time.monotonic()
        # filled by _process once the source is on disk
        resolved: list[ResolvedSource] = []
        try:
            async with asyncio.timeout_at(deadline):
                return await self._process(task, aggregator, started, resolved)
        except TimeoutError:
            logger.warning("Batch deadline exceeded while processing %s", task.source)
            src = resolved[0] if resolved else None
            return TaskResult(
                source=src.source_url if src else task.source,
                local_path=src.local_path if src else "",
                filename=src.filename if src else "",
                file_type="",
                text="",
                error="batch deadline exceeded",
                size=_file_size(src.local_path) if src else 0,
                elapsed_s=time.monotonic() - started,
                kind=task.kind,
                downloaded=src.downloaded if src else False,
            )

    async def _process(
        self,
        task: Task,
        aggregator: Aggregator,
        started: float,
        resolved_out: list[ResolvedSource],
    ) -> TaskResult:
        def result(**kw: Any) -> TaskResult:
            base: dict[str, Any] = {
                "source": task.source,
                "local_path": "",
                "filename": "",
                "file_type": "",
                "text": "",
                "error": None,
                "size": 0,
                "kind": task.kind,
            }
            base.update(kw)
            return TaskResult(elapsed_s=time.monotonic() - started, **base)

        try:
            resolved = await self._resolver.resolve(task.source)
        except Exception as e:
            logger.warning("Could not resolve %s: %s", task.source, e)
            return result(error=str(e))
        resolved_out.append(resolved)

        file_type = classifier.resolve_file_type(resolved.filename, resolved.media_type, task.kind)
        common: dict[str, Any] = {
            "source": resolved.source_url,
            "local_path": resolved.local_path,
            "filename": resolved.filename,
            "file_type": file_type,
            "size": _file_size(resolved.local_path),
            "downloaded": resolved.downloaded,
        }

        try:
            classifier.ensure_processable(file_type)
            extractor = next((ex for ex in self._extractors if ex.can_handle(file_type)), None)
            if extractor is None:
                raise UnsupportedFileTypeError(file_type)
            exr = await extractor.extract(source=resolved, kind=task.kind)
        except Exception as e:
            logger.warning("Extraction failed for %s: %s", resolved.filename, e)
            return result(error=str(e), **common)

        text = exr.text
        if not text or self._cfg.skip_analysis:
            return result(text=text, **common)

        try:
            analyzer = self._get_analyzer()
        except ValueError as e:
            return result(text=text, error=f"Gemini client initialization error: {e}", **common)

        try:
            fields = await analyzer.analyze_document(text, task.kind)
        except Exception as e:
            logger.warning("Gemini analysis failed for %s: %s", resolved.filename, e)
            return result(text=text, error=f"Gemini analysis error: {e}", **common)

        try:
            await aggregator.merge(task.kind, fields)
        except Exception as e:
            logger.warning("Merging fields failed for %s: %s", resolved.filename, e)
            return result(text=text, error=f"merge fields: {e}", **common)
        return result(text=text, fields=fields, **common)
