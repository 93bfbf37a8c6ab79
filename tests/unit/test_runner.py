"""Unit tests for the batch runner.

Sources are local temp files behind a fake resolver; the analyzer is a fake,
so no network, API key or OCR binary is involved.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Any

import pytest

from customer_check import kinds
from customer_check.analysis.addresses import AddressComparer
from customer_check.analysis.aggregator import Aggregator
from customer_check.analysis.parsing import parse_fields
from customer_check.errors import SourceResolutionError
from customer_check.ingestion.config import BatchConfig
from customer_check.ingestion.extractors.base import Extractor
from customer_check.ingestion.extractors.office import OfficeExtractor
from customer_check.ingestion.extractors.text import TextExtractor
from customer_check.ingestion.runner import BatchRunner, remove_downloads
from customer_check.ingestion.types import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_PROCESSING,
    ExtractResult,
    ProgressUpdate,
    ResolvedSource,
)
from customer_check.models import MATCH_SOURCE_HEURISTIC

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeResolver:
    """Resolves ``name`` to ``tmp_path/name``; names starting with ``missing`` fail."""

    def __init__(self, root: Path, *, downloaded: bool = False) -> None:
        self._root = root
        self._downloaded = downloaded

    async def resolve(self, source: str) -> ResolvedSource:
        if source.startswith("missing"):
            raise SourceResolutionError("http 404", source_url=source)
        path = self._root / source
        return ResolvedSource(
            local_path=str(path),
            source_url=source,
            filename=source,
            media_type="",
            downloaded=self._downloaded,
        )


class FakeAnalyzer:
    def __init__(self, fields_by_kind: dict[str, dict[str, Any]] | None = None, fail_on: str = "") -> None:
        self.fields_by_kind = fields_by_kind or {}
        self.fail_on = fail_on
        self.calls: list[tuple[str, str]] = []

    async def analyze_document(self, text: str, kind: str) -> dict[str, Any]:
        self.calls.append((text, kind))
        if self.fail_on and self.fail_on in text:
            raise RuntimeError("gemini http error: 500 - boom")
        return self.fields_by_kind.get(kind, {})


class SlowExtractor(Extractor):
    """Text extractor that tracks how many extractions overlap."""

    def __init__(self, delay: float = 0.01) -> None:
        self.delay = delay
        self.active = 0
        self.peak = 0

    def can_handle(self, file_type: str) -> bool:
        return file_type == "text"

    async def extract(self, *, source: ResolvedSource, kind: str) -> ExtractResult:
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(60 if "hang" in source.filename else self.delay)
        finally:
            self.active -= 1
        return ExtractResult(text=f"text of {source.filename}", used_ocr=False, pages=None, extraction_meta={})


def _write(tmp_path: Path, name: str, text: str = "some document text") -> str:
    (tmp_path / name).write_text(text, encoding="utf-8")
    return name


def _runner(tmp_path: Path, **kw: Any) -> BatchRunner:
    kw.setdefault("cfg", BatchConfig())
    kw.setdefault("resolver", FakeResolver(tmp_path))
    kw.setdefault("extractors", [TextExtractor(), OfficeExtractor()])
    kw.setdefault("analyzer", FakeAnalyzer())
    kw.setdefault("address_comparer", AddressComparer())
    return BatchRunner(**kw)


# ===========================================================================
# Result accounting
# ===========================================================================


class TestResultAccounting:
    async def test_every_input_yields_one_result(self, tmp_path: Path) -> None:
        inputs = [
            _write(tmp_path, "a.txt"),
            _write(tmp_path, "empty.txt", ""),
            "missing-remote.pdf",
            _write(tmp_path, "bundle.zip"),
            _write(tmp_path, "memo.docx"),
            _write(tmp_path, "b.txt"),
        ]

        batch = await _runner(tmp_path).run(inputs)
        stats = batch.stats

        assert stats is not None
        assert len(batch.results) == len(inputs)
        assert stats.successful + stats.failed + stats.skipped == len(inputs)
        assert (stats.successful, stats.failed, stats.skipped) == (2, 3, 1)
        assert stats.error_rate == pytest.approx(50.0)

    async def test_failures_are_recorded_per_file(self, tmp_path: Path) -> None:
        inputs = ["missing.txt", _write(tmp_path, "bundle.zip"), _write(tmp_path, "memo.docx")]

        batch = await _runner(tmp_path).run(inputs)
        errors = {r.source: r.error for r in batch.results}

        assert errors["missing.txt"] == "http 404"
        assert errors["bundle.zip"] == "unsupported file type: archive"
        assert errors["memo.docx"] == "office document processing not yet implemented for word"

    async def test_sizes_and_stats(self, tmp_path: Path) -> None:
        inputs = [_write(tmp_path, "a.txt", "x" * 100), _write(tmp_path, "b.txt", "y" * 300)]

        stats = (await _runner(tmp_path).run(inputs)).stats

        assert stats is not None
        assert stats.total_size == 400
        assert stats.average_size == 200.0
        assert stats.processing_rate > 0

    async def test_empty_batch(self, tmp_path: Path) -> None:
        batch = await _runner(tmp_path).run([])
        assert batch.results == []
        assert batch.stats is not None and batch.stats.total_files == 0


# ===========================================================================
# Scheduling
# ===========================================================================


class TestScheduling:
    @pytest.mark.parametrize(("configured", "bound"), [(2, 2), (0, 3), (-4, 3)])
    async def test_concurrency_bound(self, tmp_path: Path, configured: int, bound: int) -> None:
        slow = SlowExtractor()
        inputs = [_write(tmp_path, f"f{i}.txt") for i in range(10)]

        await _runner(tmp_path, cfg=BatchConfig(max_concurrency=configured), extractors=[slow]).run(inputs)

        assert slow.peak == bound

    async def test_progress_pairs_are_ordered(self, tmp_path: Path) -> None:
        events: list[ProgressUpdate] = []
        inputs = [_write(tmp_path, "a.txt"), "missing.txt", _write(tmp_path, "b.txt")]

        await _runner(tmp_path, on_progress=events.append).run(inputs)

        assert len(events) == 2 * len(inputs)
        for src in inputs:
            mine = [e for e in events if e.source == src]
            assert [e.status for e in mine][0] == STATUS_PROCESSING
            assert len(mine) == 2
            assert mine[0].current == mine[1].current
            assert mine[0].total == len(inputs)
        failed = [e for e in events if e.status == STATUS_FAILED]
        assert [e.source for e in failed] == ["missing.txt"]
        assert failed[0].error == "http 404"
        assert sum(e.status == STATUS_COMPLETED for e in events) == 2

    async def test_broken_progress_callback_does_not_fail_batch(self, tmp_path: Path) -> None:
        def boom(update: ProgressUpdate) -> None:
            raise ValueError("display went away")

        batch = await _runner(tmp_path, on_progress=boom).run([_write(tmp_path, "a.txt")])
        assert batch.results[0].error is None

    async def test_deadline_is_recorded_per_task(self, tmp_path: Path) -> None:
        slow = SlowExtractor()
        inputs = [_write(tmp_path, "quick.txt"), _write(tmp_path, "hang.txt")]

        batch = await _runner(tmp_path, cfg=BatchConfig(timeout_s=1), extractors=[slow]).run(inputs)
        by_source = {r.source: r for r in batch.results}

        assert by_source["quick.txt"].error is None
        assert by_source["hang.txt"].error == "batch deadline exceeded"
        assert len(batch.results) == 2

    async def test_deadline_result_still_owns_download(self, tmp_path: Path) -> None:
        name = _write(tmp_path, "hang.txt")
        runner = _runner(
            tmp_path,
            cfg=BatchConfig(timeout_s=1),
            resolver=FakeResolver(tmp_path, downloaded=True),
            extractors=[SlowExtractor()],
        )

        batch = await runner.run([name])
        res = batch.results[0]

        assert res.error == "batch deadline exceeded"
        assert res.downloaded is True
        assert res.local_path == str(tmp_path / name)
        assert res.size > 0
        remove_downloads(batch.results)
        assert not os.path.exists(tmp_path / name)


# ===========================================================================
# Analysis and aggregation
# ===========================================================================


class TestAnalysis:
    async def test_per_input_kinds_and_aggregate(self, tmp_path: Path) -> None:
        analyzer = FakeAnalyzer(
            {
                kinds.BUSINESS_LICENSE: {"client_name": "ACME", "business_address": "12 Le Loi Street, District 1"},
                kinds.EVN_BILL: {
                    "billing_address": "12 Le Loi St, Dist 1",
                    "billing_address_matches_client": "no",
                },
            }
        )
        lic = _write(tmp_path, "license.txt", "license text")
        bill = _write(tmp_path, "bill.txt", "bill text")
        other = _write(tmp_path, "other.txt", "other text")

        batch = await _runner(tmp_path, analyzer=analyzer).run(
            [lic, bill, other],
            kinds={lic: kinds.BUSINESS_LICENSE, bill: kinds.EVN_BILL},
        )

        assert sorted(analyzer.calls) == [
            ("bill text", kinds.EVN_BILL),
            ("license text", kinds.BUSINESS_LICENSE),
            ("other text", kinds.UNKNOWN),
        ]
        evn = batch.check.land.evn
        assert batch.check.corporate.general.client_name == "ACME"
        assert evn.billing_address_matches_client == "yes"
        assert evn.billing_address_match_source == MATCH_SOURCE_HEURISTIC
        assert {r.source: r.kind for r in batch.results}[lic] == kinds.BUSINESS_LICENSE

    async def test_analysis_error_is_prefixed(self, tmp_path: Path) -> None:
        analyzer = FakeAnalyzer(fail_on="bad")
        inputs = [_write(tmp_path, "bad.txt", "bad text"), _write(tmp_path, "good.txt", "good text")]

        batch = await _runner(tmp_path, analyzer=analyzer).run(inputs)
        errors = {r.source: r.error for r in batch.results}

        assert errors["bad.txt"] == "Gemini analysis error: gemini http error: 500 - boom"
        assert errors["good.txt"] is None

    async def test_infinite_amount_does_not_abort_batch(self, tmp_path: Path) -> None:
        analyzer = FakeAnalyzer(
            {kinds.EVN_BILL: parse_fields('{"billing_amount": 1e400, "billing_address": "12 Le Loi"}')}
        )
        bill = _write(tmp_path, "bill.txt", "bill text")
        other = _write(tmp_path, "other.txt", "other text")

        batch = await _runner(tmp_path, analyzer=analyzer).run([bill, other], kinds={bill: kinds.EVN_BILL})

        assert [r.error for r in batch.results] == [None, None]
        assert batch.check.land.evn.billing_amount is None
        assert batch.check.land.evn.billing_address == "12 Le Loi"

    async def test_merge_error_fails_only_that_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        original = Aggregator.merge

        async def merge(self: Aggregator, kind: str, fields: dict[str, Any]) -> bool:
            if kind == kinds.EVN_BILL:
                raise OverflowError("cannot convert float infinity to integer")
            return await original(self, kind, fields)

        monkeypatch.setattr(Aggregator, "merge", merge)
        analyzer = FakeAnalyzer({kinds.BUSINESS_LICENSE: {"client_name": "ACME"}})
        bill = _write(tmp_path, "bill.txt", "bill text")
        lic = _write(tmp_path, "license.txt", "license text")

        batch = await _runner(tmp_path, analyzer=analyzer).run(
            [bill, lic], kinds={bill: kinds.EVN_BILL, lic: kinds.BUSINESS_LICENSE}
        )
        errors = {r.source: r.error for r in batch.results}

        assert errors[bill] == "merge fields: cannot convert float infinity to integer"
        assert errors[lic] is None
        assert batch.check.corporate.general.client_name == "ACME"

    async def test_missing_api_key_is_reported_per_file(self, tmp_path: Path) -> None:
        runner = BatchRunner(
            cfg=BatchConfig(),
            resolver=FakeResolver(tmp_path),
            extractors=[TextExtractor()],
        )

        batch = await runner.run([_write(tmp_path, "a.txt")])

        error = batch.results[0].error
        assert error is not None
        assert error.startswith("Gemini client initialization error: GEMINI_API_KEY is not set")

    async def test_skip_analysis(self, tmp_path: Path) -> None:
        analyzer = FakeAnalyzer({kinds.UNKNOWN: {"client_name": "nope"}})

        batch = await _runner(tmp_path, cfg=BatchConfig(skip_analysis=True), analyzer=analyzer).run(
            [_write(tmp_path, "a.txt", "hello")]
        )

        assert analyzer.calls == []
        assert batch.results[0].text == "hello"
        assert batch.results[0].error is None
        assert batch.check.corporate.general.client_name is None


class TestRemoveDownloads:
    async def test_only_downloaded_files_are_removed(self, tmp_path: Path) -> None:
        name = _write(tmp_path, "a.txt")
        batch = await _runner(tmp_path, resolver=FakeResolver(tmp_path, downloaded=True)).run([name])

        remove_downloads(batch.results)
        assert not os.path.exists(tmp_path / name)

    async def test_local_inputs_are_kept(self, tmp_path: Path) -> None:
        name = _write(tmp_path, "a.txt")
        batch = await _runner(tmp_path).run([name])

        remove_downloads(batch.results)
        assert os.path.exists(tmp_path / name)
