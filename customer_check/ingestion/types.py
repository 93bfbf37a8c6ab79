from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from customer_check.models import CustomerCheck

STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class Task:
    index: int
    source: str  # local path, http(s) URL or gs://bucket/name
    kind: str  # document kind, see customer_check.kinds


@dataclass(frozen=True)
class ResolvedSource:
    local_path: str
    source_url: str
    filename: str
    media_type: str
    downloaded: bool  # True when local_path is a temp file owned by the task


@dataclass(frozen=True)
class ExtractResult:
    text: str
    used_ocr: bool
    pages: int | None
    extraction_meta: dict[str, Any]


@dataclass(frozen=True)
class TaskResult:
    source: str
    local_path: str
    filename: str
    file_type: str
    text: str
    error: str | None
    size: int
    elapsed_s: float
    kind: str
    fields: dict[str, Any] | None = None
    downloaded: bool = False  # local_path is a temp file the resolver created

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def processed(self) -> bool:
        return self.error is None and bool(self.text)

    @property
    def skipped(self) -> bool:
        return self.error is None and not self.text


@dataclass(frozen=True)
class ProgressUpdate:
    current: int  # 1-based task index
    total: int
    source: str
    status: str  # processing|completed|failed
    error: str | None = None


@dataclass(frozen=True)
class ProcessingStats:
    total_files: int
    successful: int
    failed: int
    skipped: int
    total_size: int
    average_size: float
    elapsed_s: float
    processing_rate: float  # files per second
    error_rate: float  # percent of total

    @classmethod
    def from_results(cls, results: list[TaskResult], *, elapsed_s: float) -> ProcessingStats:
        total = len(results)
        successful = sum(1 for r in results if r.processed)
        failed = sum(1 for r in results if r.failed)
        skipped = sum(1 for r in results if r.skipped)
        total_size = sum(r.size for r in results)
        return cls(
            total_files=total,
            successful=successful,
            failed=failed,
            skipped=skipped,
            total_size=total_size,
            average_size=total_size / total if total else 0.0,
            elapsed_s=elapsed_s,
            processing_rate=successful / elapsed_s if elapsed_s > 0 else 0.0,
            error_rate=failed / total * 100 if total else 0.0,
        )


@dataclass
class BatchResult:
    check: CustomerCheck
    results: list[TaskResult] = field(default_factory=list)
    stats: ProcessingStats | None = None
