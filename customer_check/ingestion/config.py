from __future__ import annotations

import os
from dataclasses import dataclass

from customer_check import kinds


def _get_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _get_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    return int(v)


DEFAULT_MAX_CONCURRENCY = 3


@dataclass(frozen=True)
class BatchConfig:
    # Scheduling
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    timeout_s: int = 1200

    # OCR
    lang: str = "eng"  # tesseract-style codes, "+"-separated
    dpi: int = 300
    min_embedded_text_chars: int = 10

    # Analysis
    default_kind: str = kinds.UNKNOWN
    skip_analysis: bool = False

    @classmethod
    def from_env(cls) -> BatchConfig:
        return cls(
            max_concurrency=_get_int("CC_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY),
            timeout_s=_get_int("CC_TIMEOUT_SECONDS", 1200),
            lang=os.getenv("CC_LANG") or "eng",
            dpi=_get_int("CC_PDF_DPI", 300),
            default_kind=os.getenv("CC_DEFAULT_KIND") or kinds.UNKNOWN,
            skip_analysis=_get_bool("CC_SKIP_ANALYSIS", False),
        )

    @property
    def effective_concurrency(self) -> int:
        return self.max_concurrency if self.max_concurrency > 0 else DEFAULT_MAX_CONCURRENCY

    def validate(self) -> None:
        if self.dpi < 1:
            raise ValueError("CC_PDF_DPI must be >= 1")
        if self.timeout_s < 1:
            raise ValueError("CC_TIMEOUT_SECONDS must be >= 1")
        if not kinds.is_known_kind(self.default_kind):
            raise ValueError(f"CC_DEFAULT_KIND is not a known document kind: {self.default_kind}")
