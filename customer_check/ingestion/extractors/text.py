from __future__ import annotations

import asyncio
from pathlib import Path

from customer_check.ingestion import classifier
from customer_check.ingestion.extractors.base import Extractor, normalize_text
from customer_check.ingestion.types import ExtractResult, ResolvedSource


class TextExtractor(Extractor):
    def can_handle(self, file_type: str) -> bool:
        return file_type == classifier.TEXT

    async def extract(self, *, source: ResolvedSource, kind: str) -> ExtractResult:
        data = await asyncio.to_thread(Path(source.local_path).read_bytes)
        text = normalize_text(data.decode("utf-8", errors="ignore"))
        return ExtractResult(
            text=text,
            used_ocr=False,
            pages=None,
            extraction_meta={"strategy": "text"},
        )
