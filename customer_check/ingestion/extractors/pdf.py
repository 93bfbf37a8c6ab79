from __future__ import annotations

import asyncio
import logging
import tempfile

from pypdf import PdfReader

from customer_check.errors import OcrError
from customer_check.ingestion import classifier
from customer_check.ingestion.extractors.base import Extractor, normalize_text
from customer_check.ingestion.ocr.convert import PdfRasterizer
from customer_check.ingestion.ocr.vision import VisionClient
from customer_check.ingestion.types import ExtractResult, ResolvedSource

logger = logging.getLogger(__name__)


def _read_embedded_text(path: str) -> tuple[str, int]:
    r = PdfReader(path)
    parts: list[str] = []
    for p in r.pages:
        t = p.extract_text() or ""
        if t.strip():
            parts.append(t)
    return "\n".join(parts), len(r.pages)


class PdfExtractor(Extractor):
    """Embedded text first; rasterize and OCR each page when there is too little of it."""

    def __init__(
        self,
        *,
        vision: VisionClient,
        rasterizer: PdfRasterizer | None = None,
        lang: str = "eng",
        dpi: int = 300,
        min_embedded_chars: int = 10,
    ) -> None:
        self._vision = vision
        self._rasterizer = rasterizer or PdfRasterizer()
        self._lang = lang
        self._dpi = dpi if dpi > 0 else 300
        self._min = max(0, int(min_embedded_chars))

    def can_handle(self, file_type: str) -> bool:
        return file_type == classifier.PDF

    async def extract(self, *, source: ResolvedSource, kind: str) -> ExtractResult:
        pages = None
        extracted = ""
        try:
            extracted, pages = await asyncio.to_thread(_read_embedded_text, source.local_path)
        except Exception as e:
            logger.warning("PyPDF text extraction failed, falling back to OCR: %s", e)
            extracted = ""

        embedded_len = len(extracted.strip())
        if embedded_len > self._min:
            return ExtractResult(
                text=normalize_text(extracted),
                used_ocr=False,
                pages=pages,
                extraction_meta={"strategy": "pypdf", "embedded_chars": embedded_len},
            )

        logger.info(
            "Embedded text too short (%d chars) in %s, rasterizing at %d dpi",
            embedded_len,
            source.filename,
            self._dpi,
        )
        text, ocr_pages, failed = await self._ocr_pages(source.local_path)
        return ExtractResult(
            text=normalize_text(text),
            used_ocr=True,
            pages=pages or ocr_pages,
            extraction_meta={
                "strategy": "vision_pages",
                "embedded_chars": embedded_len,
                "dpi": self._dpi,
                "failed_pages": failed,
            },
        )

    async def _ocr_pages(self, pdf_path: str) -> tuple[str, int, int]:
        if not self._vision.configured:
            raise OcrError("GOOGLE_VISION_API_KEY is not set; set it in your environment or .env")

        with tempfile.TemporaryDirectory(prefix="pdf-ocr-vision-") as tmp_dir:
            images = await self._rasterizer.render(pdf_path, tmp_dir, dpi=self._dpi)
            parts: list[str] = []
            failed = 0
            for n, image in enumerate(images, start=1):
                try:
                    text = await self._vision.detect_text(image, self._lang)
                except OcrError as e:
                    failed += 1
                    logger.warning("OCR failed for page %d of %s, skipping: %s", n, pdf_path, e)
                    continue
                if s := text.strip():
                    parts.append(s)
        return "\n\n".join(parts), len(images), failed
