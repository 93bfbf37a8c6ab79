"""Image OCR with a recovery chain for corrupted uploads.

Vision OCR first. Only when Vision rejects the bytes as corrupted:

1. re-encode the image as PNG and retry Vision,
2. run local Tesseract on the original file,
3. for site-visit photos, substitute ``SITE_VISIT_SENTINEL_TEXT``; for any
   other kind, fail with a descriptive error.
"""

from __future__ import annotations

import logging
import os

from customer_check import kinds
from customer_check.errors import CorruptedImageError, OcrError
from customer_check.ingestion import classifier
from customer_check.ingestion.extractors.base import Extractor, normalize_text
from customer_check.ingestion.ocr.convert import ImageConverter
from customer_check.ingestion.ocr.tesseract import TesseractEngine
from customer_check.ingestion.ocr.vision import VisionClient
from customer_check.ingestion.types import ExtractResult, ResolvedSource

logger = logging.getLogger(__name__)

SITE_VISIT_SENTINEL_TEXT = "No signboard visible or signboard unclear in site visit photos"


class ImageExtractor(Extractor):
    def __init__(
        self,
        *,
        vision: VisionClient,
        tesseract: TesseractEngine | None = None,
        converter: ImageConverter | None = None,
        lang: str = "eng",
    ) -> None:
        self._vision = vision
        self._tesseract = tesseract or TesseractEngine()
        self._converter = converter or ImageConverter()
        self._lang = lang

    def can_handle(self, file_type: str) -> bool:
        return file_type == classifier.IMAGE

    async def extract(self, *, source: ResolvedSource, kind: str) -> ExtractResult:
        try:
            text = await self._vision.detect_text(source.local_path, self._lang)
        except CorruptedImageError as e:
            logger.warning("Image %s appears corrupted, trying alternative processing: %s", source.filename, e)
            return await self._recover(source, kind, e)

        return ExtractResult(
            text=normalize_text(text),
            used_ocr=True,
            pages=1,
            extraction_meta={"strategy": "vision"},
        )

    async def _recover(self, source: ResolvedSource, kind: str, cause: OcrError) -> ExtractResult:
        last_error: Exception = cause

        try:
            converted = await self._converter.to_png(source.local_path)
        except OcrError as e:
            logger.info("Image conversion failed for %s: %s", source.filename, e)
        else:
            try:
                text = await self._vision.detect_text(converted, self._lang)
                logger.info("OCR succeeded on converted copy of %s", source.filename)
                return self._result(text, "vision_converted")
            except OcrError as e:
                last_error = e
            finally:
                os.unlink(converted)

        logger.warning("Vision still failing for %s, trying Tesseract", source.filename)
        try:
            text = await self._tesseract.detect_text(source.local_path, self._lang)
            if text.strip():
                logger.info("Tesseract fallback succeeded for %s", source.filename)
                return self._result(text, "tesseract")
        except OcrError as e:
            logger.info("Tesseract fallback failed for %s: %s", source.filename, e)

        if kind == kinds.SITE_VISIT_PHOTOS:
            logger.warning(
                "Site visit photo %s unreadable, using default signboard text", source.filename
            )
            return ExtractResult(
                text=SITE_VISIT_SENTINEL_TEXT,
                used_ocr=True,
                pages=1,
                extraction_meta={"strategy": "site_visit_default"},
            )

        raise OcrError(
            "image file appears to be corrupted or in an unsupported format, "
            f"tried multiple processing methods: {last_error}"
        ) from last_error

    @staticmethod
    def _result(text: str, strategy: str) -> ExtractResult:
        return ExtractResult(
            text=normalize_text(text),
            used_ocr=True,
            pages=1,
            extraction_meta={"strategy": strategy},
        )
