from __future__ import annotations

from customer_check.errors import NotImplementedFileTypeError
from customer_check.ingestion import classifier
from customer_check.ingestion.extractors.base import Extractor
from customer_check.ingestion.types import ExtractResult, ResolvedSource


class OfficeExtractor(Extractor):
    """Word, spreadsheet and presentation files are recognised but not extracted yet."""

    def can_handle(self, file_type: str) -> bool:
        return file_type in classifier.OFFICE_TYPES

    async def extract(self, *, source: ResolvedSource, kind: str) -> ExtractResult:
        raise NotImplementedFileTypeError(
            classifier.detect_file_type(source.filename, source.media_type)
        )
