"""Exception types raised by the extraction pipeline.

Every per-file failure ends up as a human-readable message on that file's
result; the types let callers and tests tell the failure classes apart.
"""

from __future__ import annotations


class ExtractionError(Exception):
    """Base class for all pipeline errors."""


class SourceResolutionError(ExtractionError):
    """The input path or URL could not be materialized locally."""

    def __init__(self, message: str, *, source_url: str = "") -> None:
        super().__init__(message)
        self.source_url = source_url


class UnsupportedFileTypeError(ExtractionError):
    def __init__(self, file_type: str) -> None:
        super().__init__(f"unsupported file type: {file_type}")
        self.file_type = file_type


class NotImplementedFileTypeError(ExtractionError):
    def __init__(self, file_type: str) -> None:
        super().__init__(f"office document processing not yet implemented for {file_type}")
        self.file_type = file_type


class OcrError(ExtractionError):
    """An OCR backend or helper binary failed."""


class CorruptedImageError(OcrError):
    """The vision backend rejected the image bytes ("Bad image data")."""


class AnalysisError(ExtractionError):
    """The generative extraction step failed."""


class GeminiHTTPError(AnalysisError):
    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"gemini http error: {status} - {body}")
        self.status = status
        self.body = body


class GeminiResponseError(AnalysisError):
    """The model answered, but not with a usable JSON payload."""
