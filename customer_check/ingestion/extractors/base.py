from __future__ import annotations

from abc import ABC, abstractmethod

from customer_check.ingestion.types import ExtractResult, ResolvedSource


class Extractor(ABC):
    @abstractmethod
    def can_handle(self, file_type: str) -> bool: ...

    @abstractmethod
    async def extract(self, *, source: ResolvedSource, kind: str) -> ExtractResult: ...


def normalize_text(text: str) -> str:
    if not text:
        return ""
    # Remove null bytes, normalize whitespace a bit
    text = text.replace("\x00", "")
    # Collapse very long runs of blank lines
    while "\n\n\n\n" in text:
        text = text.replace("\n\n\n\n", "\n\n\n")
    return text.strip()
