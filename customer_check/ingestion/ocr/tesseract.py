from __future__ import annotations

from customer_check.errors import OcrError
from customer_check.ingestion.ocr.commands import run_command
from customer_check.ingestion.ocr.vision import split_lang_codes

_ALIASES = {"vin": "vie", "fre": "fra", "ger": "deu"}
_INSTALLED = frozenset(
    {"eng", "vie", "jpn", "chi_sim", "chi_tra", "spa", "fra", "deu", "ita", "rus", "ara", "hin", "tha", "kor", "por"}
)


def tesseract_language(lang: str) -> str:
    """Only the first code is used; anything unrecognised falls back to ``eng``."""
    codes = split_lang_codes(lang)
    if not codes:
        return "eng"
    code = _ALIASES.get(codes[0], codes[0])
    return code if code in _INSTALLED else "eng"


class TesseractEngine:
    def __init__(self, *, binary: str = "tesseract") -> None:
        self._binary = binary

    async def detect_text(self, image_path: str, lang: str) -> str:
        if not image_path:
            raise OcrError("image path is empty")
        result = await run_command(self._binary, image_path, "stdout", "-l", tesseract_language(lang))
        text = result.stdout.strip()
        if not text:
            raise OcrError("no text extracted from image")
        return text
