from __future__ import annotations

import asyncio
import base64
import logging
from pathlib import Path
from typing import Any

import httpx

from customer_check.config import VisionSettings
from customer_check.errors import CorruptedImageError, OcrError

logger = logging.getLogger(__name__)

CORRUPTED_IMAGE_SIGNATURE = "Bad image data"

_BCP47_BY_TESSERACT: dict[str, str] = {
    "eng": "en",
    "vie": "vi",
    "vin": "vi",
    "jpn": "ja",
    "zho": "zh",
    "chi_sim": "zh",
    "chi_tra": "zh",
    "spa": "es",
    "fra": "fr",
    "fre": "fr",
    "deu": "de",
    "ger": "de",
    "ita": "it",
    "rus": "ru",
    "ara": "ar",
    "hin": "hi",
    "tha": "th",
    "kor": "ko",
    "por": "pt",
}

_LANG_SEPARATORS = str.maketrans({"+": " ", ",": " ", ";": " "})


def split_lang_codes(lang: str) -> list[str]:
    return [p.lower() for p in (lang or "").translate(_LANG_SEPARATORS).split()]


def tesseract_lang_to_bcp47_hints(lang: str) -> list[str]:
    """``"eng+vie"`` -> ``["en", "vi"]``. Unknown 2-3 letter codes pass through."""
    hints: list[str] = []
    for code in split_lang_codes(lang):
        if code in _BCP47_BY_TESSERACT:
            hints.append(_BCP47_BY_TESSERACT[code])
        elif len(code) in (2, 3):
            hints.append(code)
    return hints


def _text_from_response(payload: dict[str, Any]) -> str:
    responses = payload.get("responses") or []
    if not responses:
        raise OcrError("vision: empty response")
    res = responses[0]
    message = (res.get("error") or {}).get("message") or ""
    if message:
        if CORRUPTED_IMAGE_SIGNATURE in message:
            raise CorruptedImageError(f"vision error: {message}")
        raise OcrError(f"vision error: {message}")

    full_text = (res.get("fullTextAnnotation") or {}).get("text") or ""
    if full_text:
        return full_text
    annotations = res.get("textAnnotations") or []
    if annotations and (annotations[0].get("description") or "").strip():
        return annotations[0]["description"]
    return ""


class VisionClient:
    """Cloud Vision ``DOCUMENT_TEXT_DETECTION`` over the REST endpoint."""

    def __init__(
        self,
        *,
        settings: VisionSettings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._http = http_client

    @classmethod
    def from_env(cls, *, http_client: httpx.AsyncClient | None = None) -> VisionClient:
        return cls(settings=VisionSettings.from_env(), http_client=http_client)

    @property
    def configured(self) -> bool:
        return bool(self._settings.api_key)

    async def detect_text(self, image_path: str, lang: str) -> str:
        if not self._settings.api_key:
            raise OcrError("GOOGLE_VISION_API_KEY is not set; set it in your environment or .env")
        if not image_path:
            raise OcrError("image path is empty")

        try:
            content = await asyncio.to_thread(Path(image_path).read_bytes)
        except OSError as e:
            raise OcrError(f"read image: {e}") from e

        request: dict[str, Any] = {
            "image": {"content": base64.b64encode(content).decode("ascii")},
            "features": [{"type": "DOCUMENT_TEXT_DETECTION"}],
        }
        if hints := tesseract_lang_to_bcp47_hints(lang):
            request["imageContext"] = {"languageHints": hints}

        client = self._http or httpx.AsyncClient(timeout=self._settings.timeout_s)
        try:
            resp = await client.post(
                self._settings.endpoint,
                params={"key": self._settings.api_key},
                json={"requests": [request]},
                timeout=self._settings.timeout_s,
            )
        except httpx.HTTPError as e:
            raise OcrError(f"vision request: {e}") from e
        finally:
            if self._http is None:
                await client.aclose()

        if not resp.is_success:
            raise OcrError(f"vision http error: {resp.status_code} {resp.reason_phrase}")
        try:
            payload = resp.json()
        except ValueError as e:
            raise OcrError(f"decode response: {e}") from e
        return _text_from_response(payload)
