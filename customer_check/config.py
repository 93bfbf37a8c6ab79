"""Environment-variable-driven configuration for the extraction pipeline.

API credentials are read when a client is built (not at import time) so a
``.env`` file loaded by the CLI entry point is honoured.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_str(name: str, default: str | None = None) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


# -- Gemini -------------------------------------------------------------------
DEFAULT_GEMINI_MODEL: str = "gemini-2.5-pro"
# Generative responses are slow; this bounds a single HTTP exchange.
DEFAULT_GEMINI_TIMEOUT_SECONDS: float = 600.0
# Free tier allows ~2 requests per minute.
DEFAULT_GEMINI_MIN_INTERVAL_SECONDS: float = 35.0
DEFAULT_GEMINI_503_MAX_RETRIES: int = 3
DEFAULT_GEMINI_503_BASE_DELAY_SECONDS: float = 5.0

# -- Vision OCR ---------------------------------------------------------------
DEFAULT_VISION_ENDPOINT: str = "https://vision.googleapis.com/v1/images:annotate"
DEFAULT_VISION_TIMEOUT_SECONDS: float = 120.0

# -- Sources ------------------------------------------------------------------
DEFAULT_DOWNLOAD_TIMEOUT_SECONDS: float = 60.0

# -- Post-processing ----------------------------------------------------------
DEFAULT_ADDRESS_COMPARE_TIMEOUT_SECONDS: float = 60.0


@dataclass(frozen=True)
class GeminiSettings:
    api_key: str
    model: str
    timeout_s: float
    min_interval_s: float
    max_503_retries: int
    base_503_delay_s: float

    @classmethod
    def from_env(cls) -> GeminiSettings:
        api_key = _env_str("GEMINI_API_KEY")
        if not api_key:
            raise ValueError("GEMINI_API_KEY is not set; set it in your environment or .env")
        return cls(
            api_key=api_key,
            model=_env_str("GEMINI_MODEL", DEFAULT_GEMINI_MODEL) or DEFAULT_GEMINI_MODEL,
            timeout_s=_env_float("GEMINI_TIMEOUT_SECONDS", DEFAULT_GEMINI_TIMEOUT_SECONDS),
            min_interval_s=_env_float(
                "GEMINI_MIN_INTERVAL_SECONDS", DEFAULT_GEMINI_MIN_INTERVAL_SECONDS
            ),
            max_503_retries=_env_int("GEMINI_503_MAX_RETRIES", DEFAULT_GEMINI_503_MAX_RETRIES),
            base_503_delay_s=_env_float(
                "GEMINI_503_BASE_DELAY_SECONDS", DEFAULT_GEMINI_503_BASE_DELAY_SECONDS
            ),
        )


@dataclass(frozen=True)
class VisionSettings:
    api_key: str | None
    endpoint: str
    timeout_s: float

    @classmethod
    def from_env(cls) -> VisionSettings:
        return cls(
            api_key=_env_str("GOOGLE_VISION_API_KEY"),
            endpoint=_env_str("VISION_ENDPOINT", DEFAULT_VISION_ENDPOINT) or DEFAULT_VISION_ENDPOINT,
            timeout_s=_env_float("VISION_TIMEOUT_SECONDS", DEFAULT_VISION_TIMEOUT_SECONDS),
        )
