"""Gemini client for structured field extraction.

Every request passes through the shared ``RateLimiter`` first. Failures are
retried by status:

- 429 with an explicit ``retryDelay``: sleep that long, re-stamp the
  limiter and try again; no attempt cap (the batch deadline bounds it).
- 503: exponential backoff 5s, 10s, 20s, then give up.
- anything else: terminal ``GeminiHTTPError``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Awaitable, Callable
from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from customer_check.analysis.parsing import parse_fields
from customer_check.analysis.prompts import SYSTEM_PREAMBLE, build_prompt
from customer_check.analysis.rate_limiter import RateLimiter, shared_rate_limiter
from customer_check.config import GeminiSettings
from customer_check.errors import GeminiHTTPError, GeminiResponseError

logger = logging.getLogger(__name__)

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(raw: str) -> float | None:
    """Parse ``"37s"``, ``"1.5s"``, ``"1m30s"``, ``"500ms"`` into seconds."""
    text = raw.strip()
    if not text:
        return None
    total = 0.0
    pos = 0
    for m in _DURATION_PART.finditer(text):
        if m.start() != pos:
            return None
        total += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    if pos != len(text):
        return None
    return total


def retry_delay_from_error(body: Any) -> float | None:
    """Find a RetryInfo ``retryDelay`` in a Google API error body."""
    if not isinstance(body, dict):
        return None
    err = body.get("error", body)
    details = err.get("details") if isinstance(err, dict) else None
    if not isinstance(details, list):
        return None
    for detail in details:
        if not isinstance(detail, dict):
            continue
        raw = detail.get("retryDelay")
        if raw is None and isinstance(detail.get("retryInfo"), dict):
            raw = detail["retryInfo"].get("retryDelay")
        if isinstance(raw, str):
            delay = parse_duration(raw)
            if delay is not None:
                return delay
    return None


def _error_body(e: genai_errors.APIError) -> str:
    details = getattr(e, "details", None)
    if details is None:
        return str(e)
    try:
        return json.dumps(details)
    except (TypeError, ValueError):
        return str(details)


def _first_candidate_text(response: genai_types.GenerateContentResponse) -> str:
    candidates = response.candidates or []
    if not candidates:
        raise GeminiResponseError("gemini: empty response")
    content = candidates[0].content
    parts = (content.parts if content is not None else None) or []
    for part in parts:
        if part.text:
            return part.text
    raise GeminiResponseError("gemini: empty response")


class GeminiClient:
    def __init__(
        self,
        *,
        settings: GeminiSettings,
        rate_limiter: RateLimiter | None = None,
        client: genai.Client | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._limiter = rate_limiter or shared_rate_limiter(settings.min_interval_s)
        self._client = client or genai.Client(
            api_key=settings.api_key,
            http_options=genai_types.HttpOptions(timeout=int(settings.timeout_s * 1000)),
        )
        self._sleep = sleep

    @classmethod
    def from_env(cls, *, rate_limiter: RateLimiter | None = None) -> GeminiClient:
        """Build from ``GEMINI_*`` env vars. Raises ValueError without an API key."""
        return cls(settings=GeminiSettings.from_env(), rate_limiter=rate_limiter)

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._limiter

    async def analyze_document(self, text: str, kind: str) -> dict[str, Any]:
        """Extract the kind-specific field map from a document's text."""
        return await self.generate_json(build_prompt(text, kind))

    async def generate_json(self, prompt: str) -> dict[str, Any]:
        content = await self._generate_with_retry(SYSTEM_PREAMBLE + prompt)
        return parse_fields(content)

    async def _generate_with_retry(self, prompt: str) -> str:
        contents = [genai_types.Content(role="user", parts=[genai_types.Part(text=prompt)])]
        unavailable_retries = 0

        while True:
            await self._limiter.acquire()
            try:
                response = await self._client.aio.models.generate_content(
                    model=self._settings.model,
                    contents=contents,
                )
            except genai_errors.APIError as e:
                if e.code == 429:
                    delay = retry_delay_from_error(e.details)
                    if delay is not None:
                        logger.warning("Rate limit hit, waiting %.1fs before retry", delay)
                        await self._sleep(delay)
                        await self._limiter.stamp()
                        continue
                elif e.code == 503:
                    if unavailable_retries < self._settings.max_503_retries:
                        delay = self._settings.base_503_delay_s * (2**unavailable_retries)
                        unavailable_retries += 1
                        logger.warning(
                            "Service unavailable (503), retrying (attempt %d/%d) in %.0fs",
                            unavailable_retries,
                            self._settings.max_503_retries,
                            delay,
                        )
                        await self._sleep(delay)
                        await self._limiter.stamp()
                        continue
                    logger.warning("Service unavailable (503), max retries exceeded")
                raise GeminiHTTPError(e.code, _error_body(e)) from e

            return _first_candidate_text(response)
