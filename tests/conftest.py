"""Shared test fixtures for the customer-check extractor test suite."""

from __future__ import annotations

import pytest

from customer_check.config import GeminiSettings, VisionSettings


@pytest.fixture
def gemini_settings() -> GeminiSettings:
    return GeminiSettings(
        api_key="test-key",
        model="gemini-test",
        timeout_s=600.0,
        min_interval_s=0.0,
        max_503_retries=3,
        base_503_delay_s=5.0,
    )


@pytest.fixture
def vision_settings() -> VisionSettings:
    return VisionSettings(
        api_key="vision-key",
        endpoint="https://vision.test/v1/images:annotate",
        timeout_s=5.0,
    )


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's real credentials out of unit tests."""
    for name in ("GEMINI_API_KEY", "GOOGLE_VISION_API_KEY", "CC_LOG_JSON"):
        monkeypatch.delenv(name, raising=False)
