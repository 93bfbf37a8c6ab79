"""Decide whether two free-text addresses name the same place.

``AddressComparer`` asks Gemini first; if that call fails for any reason the
deterministic ``addresses_match`` heuristic decides instead.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

from customer_check.analysis.prompts import address_comparison_prompt
from customer_check.models import MATCH_SOURCE_GEMINI, MATCH_SOURCE_HEURISTIC

logger = logging.getLogger(__name__)

# Longest first so "thanh pho ho chi minh" is not half-replaced by "ho chi minh".
_HCMC_VARIANTS = (
    "thành phố hồ chí minh",
    "thanh pho ho chi minh",
    "ho chi minh city",
    "tp. hồ chí minh",
    "tp. ho chi minh",
    "tp hồ chí minh",
    "tp hcm",
    "tp.hcm",
    "hồ chí minh",
    "ho chi minh",
)

_ABBREVIATIONS = {
    "street": "st",
    "road": "rd",
    "avenue": "ave",
    "district": "dist",
    "ward": "w",
    "quan": "q",
    "quận": "q",
    "phuong": "p",
    "phường": "p",
}

_STRIP_CHARS = re.compile(r"[,.\-_]")
_WHITESPACE = re.compile(r"\s+")

_WORD_OVERLAP_THRESHOLD = 0.5


def normalize_address(address: str) -> str:
    text = address.lower().strip()
    for variant in _HCMC_VARIANTS:
        text = text.replace(variant, "hcmc")
    words = [_ABBREVIATIONS.get(w.strip(",."), w) for w in text.split()]
    text = _STRIP_CHARS.sub("", " ".join(words))
    return _WHITESPACE.sub(" ", text).strip()


def addresses_match(address_1: str, address_2: str) -> bool:
    """Deterministic comparison: exact, normalized, containment, word overlap."""
    a = address_1.lower().strip()
    b = address_2.lower().strip()
    if a == b:
        return True

    na = normalize_address(address_1)
    nb = normalize_address(address_2)
    if na == nb:
        return True
    if na and nb and (na in nb or nb in na):
        return True

    words_a = na.split()
    words_b = nb.split()
    if not words_a or not words_b:
        return False
    significant_b = {w for w in words_b if len(w) > 2}
    common = sum(1 for w in set(words_a) if len(w) > 2 and w in significant_b)
    return common / max(len(words_a), len(words_b)) >= _WORD_OVERLAP_THRESHOLD


_MATCH_WORDS = {"yes": True, "true": True, "1": True, "no": False, "false": False, "0": False}


def _parse_match(fields: dict[str, Any]) -> bool | None:
    for key in ("addresses_match", "result", "match"):
        value = fields.get(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return value == 1
        if isinstance(value, str):
            return _MATCH_WORDS.get(value.strip().lower())
    for value in fields.values():
        if isinstance(value, str) and value.strip().lower() in ("yes", "no"):
            return value.strip().lower() == "yes"
    return None


class AddressComparer:
    """Two-tier comparison; ``compare`` always returns a verdict."""

    def __init__(self, gemini: Any | None = None, *, timeout_s: float = 60.0) -> None:
        self._gemini = gemini
        self._timeout_s = timeout_s

    async def compare(self, address_1: str, address_2: str) -> tuple[bool, str]:
        """Return ``(matches, source)`` where source is ``gemini`` or ``heuristic``."""
        if self._gemini is not None:
            try:
                async with asyncio.timeout(self._timeout_s):
                    fields = await self._gemini.generate_json(
                        address_comparison_prompt(address_1, address_2)
                    )
                verdict = _parse_match(fields)
                if verdict is not None:
                    logger.info("Address comparison decided by Gemini: match=%s", verdict)
                    return verdict, MATCH_SOURCE_GEMINI
                logger.warning("Gemini address comparison gave no yes/no answer: %r", fields)
            except Exception as e:
                logger.warning("Gemini address comparison failed, using heuristic: %s", e)

        verdict = addresses_match(address_1, address_2)
        logger.info("Address comparison decided by heuristic: match=%s", verdict)
        return verdict, MATCH_SOURCE_HEURISTIC
