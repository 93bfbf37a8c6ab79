"""Recover the JSON payload from a generative model's free-text answer."""

from __future__ import annotations

import json
from typing import Any

from customer_check.errors import GeminiResponseError


def _strip_fence(content: str) -> str:
    text = content.strip()
    if text.startswith("```json"):
        text = text[len("```json") :]
    elif text.startswith("```"):
        text = text[len("```") :]
    else:
        return text
    return text.removesuffix("```").strip()


def extract_json_payload(content: str) -> str:
    """Return the first balanced ``{...}`` or ``[...]`` block, or ``""``.

    Only the bracket type that opens the block is counted, so braces inside
    string values are tolerated as long as they are balanced themselves.
    """
    text = _strip_fence(content)

    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return ""
    start = min(starts)

    open_char = text[start]
    close_char = "}" if open_char == "{" else "]"

    depth = 0
    for i in range(start, len(text)):
        ch = text[i]
        if ch == open_char:
            depth += 1
        elif ch == close_char:
            depth -= 1
            if depth == 0:
                return text[start : i + 1].strip()
    return ""


def _reject_constant(name: str) -> Any:
    raise GeminiResponseError(f"unmarshal response: non-standard JSON constant {name}")


def parse_fields(content: str) -> dict[str, Any]:
    """Parse a model answer into a field map.

    A top-level JSON array is wrapped into ``{"item_0": ..., "item_1": ...}``
    so callers always get a mapping.
    """
    payload = extract_json_payload(content)
    if not payload:
        raise GeminiResponseError(f"could not extract JSON from response: {content[:500]}")

    try:
        value = json.loads(payload, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise GeminiResponseError(f"unmarshal response: {e}") from e

    if isinstance(value, dict):
        return value
    if isinstance(value, list):
        return {f"item_{i}": item for i, item in enumerate(value)}
    raise GeminiResponseError(f"unexpected JSON payload type: {type(value).__name__}")
