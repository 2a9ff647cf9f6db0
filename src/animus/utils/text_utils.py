"""
Text coercion helpers for loosely-typed AI payloads.

LLM-backed endpoints return the same field as a string, a list of strings,
a number or an object depending on the prompt. These helpers fold all of
those into plain text.
"""

import json
import re
from typing import Any, List

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def coerce_text(value: Any) -> str:
    """
    Fold a payload value into display text.

    None -> "", lists -> newline-joined items, dicts -> compact JSON,
    everything else -> str(value) stripped.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple)):
        return "\n".join(text for text in (coerce_text(item) for item in value) if text)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False, sort_keys=True)
    return str(value).strip()


def coerce_text_list(value: Any) -> List[str]:
    """Fold a payload value into a list of non-empty strings."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [text for text in (coerce_text(item) for item in value) if text]
    text = coerce_text(value)
    return [text] if text else []


def optional_text(value: Any) -> Any:
    """Coerce scalars to str but keep None, for optional identifier fields."""
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def parse_leading_int(value: Any, default: int = 0) -> int:
    """
    Read the integer a stored counter starts with ("12", 12, "12 scans" -> 12).

    Anything without a leading integer gives ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    match = _LEADING_INT_RE.match(str(value))
    return int(match.group(1)) if match else default
