"""
Capacity Error Detection - Recognize rate-limit / overload tool failures.

Only these errors drive the fallback cascade; every other tool error is
left for the agent to handle.
"""

import re
from typing import Any


CAPACITY_ERROR_PATTERNS = [
    r"\b429\b",
    r"\b529\b",
    r"rate.?limit(ed)?",
    r"too\s+many\s+requests",
    r"overloaded",
    r"over\s+capacity",
    r"at\s+capacity",
    r"capacity\s+(error|exceeded)",
    r"quota\s+(exceeded|exhausted)",
    r"insufficient[_\s]quota",
    r"resource[_\s]exhausted",
    r"throttl(ed|ing)",
]


def error_text(error: Any) -> str:
    """Flatten an error payload (string, exception or dict) to text."""
    if error is None:
        return ""
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        for key in ("message", "error", "detail"):
            value = error.get(key)
            if value:
                return error_text(value)
    return str(error)


def is_capacity_error(error: Any) -> bool:
    text = error_text(error).lower()
    if not text:
        return False
    return any(re.search(pattern, text) for pattern in CAPACITY_ERROR_PATTERNS)
