from __future__ import annotations

import re
from typing import Dict

TOKENISH = re.compile(r"(?i)(secret|token|password|passwd|apikey|api_key)")
HEX_LONG = re.compile(r"\b[0-9a-f]{32,}\b", re.I)
CONNECTION_KEYS = re.compile(r"(?i)(connection_string|database_url|dsn)")

PREVIEW_LIMIT = 50


def preview(value: str | None, limit: int = PREVIEW_LIMIT) -> str:
    """Return at most ``limit`` leading characters of a sensitive value."""
    if not value:
        return ""
    return value[:limit] + "..."


def redact_string(s: str) -> str:
    if TOKENISH.search(s) or HEX_LONG.search(s):
        return "[REDACTED]"
    return s


def redact_env(values: Dict[str, str]) -> Dict[str, str]:
    redacted: Dict[str, str] = {}
    for key, value in values.items():
        if TOKENISH.search(key):
            redacted[key] = "[REDACTED]"
        elif CONNECTION_KEYS.search(key):
            redacted[key] = preview(value)
        else:
            redacted[key] = redact_string(value)
    return redacted
