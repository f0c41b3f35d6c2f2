from __future__ import annotations

import re

__all__ = ["format_dial_number", "normalize_to_e164"]

_NON_DIGIT = re.compile(r"\D")
_US_LOCAL = re.compile(r"(\d{3})(\d{3})(\d{4})")


def _digits(raw: str | None) -> str:
    return _NON_DIGIT.sub("", str(raw or "").strip())


def normalize_to_e164(raw: str | None) -> str:
    """
    Normalize a user-entered number to E.164, US numbers only.

    ``+`` prefixed input keeps its digits, 10 digits get ``+1``, 11 digits
    starting with ``1`` become ``+1...``. Anything else is ambiguous and
    yields ``""``.
    """
    s = str(raw or "").strip()
    if not s:
        return ""
    d = _digits(s)
    if s.startswith("+"):
        return f"+{d}" if d else ""
    if len(d) == 10:
        return f"+1{d}"
    if len(d) == 11 and d.startswith("1"):
        return f"+1{d[1:]}"
    return ""


def format_dial_number(e164: str | None) -> str:
    """``+17177521571`` -> ``717-752-1571``."""
    if not e164:
        return ""
    local = e164[2:] if e164.startswith("+1") else e164
    return _US_LOCAL.sub(r"\1-\2-\3", local, count=1)
