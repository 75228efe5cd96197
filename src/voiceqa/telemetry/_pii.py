"""Heuristic PII pattern scan for recorded message text.

Best effort only: arbitrary long digit runs produce false positives and
obfuscated PII goes unnoticed.
"""

import re

_PII_PATTERNS: dict[str, re.Pattern[str]] = {
    "national_id": re.compile(r"\b\d{3}[-.\s]?\d{2}[-.\s]?\d{4}\b", re.ASCII),
    "payment_card": re.compile(r"\b\d{13,19}\b", re.ASCII),
    "phone": re.compile(
        r"\b\+?\d{1,3}?[\s.-]?\(?\d{2,4}\)?[\s.-]?\d{3,4}[\s.-]?\d{3,4}\b",
        re.ASCII,
    ),
    "email": re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.ASCII | re.IGNORECASE),
}


def matched_pii_classes(text: str) -> list[str]:
    """Return the names of the pattern classes found at least once in ``text``."""
    return [name for name, pattern in _PII_PATTERNS.items() if pattern.search(text)]
