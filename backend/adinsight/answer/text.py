"""
Text Normalization
==================

Case-folding, punctuation stripping and tokenization shared by the metric
detector, entity resolver and intent classifier.

Pure functions, ASCII-only: anything outside [a-z0-9] and whitespace becomes
a space, so "Spring-Sale (US)" and "spring sale us" normalize identically.
"""

import re
from typing import List

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize(value: str) -> str:
    """Lowercase, replace punctuation with spaces, collapse whitespace, trim.

    Examples:
        >>> normalize("  Top-5 Campaigns, by CTR? ")
        "top 5 campaigns by ctr"
    """
    lowered = (value or "").lower()
    return _WHITESPACE.sub(" ", _NON_ALNUM.sub(" ", lowered)).strip()


def tokenize(value: str) -> List[str]:
    """Split normalized text on whitespace, dropping tokens of length <= 1.

    Examples:
        >>> tokenize("What is a CTR?")
        ["what", "is", "ctr"]
    """
    normalized = normalize(value)
    if not normalized:
        return []
    return [token for token in normalized.split(" ") if len(token) > 1]
