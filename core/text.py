"""
core/text.py -- Text length rules shared by credential and subscriber validation.

Lengths are measured in extended grapheme clusters (what a user perceives as
one character), not code points: "ё" typed as e + combining diaeresis counts
once. The stdlib re module has no \\X, so the regex package does the split.
"""

from __future__ import annotations

import regex

# Upper bound for usernames, passwords, subscriber names and emails.
MAX_GRAPHEMES = 256

_GRAPHEME = regex.compile(r"\X")


def grapheme_count(value: str) -> int:
    return len(_GRAPHEME.findall(value))


def exceeds_limit(value: str, limit: int = MAX_GRAPHEMES) -> bool:
    """Return True if value has more than limit grapheme clusters.

    A string can never have more graphemes than code points, so short strings
    skip the regex scan entirely.
    """
    if len(value) <= limit:
        return False
    return grapheme_count(value) > limit
