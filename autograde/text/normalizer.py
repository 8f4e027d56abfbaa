"""
Text and expression normalization.

Surface differences in case, punctuation and spacing must never affect a
score, so every fuzzy comparison runs on normalized text.
"""

import re

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_REPEATED_OPERATOR_RE = re.compile(r"([*+\-])\1+")


def normalize_text(text: str | None) -> str:
    """
    Canonicalize text for comparison.

    Lower-cases, drops every character that is neither a word character nor
    whitespace, collapses whitespace runs to a single space and trims.
    The result is a fixed point: normalizing it again changes nothing.

    Args:
        text: Raw text. None is treated as empty.

    Returns:
        The normalized text.
    """
    if not text:
        return ""
    lowered = text.lower()
    stripped = _PUNCTUATION_RE.sub("", lowered)
    return _WHITESPACE_RE.sub(" ", stripped).strip()


def normalize_expression(expression: str) -> str:
    """
    Canonicalize a mathematical expression for string comparison.

    Lower-cases, removes all whitespace and collapses runs of the same
    `*`, `+` or `-` operator into one. This is not symbolic evaluation:
    `2x` and `x*2` remain different.
    """
    compact = _WHITESPACE_RE.sub("", expression.lower())
    return _REPEATED_OPERATOR_RE.sub(r"\1", compact)
