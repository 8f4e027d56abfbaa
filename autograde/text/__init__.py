"""
Text Comparison Module.

Canonicalization and similarity measures shared by every textual comparison.
"""

from autograde.text.normalizer import normalize_expression, normalize_text
from autograde.text.similarity import (
    FUZZY_MATCH_THRESHOLD,
    compare_answers,
    cosine_similarity,
    levenshtein_distance,
    levenshtein_similarity,
    word_frequency,
)

__all__ = [
    "FUZZY_MATCH_THRESHOLD",
    "compare_answers",
    "cosine_similarity",
    "levenshtein_distance",
    "levenshtein_similarity",
    "normalize_expression",
    "normalize_text",
    "word_frequency",
]
