"""
String similarity measures.

Two independent algorithms:
- Levenshtein similarity, used for short fuzzy matches such as blank fills
- Cosine similarity over word-frequency vectors, used for free text

Both are pure functions with no shared state.
"""

import math
from collections import Counter

import Levenshtein

from autograde.text.normalizer import normalize_text

# Fixed grading policy, not user-configurable: two normalized answers whose
# Levenshtein similarity is strictly above this value count as the same answer.
FUZZY_MATCH_THRESHOLD = 0.85


def levenshtein_distance(first: str, second: str) -> int:
    """
    Compute the edit distance between two strings.

    Insertions, deletions and substitutions each cost 1.
    """
    return Levenshtein.distance(first, second)


def levenshtein_similarity(first: str, second: str) -> float:
    """
    Similarity in [0, 1] derived from edit distance.

    Returns `(max_len - distance) / max_len`, or 1.0 when both strings are empty.
    """
    max_length = max(len(first), len(second))
    if max_length == 0:
        return 1.0
    distance = levenshtein_distance(first, second)
    return (max_length - distance) / max_length


def word_frequency(text: str) -> Counter[str]:
    """Count words of already-normalized text split on whitespace."""
    return Counter(word for word in text.split() if word)


def cosine_similarity(first: str | None, second: str | None) -> float:
    """
    Cosine similarity of the word-frequency vectors of two texts.

    Both texts are normalized first. Returns 0.0 if either text has no words.
    """
    freq_a = word_frequency(normalize_text(first))
    freq_b = word_frequency(normalize_text(second))

    squared_norm_a = sum(count * count for count in freq_a.values())
    squared_norm_b = sum(count * count for count in freq_b.values())
    if squared_norm_a == 0 or squared_norm_b == 0:
        return 0.0

    dot_product = sum(count * freq_b[word] for word, count in freq_a.items())
    # One square root over the integer product keeps identical texts at exactly 1.0
    return min(dot_product / math.sqrt(squared_norm_a * squared_norm_b), 1.0)


def compare_answers(first: str | None, second: str | None) -> bool:
    """
    Decide whether two short answers are the same answer.

    Exact match after normalization, otherwise Levenshtein similarity above
    FUZZY_MATCH_THRESHOLD.
    """
    normalized_a = normalize_text(first)
    normalized_b = normalize_text(second)

    if normalized_a == normalized_b:
        return True

    return levenshtein_similarity(normalized_a, normalized_b) > FUZZY_MATCH_THRESHOLD
