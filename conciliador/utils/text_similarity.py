"""
Edit-distance text similarity for transaction descriptions.
"""

from typing import Iterable

from rapidfuzz.distance import Levenshtein


def normalize_text(text: str) -> str:
    """Case-fold and trim a description."""
    return (text or "").strip().casefold()


def levenshtein_similarity(a: str, b: str) -> float:
    """
    Similarity in 0..100 from the Levenshtein edit distance.

        100 * (max_len - distance) / max_len

    Two empty strings have no content to compare and score 0.
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    distance = Levenshtein.distance(a, b)
    return 100.0 * (longest - distance) / longest


def contains_keyword(text: str, keywords: Iterable[str]) -> bool:
    """Check whether a normalized text mentions any keyword."""
    return any(keyword and normalize_text(keyword) in text for keyword in keywords)
