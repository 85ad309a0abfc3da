"""Utility modules."""

from .text_similarity import contains_keyword, levenshtein_similarity, normalize_text
from .audit_logger import AuditLogger

__all__ = [
    "AuditLogger",
    "contains_keyword",
    "levenshtein_similarity",
    "normalize_text",
]
