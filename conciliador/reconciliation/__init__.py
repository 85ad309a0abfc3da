"""Reconciliation engine components."""

from .engine import ReconciliationEngine, RuleEvaluation
from .scoring import amount_score, date_score, description_score, keyword_score, round_half_up
from .summary import generate_summary

__all__ = [
    "ReconciliationEngine",
    "RuleEvaluation",
    "amount_score",
    "date_score",
    "description_score",
    "keyword_score",
    "round_half_up",
    "generate_summary",
]
