"""
Per-field similarity scores between a bank entry and an acquirer transaction.

Each scorer is a pure function returning an integer in 0..100. Operators
a scorer does not understand score 0 rather than raising, so a rule with
an odd condition simply never wins on that condition.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence, Tuple

from ..models import ConditionOperator
from ..utils.text_similarity import contains_keyword, levenshtein_similarity, normalize_text

# (max percentage difference, score), checked in order
AMOUNT_RANGE_BANDS: Sequence[Tuple[float, int]] = (
    (1.0, 100),
    (3.0, 80),
    (5.0, 60),
    (10.0, 40),
)

# (max days apart, score), checked in order
DATE_RANGE_BANDS: Sequence[Tuple[int, int]] = (
    (0, 100),
    (1, 90),
    (2, 70),
    (5, 50),
    (10, 30),
)

KEYWORD_SCORE = 80
CONTAINMENT_SCORE = 60


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def amount_score(
    bank_cents: int,
    acquirer_cents: int,
    tolerance: int = 0,
    operator: ConditionOperator = ConditionOperator.EQUALS,
) -> int:
    """
    Score two amounts.

    Args:
        bank_cents: Bank entry amount (unsigned)
        acquirer_cents: Acquirer net amount
        tolerance: Accepted difference in cents for `equals`
        operator: equals or range

    Returns:
        Score 0..100
    """
    difference = abs(bank_cents - acquirer_cents)

    if operator == ConditionOperator.EQUALS:
        return 100 if difference <= tolerance else 0

    if operator == ConditionOperator.RANGE:
        largest = max(abs(bank_cents), abs(acquirer_cents))
        if largest == 0:
            return 100
        percentage = difference / largest * 100
        for limit, score in AMOUNT_RANGE_BANDS:
            if percentage <= limit:
                return score
        return 0

    return 0


def date_score(
    bank_date: Optional[date],
    acquirer_date: Optional[date],
    operator: ConditionOperator = ConditionOperator.EQUALS,
) -> int:
    """Score two dates by calendar days apart."""
    if bank_date is None or acquirer_date is None:
        return 0

    days = abs((bank_date - acquirer_date).days)

    if operator == ConditionOperator.EQUALS:
        return 100 if days == 0 else 0

    if operator == ConditionOperator.RANGE:
        for limit, score in DATE_RANGE_BANDS:
            if days <= limit:
                return score
        return 0

    return 0


def description_score(
    a: str,
    b: str,
    operator: ConditionOperator = ConditionOperator.FUZZY,
) -> int:
    """
    Score two descriptions.

    fuzzy:    Levenshtein similarity
    contains: 60 when one contains the other
    equals:   100 iff equal after case folding

    Symmetric in `a` and `b`.
    """
    left = normalize_text(a)
    right = normalize_text(b)
    if not left and not right:
        return 0

    if operator == ConditionOperator.FUZZY:
        return round_half_up(levenshtein_similarity(left, right))

    if operator == ConditionOperator.CONTAINS:
        if left and right and (left in right or right in left):
            return CONTAINMENT_SCORE
        return 0

    if operator == ConditionOperator.EQUALS:
        return 100 if left == right else 0

    return 0


def keyword_score(
    bank_description: str,
    operator: ConditionOperator = ConditionOperator.FUZZY,
    keywords: Iterable[str] = (),
) -> int:
    """
    Floor for templated acquirer credits.

    80 when the bank description mentions a brand keyword under a fuzzy
    or contains condition, else 0. Only the bank side is inspected.
    """
    if operator not in (ConditionOperator.FUZZY, ConditionOperator.CONTAINS):
        return 0
    if contains_keyword(normalize_text(bank_description), tuple(keywords)):
        return KEYWORD_SCORE
    return 0
