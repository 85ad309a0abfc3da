"""Rule, match and summary models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any
from uuid import uuid4

from .enums import (
    AuditAction,
    ConditionField,
    ConditionOperator,
    MatchStatus,
    MatchType,
)


@dataclass
class Condition:
    """One weighted comparison inside a rule."""
    field: ConditionField
    operator: ConditionOperator
    weight: int = 100  # 0-100

    def __post_init__(self):
        self.field = ConditionField(self.field)
        self.operator = ConditionOperator(self.operator)
        if not 0 <= self.weight <= 100:
            raise ValueError(f"Condition weight must be within 0-100, got {self.weight}")


@dataclass
class ConciliationRule:
    """
    User-supplied matching rule.

    Rules run in descending priority; the first rule whose best
    candidate clears the acceptance score wins.
    """
    id: str = field(default_factory=lambda: str(uuid4()))
    name: str = ""
    description: str = ""
    is_active: bool = True
    priority: int = 0  # Higher runs first
    conditions: List[Condition] = field(default_factory=list)
    tolerance: int = 0  # Cents for amount conditions
    auto_approve: bool = False

    @property
    def total_weight(self) -> int:
        return sum(c.weight for c in self.conditions)


@dataclass
class Difference:
    """A field where the matched pair disagrees."""
    field: str
    bank_value: Any
    acquirer_value: Any
    difference: float  # Amount in currency units, or days for dates
    percentage: float = 0.0


@dataclass
class ConciliationMatch:
    """A bank entry paired with an acquirer transaction."""
    id: str = field(default_factory=lambda: str(uuid4()))

    bank_transaction_id: str = ""
    acquirer_transaction_id: str = ""

    # Winning rule
    rule_id: str = ""
    rule_name: str = ""

    # Quality
    score: int = 0  # 0-100
    match_type: MatchType = MatchType.SUGGESTED
    status: MatchStatus = MatchStatus.PENDING
    differences: List[Difference] = field(default_factory=list)

    # Audit
    created_at: datetime = field(default_factory=datetime.utcnow)
    user_id: str = ""

    @property
    def is_approved(self) -> bool:
        return self.status == MatchStatus.APPROVED

    @property
    def is_exact(self) -> bool:
        """Check if the pair has no differences."""
        return not self.differences

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "bank_transaction_id": self.bank_transaction_id,
            "acquirer_transaction_id": self.acquirer_transaction_id,
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "score": self.score,
            "match_type": self.match_type.value,
            "status": self.status.value,
            "differences": [
                {
                    "field": d.field,
                    "bank_value": d.bank_value,
                    "acquirer_value": d.acquirer_value,
                    "difference": d.difference,
                    "percentage": d.percentage,
                }
                for d in self.differences
            ],
            "created_at": self.created_at.isoformat(),
            "user_id": self.user_id,
        }


@dataclass
class ConciliationSummary:
    """Summary statistics over approved matches."""
    # Counts
    total_bank_transactions: int = 0
    total_acquirer_transactions: int = 0
    matched_transactions: int = 0
    unmatched_bank_transactions: int = 0
    unmatched_acquirer_transactions: int = 0

    # Amounts (in cents)
    total_bank_amount_cents: int = 0
    total_acquirer_amount_cents: int = 0  # Net amounts
    matched_amount_cents: int = 0
    difference_amount_cents: int = 0

    match_percentage: float = 0.0

    @property
    def total_bank_amount(self) -> float:
        return self.total_bank_amount_cents / 100.0

    @property
    def total_acquirer_amount(self) -> float:
        return self.total_acquirer_amount_cents / 100.0

    @property
    def matched_amount(self) -> float:
        return self.matched_amount_cents / 100.0

    @property
    def difference_amount(self) -> float:
        return self.difference_amount_cents / 100.0


@dataclass
class AuditEntry:
    """An entry in the audit log."""
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.utcnow)

    # Action
    action: AuditAction = AuditAction.RULE_EVALUATED

    # Context
    transaction_ids: List[str] = field(default_factory=list)
    rule_id: Optional[str] = None

    # Details
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    # Outcome
    success: bool = True


@dataclass
class ReconciliationResult:
    """Complete result of a reconciliation run."""
    matches: List[ConciliationMatch] = field(default_factory=list)
    unmatched_bank_ids: List[str] = field(default_factory=list)
    unmatched_acquirer_ids: List[str] = field(default_factory=list)
    summary: ConciliationSummary = field(default_factory=ConciliationSummary)
    audit_log: List[AuditEntry] = field(default_factory=list)

    @property
    def approved_matches(self) -> List[ConciliationMatch]:
        return [m for m in self.matches if m.is_approved]
