"""Data models for the reconciliation core."""

from .enums import (
    AuditAction,
    BankTransactionStatus,
    ConditionField,
    ConditionOperator,
    FieldKind,
    MatchStatus,
    MatchType,
    RecordKind,
    StatementFormat,
    TransactionDirection,
)
from .transaction import (
    GROSS_NET_FEE_MISMATCH,
    AcquirerTransaction,
    BankTransaction,
)
from .reconciliation import (
    AuditEntry,
    Condition,
    ConciliationMatch,
    ConciliationRule,
    ConciliationSummary,
    Difference,
    ReconciliationResult,
)

__all__ = [
    # Enums
    "AuditAction",
    "BankTransactionStatus",
    "ConditionField",
    "ConditionOperator",
    "FieldKind",
    "MatchStatus",
    "MatchType",
    "RecordKind",
    "StatementFormat",
    "TransactionDirection",
    # Transactions
    "GROSS_NET_FEE_MISMATCH",
    "AcquirerTransaction",
    "BankTransaction",
    # Reconciliation
    "AuditEntry",
    "Condition",
    "ConciliationMatch",
    "ConciliationRule",
    "ConciliationSummary",
    "Difference",
    "ReconciliationResult",
]
