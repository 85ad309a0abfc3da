"""Enumerations for the reconciliation core."""

from enum import Enum


class TransactionDirection(str, Enum):
    """Direction of a bank statement entry."""
    CREDIT = "credit"      # Money in (settlement received)
    DEBIT = "debit"        # Money out


class BankTransactionStatus(str, Enum):
    """Reconciliation state of a bank statement entry."""
    PENDING = "pending"
    RECONCILED = "reconciled"
    IGNORED = "ignored"


class StatementFormat(str, Enum):
    """Bank statement file formats, keyed by file extension."""
    CSV = "csv"
    TXT = "txt"
    OFX = "ofx"


class RecordKind(str, Enum):
    """
    Record variants of a fixed-width acquirer extract.

    HEADER: File header (establishment, processing date, layout version)
    DETAIL: One settled card transaction
    TRAILER: Declared record count and amount totals
    """
    HEADER = "header"
    DETAIL = "detail"
    TRAILER = "trailer"


class FieldKind(str, Enum):
    """How a fixed-width field is converted."""
    TEXT = "text"
    AMOUNT = "amount"      # Digits only, implied two decimals
    DATE = "date"          # YYYYMMDD
    INTEGER = "integer"


class ConditionField(str, Enum):
    """Field compared by a rule condition."""
    AMOUNT = "amount"
    DATE = "date"
    DESCRIPTION = "description"


class ConditionOperator(str, Enum):
    """Comparison policy of a rule condition."""
    EQUALS = "equals"
    CONTAINS = "contains"
    RANGE = "range"
    FUZZY = "fuzzy"


class MatchType(str, Enum):
    """Classification of a match by score."""
    AUTOMATIC = "automatic"  # score >= automatic threshold
    MANUAL = "manual"        # created by a person outside the core
    SUGGESTED = "suggested"


class MatchStatus(str, Enum):
    """Approval state of a match."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AuditAction(str, Enum):
    """Type of audit action."""
    RULE_EVALUATED = "rule_evaluated"
    MATCH_ACCEPTED = "match_accepted"
    NO_MATCH = "no_match"
