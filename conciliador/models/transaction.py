"""Transaction models for the reconciliation core."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, List, Dict, Any

from .enums import (
    BankTransactionStatus,
    StatementFormat,
    TransactionDirection,
)

GROSS_NET_FEE_MISMATCH = "gross_net_fee_mismatch"


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class AcquirerTransaction:
    """
    Settled card transaction decoded from a fixed-width acquirer extract.
    All monetary amounts are stored in CENTS (integer) to avoid floating point errors.
    """
    # Identity
    id: str = ""
    summary_number: str = ""  # Acquirer summary (RO) number
    establishment_code: str = ""

    # Temporal
    transaction_date: Optional[date] = None
    payment_date: Optional[date] = None  # Settlement date

    # Financial data (ALL IN CENTS - integers only)
    gross_amount_cents: int = 0
    net_amount_cents: int = 0
    fee_amount_cents: int = 0

    # Card
    card_brand: str = ""
    card_brand_name: str = ""
    transaction_type: str = ""
    transaction_type_name: str = ""
    payment_method: str = ""
    installments: int = 1
    authorization_code: str = ""
    nsu: str = ""

    # Cancellations
    cancellation_date: Optional[date] = None
    original_amount_cents: Optional[int] = None

    # Provenance
    layout_version: str = ""
    line_number: int = 0
    file_id: str = ""
    user_id: str = ""

    # Quality flags, e.g. GROSS_NET_FEE_MISMATCH
    flags: List[str] = field(default_factory=list)

    @property
    def gross_amount(self) -> float:
        """Return gross amount in currency units."""
        return self.gross_amount_cents / 100.0

    @property
    def net_amount(self) -> float:
        """Return net amount in currency units."""
        return self.net_amount_cents / 100.0

    @property
    def fee_amount(self) -> float:
        """Return fee amount in currency units."""
        return self.fee_amount_cents / 100.0

    @property
    def is_cancelled(self) -> bool:
        return self.cancellation_date is not None

    def amounts_consistent(self, epsilon_cents: int = 1) -> bool:
        """Check gross = net + fee within epsilon."""
        return abs(
            self.gross_amount_cents - (self.net_amount_cents + self.fee_amount_cents)
        ) <= epsilon_cents

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "summary_number": self.summary_number,
            "establishment_code": self.establishment_code,
            "transaction_date": _iso(self.transaction_date),
            "payment_date": _iso(self.payment_date),
            "gross_amount": self.gross_amount,
            "net_amount": self.net_amount,
            "fee_amount": self.fee_amount,
            "card_brand": self.card_brand,
            "card_brand_name": self.card_brand_name,
            "transaction_type": self.transaction_type,
            "transaction_type_name": self.transaction_type_name,
            "payment_method": self.payment_method,
            "installments": self.installments,
            "authorization_code": self.authorization_code,
            "nsu": self.nsu,
            "cancellation_date": _iso(self.cancellation_date),
            "original_amount": (
                self.original_amount_cents / 100.0
                if self.original_amount_cents is not None else None
            ),
            "layout_version": self.layout_version,
            "file_id": self.file_id,
            "user_id": self.user_id,
            "flags": list(self.flags),
        }


@dataclass
class BankTransaction:
    """
    Entry decoded from a bank statement.

    The amount is always stored unsigned; the sign found in the file
    is kept in `direction`.
    """
    id: str = ""
    date: Optional[date] = None
    description: str = ""

    amount_cents: int = 0
    direction: TransactionDirection = TransactionDirection.CREDIT
    balance_cents: Optional[int] = None

    status: BankTransactionStatus = BankTransactionStatus.PENDING
    reference: Optional[str] = None  # OFX FITID

    # Provenance
    source_format: Optional[StatementFormat] = None
    source_row: Optional[int] = None
    file_id: str = ""
    user_id: str = ""

    def __post_init__(self):
        if self.amount_cents < 0:
            raise ValueError("amount_cents must be unsigned; use direction for the sign")

    @property
    def amount(self) -> float:
        """Return amount in currency units."""
        return self.amount_cents / 100.0

    @property
    def signed_amount_cents(self) -> int:
        """Positive for credit, negative for debit."""
        if self.direction == TransactionDirection.DEBIT:
            return -self.amount_cents
        return self.amount_cents

    @property
    def is_reconciled(self) -> bool:
        return self.status == BankTransactionStatus.RECONCILED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "date": _iso(self.date),
            "description": self.description,
            "amount": self.amount,
            "direction": self.direction.value,
            "balance": self.balance_cents / 100.0 if self.balance_cents is not None else None,
            "status": self.status.value,
            "reference": self.reference,
            "source_format": self.source_format.value if self.source_format else None,
            "file_id": self.file_id,
            "user_id": self.user_id,
        }
