"""
Acquirer settlement and bank statement reconciliation.

    result = decode_acquirer_extract(raw_text)
    bank = decode_bank_statement("extrato.csv", content)
    run = reconcile(bank, result.transactions, rules)
"""

from typing import List, Optional, Union

from .exceptions import (
    ConciliationError,
    InvalidFileError,
    UnsupportedFormatError,
    UnsupportedLayoutError,
)
from .ingestion import BankStatementParser, ExtractDecodeResult, ExtractDecoder
from .ingestion.layouts import ExtractLayout
from .models import (
    AcquirerTransaction,
    BankTransaction,
    ConciliationRule,
    Condition,
    ReconciliationResult,
)
from .logging_config import setup_logging
from .reconciliation import ReconciliationEngine

__version__ = "1.0.0"


def decode_acquirer_extract(
    raw_text: str,
    layout: Union[str, ExtractLayout, None] = None,
    file_id: str = "",
    user_id: str = "",
) -> ExtractDecodeResult:
    """Decode a fixed-width acquirer extract. See ExtractDecoder.decode."""
    return ExtractDecoder().decode(raw_text, layout=layout, file_id=file_id, user_id=user_id)


def decode_bank_statement(
    file_name: str,
    content: Union[bytes, str],
    file_id: str = "",
    user_id: str = "",
) -> List[BankTransaction]:
    """Decode a CSV, TXT or OFX bank statement into transactions."""
    result = BankStatementParser().decode(file_name, content, file_id=file_id, user_id=user_id)
    return result.transactions


def reconcile(
    bank_transactions: List[BankTransaction],
    acquirer_transactions: List[AcquirerTransaction],
    rules: List[ConciliationRule],
    engine: Optional[ReconciliationEngine] = None,
) -> ReconciliationResult:
    """Match bank entries against acquirer transactions using the rules."""
    engine = engine or ReconciliationEngine()
    return engine.run(bank_transactions, acquirer_transactions, rules)


__all__ = [
    "decode_acquirer_extract",
    "decode_bank_statement",
    "reconcile",
    "setup_logging",
    "AcquirerTransaction",
    "BankTransaction",
    "ConciliationRule",
    "Condition",
    "ReconciliationResult",
    "ExtractDecodeResult",
    "ConciliationError",
    "InvalidFileError",
    "UnsupportedFormatError",
    "UnsupportedLayoutError",
]
