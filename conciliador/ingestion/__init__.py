"""Ingestion module for acquirer extracts and bank statements."""

from .bank_parser import BankStatementParser, StatementDecodeResult, parse_amount, parse_date
from .edi_parser import (
    ExtractDecodeResult,
    ExtractDecoder,
    ExtractHeader,
    ExtractSummary,
    ExtractTrailer,
    LineError,
)
from .layouts import (
    CARD_BRANDS,
    LAYOUTS,
    TRANSACTION_TYPES,
    ExtractLayout,
    FieldSpec,
    RecordLayout,
)
from .validator import TrailerValidationResult, TrailerValidator

__all__ = [
    "BankStatementParser",
    "StatementDecodeResult",
    "parse_amount",
    "parse_date",
    "ExtractDecodeResult",
    "ExtractDecoder",
    "ExtractHeader",
    "ExtractSummary",
    "ExtractTrailer",
    "LineError",
    "CARD_BRANDS",
    "LAYOUTS",
    "TRANSACTION_TYPES",
    "ExtractLayout",
    "FieldSpec",
    "RecordLayout",
    "TrailerValidationResult",
    "TrailerValidator",
]
