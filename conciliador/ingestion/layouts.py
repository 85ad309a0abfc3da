"""
Fixed-width layouts of acquirer settlement extracts.

Acquirers revise their extract layouts without changing the record
tags, so the same detail tag can carry fields at different offsets
depending on the file version. Each known revision is declared here as
an immutable offset table and registered under its version key.

Offsets are 0-based, end-exclusive (Python slice semantics).
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from ..models import FieldKind, RecordKind


@dataclass(frozen=True)
class FieldSpec:
    """A single positional field."""
    name: str
    start: int
    end: int
    kind: FieldKind = FieldKind.TEXT
    required: bool = True

    @property
    def width(self) -> int:
        return self.end - self.start

    def slice(self, line: str) -> str:
        return line[self.start:self.end].strip()


@dataclass(frozen=True)
class RecordLayout:
    """Offset table of one record variant."""
    kind: RecordKind
    tag: str
    fields: Tuple[FieldSpec, ...]

    @property
    def min_length(self) -> int:
        """Shortest line holding every required field."""
        return max((f.end for f in self.fields if f.required), default=len(self.tag))

    def matches(self, line: str) -> bool:
        return line.startswith(self.tag)

    def field(self, name: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None


@dataclass(frozen=True)
class ExtractLayout:
    """A versioned extract layout: header, detail and trailer tables."""
    version: str
    description: str
    header: RecordLayout
    detail: RecordLayout
    trailer: RecordLayout
    # Value of the header `layout_version` field identifying this revision
    header_version: str = ""

    @property
    def records(self) -> Tuple[RecordLayout, ...]:
        # Longer tags first so a two-char tag never loses to a one-char prefix
        return tuple(sorted(
            (self.header, self.detail, self.trailer),
            key=lambda r: len(r.tag),
            reverse=True,
        ))

    def record_for(self, line: str) -> Optional[RecordLayout]:
        """Select the record variant for a line by its leading tag."""
        for record in self.records:
            if record.matches(line):
                return record
        return None

    def identifies(self, header_line: str) -> bool:
        """Check whether a header line declares this layout revision."""
        if not self.header.matches(header_line) or not self.header_version:
            return False
        spec = self.header.field("layout_version")
        return spec is not None and spec.slice(header_line) == self.header_version


_AMOUNT = FieldKind.AMOUNT
_DATE = FieldKind.DATE
_INT = FieldKind.INTEGER


# Layout 015: single-char tags, detail tagged "E".
LAYOUT_V15 = ExtractLayout(
    version="v15",
    description="Extract layout 015 (detail tag E, 13-digit amounts)",
    header_version="015",
    header=RecordLayout(RecordKind.HEADER, "0", (
        FieldSpec("establishment_code", 1, 11),
        FieldSpec("processing_date", 11, 19, _DATE, required=False),
        FieldSpec("period_start", 19, 27, _DATE, required=False),
        FieldSpec("period_end", 27, 35, _DATE, required=False),
        FieldSpec("sequence_number", 35, 42, required=False),
        FieldSpec("acquirer", 42, 47, required=False),
        FieldSpec("extract_type", 47, 49, required=False),
        FieldSpec("layout_version", 70, 73, required=False),
    )),
    detail=RecordLayout(RecordKind.DETAIL, "E", (
        FieldSpec("establishment_code", 1, 16),
        FieldSpec("nsu", 16, 28),
        FieldSpec("transaction_date", 28, 36, _DATE),
        FieldSpec("authorization_code", 36, 42),
        FieldSpec("transaction_type", 42, 44),
        FieldSpec("payment_method", 44, 47),
        FieldSpec("card_brand", 47, 50),
        FieldSpec("installments", 50, 52, _INT),
        FieldSpec("gross_amount_cents", 52, 65, _AMOUNT),
        FieldSpec("net_amount_cents", 65, 78, _AMOUNT),
        FieldSpec("fee_amount_cents", 78, 91, _AMOUNT),
        FieldSpec("payment_date", 91, 99, _DATE),
    )),
    trailer=RecordLayout(RecordKind.TRAILER, "9", (
        FieldSpec("total_records", 1, 12, _INT),
        FieldSpec("total_gross_cents", 12, 26, _AMOUNT),
        FieldSpec("total_net_cents", 26, 40, _AMOUNT),
    )),
)

# Layout 014: two-char tags 00/01/99, carries summary number and cancellations.
LAYOUT_V14 = ExtractLayout(
    version="v14",
    description="Extract layout 014 (tags 00/01/99, summary number, cancellations)",
    header_version="014",
    header=RecordLayout(RecordKind.HEADER, "00", (
        FieldSpec("establishment_code", 2, 17),
        FieldSpec("processing_date", 17, 25, _DATE, required=False),
        FieldSpec("sequence_number", 25, 32, required=False),
        FieldSpec("extract_type", 32, 34, required=False),
        FieldSpec("layout_version", 34, 37, required=False),
    )),
    detail=RecordLayout(RecordKind.DETAIL, "01", (
        FieldSpec("establishment_code", 2, 17),
        FieldSpec("summary_number", 17, 24),
        FieldSpec("transaction_date", 24, 32, _DATE),
        FieldSpec("payment_date", 32, 40, _DATE),
        FieldSpec("transaction_type", 40, 42),
        FieldSpec("installments", 42, 44, _INT),
        FieldSpec("gross_amount_cents", 44, 57, _AMOUNT),
        FieldSpec("fee_amount_cents", 57, 70, _AMOUNT),
        FieldSpec("net_amount_cents", 70, 83, _AMOUNT),
        FieldSpec("card_brand", 83, 86),
        FieldSpec("authorization_code", 86, 92),
        FieldSpec("nsu", 92, 104),
        FieldSpec("cancellation_date", 104, 112, _DATE, required=False),
        FieldSpec("original_amount_cents", 112, 125, _AMOUNT, required=False),
    )),
    trailer=RecordLayout(RecordKind.TRAILER, "99", (
        FieldSpec("total_records", 2, 13, _INT),
        FieldSpec("total_gross_cents", 13, 27, _AMOUNT),
        FieldSpec("total_net_cents", 27, 41, _AMOUNT),
    )),
)

# Layout 013: single-char tags 0/1/9, 11-digit amounts.
LAYOUT_V13 = ExtractLayout(
    version="v13",
    description="Extract layout 013 (detail tag 1, 11-digit amounts)",
    header_version="013",
    header=RecordLayout(RecordKind.HEADER, "0", (
        FieldSpec("establishment_code", 1, 11),
        FieldSpec("processing_date", 11, 19, _DATE, required=False),
        FieldSpec("sequence_number", 19, 26, required=False),
        FieldSpec("layout_version", 26, 29, required=False),
    )),
    detail=RecordLayout(RecordKind.DETAIL, "1", (
        FieldSpec("establishment_code", 1, 11),
        FieldSpec("summary_number", 11, 18),
        FieldSpec("nsu", 18, 24),
        FieldSpec("transaction_date", 24, 32, _DATE),
        FieldSpec("payment_date", 32, 40, _DATE),
        FieldSpec("transaction_type", 40, 42),
        FieldSpec("card_brand", 42, 45),
        FieldSpec("installments", 45, 47, _INT),
        FieldSpec("gross_amount_cents", 47, 58, _AMOUNT),
        FieldSpec("fee_amount_cents", 58, 69, _AMOUNT),
        FieldSpec("net_amount_cents", 69, 80, _AMOUNT),
        FieldSpec("authorization_code", 80, 86),
        FieldSpec("cancellation_date", 86, 94, _DATE, required=False),
        FieldSpec("original_amount_cents", 94, 105, _AMOUNT, required=False),
    )),
    trailer=RecordLayout(RecordKind.TRAILER, "9", (
        FieldSpec("total_records", 1, 12, _INT),
        FieldSpec("total_gross_cents", 12, 26, _AMOUNT),
        FieldSpec("total_net_cents", 26, 40, _AMOUNT),
    )),
)

LAYOUTS: Mapping[str, ExtractLayout] = MappingProxyType({
    layout.version: layout
    for layout in (LAYOUT_V15, LAYOUT_V14, LAYOUT_V13)
})


# Card brand code -> name
CARD_BRANDS: Mapping[str, str] = MappingProxyType({
    "082": "Visa",
    "164": "Mastercard",
    "033": "American Express",
    "282": "Elo",
    "888": "PIX",
})

# Transaction type code -> label
TRANSACTION_TYPES: Mapping[str, str] = MappingProxyType({
    "01": "Débito",
    "02": "Crédito à Vista",
    "03": "Crédito Parcelado Loja",
    "04": "Crédito Parcelado Emissor",
    "20": "Crédito",
    "30": "Débito",
})

# Type codes settled as debit card sales
DEBIT_TYPE_CODES = frozenset({"01", "30"})


def card_brand_name(code: str, table: Mapping[str, str] = CARD_BRANDS) -> str:
    return table.get(code, f"Desconhecida ({code})")


def transaction_type_name(code: str, table: Mapping[str, str] = TRANSACTION_TYPES) -> str:
    return table.get(code, f"Desconhecido ({code})")


def build_layout_registry(*layouts: ExtractLayout) -> Dict[str, ExtractLayout]:
    """Registry of layouts by version, for decoders that add their own tables."""
    registry = dict(LAYOUTS)
    for layout in layouts:
        registry[layout.version] = layout
    return registry
