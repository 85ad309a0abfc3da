"""
Fixed-width acquirer settlement extract (EDI) decoder.

Each line starts with a record tag selecting one of three variants:
header, detail (one settled transaction) or trailer (declared totals).
Fields are read by offset from the layout table of the file's version.
A malformed line never aborts the file: it is captured as a LineError
and decoding continues with the next line.
"""

import re
from collections import Counter
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Union

import structlog

from ..config import get_settings
from ..exceptions import InvalidFileError, UnsupportedLayoutError
from ..models import (
    GROSS_NET_FEE_MISMATCH,
    AcquirerTransaction,
    FieldKind,
    RecordKind,
)
from .layouts import (
    CARD_BRANDS,
    DEBIT_TYPE_CODES,
    LAYOUTS,
    TRANSACTION_TYPES,
    ExtractLayout,
    FieldSpec,
    RecordLayout,
    card_brand_name,
    transaction_type_name,
)
from .validator import TrailerValidator

logger = structlog.get_logger()

NON_DIGITS = re.compile(r"\D")
LINE_BREAK = re.compile(r"\r?\n")

_TRANSACTION_FIELDS = frozenset(f.name for f in fields(AcquirerTransaction))


class LineDecodeError(ValueError):
    """A single line could not be decoded."""


@dataclass
class LineError:
    """A line skipped because it could not be decoded."""
    line_number: int
    raw_excerpt: str
    cause: str


@dataclass
class ExtractHeader:
    """Header record of an extract."""
    establishment_code: str = ""
    processing_date: Optional[date] = None
    sequence_number: str = ""
    layout_version: str = ""
    line_number: int = 0


@dataclass
class ExtractTrailer:
    """Trailer record of an extract."""
    total_records: int = 0
    total_gross_cents: int = 0
    total_net_cents: int = 0
    line_number: int = 0


@dataclass
class ExtractSummary:
    """Aggregates over the decoded detail records."""
    total_transactions: int = 0
    total_gross_cents: int = 0
    total_net_cents: int = 0
    total_fee_cents: int = 0
    credit_transactions: int = 0
    debit_transactions: int = 0
    credit_amount_cents: int = 0
    debit_amount_cents: int = 0
    average_ticket_cents: int = 0
    processing_date: Optional[date] = None

    @property
    def average_ticket(self) -> float:
        return self.average_ticket_cents / 100.0


@dataclass
class ExtractDecodeResult:
    """Result of decoding an extract."""
    layout: str
    header: Optional[ExtractHeader]
    trailer: Optional[ExtractTrailer]
    transactions: List[AcquirerTransaction] = field(default_factory=list)
    line_errors: List[LineError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    skipped_lines: int = 0  # Unrecognized record tags

    @property
    def is_valid(self) -> bool:
        """True when every line decoded and the trailer agrees."""
        return not self.line_errors and not self.warnings


DecodedRecord = Union[ExtractHeader, AcquirerTransaction, ExtractTrailer]


class ExtractDecoder:
    """
    Decoder for fixed-width acquirer settlement extracts.

    The offset table is chosen per file: an explicit layout version wins,
    then the version declared in the header, then the layout whose
    detail tag occurs most often, then the configured default.
    """

    def __init__(
        self,
        layouts: Optional[Mapping[str, ExtractLayout]] = None,
        card_brands: Mapping[str, str] = CARD_BRANDS,
        transaction_types: Mapping[str, str] = TRANSACTION_TYPES,
    ):
        self.settings = get_settings()
        self.layouts = layouts if layouts is not None else LAYOUTS
        self.card_brands = card_brands
        self.transaction_types = transaction_types
        self.epsilon_cents = self.settings.amount_epsilon_cents
        self.validator = TrailerValidator(epsilon_cents=self.epsilon_cents)

    def decode(
        self,
        raw_text: str,
        layout: Union[str, ExtractLayout, None] = None,
        file_id: str = "",
        user_id: str = "",
    ) -> ExtractDecodeResult:
        """
        Decode an extract into typed records.

        Args:
            raw_text: Full file content
            layout: Layout version key or table; detected when omitted
            file_id: Opaque caller id copied onto each transaction
            user_id: Opaque caller id copied onto each transaction

        Returns:
            ExtractDecodeResult with transactions, line errors and warnings

        Raises:
            InvalidFileError: Neither a header nor a trailer was found
            UnsupportedLayoutError: Explicit layout version is unknown
        """
        lines = LINE_BREAK.split(raw_text)
        resolved = self.resolve_layout(layout, lines)

        logger.info(
            "Decoding acquirer extract",
            layout=resolved.version,
            lines=len(lines),
            file_id=file_id,
        )

        result = ExtractDecodeResult(layout=resolved.version, header=None, trailer=None)
        header_seen = False
        trailer_seen = False

        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue

            record = resolved.record_for(line)
            if record is None:
                result.skipped_lines += 1
                logger.warning(
                    "Unrecognized record tag skipped",
                    line_number=line_number,
                    tag=line[:2],
                )
                continue

            if record.kind == RecordKind.HEADER:
                header_seen = True
            elif record.kind == RecordKind.TRAILER:
                trailer_seen = True

            try:
                decoded = self.decode_line(
                    record, line, line_number, resolved, file_id, user_id
                )
            except ValueError as e:
                result.line_errors.append(LineError(
                    line_number=line_number,
                    raw_excerpt=line[:self.settings.line_excerpt_length],
                    cause=str(e),
                ))
                logger.warning(
                    "Line rejected",
                    line_number=line_number,
                    record=record.kind.value,
                    error=str(e),
                )
                continue

            self._collect(result, decoded)

        if not header_seen and not trailer_seen:
            logger.error("No header or trailer found", layout=resolved.version, file_id=file_id)
            raise InvalidFileError(
                f"No header or trailer record found for layout {resolved.version}",
                details={"layout": resolved.version, "file_id": file_id},
            )

        validation = self.validator.validate(result.transactions, result.trailer)
        result.warnings.extend(validation.warnings)
        if result.skipped_lines:
            result.warnings.append(
                f"{result.skipped_lines} line(s) with unrecognized record tags skipped"
            )
        result.warnings.extend(self._duplicate_id_warnings(result.transactions))

        logger.info(
            "Acquirer extract decoded",
            layout=resolved.version,
            transactions=len(result.transactions),
            line_errors=len(result.line_errors),
            warnings=len(result.warnings),
            skipped_lines=result.skipped_lines,
        )

        return result

    def resolve_layout(
        self,
        layout: Union[str, ExtractLayout, None],
        lines: List[str],
    ) -> ExtractLayout:
        """Resolve an explicit layout or detect one from the file."""
        if isinstance(layout, ExtractLayout):
            return layout
        if layout is not None:
            if layout not in self.layouts:
                raise UnsupportedLayoutError(
                    f"Unknown extract layout: {layout}",
                    details={"layout": layout, "known": sorted(self.layouts)},
                )
            return self.layouts[layout]
        return self.detect_layout(lines)

    def detect_layout(self, lines: List[str]) -> ExtractLayout:
        """
        Detect the layout of a file from its header or its detail tags.

        Only layouts whose header or trailer tag occurs in the file take
        part in the detail count.
        """
        first = next((line for line in lines if line.strip()), "")

        for candidate in self.layouts.values():
            if candidate.identifies(first):
                logger.debug("Layout declared in header", layout=candidate.version)
                return candidate

        detail_counts = Counter()
        for candidate in self.layouts.values():
            records = [candidate.record_for(line) for line in lines if line.strip()]
            if not any(r is candidate.header or r is candidate.trailer for r in records):
                continue
            detail_counts[candidate.version] = sum(1 for r in records if r is candidate.detail)

        default = self.layouts.get(self.settings.default_layout)
        best = max(detail_counts.values(), default=0)
        if best == 0:
            return default or next(iter(self.layouts.values()))

        if default is not None and detail_counts[default.version] == best:
            return default
        for candidate in self.layouts.values():
            if detail_counts[candidate.version] == best:
                logger.debug("Layout inferred from detail tags", layout=candidate.version)
                return candidate
        return default

    def decode_line(
        self,
        record: RecordLayout,
        line: str,
        line_number: int,
        layout: ExtractLayout,
        file_id: str = "",
        user_id: str = "",
    ) -> DecodedRecord:
        """
        Decode one tagged line into its record variant.

        Raises:
            LineDecodeError: The line does not fit the record table
        """
        values = self._read_fields(record, line)

        if record.kind == RecordKind.HEADER:
            return ExtractHeader(
                establishment_code=values.get("establishment_code") or "",
                processing_date=values.get("processing_date"),
                sequence_number=values.get("sequence_number") or "",
                layout_version=values.get("layout_version") or "",
                line_number=line_number,
            )

        if record.kind == RecordKind.TRAILER:
            return ExtractTrailer(
                total_records=values.get("total_records") or 0,
                total_gross_cents=values.get("total_gross_cents") or 0,
                total_net_cents=values.get("total_net_cents") or 0,
                line_number=line_number,
            )

        return self._build_transaction(values, line_number, layout, file_id, user_id)

    def summarize(
        self,
        transactions: List[AcquirerTransaction],
        processing_date: Optional[date] = None,
    ) -> ExtractSummary:
        """Aggregate decoded transactions into an extract summary."""
        summary = ExtractSummary(processing_date=processing_date)

        for txn in transactions:
            summary.total_transactions += 1
            summary.total_gross_cents += txn.gross_amount_cents
            summary.total_net_cents += txn.net_amount_cents
            summary.total_fee_cents += txn.fee_amount_cents

            if txn.transaction_type in DEBIT_TYPE_CODES:
                summary.debit_transactions += 1
                summary.debit_amount_cents += txn.gross_amount_cents
            else:
                summary.credit_transactions += 1
                summary.credit_amount_cents += txn.gross_amount_cents

        if summary.total_transactions:
            summary.average_ticket_cents = round(
                summary.total_gross_cents / summary.total_transactions
            )

        return summary

    def _collect(self, result: ExtractDecodeResult, decoded: DecodedRecord) -> None:
        """Attach a decoded record to the result."""
        if isinstance(decoded, AcquirerTransaction):
            result.transactions.append(decoded)
        elif isinstance(decoded, ExtractHeader):
            if result.header is None:
                result.header = decoded
            else:
                result.warnings.append(
                    f"Duplicate header at line {decoded.line_number} ignored"
                )
        elif result.trailer is None:
            result.trailer = decoded
        else:
            result.warnings.append(
                f"Duplicate trailer at line {decoded.line_number} ignored"
            )

    def _build_transaction(
        self,
        values: Dict[str, Any],
        line_number: int,
        layout: ExtractLayout,
        file_id: str,
        user_id: str,
    ) -> AcquirerTransaction:
        """Build a transaction from the decoded detail fields."""
        if values.get("transaction_date") is None:
            raise LineDecodeError("Missing transaction date")

        if values.get("installments") is None:
            values["installments"] = 1

        txn = AcquirerTransaction(
            **{k: v for k, v in values.items() if k in _TRANSACTION_FIELDS and v is not None},
            layout_version=layout.version,
            line_number=line_number,
            file_id=file_id,
            user_id=user_id,
        )
        txn.original_amount_cents = values.get("original_amount_cents")
        txn.id = "-".join(
            p for p in (txn.summary_number, txn.nsu, txn.authorization_code) if p
        ) or f"line-{line_number}"
        txn.card_brand_name = card_brand_name(txn.card_brand, self.card_brands)
        txn.transaction_type_name = transaction_type_name(
            txn.transaction_type, self.transaction_types
        )

        if not txn.amounts_consistent(self.epsilon_cents):
            txn.flags.append(GROSS_NET_FEE_MISMATCH)
            logger.warning(
                "Gross amount differs from net + fee",
                line_number=line_number,
                txn_id=txn.id,
                gross_cents=txn.gross_amount_cents,
                net_cents=txn.net_amount_cents,
                fee_cents=txn.fee_amount_cents,
            )

        return txn

    def _read_fields(self, record: RecordLayout, line: str) -> Dict[str, Any]:
        """Slice and convert every field of a record."""
        if len(line) < record.min_length:
            raise LineDecodeError(
                f"Line too short for {record.kind.value} record: "
                f"expected at least {record.min_length} characters, got {len(line)}"
            )
        return {spec.name: self._convert(spec, spec.slice(line)) for spec in record.fields}

    def _convert(self, spec: FieldSpec, raw: str) -> Any:
        """Convert a trimmed field value according to its kind."""
        if spec.kind == FieldKind.AMOUNT:
            digits = NON_DIGITS.sub("", raw)
            if not digits:
                return 0 if spec.required else None
            return int(digits)

        if spec.kind == FieldKind.DATE:
            return self._parse_date(spec, raw)

        if spec.kind == FieldKind.INTEGER:
            if not raw:
                return None
            if not raw.isdigit():
                raise LineDecodeError(f"Invalid {spec.name}: {raw!r}")
            return int(raw)

        return raw

    def _parse_date(self, spec: FieldSpec, raw: str) -> Optional[date]:
        """Parse a YYYYMMDD field; blank or zero-filled means absent."""
        if not raw or set(raw) == {"0"}:
            return None
        if len(raw) != 8 or not raw.isdigit():
            raise LineDecodeError(f"Invalid {spec.name}: {raw!r}")
        try:
            return datetime.strptime(raw, "%Y%m%d").date()
        except ValueError:
            raise LineDecodeError(f"Invalid {spec.name}: {raw!r}")

    def _duplicate_id_warnings(self, transactions: List[AcquirerTransaction]) -> List[str]:
        counts = Counter(t.id for t in transactions)
        return [
            f"Transaction id {txn_id} appears {count} times"
            for txn_id, count in counts.items()
            if count > 1
        ]
