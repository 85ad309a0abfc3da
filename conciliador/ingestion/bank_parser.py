"""
Bank statement parser for CSV, positional TXT and OFX exports.

Every strategy yields BankTransaction rows with an unsigned amount and
a direction taken from the sign found in the file. Rows that cannot be
read are dropped with a warning; only an unknown file extension fails
the whole call.
"""

import csv
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, List, Optional, Sequence, Union

import structlog

from ..config import get_settings
from ..exceptions import UnsupportedFormatError
from ..models import BankTransaction, StatementFormat, TransactionDirection

logger = structlog.get_logger()


# Header synonyms per column role, matched as case-insensitive substrings
COLUMN_SYNONYMS: Dict[str, Sequence[str]] = {
    "date": ("data", "date", "dt"),
    "description": ("descricao", "description", "historico", "desc"),
    "amount": ("valor", "amount", "vlr"),
    "balance": ("saldo", "balance"),
}
REQUIRED_COLUMNS = ("date", "description", "amount")

LINE_BREAK = re.compile(r"\r?\n")
AMOUNT_CHARS = re.compile(r"[^\d,.\-]")
NON_DIGITS = re.compile(r"\D")
DATE_PARTS = re.compile(r"[/\-]")

OFX_BLOCK = re.compile(r"<STMTTRN>(.*?)</STMTTRN>", re.IGNORECASE | re.DOTALL)


def parse_amount(raw: str) -> int:
    """
    Parse a localized money string into signed cents.

    The later of the last comma and the last dot is the decimal
    separator; the other one is a thousands separator. A minus sign or
    a trailing "D" debit marker makes the amount negative.

    Raises:
        ValueError: No number could be read
    """
    text = (raw or "").strip()
    negative = "-" in text or text.upper().rstrip().endswith("D")

    clean = AMOUNT_CHARS.sub("", text).replace("-", "")
    comma = clean.rfind(",")
    dot = clean.rfind(".")
    if comma > dot:
        clean = clean.replace(".", "").replace(",", ".")
    elif dot > comma:
        clean = clean.replace(",", "")

    if not NON_DIGITS.sub("", clean):
        raise ValueError(f"Invalid amount: {raw!r}")

    try:
        value = Decimal(clean)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {raw!r}")

    cents = int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return -cents if negative else cents


def parse_date(raw: str) -> Optional[date]:
    """
    Parse a statement date.

    Accepts DD/MM/YYYY, DD-MM-YYYY, YYYY-MM-DD, DDMMYYYY and YYYYMMDD.
    Delimited dates are read by the position of the 4-digit year;
    undelimited ones try DDMMYYYY before YYYYMMDD.
    """
    text = (raw or "").strip()
    if not text:
        return None

    parts = [p.strip() for p in DATE_PARTS.split(text)]
    if len(parts) == 3 and all(p.isdigit() for p in parts):
        first, second, third = (int(p) for p in parts)
        if len(parts[0]) == 4:
            year, month, day = first, second, third
        else:
            year, month, day = third, second, first
        try:
            return date(year, month, day)
        except ValueError:
            return None

    digits = NON_DIGITS.sub("", text)
    if len(digits) == 8:
        for fmt in ("%d%m%Y", "%Y%m%d"):
            try:
                return datetime.strptime(digits, fmt).date()
            except ValueError:
                continue

    return None


@dataclass
class StatementDecodeResult:
    """Result of decoding a bank statement."""
    transactions: List[BankTransaction]
    format: StatementFormat
    warnings: List[str] = field(default_factory=list)
    skipped_rows: int = 0


class BankStatementParser:
    """
    Parser for bank statement exports.

    The strategy is picked from the file extension: csv, txt or ofx.
    """

    def __init__(
        self,
        txt_min_line_length: Optional[int] = None,
        txt_amount_width: Optional[int] = None,
    ):
        self.settings = get_settings()
        self.txt_min_line_length = (
            txt_min_line_length if txt_min_line_length is not None
            else self.settings.txt_min_line_length
        )
        self.txt_amount_width = (
            txt_amount_width if txt_amount_width is not None
            else self.settings.txt_amount_width
        )

    def decode(
        self,
        file_name: str,
        content: Union[bytes, str],
        file_id: str = "",
        user_id: str = "",
    ) -> StatementDecodeResult:
        """
        Decode a bank statement file.

        Args:
            file_name: Original file name; its extension selects the format
            content: Raw file content
            file_id: Opaque caller id copied onto each row
            user_id: Opaque caller id copied onto each row

        Returns:
            StatementDecodeResult with transactions and warnings

        Raises:
            UnsupportedFormatError: Extension is not csv, txt or ofx
        """
        extension = file_name.lower().rsplit(".", 1)[-1] if "." in file_name else ""
        try:
            fmt = StatementFormat(extension)
        except ValueError:
            raise UnsupportedFormatError(
                f"Unsupported statement format: {extension or file_name}",
                details={"file_name": file_name, "extension": extension},
            )

        text = self._to_text(content)
        logger.info("Decoding bank statement", file_name=file_name, format=fmt.value)

        if fmt == StatementFormat.CSV:
            result = self._parse_csv(text)
        elif fmt == StatementFormat.TXT:
            result = self._parse_txt(text)
        else:
            result = self._parse_ofx(text)

        for txn in result.transactions:
            txn.file_id = file_id
            txn.user_id = user_id

        logger.info(
            "Bank statement decoded",
            file_name=file_name,
            format=fmt.value,
            transactions=len(result.transactions),
            skipped_rows=result.skipped_rows,
        )
        return result

    def _to_text(self, content: Union[bytes, str]) -> str:
        if isinstance(content, str):
            return content
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError:
            logger.debug("Statement is not UTF-8, decoding as latin-1")
            return content.decode("latin-1")

    def _parse_csv(self, text: str) -> StatementDecodeResult:
        """Parse a delimited statement with a header row."""
        result = StatementDecodeResult(transactions=[], format=StatementFormat.CSV)
        lines = [(n, line) for n, line in enumerate(LINE_BREAK.split(text), start=1) if line.strip()]
        if not lines:
            return result

        separator = ";" if ";" in text else ","

        header = [h.lower() for h in self._split_line(lines[0][1], separator)]
        columns = self._map_columns(header)
        missing = [role for role in REQUIRED_COLUMNS if role not in columns]
        if missing:
            result.skipped_rows = len(lines) - 1
            self._warn(result, f"Header lacks required columns: {', '.join(missing)}")
            return result

        for line_number, line in lines[1:]:
            # Each line is split on its own so an unbalanced quote stays in its row
            try:
                values = self._split_line(line, separator)
            except csv.Error as e:
                result.skipped_rows += 1
                self._warn(result, f"Row {line_number}: {e}")
                continue

            if len(values) < 3:
                result.skipped_rows += 1
                self._warn(result, f"Row {line_number}: expected at least 3 values, got {len(values)}")
                continue

            try:
                txn_date = parse_date(self._value(values, columns["date"]))
                if txn_date is None:
                    raise ValueError(f"Invalid date: {self._value(values, columns['date'])!r}")
                amount = parse_amount(self._value(values, columns["amount"]))
                balance = None
                if "balance" in columns and self._value(values, columns["balance"]):
                    balance = parse_amount(self._value(values, columns["balance"]))
            except ValueError as e:
                result.skipped_rows += 1
                self._warn(result, f"Row {line_number}: {e}")
                continue

            result.transactions.append(self._build(
                StatementFormat.CSV,
                line_number,
                txn_date,
                self._value(values, columns["description"]),
                amount,
                balance_cents=balance,
            ))

        return result

    def _parse_txt(self, text: str) -> StatementDecodeResult:
        """Parse a positional statement: DDMMYYYY, description, amount."""
        result = StatementDecodeResult(transactions=[], format=StatementFormat.TXT)
        width = self.txt_amount_width

        for line_number, line in enumerate(LINE_BREAK.split(text), start=1):
            if not line.strip():
                continue
            if len(line) < self.txt_min_line_length:
                result.skipped_rows += 1
                self._warn(result, f"Line {line_number}: shorter than {self.txt_min_line_length} characters")
                continue

            raw_date = line[:8]
            raw_amount = line[-width:].strip()
            description = line[8:-width].strip()

            txn_date = None
            if raw_date.isdigit():
                try:
                    txn_date = datetime.strptime(raw_date, "%d%m%Y").date()
                except ValueError:
                    txn_date = None

            try:
                amount = parse_amount(raw_amount)
            except ValueError as e:
                result.skipped_rows += 1
                self._warn(result, f"Line {line_number}: {e}")
                continue
            if txn_date is None:
                result.skipped_rows += 1
                self._warn(result, f"Line {line_number}: invalid date {raw_date!r}")
                continue

            result.transactions.append(
                self._build(StatementFormat.TXT, line_number, txn_date, description, amount)
            )

        return result

    def _parse_ofx(self, text: str) -> StatementDecodeResult:
        """Parse STMTTRN blocks of an OFX statement."""
        result = StatementDecodeResult(transactions=[], format=StatementFormat.OFX)

        for index, match in enumerate(OFX_BLOCK.finditer(text), start=1):
            block = match.group(1)
            raw_date = self._ofx_value(block, "DTPOSTED")
            raw_amount = self._ofx_value(block, "TRNAMT")
            description = self._ofx_value(block, "MEMO") or self._ofx_value(block, "NAME")
            fitid = self._ofx_value(block, "FITID")

            if not raw_date or not raw_amount or not description:
                result.skipped_rows += 1
                self._warn(result, f"Transaction {index}: missing date, amount or description")
                continue

            try:
                txn_date = datetime.strptime(raw_date[:8], "%Y%m%d").date()
                amount = parse_amount(raw_amount)
            except ValueError as e:
                result.skipped_rows += 1
                self._warn(result, f"Transaction {index}: {e}")
                continue

            result.transactions.append(self._build(
                StatementFormat.OFX,
                index,
                txn_date,
                description,
                amount,
                reference=fitid or None,
            ))

        return result

    def _ofx_value(self, block: str, tag: str) -> str:
        """Read a sub-tag, closed (<TAG>v</TAG>) or SGML-style (<TAG>v)."""
        closed = re.search(rf"<{tag}>(.*?)</{tag}>", block, re.IGNORECASE | re.DOTALL)
        if closed:
            return closed.group(1).strip()
        unclosed = re.search(rf"<{tag}>([^<\r\n]*)", block, re.IGNORECASE)
        return unclosed.group(1).strip() if unclosed else ""

    def _map_columns(self, header: List[str]) -> Dict[str, int]:
        """Find the column index of each role; synonyms are tried in order."""
        columns: Dict[str, int] = {}
        for role, synonyms in COLUMN_SYNONYMS.items():
            for synonym in synonyms:
                index = next((i for i, h in enumerate(header) if synonym in h), None)
                if index is not None:
                    columns[role] = index
                    break
        return columns

    @staticmethod
    def _split_line(line: str, separator: str) -> List[str]:
        """Quote-aware split of a single delimited line."""
        row = next(csv.reader([line], delimiter=separator), [])
        return [value.strip() for value in row]

    @staticmethod
    def _value(values: List[str], index: int) -> str:
        return values[index] if index < len(values) else ""

    def _build(
        self,
        fmt: StatementFormat,
        row: int,
        txn_date: date,
        description: str,
        amount_cents: int,
        balance_cents: Optional[int] = None,
        reference: Optional[str] = None,
    ) -> BankTransaction:
        return BankTransaction(
            id=reference or f"bank_{fmt.value}_{row}",
            date=txn_date,
            description=description,
            amount_cents=abs(amount_cents),
            direction=(
                TransactionDirection.DEBIT if amount_cents < 0
                else TransactionDirection.CREDIT
            ),
            balance_cents=balance_cents,
            reference=reference,
            source_format=fmt,
            source_row=row,
        )

    def _warn(self, result: StatementDecodeResult, message: str) -> None:
        result.warnings.append(message)
        logger.warning("Statement row skipped", format=result.format.value, reason=message)
