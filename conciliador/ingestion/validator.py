"""
Trailer validation for decoded acquirer extracts.

The trailer declares how many records the file holds and the summed
gross and net amounts of its detail records. Disagreement usually
means lines were lost in transit or the offset table does not fit the
file; the decoded details are still usable, so mismatches are reported
as warnings, never raised.
"""

from dataclasses import dataclass, field
from typing import List, Optional, TYPE_CHECKING

import structlog

from ..models import AcquirerTransaction

if TYPE_CHECKING:
    from .edi_parser import ExtractTrailer

logger = structlog.get_logger()


@dataclass
class TrailerValidationResult:
    """Result of checking details against the trailer."""
    is_valid: bool
    expected_records: int
    declared_records: int
    summed_gross_cents: int
    summed_net_cents: int
    declared_gross_cents: int = 0
    declared_net_cents: int = 0
    warnings: List[str] = field(default_factory=list)

    @property
    def gross_difference_cents(self) -> int:
        return self.summed_gross_cents - self.declared_gross_cents

    @property
    def net_difference_cents(self) -> int:
        return self.summed_net_cents - self.declared_net_cents


class TrailerValidator:
    """
    Validates decoded detail records against the extract trailer.

    Checks:
        declared_records == details + 2   (header + trailer)
        |sum(gross) - declared_gross| <= epsilon
        |sum(net) - declared_net| <= epsilon
    """

    def __init__(self, epsilon_cents: int = 1):
        """
        Initialize validator.

        Args:
            epsilon_cents: Tolerated rounding difference on the totals
        """
        self.epsilon_cents = epsilon_cents

    def validate(
        self,
        transactions: List[AcquirerTransaction],
        trailer: Optional["ExtractTrailer"],
    ) -> TrailerValidationResult:
        """
        Compare decoded transactions with the trailer totals.

        Args:
            transactions: Decoded detail records
            trailer: Decoded trailer, or None when the file has none

        Returns:
            TrailerValidationResult; always valid when there is no trailer
        """
        summed_gross = sum(t.gross_amount_cents for t in transactions)
        summed_net = sum(t.net_amount_cents for t in transactions)
        expected_records = len(transactions) + 2

        if trailer is None:
            return TrailerValidationResult(
                is_valid=True,
                expected_records=expected_records,
                declared_records=0,
                summed_gross_cents=summed_gross,
                summed_net_cents=summed_net,
            )

        result = TrailerValidationResult(
            is_valid=True,
            expected_records=expected_records,
            declared_records=trailer.total_records,
            summed_gross_cents=summed_gross,
            summed_net_cents=summed_net,
            declared_gross_cents=trailer.total_gross_cents,
            declared_net_cents=trailer.total_net_cents,
        )

        if trailer.total_records != expected_records:
            result.warnings.append(
                f"Trailer declares {trailer.total_records} records, "
                f"decoded {len(transactions)} details (+2 header/trailer)"
            )

        if abs(result.gross_difference_cents) > self.epsilon_cents:
            result.warnings.append(
                f"Gross total mismatch: details sum {summed_gross / 100:.2f}, "
                f"trailer declares {trailer.total_gross_cents / 100:.2f}"
            )

        if abs(result.net_difference_cents) > self.epsilon_cents:
            result.warnings.append(
                f"Net total mismatch: details sum {summed_net / 100:.2f}, "
                f"trailer declares {trailer.total_net_cents / 100:.2f}"
            )

        if result.warnings:
            result.is_valid = False
            logger.warning(
                "Trailer validation failed",
                declared_records=trailer.total_records,
                expected_records=expected_records,
                gross_difference_cents=result.gross_difference_cents,
                net_difference_cents=result.net_difference_cents,
            )

        return result
