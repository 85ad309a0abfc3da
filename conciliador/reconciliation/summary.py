"""Summary statistics of a reconciliation run."""

from typing import List

from ..models import (
    AcquirerTransaction,
    BankTransaction,
    ConciliationMatch,
    ConciliationSummary,
)


def generate_summary(
    bank_transactions: List[BankTransaction],
    acquirer_transactions: List[AcquirerTransaction],
    matches: List[ConciliationMatch],
) -> ConciliationSummary:
    """
    Summarize a run over its approved matches.

    Pending suggestions are not counted as matched. Amounts compare
    the bank side against acquirer net amounts.
    """
    approved = [m for m in matches if m.is_approved]
    bank_by_id = {t.id: t for t in bank_transactions}

    total_bank = sum(t.amount_cents for t in bank_transactions)
    total_acquirer = sum(t.net_amount_cents for t in acquirer_transactions)
    matched_amount = sum(
        bank_by_id[m.bank_transaction_id].amount_cents
        for m in approved
        if m.bank_transaction_id in bank_by_id
    )

    bank_count = len(bank_transactions)
    match_percentage = round(len(approved) / bank_count * 100, 2) if bank_count else 0.0

    return ConciliationSummary(
        total_bank_transactions=bank_count,
        total_acquirer_transactions=len(acquirer_transactions),
        matched_transactions=len(approved),
        unmatched_bank_transactions=bank_count - len(approved),
        unmatched_acquirer_transactions=len(acquirer_transactions) - len(approved),
        total_bank_amount_cents=total_bank,
        total_acquirer_amount_cents=total_acquirer,
        matched_amount_cents=matched_amount,
        difference_amount_cents=total_bank - total_acquirer,
        match_percentage=match_percentage,
    )
