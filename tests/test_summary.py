"""
Tests for run summaries and the audit logger.
"""

import pytest
from datetime import date

from conciliador.models import (
    AcquirerTransaction,
    AuditAction,
    AuditEntry,
    BankTransaction,
    ConciliationMatch,
    MatchStatus,
)
from conciliador.reconciliation import generate_summary
from conciliador.utils import AuditLogger


@pytest.fixture
def bank_transactions():
    return [
        BankTransaction(id="b1", date=date(2024, 1, 15), amount_cents=10000),
        BankTransaction(id="b2", date=date(2024, 1, 15), amount_cents=5000),
        BankTransaction(id="b3", date=date(2024, 1, 16), amount_cents=2500),
        BankTransaction(id="b4", date=date(2024, 1, 16), amount_cents=1000),
    ]


@pytest.fixture
def acquirer_transactions():
    return [
        AcquirerTransaction(id="a1", gross_amount_cents=10300, net_amount_cents=10000, fee_amount_cents=300),
        AcquirerTransaction(id="a2", gross_amount_cents=5150, net_amount_cents=5000, fee_amount_cents=150),
        AcquirerTransaction(id="a3", gross_amount_cents=2000, net_amount_cents=2000, fee_amount_cents=0),
    ]


class TestGenerateSummary:
    """Summary counts approved matches only."""

    def test_only_approved_matches_count(self, bank_transactions, acquirer_transactions):
        matches = [
            ConciliationMatch(bank_transaction_id="b1", acquirer_transaction_id="a1", status=MatchStatus.APPROVED),
            ConciliationMatch(bank_transaction_id="b2", acquirer_transaction_id="a2", status=MatchStatus.PENDING),
        ]

        summary = generate_summary(bank_transactions, acquirer_transactions, matches)

        assert summary.total_bank_transactions == 4
        assert summary.total_acquirer_transactions == 3
        assert summary.matched_transactions == 1
        assert summary.unmatched_bank_transactions == 3
        assert summary.unmatched_acquirer_transactions == 2
        assert summary.total_bank_amount_cents == 18500
        assert summary.total_acquirer_amount_cents == 17000
        assert summary.matched_amount_cents == 10000
        assert summary.difference_amount_cents == 1500
        assert summary.difference_amount == 15.00
        assert summary.match_percentage == 25.0

    def test_does_not_mutate_matches(self, bank_transactions, acquirer_transactions):
        matches = [
            ConciliationMatch(bank_transaction_id="b1", acquirer_transaction_id="a1", status=MatchStatus.PENDING),
        ]

        generate_summary(bank_transactions, acquirer_transactions, matches)

        assert len(matches) == 1
        assert matches[0].status == MatchStatus.PENDING

    def test_empty_inputs(self):
        summary = generate_summary([], [], [])

        assert summary.total_bank_transactions == 0
        assert summary.match_percentage == 0.0


class TestAuditLogger:
    """In-memory audit trail."""

    def test_filters_and_summary(self):
        audit = AuditLogger(run_id="run-1")
        audit.log_many([
            AuditEntry(action=AuditAction.MATCH_ACCEPTED, transaction_ids=["b1", "a1"], message="Match accepted"),
            AuditEntry(action=AuditAction.NO_MATCH, transaction_ids=["b2"], message="No match", success=False),
            AuditEntry(action=AuditAction.RULE_EVALUATED, transaction_ids=["b2"], message="Rule evaluated"),
        ])

        assert len(audit.get_entries()) == 3
        assert len(audit.get_entries(action_filter="no_match")) == 1
        assert len(audit.get_entries(action_filter=AuditAction.MATCH_ACCEPTED)) == 1
        assert len(audit.get_entries(success_only=True)) == 2

        summary = audit.summary()
        assert summary["run_id"] == "run-1"
        assert summary["total_entries"] == 3
        assert summary["success_count"] == 2
        assert summary["failure_count"] == 1
        assert summary["action_counts"]["match_accepted"] == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
