"""
Tests for the greedy reconciliation engine.
"""

import pytest
from datetime import date, timedelta

from conciliador import reconcile
from conciliador.models import (
    AcquirerTransaction,
    AuditAction,
    BankTransaction,
    BankTransactionStatus,
    Condition,
    ConciliationRule,
    MatchStatus,
    MatchType,
    TransactionDirection,
)
from conciliador.reconciliation import ReconciliationEngine

DAY = date(2024, 1, 15)


def bank_txn(id, amount_cents, day=DAY, description="CIELO VENDAS", **kwargs):
    return BankTransaction(
        id=id,
        date=day,
        description=description,
        amount_cents=amount_cents,
        direction=TransactionDirection.CREDIT,
        **kwargs,
    )


def acquirer_txn(id, net_cents, day=DAY, brand_name="Visa", **kwargs):
    return AcquirerTransaction(
        id=id,
        transaction_date=day,
        gross_amount_cents=net_cents,
        net_amount_cents=net_cents,
        card_brand="082",
        card_brand_name=brand_name,
        **kwargs,
    )


@pytest.fixture
def engine():
    return ReconciliationEngine()


@pytest.fixture
def exact_rule():
    return ConciliationRule(
        name="Valor e data exatos",
        priority=10,
        conditions=[
            Condition("amount", "equals", 70),
            Condition("date", "equals", 30),
        ],
        tolerance=1,
        auto_approve=True,
    )


@pytest.fixture
def loose_rule():
    return ConciliationRule(
        name="Valor aproximado",
        priority=1,
        conditions=[
            Condition("amount", "range", 60),
            Condition("date", "range", 40),
        ],
    )


class TestConcreteScenario:
    """Amount and date equal under an auto-approving rule."""

    def test_exact_pair_is_automatic_and_approved(self, engine, exact_rule):
        result = engine.run(
            [bank_txn("b1", 12500)],
            [acquirer_txn("a1", 12500)],
            [exact_rule],
        )

        assert len(result.matches) == 1
        match = result.matches[0]
        assert match.bank_transaction_id == "b1"
        assert match.acquirer_transaction_id == "a1"
        assert match.score == 100
        assert match.match_type == MatchType.AUTOMATIC
        assert match.status == MatchStatus.APPROVED
        assert match.rule_id == exact_rule.id
        assert match.is_exact

    def test_without_auto_approve_stays_pending(self, engine, exact_rule):
        exact_rule.auto_approve = False
        result = engine.run([bank_txn("b1", 12500)], [acquirer_txn("a1", 12500)], [exact_rule])

        assert result.matches[0].match_type == MatchType.AUTOMATIC
        assert result.matches[0].status == MatchStatus.PENDING

    def test_suggested_below_automatic_score(self, engine, exact_rule):
        # amount matches (70), date differs (0): score 70
        result = engine.run(
            [bank_txn("b1", 12500)],
            [acquirer_txn("a1", 12500, day=DAY - timedelta(days=1))],
            [exact_rule],
        )

        match = result.matches[0]
        assert match.score == 70
        assert match.match_type == MatchType.SUGGESTED
        assert match.status == MatchStatus.PENDING


class TestThresholds:
    """Candidates below the acceptance score are not matched."""

    def test_below_acceptance_is_unmatched(self, engine):
        rule = ConciliationRule(
            name="Data",
            conditions=[Condition("amount", "equals", 40), Condition("date", "equals", 60)],
        )
        result = engine.run([bank_txn("b1", 12500)], [acquirer_txn("a1", 99900)], [rule])

        assert result.matches == []
        assert result.unmatched_bank_ids == ["b1"]
        assert result.unmatched_acquirer_ids == ["a1"]

    def test_zero_weight_rule_never_matches(self, engine):
        rule = ConciliationRule(name="Vazia", conditions=[Condition("amount", "equals", 0)])
        result = engine.run([bank_txn("b1", 12500)], [acquirer_txn("a1", 12500)], [rule])

        assert result.matches == []

    def test_custom_thresholds(self, exact_rule):
        engine = ReconciliationEngine(acceptance_score=80)
        result = engine.run(
            [bank_txn("b1", 12500)],
            [acquirer_txn("a1", 12500, day=DAY - timedelta(days=1))],
            [exact_rule],
        )

        assert result.matches == []


class TestRuleOrder:
    """Rules run by descending priority; the first accepted rule wins."""

    def test_first_rule_wins(self, engine, exact_rule, loose_rule):
        result = engine.run(
            [bank_txn("b1", 12500)],
            [acquirer_txn("a1", 12500)],
            [loose_rule, exact_rule],
        )

        assert result.matches[0].rule_name == "Valor e data exatos"

    def test_falls_through_to_lower_priority(self, engine, exact_rule, loose_rule):
        # 1% off and one day apart: exact rule scores 0, loose rule 96
        result = engine.run(
            [bank_txn("b1", 10000)],
            [acquirer_txn("a1", 9900, day=DAY - timedelta(days=1))],
            [exact_rule, loose_rule],
        )

        match = result.matches[0]
        assert match.rule_name == "Valor aproximado"
        assert match.score == 96
        assert match.match_type == MatchType.AUTOMATIC
        assert match.status == MatchStatus.PENDING

    def test_inactive_rules_are_ignored(self, engine, exact_rule):
        exact_rule.is_active = False
        result = engine.run([bank_txn("b1", 12500)], [acquirer_txn("a1", 12500)], [exact_rule])

        assert result.matches == []


class TestGreedyMatching:
    """Each acquirer transaction is consumed at most once, in input order."""

    def test_exclusivity(self, engine, loose_rule):
        bank = [bank_txn(f"b{i}", 10000) for i in range(5)]
        acquirer = [acquirer_txn(f"a{i}", 10000) for i in range(3)]

        result = engine.run(bank, acquirer, [loose_rule])

        used = [m.acquirer_transaction_id for m in result.matches]
        assert len(used) == len(set(used)) == 3
        assert result.unmatched_bank_ids == ["b3", "b4"]
        assert result.unmatched_acquirer_ids == []

    def test_first_candidate_wins_ties(self, engine, exact_rule):
        result = engine.run(
            [bank_txn("b1", 12500)],
            [acquirer_txn("a1", 12500), acquirer_txn("a2", 12500)],
            [exact_rule],
        )

        assert result.matches[0].acquirer_transaction_id == "a1"

    def test_order_dependence(self, engine, loose_rule):
        """A1 fits both entries exactly; A2 is a worse but acceptable fit."""
        b1 = bank_txn("B1", 10000)
        b2 = bank_txn("B2", 10000)
        a1 = acquirer_txn("A1", 10000)
        a2 = acquirer_txn("A2", 9750)

        forward = engine.run([b1, b2], [a1, a2], [loose_rule])
        pairs = {m.bank_transaction_id: m.acquirer_transaction_id for m in forward.matches}
        assert pairs == {"B1": "A1", "B2": "A2"}

        backward = engine.run([b2, b1], [a1, a2], [loose_rule])
        pairs = {m.bank_transaction_id: m.acquirer_transaction_id for m in backward.matches}
        assert pairs == {"B2": "A1", "B1": "A2"}

    def test_reconciled_entries_are_skipped(self, engine, exact_rule):
        bank = [
            bank_txn("b1", 12500, status=BankTransactionStatus.RECONCILED),
            bank_txn("b2", 12500),
        ]
        result = engine.run(bank, [acquirer_txn("a1", 12500)], [exact_rule])

        assert [m.bank_transaction_id for m in result.matches] == ["b2"]
        assert "b1" not in result.unmatched_bank_ids

    def test_runs_are_independent(self, engine, exact_rule):
        bank = [bank_txn("b1", 12500)]
        acquirer = [acquirer_txn("a1", 12500)]

        first = engine.run(bank, acquirer, [exact_rule])
        second = engine.run(bank, acquirer, [exact_rule])

        assert len(first.matches) == len(second.matches) == 1

    def test_match_returns_list(self, engine, exact_rule):
        matches = engine.match([bank_txn("b1", 12500)], [acquirer_txn("a1", 12500)], [exact_rule])

        assert len(matches) == 1


class TestScoringInputs:
    """Which acquirer fields the bank entry is compared against."""

    def test_compares_net_amount(self, engine, exact_rule):
        acquirer = acquirer_txn("a1", 9700)
        acquirer.gross_amount_cents = 10000
        acquirer.fee_amount_cents = 300

        result = engine.run([bank_txn("b1", 9700)], [acquirer], [exact_rule])

        assert result.matches[0].score == 100

    def test_payment_date_field(self, exact_rule):
        engine = ReconciliationEngine(acquirer_date_field="payment_date")
        acquirer = acquirer_txn("a1", 12500, day=DAY - timedelta(days=30), payment_date=DAY)

        result = engine.run([bank_txn("b1", 12500)], [acquirer], [exact_rule])

        assert result.matches[0].score == 100

    def test_description_against_brand(self, engine):
        rule = ConciliationRule(
            name="Bandeira",
            conditions=[Condition("description", "contains", 100)],
        )
        result = engine.run(
            [bank_txn("b1", 100, description="VENDA MASTERCARD")],
            [acquirer_txn("a1", 999, brand_name="Elo")],
            [rule],
        )

        # "mastercard" mentions the "card" keyword
        assert result.matches[0].score == 80

    def test_brand_keyword_does_not_lift_unrelated_entry(self, engine):
        rule = ConciliationRule(
            name="Descricao",
            conditions=[Condition("description", "fuzzy", 100)],
        )
        bank = bank_txn("b1", 100, description="ALUGUEL SALA")
        acquirer = acquirer_txn("a1", 999999, brand_name="Mastercard")

        # "card" sits in the brand name, not in the bank description
        assert engine.score_pair(bank, acquirer, rule) < 50
        assert engine.run([bank], [acquirer], [rule]).matches == []


class TestDifferences:
    """Amount and date disagreements on accepted pairs."""

    def test_amount_and_date_differences(self, engine, loose_rule):
        result = engine.run(
            [bank_txn("b1", 10000)],
            [acquirer_txn("a1", 9900, day=DAY - timedelta(days=1))],
            [loose_rule],
        )

        differences = {d.field: d for d in result.matches[0].differences}
        assert differences["amount"].difference == 1.00
        assert differences["amount"].bank_value == 100.00
        assert differences["amount"].acquirer_value == 99.00
        assert differences["amount"].percentage == pytest.approx(100 / 9900 * 100)
        assert differences["date"].difference == 1
        assert differences["date"].bank_value == "2024-01-15"

    def test_one_cent_is_not_a_difference(self, engine, exact_rule):
        result = engine.run([bank_txn("b1", 12501)], [acquirer_txn("a1", 12500)], [exact_rule])

        assert result.matches[0].differences == []


class TestAuditTrail:
    """Decisions recorded during a run."""

    def test_accepted_and_unmatched_entries(self, engine, exact_rule):
        result = engine.run(
            [bank_txn("b1", 12500), bank_txn("b2", 55500)],
            [acquirer_txn("a1", 12500)],
            [exact_rule],
        )

        accepted = [e for e in result.audit_log if e.action == AuditAction.MATCH_ACCEPTED]
        no_match = [e for e in result.audit_log if e.action == AuditAction.NO_MATCH]
        evaluated = [e for e in result.audit_log if e.action == AuditAction.RULE_EVALUATED]

        assert len(accepted) == 1
        assert accepted[0].transaction_ids == ["b1", "a1"]
        assert accepted[0].details["score"] == 100
        assert len(no_match) == 1
        assert no_match[0].transaction_ids == ["b2"]
        assert not no_match[0].success
        assert len(evaluated) == 2


class TestFacade:

    def test_reconcile(self, exact_rule):
        result = reconcile([bank_txn("b1", 12500)], [acquirer_txn("a1", 12500)], [exact_rule])

        assert result.summary.matched_transactions == 1
        assert result.summary.match_percentage == 100.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
