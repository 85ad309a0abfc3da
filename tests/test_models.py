"""
Tests for model invariants.
"""

import pytest
from datetime import date

from conciliador.models import (
    AcquirerTransaction,
    BankTransaction,
    Condition,
    ConditionField,
    ConditionOperator,
    ConciliationRule,
    TransactionDirection,
)


class TestCondition:

    def test_coerces_strings(self):
        condition = Condition("amount", "range", 50)

        assert condition.field == ConditionField.AMOUNT
        assert condition.operator == ConditionOperator.RANGE

    @pytest.mark.parametrize("weight", [-1, 101])
    def test_weight_out_of_range(self, weight):
        with pytest.raises(ValueError):
            Condition("amount", "equals", weight)

    def test_unknown_operator(self):
        with pytest.raises(ValueError):
            Condition("amount", "between", 50)

    def test_rule_total_weight(self):
        rule = ConciliationRule(conditions=[Condition("amount", "equals", 70), Condition("date", "equals", 30)])

        assert rule.total_weight == 100


class TestBankTransaction:

    def test_amount_must_be_unsigned(self):
        with pytest.raises(ValueError):
            BankTransaction(id="b1", amount_cents=-100)

    def test_signed_amount(self):
        txn = BankTransaction(id="b1", amount_cents=5000, direction=TransactionDirection.DEBIT)

        assert txn.signed_amount_cents == -5000
        assert txn.amount == 50.00

    def test_to_dict_renders_iso_dates(self):
        txn = BankTransaction(id="b1", date=date(2024, 1, 15), amount_cents=5000)

        assert txn.to_dict()["date"] == "2024-01-15"
        assert txn.to_dict()["direction"] == "credit"


class TestAcquirerTransaction:

    def test_amounts_consistent(self):
        txn = AcquirerTransaction(gross_amount_cents=10000, net_amount_cents=9700, fee_amount_cents=300)

        assert txn.amounts_consistent()
        assert txn.gross_amount == 100.00

    def test_amounts_inconsistent(self):
        txn = AcquirerTransaction(gross_amount_cents=10000, net_amount_cents=9000, fee_amount_cents=300)

        assert not txn.amounts_consistent()

    def test_to_dict(self):
        txn = AcquirerTransaction(id="x", transaction_date=date(2024, 1, 15), net_amount_cents=12550)

        data = txn.to_dict()
        assert data["transaction_date"] == "2024-01-15"
        assert data["net_amount"] == 125.50
        assert data["payment_date"] is None
        assert data["original_amount"] is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
