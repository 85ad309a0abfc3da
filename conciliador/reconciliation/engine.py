"""
Rule-driven reconciliation of bank entries against acquirer transactions.

Greedy, single pass over the bank entries in input order. For each entry
the active rules are tried by descending priority; the first rule whose
best candidate clears the acceptance score wins and that acquirer
transaction is consumed. There is no global optimization: input order
decides ties and which entry claims a contested transaction.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Set
from uuid import uuid4

import structlog

from ..config import get_settings
from ..models import (
    AcquirerTransaction,
    AuditAction,
    AuditEntry,
    BankTransaction,
    Condition,
    ConditionField,
    ConciliationMatch,
    ConciliationRule,
    Difference,
    MatchStatus,
    MatchType,
    ReconciliationResult,
)
from ..utils.audit_logger import AuditLogger
from .scoring import amount_score, date_score, description_score, keyword_score, round_half_up
from .summary import generate_summary

logger = structlog.get_logger()


@dataclass
class RuleEvaluation:
    """Best candidate found for a bank entry under one rule."""
    rule: ConciliationRule
    candidate: Optional[AcquirerTransaction]
    score: int


class ReconciliationEngine:
    """
    Greedy rule-based matcher.

    Thresholds (0-100):
        min_candidate_score  a candidate below this is never kept
        acceptance_score     the best candidate is accepted at or above this
        automatic_score      accepted matches at or above this are automatic
    """

    def __init__(
        self,
        min_candidate_score: Optional[int] = None,
        acceptance_score: Optional[int] = None,
        automatic_score: Optional[int] = None,
        acquirer_date_field: Optional[str] = None,
        brand_keywords: Optional[Iterable[str]] = None,
    ):
        self.settings = get_settings()
        self.min_candidate_score = _pick(min_candidate_score, self.settings.min_candidate_score)
        self.acceptance_score = _pick(acceptance_score, self.settings.acceptance_score)
        self.automatic_score = _pick(automatic_score, self.settings.automatic_score)
        self.acquirer_date_field = _pick(acquirer_date_field, self.settings.acquirer_date_field)
        self.brand_keywords = tuple(_pick(brand_keywords, self.settings.brand_keywords))
        self.epsilon_cents = self.settings.amount_epsilon_cents

    def match(
        self,
        bank_transactions: List[BankTransaction],
        acquirer_transactions: List[AcquirerTransaction],
        rules: List[ConciliationRule],
    ) -> List[ConciliationMatch]:
        """Pair bank entries with acquirer transactions."""
        return self.run(bank_transactions, acquirer_transactions, rules).matches

    def run(
        self,
        bank_transactions: List[BankTransaction],
        acquirer_transactions: List[AcquirerTransaction],
        rules: List[ConciliationRule],
    ) -> ReconciliationResult:
        """
        Execute a full reconciliation run.

        Args:
            bank_transactions: Bank entries; reconciled ones are skipped
            acquirer_transactions: Candidate acquirer transactions
            rules: Matching rules; inactive ones are ignored

        Returns:
            ReconciliationResult with matches, remainders, summary and audit log
        """
        audit = AuditLogger(run_id=str(uuid4()))

        # sorted() is stable: equal priorities keep their input order
        active_rules = sorted(
            (r for r in rules if r.is_active),
            key=lambda r: r.priority,
            reverse=True,
        )

        logger.info(
            "Starting reconciliation",
            run_id=audit.run_id,
            bank_transactions=len(bank_transactions),
            acquirer_transactions=len(acquirer_transactions),
            active_rules=len(active_rules),
        )

        matches: List[ConciliationMatch] = []
        used: Set[str] = set()
        unmatched_bank_ids: List[str] = []

        for bank in bank_transactions:
            if bank.is_reconciled:
                continue

            pool = [a for a in acquirer_transactions if a.id not in used]
            accepted: Optional[RuleEvaluation] = None
            best_seen = 0

            for rule in active_rules:
                evaluation = self.evaluate_rule(bank, pool, rule)
                best_seen = max(best_seen, evaluation.score)
                audit.log(AuditEntry(
                    action=AuditAction.RULE_EVALUATED,
                    transaction_ids=[bank.id] + (
                        [evaluation.candidate.id] if evaluation.candidate else []
                    ),
                    rule_id=rule.id,
                    message="Rule evaluated",
                    details={"rule_name": rule.name, "best_score": evaluation.score},
                    success=evaluation.candidate is not None,
                ))

                if evaluation.candidate is not None and evaluation.score >= self.acceptance_score:
                    accepted = evaluation
                    break

            if accepted is None:
                unmatched_bank_ids.append(bank.id)
                audit.log(AuditEntry(
                    action=AuditAction.NO_MATCH,
                    transaction_ids=[bank.id],
                    message="No acquirer transaction accepted",
                    details={"best_score": best_seen, "pool_size": len(pool)},
                    success=False,
                ))
                continue

            used.add(accepted.candidate.id)
            match = self.build_match(bank, accepted.candidate, accepted.rule, accepted.score)
            matches.append(match)
            audit.log(AuditEntry(
                action=AuditAction.MATCH_ACCEPTED,
                transaction_ids=[bank.id, accepted.candidate.id],
                rule_id=accepted.rule.id,
                message="Match accepted",
                details={
                    "rule_name": accepted.rule.name,
                    "score": match.score,
                    "match_type": match.match_type.value,
                    "status": match.status.value,
                    "differences": len(match.differences),
                },
            ))

        summary = generate_summary(bank_transactions, acquirer_transactions, matches)
        unmatched_acquirer_ids = [a.id for a in acquirer_transactions if a.id not in used]

        logger.info(
            "Reconciliation complete",
            run_id=audit.run_id,
            matches=len(matches),
            approved=summary.matched_transactions,
            unmatched_bank=len(unmatched_bank_ids),
            unmatched_acquirer=len(unmatched_acquirer_ids),
            match_percentage=summary.match_percentage,
        )

        return ReconciliationResult(
            matches=matches,
            unmatched_bank_ids=unmatched_bank_ids,
            unmatched_acquirer_ids=unmatched_acquirer_ids,
            summary=summary,
            audit_log=list(audit.entries),
        )

    def evaluate_rule(
        self,
        bank: BankTransaction,
        pool: List[AcquirerTransaction],
        rule: ConciliationRule,
    ) -> RuleEvaluation:
        """
        Find the best candidate for a bank entry under one rule.

        The first candidate with the strictly highest score wins, and
        only scores at or above the minimum candidate score count.
        """
        best: Optional[AcquirerTransaction] = None
        best_score = 0

        for candidate in pool:
            score = self.score_pair(bank, candidate, rule)
            if score < self.min_candidate_score:
                continue
            if best is None or score > best_score:
                best = candidate
                best_score = score

        return RuleEvaluation(rule=rule, candidate=best, score=best_score)

    def score_pair(
        self,
        bank: BankTransaction,
        acquirer: AcquirerTransaction,
        rule: ConciliationRule,
    ) -> int:
        """Weighted mean of the condition scores, 0 when weights sum to 0."""
        total_weight = rule.total_weight
        if total_weight == 0:
            return 0

        weighted = sum(
            self.condition_score(condition, bank, acquirer, rule) * condition.weight
            for condition in rule.conditions
        )
        return round_half_up(weighted / total_weight)

    def condition_score(
        self,
        condition: Condition,
        bank: BankTransaction,
        acquirer: AcquirerTransaction,
        rule: ConciliationRule,
    ) -> int:
        if condition.field == ConditionField.AMOUNT:
            return amount_score(
                bank.amount_cents,
                acquirer.net_amount_cents,
                rule.tolerance,
                condition.operator,
            )

        if condition.field == ConditionField.DATE:
            return date_score(bank.date, self._acquirer_date(acquirer), condition.operator)

        similarity = description_score(
            bank.description,
            acquirer.card_brand_name or acquirer.card_brand,
            condition.operator,
        )
        return max(similarity, keyword_score(bank.description, condition.operator, self.brand_keywords))

    def build_match(
        self,
        bank: BankTransaction,
        acquirer: AcquirerTransaction,
        rule: ConciliationRule,
        score: int,
    ) -> ConciliationMatch:
        """Classify an accepted pair and record its differences."""
        automatic = score >= self.automatic_score
        return ConciliationMatch(
            bank_transaction_id=bank.id,
            acquirer_transaction_id=acquirer.id,
            rule_id=rule.id,
            rule_name=rule.name,
            score=score,
            match_type=MatchType.AUTOMATIC if automatic else MatchType.SUGGESTED,
            status=(
                MatchStatus.APPROVED if rule.auto_approve and automatic
                else MatchStatus.PENDING
            ),
            differences=self.compute_differences(bank, acquirer),
            user_id=bank.user_id,
        )

    def compute_differences(
        self,
        bank: BankTransaction,
        acquirer: AcquirerTransaction,
    ) -> List[Difference]:
        """
        Fields where the pair disagrees.

        amount: bank - acquirer net, when beyond epsilon; percentage over net
        date:   bank - acquirer date in days, when non-zero
        """
        differences = []

        delta_cents = bank.amount_cents - acquirer.net_amount_cents
        if abs(delta_cents) > self.epsilon_cents:
            net = acquirer.net_amount_cents
            differences.append(Difference(
                field="amount",
                bank_value=bank.amount,
                acquirer_value=acquirer.net_amount,
                difference=delta_cents / 100.0,
                percentage=delta_cents / net * 100 if net else 0.0,
            ))

        acquirer_date = self._acquirer_date(acquirer)
        if bank.date is not None and acquirer_date is not None:
            days = (bank.date - acquirer_date).days
            if days != 0:
                differences.append(Difference(
                    field="date",
                    bank_value=bank.date.isoformat(),
                    acquirer_value=acquirer_date.isoformat(),
                    difference=days,
                ))

        return differences

    def _acquirer_date(self, acquirer: AcquirerTransaction):
        return getattr(acquirer, self.acquirer_date_field)


def _pick(value, default):
    return default if value is None else value
