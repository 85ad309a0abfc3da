"""
Audit logging for reconciliation decisions.
"""

from collections import Counter
from typing import List, Optional, Union

import structlog

from ..models import AuditAction, AuditEntry

logger = structlog.get_logger()


class AuditLogger:
    """
    In-memory audit trail of reconciliation decisions.
    Every entry is mirrored to structlog; nothing is written to disk.
    """

    def __init__(self, run_id: str):
        self.run_id = run_id
        self.entries: List[AuditEntry] = []

    def log(self, entry: AuditEntry) -> None:
        """Add an audit entry."""
        self.entries.append(entry)

        logger.info(
            entry.message,
            run_id=self.run_id,
            action=entry.action.value,
            transaction_ids=entry.transaction_ids,
            rule_id=entry.rule_id,
            success=entry.success,
        )

    def log_many(self, entries: List[AuditEntry]) -> None:
        """Add multiple audit entries."""
        for entry in entries:
            self.log(entry)

    def get_entries(
        self,
        action_filter: Union[AuditAction, str, None] = None,
        success_only: bool = False,
    ) -> List[AuditEntry]:
        """Get filtered audit entries."""
        entries = self.entries

        if action_filter:
            action = AuditAction(action_filter)
            entries = [e for e in entries if e.action == action]

        if success_only:
            entries = [e for e in entries if e.success]

        return entries

    def summary(self) -> dict:
        """Get summary statistics of audit log."""
        action_counts = Counter(e.action.value for e in self.entries)
        success_count = sum(1 for e in self.entries if e.success)

        return {
            "run_id": self.run_id,
            "total_entries": len(self.entries),
            "success_count": success_count,
            "failure_count": len(self.entries) - success_count,
            "action_counts": dict(action_counts),
        }
