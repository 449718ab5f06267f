"""Manual review queue gate."""

from __future__ import annotations

import logging
from typing import Optional

from streamcentives.moderation.errors import PersistenceError
from streamcentives.moderation.models import (
    QueueStatus,
    QueueType,
    ReviewQueueEntry,
    Severity,
)
from streamcentives.moderation.store import ModerationStore

logger = logging.getLogger(__name__)

HIGH_SEVERITY_PRIORITY = 8
STANDARD_PRIORITY = 5
APPEAL_PRIORITY = 7
SYSTEM_ERROR_PRIORITY = 8
USER_REPORT_PRIORITY = 9


def priority_for(severity: Severity) -> int:
    return HIGH_SEVERITY_PRIORITY if severity == Severity.HIGH else STANDARD_PRIORITY


class ReviewQueue:
    """Enqueues moderation records for human adjudication.

    Enqueueing is not idempotent; a retried request may add a duplicate
    entry for the same moderation record.
    """

    def __init__(self, store: ModerationStore) -> None:
        self._store = store

    def enqueue(self, moderation_id: str, severity: Severity) -> Optional[ReviewQueueEntry]:
        """Queue a borderline verdict.  Returns ``None`` if the write failed."""
        return self.escalate(
            moderation_id,
            priority=priority_for(severity),
            queue_type=QueueType.STANDARD,
        )

    def escalate(
        self,
        moderation_id: str,
        priority: int,
        queue_type: QueueType = QueueType.ESCALATED,
        reason: str = "",
    ) -> Optional[ReviewQueueEntry]:
        """Queue a record with an explicit priority (reports, appeals, system errors)."""
        entry = ReviewQueueEntry(
            moderation_id=moderation_id,
            priority=priority,
            queue_type=queue_type,
            status=QueueStatus.PENDING,
            escalation_reason=reason,
        )
        try:
            self._store.insert_queue_entry(entry)
        except PersistenceError:
            logger.error(
                "Error adding moderation %s to %s review queue",
                moderation_id,
                queue_type.value,
                exc_info=True,
            )
            return None
        logger.info(
            "Queued moderation %s for review (type=%s, priority=%d)",
            moderation_id,
            queue_type.value,
            priority,
        )
        return entry

    def list_pending(self) -> list[ReviewQueueEntry]:
        """Pending entries, most urgent first, oldest first within a priority."""
        entries = self._store.list_queue(status=QueueStatus.PENDING)
        entries.sort(key=lambda e: e.created_at)
        entries.sort(key=lambda e: e.priority, reverse=True)
        return entries

    def resolve(self, entry_id: str) -> Optional[ReviewQueueEntry]:
        return self._store.resolve_queue_entry(entry_id)
