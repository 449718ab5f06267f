"""Community content triggers.

Entry points for the events the community tables produce:

- ``INSERT`` webhooks for new posts, messages and comments
- user reports against existing content
- appeals against a moderation decision

If the pipeline fails for new content, the content is flagged for manual
review instead of being left unmoderated.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from streamcentives.moderation.errors import InvalidRequest, ModerationError
from streamcentives.moderation.models import (
    Action,
    ContentType,
    ModerationAppeal,
    ModerationRecord,
    ModerationVerdict,
    QueueType,
    Severity,
    UserReport,
)
from streamcentives.moderation.pipeline import (
    ModerationOutcome,
    ModerationPipeline,
    ModerationRequest,
    content_hash,
)
from streamcentives.moderation.review_queue import (
    APPEAL_PRIORITY,
    SYSTEM_ERROR_PRIORITY,
    USER_REPORT_PRIORITY,
)
from streamcentives.moderation.store import ModerationStore

logger = logging.getLogger(__name__)

SYSTEM_ERROR_FLAG = "Moderation API error - requires manual review"

# table name -> content type
TABLE_CONTENT_TYPES = {
    "community_posts": ContentType.COMMUNITY_POST.value,
    "community_messages": ContentType.COMMUNITY_MESSAGE.value,
    "post_comments": ContentType.POST_COMMENT.value,
}
CONTENT_TYPE_TABLES = {v: k for k, v in TABLE_CONTENT_TYPES.items()}

ContentLoader = Callable[[str, str], Optional[dict]]


def extract_content(table: str, row: dict) -> Optional[tuple[str, list[str], str]]:
    """Return ``(content, media_urls, user_id)`` for a table row.

    Posts combine title and body and carry media; messages and comments
    only have a body.  Returns None for tables that are not moderated.
    """
    if table == "community_posts":
        content = f"{row.get('title') or ''} {row.get('content') or ''}".strip()
        return content, list(row.get("media_urls") or []), row.get("author_id", "")
    if table in ("community_messages", "post_comments"):
        return row.get("content") or "", [], row.get("user_id", "")
    return None


class ContentActions:
    """Applies moderation outcomes to community content rows.

    Removal is a soft delete so the content survives for appeals and audit.
    """

    def __init__(self, store: ModerationStore) -> None:
        self._store = store

    def remove(self, table: str, content_id: str) -> dict[str, Any]:
        logger.info("Removing content from %s: %s", table, content_id)
        if table == "community_posts":
            return self._store.set_content_state(table, content_id, is_deleted=True)
        return self._store.set_content_state(
            table, content_id, deleted_at=datetime.now(timezone.utc).isoformat()
        )

    def shadow_ban(self, table: str, content_id: str) -> dict[str, Any]:
        logger.info("Shadow banning content from %s: %s", table, content_id)
        return self._store.set_content_state(
            table,
            content_id,
            is_shadow_banned=True,
            shadow_banned_at=datetime.now(timezone.utc).isoformat(),
        )


class CommunityModerator:
    """Dispatches community events into the moderation pipeline."""

    def __init__(
        self,
        pipeline: ModerationPipeline,
        actions: Optional[ContentActions] = None,
        content_loader: Optional[ContentLoader] = None,
    ) -> None:
        self._pipeline = pipeline
        self._store = pipeline.store
        self._actions = actions or ContentActions(self._store)
        self._content_loader = content_loader

    # -- dispatch ------------------------------------------------------------

    def dispatch(self, body: Any) -> Any:
        """Route a webhook body by its ``type`` field."""
        if not isinstance(body, dict):
            raise InvalidRequest("Request body must be a JSON object")
        event_type = body.get("type")
        if event_type == "INSERT":
            row = body.get("record") or {}
            if not isinstance(row, dict):
                raise InvalidRequest("INSERT record must be a JSON object")
            return self.handle_insert(body.get("table", ""), row)
        if event_type == "user_report":
            return self.handle_report(
                reporter_id=body.get("reporter_id", ""),
                content_id=body.get("reported_content_id", ""),
                content_type=body.get("reported_content_type", ""),
                reported_user_id=body.get("reported_user_id", ""),
                category=body.get("report_category", ""),
                reason=body.get("report_reason", ""),
                context=body.get("additional_context", ""),
            )
        if event_type == "appeal":
            return self.handle_appeal(
                user_id=body.get("user_id", ""),
                moderation_id=body.get("moderation_id", ""),
                reason=body.get("appeal_reason", ""),
                evidence=body.get("appeal_evidence", ""),
                statement=body.get("user_statement", ""),
            )
        logger.info("Ignoring community event of type %r", event_type)
        return None

    # -- new content ---------------------------------------------------------

    def handle_insert(self, table: str, row: dict) -> Optional[ModerationOutcome]:
        """Moderate a freshly inserted row and apply the resulting action."""
        extracted = extract_content(table, row)
        if extracted is None:
            logger.info("Unsupported table for moderation: %s", table)
            return None
        content, media_urls, user_id = extracted
        if not content.strip() and not media_urls:
            logger.info("No content to moderate for %s %s", table, row.get("id"))
            return None

        content_type = TABLE_CONTENT_TYPES[table]
        if not row.get("id") or not user_id:
            raise InvalidRequest(f"{table} row is missing its id or owner")

        logger.info("Moderating new %s content: %s", table, row.get("id"))
        try:
            # Media-only posts have no text and fail validation; they are
            # flagged like any other pipeline failure.
            request = ModerationRequest.from_dict(
                {
                    "content": content,
                    "contentId": row.get("id"),
                    "contentType": content_type,
                    "userId": user_id,
                    "mediaUrls": media_urls,
                }
            )
            outcome = self._pipeline.moderate(request)
        except ModerationError as exc:
            logger.error("Error moderating %s %s: %s", table, row.get("id"), exc)
            self.flag_for_manual_review(table, row, content_type, user_id, content)
            return None

        action = outcome.decision.final_action
        if action == Action.CONTENT_REMOVED:
            self._actions.remove(table, outcome.record.content_id)
        elif action == Action.SHADOW_BAN:
            self._actions.shadow_ban(table, outcome.record.content_id)
        return outcome

    def flag_for_manual_review(
        self,
        table: str,
        row: dict,
        content_type: str,
        user_id: str,
        content: str = "",
    ) -> Optional[ModerationRecord]:
        """Store a conservative record and escalate it after a pipeline failure."""
        logger.info("Flagging %s content for manual review: %s", table, row.get("id"))
        original = content or row.get("content") or row.get("title") or "Content unavailable"
        record = ModerationRecord(
            content_id=str(row.get("id", "")),
            content_type=content_type,
            user_id=user_id,
            verdict=ModerationVerdict(
                is_appropriate=False,
                severity=Severity.MEDIUM,
                confidence=0.1,
                flags=[SYSTEM_ERROR_FLAG],
                recommended_action=Action.MANUAL_REVIEW,
            ),
            action_taken=Action.MANUAL_REVIEW,
            auto_actioned=False,
            original_content=original,
            content_hash=content_hash(original),
        )
        try:
            self._store.insert_record(record)
        except ModerationError:
            logger.error("Error flagging content for manual review", exc_info=True)
            return None
        self._pipeline.review_queue.escalate(
            record.id,
            priority=SYSTEM_ERROR_PRIORITY,
            queue_type=QueueType.ESCALATED,
            reason="Moderation system error",
        )
        return record

    # -- reports -------------------------------------------------------------

    def handle_report(
        self,
        reporter_id: str,
        content_id: str,
        content_type: str,
        reported_user_id: str,
        category: str,
        reason: str = "",
        context: str = "",
    ) -> UserReport:
        """Store a user report and escalate or freshly moderate the content."""
        if not (reporter_id and content_id and content_type):
            raise InvalidRequest(
                "reporter_id, reported_content_id and reported_content_type are required"
            )

        report = self._store.insert_report(
            UserReport(
                reporter_id=reporter_id,
                reported_content_id=content_id,
                reported_content_type=content_type,
                reported_user_id=reported_user_id,
                report_category=category,
                report_reason=reason,
                additional_context=context,
            )
        )

        existing = self._store.find_record(content_id, content_type)
        if existing is not None:
            self._pipeline.review_queue.escalate(
                existing.id,
                priority=USER_REPORT_PRIORITY,
                queue_type=QueueType.ESCALATED,
                reason=f"User report: {category}",
            )
        else:
            self._moderate_reported(content_id, content_type, reported_user_id)
        return report

    def _moderate_reported(self, content_id: str, content_type: str, user_id: str) -> None:
        table = CONTENT_TYPE_TABLES.get(content_type)
        if table is None:
            logger.error("Unsupported content type for report: %s", content_type)
            return
        if self._content_loader is None:
            logger.warning(
                "No content loader configured; cannot moderate %s %s", content_type, content_id
            )
            return

        row = self._content_loader(content_id, content_type)
        if not row:
            logger.warning("Reported %s %s not found", content_type, content_id)
            return
        row = {**row, "id": content_id}
        row.setdefault("author_id" if table == "community_posts" else "user_id", user_id)
        try:
            self.handle_insert(table, row)
        except InvalidRequest as exc:
            logger.error("Cannot moderate reported %s %s: %s", content_type, content_id, exc)

    # -- appeals -------------------------------------------------------------

    def handle_appeal(
        self,
        user_id: str,
        moderation_id: str,
        reason: str,
        evidence: str = "",
        statement: str = "",
    ) -> ModerationAppeal:
        """Record an appeal, queue it for review and mark the related strikes."""
        if not (user_id and moderation_id):
            raise InvalidRequest("user_id and moderation_id are required")

        appeal = self._store.insert_appeal(
            ModerationAppeal(
                user_id=user_id,
                moderation_id=moderation_id,
                appeal_reason=reason,
                appeal_evidence=evidence,
                user_statement=statement,
            )
        )
        self._pipeline.review_queue.escalate(
            moderation_id,
            priority=APPEAL_PRIORITY,
            queue_type=QueueType.APPEAL,
        )
        self._store.mark_appeal_submitted(moderation_id)
        return appeal
