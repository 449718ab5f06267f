"""Data models for the content moderation pipeline."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Severity(Enum):
    """Policy-violation magnitude, ordered low < medium < high < critical."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other: Severity) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: Severity) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class Action(Enum):
    """Moderation outcome applied to a piece of content."""

    APPROVED = "approved"
    WARNING = "warning"
    SHADOW_BAN = "shadow_ban"
    CONTENT_REMOVED = "content_removed"
    MANUAL_REVIEW = "manual_review"


class ContentType(Enum):
    """Known kinds of community content.  Other strings pass through as-is."""

    COMMUNITY_POST = "community_post"
    COMMUNITY_MESSAGE = "community_message"
    POST_COMMENT = "post_comment"


class QueueType(Enum):
    STANDARD = "standard"
    ESCALATED = "escalated"
    APPEAL = "appeal"


class QueueStatus(Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


CATEGORIES: frozenset[str] = frozenset(
    {
        "violence_incitement",
        "safety_harassment",
        "nudity_sexual",
        "hate_speech",
        "authenticity_spam",
        "privacy_doxxing",
        "intellectual_property",
        "regulated_goods",
        "community_standards",
        "misinformation",
    }
)


# ---------------------------------------------------------------------------
# Verdict
# ---------------------------------------------------------------------------


@dataclass
class ModerationVerdict:
    """The classifier's structured judgment about one piece of content.

    Every field carries a default so a verdict is never partially populated.
    """

    is_appropriate: bool = False
    categories: frozenset[str] = frozenset()
    severity: Severity = Severity.MEDIUM
    confidence: float = 0.5
    flags: list[str] = field(default_factory=list)
    detected_language: str = "en"
    recommended_action: Action = Action.MANUAL_REVIEW
    ai_analysis: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_appropriate": self.is_appropriate,
            "categories": sorted(self.categories),
            "severity": self.severity.value,
            "confidence": self.confidence,
            "flags": list(self.flags),
            "detected_language": self.detected_language,
            "recommended_action": self.recommended_action.value,
            "ai_analysis": dict(self.ai_analysis),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModerationVerdict:
        """Rebuild a verdict previously written with :meth:`to_dict`."""
        return cls(
            is_appropriate=bool(data.get("is_appropriate", False)),
            categories=frozenset(data.get("categories", [])),
            severity=Severity(data.get("severity", Severity.MEDIUM.value)),
            confidence=float(data.get("confidence", 0.5)),
            flags=list(data.get("flags", [])),
            detected_language=data.get("detected_language", "en"),
            recommended_action=Action(
                data.get("recommended_action", Action.MANUAL_REVIEW.value)
            ),
            ai_analysis=dict(data.get("ai_analysis", {})),
        )


# ---------------------------------------------------------------------------
# Persisted records
# ---------------------------------------------------------------------------


@dataclass
class ModerationRecord:
    """One moderation decision for one content item."""

    content_id: str
    content_type: str
    user_id: str
    verdict: ModerationVerdict
    action_taken: Action
    original_content: str
    content_hash: str
    auto_actioned: bool = True
    media_urls: list[str] = field(default_factory=list)
    id: str = field(default_factory=_new_id)
    created_at: str = field(default_factory=_now_iso)
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content_id": self.content_id,
            "content_type": self.content_type,
            "user_id": self.user_id,
            "verdict": self.verdict.to_dict(),
            "action_taken": self.action_taken.value,
            "auto_actioned": self.auto_actioned,
            "original_content": self.original_content,
            "content_hash": self.content_hash,
            "media_urls": list(self.media_urls),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModerationRecord:
        return cls(
            id=data["id"],
            content_id=data["content_id"],
            content_type=data["content_type"],
            user_id=data["user_id"],
            verdict=ModerationVerdict.from_dict(data.get("verdict", {})),
            action_taken=Action(data["action_taken"]),
            auto_actioned=data.get("auto_actioned", True),
            original_content=data.get("original_content", ""),
            content_hash=data.get("content_hash", ""),
            media_urls=list(data.get("media_urls", [])),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
        )


@dataclass
class UserStrike:
    """A single escalation event recorded against a user."""

    user_id: str
    moderation_id: str
    strike_count: int
    strike_severity: Severity
    strike_expires_at: str
    is_shadow_banned: bool = False
    shadow_ban_expires_at: Optional[str] = None
    is_restricted: bool = False
    restriction_expires_at: Optional[str] = None
    appeal_submitted: bool = False
    appeal_status: str = ""
    id: str = field(default_factory=_new_id)
    created_at: str = field(default_factory=_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "moderation_id": self.moderation_id,
            "strike_count": self.strike_count,
            "strike_severity": self.strike_severity.value,
            "strike_expires_at": self.strike_expires_at,
            "is_shadow_banned": self.is_shadow_banned,
            "shadow_ban_expires_at": self.shadow_ban_expires_at,
            "is_restricted": self.is_restricted,
            "restriction_expires_at": self.restriction_expires_at,
            "appeal_submitted": self.appeal_submitted,
            "appeal_status": self.appeal_status,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserStrike:
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            moderation_id=data["moderation_id"],
            strike_count=data["strike_count"],
            strike_severity=Severity(data["strike_severity"]),
            strike_expires_at=data["strike_expires_at"],
            is_shadow_banned=data.get("is_shadow_banned", False),
            shadow_ban_expires_at=data.get("shadow_ban_expires_at"),
            is_restricted=data.get("is_restricted", False),
            restriction_expires_at=data.get("restriction_expires_at"),
            appeal_submitted=data.get("appeal_submitted", False),
            appeal_status=data.get("appeal_status", ""),
            created_at=data.get("created_at", ""),
        )


@dataclass
class ReviewQueueEntry:
    """A moderation record waiting for human adjudication."""

    moderation_id: str
    priority: int
    queue_type: QueueType = QueueType.STANDARD
    status: QueueStatus = QueueStatus.PENDING
    escalation_reason: str = ""
    id: str = field(default_factory=_new_id)
    created_at: str = field(default_factory=_now_iso)
    resolved_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "moderation_id": self.moderation_id,
            "priority": self.priority,
            "queue_type": self.queue_type.value,
            "status": self.status.value,
            "escalation_reason": self.escalation_reason,
            "created_at": self.created_at,
            "resolved_at": self.resolved_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReviewQueueEntry:
        return cls(
            id=data["id"],
            moderation_id=data["moderation_id"],
            priority=data["priority"],
            queue_type=QueueType(data.get("queue_type", QueueType.STANDARD.value)),
            status=QueueStatus(data.get("status", QueueStatus.PENDING.value)),
            escalation_reason=data.get("escalation_reason", ""),
            created_at=data.get("created_at", ""),
            resolved_at=data.get("resolved_at", ""),
        )


@dataclass
class UserReport:
    """A user-submitted report against a piece of content."""

    reporter_id: str
    reported_content_id: str
    reported_content_type: str
    reported_user_id: str
    report_category: str
    report_reason: str = ""
    additional_context: str = ""
    status: str = "pending"
    id: str = field(default_factory=_new_id)
    created_at: str = field(default_factory=_now_iso)


@dataclass
class ModerationAppeal:
    """A user's appeal against a moderation decision."""

    user_id: str
    moderation_id: str
    appeal_reason: str
    appeal_evidence: str = ""
    user_statement: str = ""
    status: str = "pending"
    id: str = field(default_factory=_new_id)
    created_at: str = field(default_factory=_now_iso)
