"""Pydantic models for API request/response serialization.

These models mirror the moderation dataclasses and provide proper JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Moderation records
# ---------------------------------------------------------------------------


class VerdictResponse(BaseModel):
    """Mirrors streamcentives.moderation.models.ModerationVerdict."""

    is_appropriate: bool = False
    categories: list[str] = Field(default_factory=list)
    severity: str = "medium"
    confidence: float = 0.5
    flags: list[str] = Field(default_factory=list)
    detected_language: str = "en"
    recommended_action: str = "manual_review"
    ai_analysis: dict[str, Any] = Field(default_factory=dict)


class ModerationRecordResponse(BaseModel):
    """Mirrors streamcentives.moderation.models.ModerationRecord."""

    id: str
    content_id: str
    content_type: str
    user_id: str
    verdict: VerdictResponse = Field(default_factory=VerdictResponse)
    action_taken: str
    auto_actioned: bool = True
    content_hash: str = ""
    media_urls: list[str] = Field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""


# ---------------------------------------------------------------------------
# Review queue
# ---------------------------------------------------------------------------


class ReviewQueueEntryResponse(BaseModel):
    """Mirrors streamcentives.moderation.models.ReviewQueueEntry."""

    id: str
    moderation_id: str
    priority: int
    queue_type: str = "standard"
    status: str = "pending"
    escalation_reason: str = ""
    created_at: str = ""
    resolved_at: str = ""


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserStrikeResponse(BaseModel):
    """Mirrors streamcentives.moderation.models.UserStrike."""

    id: str
    moderation_id: str
    strike_count: int
    strike_severity: str
    strike_expires_at: str
    is_shadow_banned: bool = False
    shadow_ban_expires_at: Optional[str] = None
    is_restricted: bool = False
    restriction_expires_at: Optional[str] = None
    appeal_submitted: bool = False
    appeal_status: str = ""
    created_at: str = ""


class UserModerationStatusResponse(BaseModel):
    """Active penalties for one user."""

    user_id: str
    active_strike_count: int = 0
    is_restricted: bool = False
    is_shadow_banned: bool = False
    strikes: list[UserStrikeResponse] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------

SeverityName = Literal["low", "medium", "high", "critical"]


class ThresholdModel(BaseModel):
    """A confidence gate, optionally tied to a severity."""

    confidence: float = Field(ge=0.0, le=1.0)
    severity: Optional[SeverityName] = None


class ThresholdsResponse(BaseModel):
    """The three threshold settings keyed as they are stored."""

    auto_remove_threshold: ThresholdModel
    shadow_ban_threshold: ThresholdModel
    manual_review_threshold: ThresholdModel


class ThresholdsUpdateRequest(BaseModel):
    """Request body for changing thresholds.  Omitted settings are left alone."""

    auto_remove_threshold: Optional[ThresholdModel] = None
    shadow_ban_threshold: Optional[ThresholdModel] = None
    manual_review_threshold: Optional[ThresholdModel] = None
