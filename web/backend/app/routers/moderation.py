"""Moderation router -- pipeline entry points, review queue, strikes and thresholds.

``/moderate`` and ``/community`` always answer with the
``{"success": ...}`` envelope so callers can treat any failure as
"pending review" without parsing FastAPI's error format.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from streamcentives.config import ModerationConfig
from streamcentives.moderation.community import CommunityModerator
from streamcentives.moderation.errors import ModerationError
from streamcentives.moderation.models import (
    ModerationRecord,
    ReviewQueueEntry,
    UserStrike,
)
from streamcentives.moderation.pipeline import ModerationPipeline, error_response
from streamcentives.moderation.policy import THRESHOLD_SETTINGS, ModerationThresholds
from web.backend.app.models.api import (
    ModerationRecordResponse,
    ReviewQueueEntryResponse,
    ThresholdsResponse,
    ThresholdsUpdateRequest,
    UserModerationStatusResponse,
    UserStrikeResponse,
    VerdictResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/moderation", tags=["moderation"])

# ---------------------------------------------------------------------------
# Shared pipeline
# ---------------------------------------------------------------------------

_pipeline: ModerationPipeline | None = None


def get_pipeline() -> ModerationPipeline:
    """Return the process-wide pipeline, built from the environment on first use."""
    global _pipeline
    if _pipeline is None:
        _pipeline = ModerationPipeline.from_config(ModerationConfig.from_env())
    return _pipeline


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _record_response(r: ModerationRecord) -> ModerationRecordResponse:
    return ModerationRecordResponse(
        id=r.id,
        content_id=r.content_id,
        content_type=r.content_type,
        user_id=r.user_id,
        verdict=VerdictResponse(**r.verdict.to_dict()),
        action_taken=r.action_taken.value,
        auto_actioned=r.auto_actioned,
        content_hash=r.content_hash,
        media_urls=r.media_urls,
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


def _queue_response(e: ReviewQueueEntry) -> ReviewQueueEntryResponse:
    return ReviewQueueEntryResponse(**e.to_dict())


def _strike_response(s: UserStrike) -> UserStrikeResponse:
    data = s.to_dict()
    data.pop("user_id")
    return UserStrikeResponse(**data)


def _thresholds_response(t: ModerationThresholds) -> ThresholdsResponse:
    return ThresholdsResponse(**t.to_settings())


# ---------------------------------------------------------------------------
# Pipeline endpoints
# ---------------------------------------------------------------------------


@router.post("/moderate", summary="Moderate one content item")
def moderate_content(
    body: Any = Body(...),
    pipeline: ModerationPipeline = Depends(get_pipeline),
):
    """Classify content, apply the threshold policy and record strikes / reviews."""
    status_code, payload = pipeline.handle(body)
    return JSONResponse(status_code=status_code, content=payload)


@router.post("/community", summary="Handle a community content event")
def community_event(
    body: Any = Body(...),
    pipeline: ModerationPipeline = Depends(get_pipeline),
):
    """Route an ``INSERT`` webhook, user report or appeal."""
    try:
        CommunityModerator(pipeline).dispatch(body)
    except ModerationError as exc:
        logger.error("Community event failed: %s", exc)
        return JSONResponse(status_code=exc.status_code, content=error_response(exc))
    return {"success": True}


@router.get(
    "/records/{record_id}",
    response_model=ModerationRecordResponse,
    summary="Get a moderation record",
)
def get_record(record_id: str, pipeline: ModerationPipeline = Depends(get_pipeline)):
    record = pipeline.store.get_record(record_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Moderation record '{record_id}' not found",
        )
    return _record_response(record)


# ---------------------------------------------------------------------------
# Review queue endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/queue",
    response_model=list[ReviewQueueEntryResponse],
    summary="List pending reviews",
)
def list_queue(pipeline: ModerationPipeline = Depends(get_pipeline)):
    """Pending entries, most urgent first."""
    return [_queue_response(e) for e in pipeline.review_queue.list_pending()]


@router.post(
    "/queue/{entry_id}/resolve",
    response_model=ReviewQueueEntryResponse,
    summary="Resolve a review entry",
)
def resolve_queue_entry(entry_id: str, pipeline: ModerationPipeline = Depends(get_pipeline)):
    entry = pipeline.review_queue.resolve(entry_id)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Review entry '{entry_id}' not found",
        )
    return _queue_response(entry)


# ---------------------------------------------------------------------------
# User endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/users/{user_id}/status",
    response_model=UserModerationStatusResponse,
    summary="Get a user's strikes and restrictions",
)
def user_status(user_id: str, pipeline: ModerationPipeline = Depends(get_pipeline)):
    ledger = pipeline.strikes
    return UserModerationStatusResponse(
        user_id=user_id,
        active_strike_count=ledger.active_strike_count(user_id),
        is_restricted=ledger.is_restricted(user_id),
        is_shadow_banned=ledger.is_shadow_banned(user_id),
        strikes=[_strike_response(s) for s in ledger.history(user_id)],
    )


# ---------------------------------------------------------------------------
# Threshold endpoints
# ---------------------------------------------------------------------------


@router.get("/thresholds", response_model=ThresholdsResponse, summary="Get thresholds")
def get_thresholds(pipeline: ModerationPipeline = Depends(get_pipeline)):
    """Return the thresholds the next evaluation will use."""
    return _thresholds_response(pipeline.load_thresholds())


@router.put("/thresholds", response_model=ThresholdsResponse, summary="Update thresholds")
def update_thresholds(
    body: ThresholdsUpdateRequest,
    pipeline: ModerationPipeline = Depends(get_pipeline),
):
    """Store new threshold settings.  Omitted settings keep their value."""
    values: dict[str, dict] = {}
    for name in THRESHOLD_SETTINGS:
        model = getattr(body, name)
        if model is not None:
            values[name] = model.model_dump(exclude_none=True)
    try:
        pipeline.store.put_settings(values)
    except ModerationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return _thresholds_response(pipeline.load_thresholds())
