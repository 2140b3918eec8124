"""REST API endpoints for meeting history.

Provides list, add, view, delete and bulk-delete endpoints. All endpoints
require authentication. Deletes are soft: they flip the record's `deleted`
flag and nothing is physically removed.

Error bodies keep the `{"error": ...}` / `{"message": ...}` shapes existing
clients parse, so handlers return JSONResponse for failures instead of
raising HTTPException.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from src.meeting_history.api.deps import AuthenticatedUser, get_current_user
from src.meeting_history.core.monitoring import record_meeting_operation
from src.meeting_history.meetings.policy import build_list_filter
from src.meeting_history.meetings.schemas import (
    BulkDeleteResponse,
    DeleteResponse,
    Meeting,
    MeetingCreate,
    MeetingDetail,
    MeetingFilter,
    MeetingSummary,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/meeting", tags=["meeting"])


# ── Dependency Injection Helper ──────────────────────────────────────────────


def _get_meeting_repository(request: Request) -> Any:
    """Retrieve MeetingRepository from app.state, 503 if not available."""
    repo = getattr(request.app.state, "meeting_repository", None)
    if repo is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Meeting repository not initialized",
        )
    return repo


def _error(status_code: int, **content: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content)


# ── Endpoints ────────────────────────────────────────────────────────────────


@router.get("/", response_model=list[MeetingSummary])
async def list_meetings(
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
) -> list[MeetingSummary] | JSONResponse:
    """List live meetings visible to the caller.

    Query parameters are equality filters (agenda, location, notes,
    dateTime, createdBy); anything else is ignored. Callers who are not
    super admins only ever see meetings they created.
    """
    repo = _get_meeting_repository(request)

    try:
        requested = MeetingFilter.model_validate(dict(request.query_params))
    except ValidationError as exc:
        logger.warning("meeting.list_invalid_filter", user_id=str(user.user_id), error=str(exc))
        record_meeting_operation("list", "invalid")
        return _error(status.HTTP_400_BAD_REQUEST, error="Invalid filter", err=str(exc))

    try:
        actor = await repo.get_user(user.user_id)
        filters = build_list_filter(
            user.user_id,
            actor.role if actor is not None else None,
            requested,
        )
        summaries = await repo.list_summaries(filters)
    except Exception:
        logger.error("meeting.list_failed", user_id=str(user.user_id), exc_info=True)
        record_meeting_operation("list", "error")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, error="Internal Server Error")

    record_meeting_operation("list", "ok")
    return summaries


@router.post("/add", response_model=Meeting)
async def add_meeting(
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
) -> Meeting | JSONResponse:
    """Create a meeting record from the JSON body.

    Unknown fields are ignored. When createdBy is omitted the caller is
    recorded as the creator.
    """
    repo = _get_meeting_repository(request)

    try:
        payload = await request.json()
        data = MeetingCreate.model_validate(payload)
        meeting = await repo.create_meeting(data, created_by=user.user_id)
    except Exception as exc:
        logger.error("meeting.create_failed", user_id=str(user.user_id), error=str(exc), exc_info=True)
        record_meeting_operation("create", "error")
        return _error(status.HTTP_400_BAD_REQUEST, err=str(exc), error="Failed to create")

    record_meeting_operation("create", "ok")
    return meeting


@router.get("/view/{meeting_id}", response_model=MeetingDetail)
async def view_meeting(
    meeting_id: str,
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
) -> MeetingDetail | JSONResponse:
    """Get one live meeting with creator and attendee display names."""
    repo = _get_meeting_repository(request)

    try:
        meeting = await repo.get_meeting(meeting_id)
        if meeting is None:
            record_meeting_operation("view", "not_found")
            return _error(status.HTTP_404_NOT_FOUND, message="No meeting found.")

        detail = await repo.get_detail(meeting.id)
        if detail is None:
            record_meeting_operation("view", "not_found")
            return _error(status.HTTP_404_NOT_FOUND, message="No data found for this meeting.")
    except Exception as exc:
        logger.error("meeting.view_failed", meeting_id=meeting_id, error=str(exc), exc_info=True)
        record_meeting_operation("view", "error")
        return _error(status.HTTP_400_BAD_REQUEST, error=str(exc))

    record_meeting_operation("view", "ok")
    return detail


@router.delete("/delete/{meeting_id}", response_model=DeleteResponse)
async def delete_meeting(
    meeting_id: str,
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
) -> DeleteResponse | JSONResponse:
    """Soft-delete one meeting.

    A missing id is not an error: the response carries result=null.
    """
    repo = _get_meeting_repository(request)

    try:
        prior = await repo.soft_delete(meeting_id)
    except Exception as exc:
        logger.error("meeting.delete_failed", meeting_id=meeting_id, error=str(exc), exc_info=True)
        record_meeting_operation("delete", "error")
        return _error(status.HTTP_400_BAD_REQUEST, error="Failed to delete meeting")

    logger.info(
        "meeting.deleted",
        meeting_id=meeting_id,
        user_id=str(user.user_id),
        found=prior is not None,
    )
    record_meeting_operation("delete", "ok")
    return DeleteResponse(message="Meeting deleted successfully", result=prior)


@router.post("/deleteMany", response_model=BulkDeleteResponse)
async def delete_many_meetings(
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
) -> BulkDeleteResponse | JSONResponse:
    """Soft-delete every meeting whose id is in the JSON array body.

    Ids that match no record are ignored; the result reports matched and
    modified counts.
    """
    repo = _get_meeting_repository(request)

    try:
        payload = await request.json()
        if not isinstance(payload, list):
            raise ValueError("Expected a JSON array of meeting ids")
        result = await repo.soft_delete_many(payload)
    except Exception as exc:
        logger.error("meeting.delete_many_failed", user_id=str(user.user_id), error=str(exc), exc_info=True)
        record_meeting_operation("delete_many", "error")
        return _error(status.HTTP_400_BAD_REQUEST, error="Failed to delete meetings")

    logger.info(
        "meeting.deleted_many",
        user_id=str(user.user_id),
        matched=result.matched_count,
        modified=result.modified_count,
    )
    record_meeting_operation("delete_many", "ok")
    return BulkDeleteResponse(message="Meetings deleted successfully", result=result)
