"""Pydantic v2 schemas for the meeting history domain.

Wire format is camelCase (`dateTime`, `createdBy`, `creatorDisplayName`);
request bodies also accept the snake_case field names. Unknown request
fields are ignored.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Records ──────────────────────────────────────────────────────────────────


class MeetingCreate(CamelModel):
    """Caller-supplied fields for a new meeting record.

    `created_by` falls back to the authenticated actor when omitted.
    """

    agenda: str | None = None
    date_time: datetime | None = None
    location: str | None = None
    notes: str | None = None
    created_by: uuid.UUID | None = None
    attendees: list[uuid.UUID] = Field(default_factory=list)


class Meeting(CamelModel):
    """A stored meeting record."""

    id: uuid.UUID
    agenda: str | None = None
    date_time: datetime | None = None
    timestamp: datetime
    location: str | None = None
    notes: str | None = None
    created_by: uuid.UUID | None = None
    attendees: list[uuid.UUID] = Field(default_factory=list)
    deleted: bool = False


class MeetingSummary(CamelModel):
    """List projection of a meeting."""

    id: uuid.UUID
    agenda: str | None = None
    date_time: datetime | None = None
    timestamp: datetime
    creator_display_name: str | None = None


class MeetingDetail(CamelModel):
    """View projection of a meeting with creator and attendee names."""

    id: uuid.UUID
    agenda: str | None = None
    date_time: datetime | None = None
    timestamp: datetime
    creator_display_name: str | None = None
    location: str | None = None
    attendee_display_names: list[str] = Field(default_factory=list)
    notes: str | None = None


# ── Filters ──────────────────────────────────────────────────────────────────


class MeetingFilter(CamelModel):
    """Equality filter applied to list queries.

    `deleted` is not a caller option: list queries only ever see live rows.
    """

    model_config = ConfigDict(**CamelModel.model_config, frozen=True)

    agenda: str | None = None
    location: str | None = None
    notes: str | None = None
    date_time: datetime | None = None
    created_by: uuid.UUID | None = None


# ── Delete Results ───────────────────────────────────────────────────────────


class BulkDeleteResult(CamelModel):
    """Outcome summary of a bulk soft delete."""

    acknowledged: bool = True
    matched_count: int = 0
    modified_count: int = 0


class DeleteResponse(CamelModel):
    """Confirmation for a single soft delete.

    `result` is the record as it was before the update, or None when no
    record has the requested id.
    """

    message: str
    result: Meeting | None = None


class BulkDeleteResponse(CamelModel):
    """Confirmation for a bulk soft delete."""

    message: str
    result: BulkDeleteResult
