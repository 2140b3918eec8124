"""Display-name enrichment for meeting reads.

Resolves the creator and attendee references of a meeting against the
users and contacts tables and derives "first last" display names.

The creator is joined in SQL (see MeetingRepository.list_summaries). The
attendee list is a JSON array of ids, so attendees are batch-fetched by id
set and merged back here in reference order.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol

from src.meeting_history.meetings.schemas import Meeting, MeetingDetail


class NamedEntity(Protocol):
    first_name: str | None
    last_name: str | None


def display_name(first_name: str | None, last_name: str | None) -> str | None:
    """Join first and last name with a space.

    Returns None when both parts are missing; a single missing part is
    treated as empty.
    """
    if first_name is None and last_name is None:
        return None
    return f"{first_name or ''} {last_name or ''}".strip()


def entity_display_name(entity: NamedEntity | None) -> str | None:
    """Display name of a user/contact row, None for a dangling reference."""
    if entity is None:
        return None
    return display_name(entity.first_name, entity.last_name)


def coerce_ids(raw_ids: Iterable[object]) -> list[uuid.UUID]:
    """Parse stored reference ids, skipping entries that are not UUIDs."""
    parsed: list[uuid.UUID] = []
    for raw in raw_ids:
        if isinstance(raw, uuid.UUID):
            parsed.append(raw)
            continue
        try:
            parsed.append(uuid.UUID(str(raw)))
        except ValueError:
            continue
    return parsed


def attendee_display_names(
    attendee_ids: Sequence[uuid.UUID],
    contacts_by_id: Mapping[uuid.UUID, NamedEntity],
) -> list[str]:
    """Names of the resolved attendees, in attendee-reference order.

    References with no matching contact are skipped.
    """
    names: list[str] = []
    for attendee_id in attendee_ids:
        contact = contacts_by_id.get(attendee_id)
        if contact is None:
            continue
        name = entity_display_name(contact)
        names.append(name if name is not None else "")
    return names


def build_detail(
    meeting: Meeting,
    creator: NamedEntity | None,
    contacts_by_id: Mapping[uuid.UUID, NamedEntity],
) -> MeetingDetail:
    """Merge a meeting with its resolved creator and attendees."""
    return MeetingDetail(
        id=meeting.id,
        agenda=meeting.agenda,
        date_time=meeting.date_time,
        timestamp=meeting.timestamp,
        creator_display_name=entity_display_name(creator),
        location=meeting.location,
        attendee_display_names=attendee_display_names(meeting.attendees, contacts_by_id),
        notes=meeting.notes,
    )
