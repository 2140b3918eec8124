"""Row visibility policy for meeting list queries."""

from __future__ import annotations

import uuid

from src.meeting_history.config import get_settings
from src.meeting_history.meetings.schemas import MeetingFilter


def is_super_admin(role: str | None) -> bool:
    """True if the role may see every creator's meetings."""
    return role is not None and role == get_settings().SUPER_ADMIN_ROLE


def build_list_filter(
    actor_id: uuid.UUID,
    actor_role: str | None,
    requested: MeetingFilter,
) -> MeetingFilter:
    """Return the effective filter for an actor's list query.

    Super admins keep the requested filter as-is. Everyone else is narrowed
    to their own meetings, whatever `created_by` they asked for. A missing
    role (unknown user) counts as not super admin.
    """
    if is_super_admin(actor_role):
        return requested
    return requested.model_copy(update={"created_by": actor_id})
