"""Meeting history persistence model.

MeetingModel stores one meeting record. `created_by` points at users.id and
`attendees` holds an ordered JSON list of contacts.id strings. Neither is a
foreign key: creators and contacts belong to other subsystems and references
are allowed to dangle.

Records are never removed here; the delete operations set `deleted`.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from src.meeting_history.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MeetingModel(Base):
    """A meeting history record."""

    __tablename__ = "meetings"
    __table_args__ = (
        Index("idx_meetings_created_by_deleted", "created_by", "deleted"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    agenda: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    date_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
    )
    location: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    attendees: Mapped[list] = mapped_column(JSON, default=list)
    deleted: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=text("false"),
        nullable=False,
    )
