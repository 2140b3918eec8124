"""Meeting repository -- async CRUD and enriched reads for meeting history.

Provides MeetingRepository with the session_factory callable pattern.
Handles serialization between Pydantic schemas and SQLAlchemy models, the
creator join for list summaries, and the creator/attendee enrichment for
single-meeting views.

Every read goes through `deleted == False`; the delete methods only ever
flip that flag.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, AsyncIterator, Callable, Iterable
from contextlib import aclosing, asynccontextmanager
from datetime import datetime, timezone

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.meeting_history.meetings.enrichment import build_detail, coerce_ids, display_name
from src.meeting_history.meetings.models import MeetingModel
from src.meeting_history.meetings.schemas import (
    BulkDeleteResult,
    Meeting,
    MeetingCreate,
    MeetingDetail,
    MeetingFilter,
    MeetingSummary,
)
from src.meeting_history.models.identity import Contact, User

logger = structlog.get_logger(__name__)


# ── Serialization Helpers ───────────────────────────────────────────────────


def _ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_id(raw_id: str | uuid.UUID) -> uuid.UUID:
    """Parse a meeting or user id, raising ValueError for malformed input."""
    if isinstance(raw_id, uuid.UUID):
        return raw_id
    try:
        return uuid.UUID(str(raw_id))
    except ValueError as exc:
        raise ValueError(f"Invalid id: {raw_id!r}") from exc


def _model_to_meeting(model: MeetingModel) -> Meeting:
    """Convert MeetingModel to Meeting schema."""
    return Meeting(
        id=model.id,
        agenda=model.agenda,
        date_time=_ensure_utc(model.date_time),
        timestamp=_ensure_utc(model.timestamp),
        location=model.location,
        notes=model.notes,
        created_by=model.created_by,
        attendees=coerce_ids(model.attendees or []),
        deleted=bool(model.deleted),
    )


def _filter_clauses(filters: MeetingFilter) -> list:
    """WHERE clauses for a list filter, always restricted to live rows."""
    clauses = [MeetingModel.deleted == False]  # noqa: E712
    if filters.agenda is not None:
        clauses.append(MeetingModel.agenda == filters.agenda)
    if filters.location is not None:
        clauses.append(MeetingModel.location == filters.location)
    if filters.notes is not None:
        clauses.append(MeetingModel.notes == filters.notes)
    if filters.date_time is not None:
        clauses.append(MeetingModel.date_time == filters.date_time)
    if filters.created_by is not None:
        clauses.append(MeetingModel.created_by == filters.created_by)
    return clauses


# ── Repository ──────────────────────────────────────────────────────────────


class MeetingRepository:
    """Async operations over the meetings table and its identity lookups.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """One session from the factory, closed when the block exits."""
        async with aclosing(self._session_factory()) as sessions:
            async for session in sessions:
                yield session
                return

    # ── Writes ───────────────────────────────────────────────────────────

    async def create_meeting(
        self, data: MeetingCreate, created_by: uuid.UUID
    ) -> Meeting:
        """Persist a new meeting record.

        Args:
            data: Caller-supplied meeting fields.
            created_by: Creator id used when data.created_by is unset.

        Returns:
            Meeting with generated id and timestamp.
        """
        async with self._session() as session:
            model = MeetingModel(
                agenda=data.agenda,
                date_time=data.date_time,
                location=data.location,
                notes=data.notes,
                created_by=data.created_by or created_by,
                attendees=[str(a) for a in data.attendees],
                deleted=False,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            logger.info("meeting.created", meeting_id=str(model.id))
            return _model_to_meeting(model)

    async def soft_delete(self, meeting_id: str | uuid.UUID) -> Meeting | None:
        """Set deleted=True on one meeting.

        Returns:
            The record as it was before the update, or None if no record
            has this id. Deleting an already deleted record is a no-op
            that still returns its prior state.
        """
        parsed = _parse_id(meeting_id)
        async with self._session() as session:
            model = await session.get(MeetingModel, parsed)
            if model is None:
                return None
            prior = _model_to_meeting(model)
            model.deleted = True
            await session.commit()
            return prior

    async def soft_delete_many(
        self, meeting_ids: Iterable[str | uuid.UUID]
    ) -> BulkDeleteResult:
        """Set deleted=True on every meeting whose id is in meeting_ids.

        Unknown ids are ignored. matched_count counts existing records in
        the set; modified_count counts the ones that were still live.
        """
        ids = {_parse_id(mid) for mid in meeting_ids}
        if not ids:
            return BulkDeleteResult(matched_count=0, modified_count=0)

        async with self._session() as session:
            matched = await session.scalar(
                select(func.count()).select_from(MeetingModel).where(MeetingModel.id.in_(ids))
            )
            result = await session.execute(
                update(MeetingModel)
                .where(
                    MeetingModel.id.in_(ids),
                    MeetingModel.deleted == False,  # noqa: E712
                )
                .values(deleted=True)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return BulkDeleteResult(
                matched_count=int(matched or 0),
                modified_count=result.rowcount,
            )

    # ── Reads ────────────────────────────────────────────────────────────

    async def get_meeting(self, meeting_id: str | uuid.UUID) -> Meeting | None:
        """Get a live (not deleted) meeting by id."""
        parsed = _parse_id(meeting_id)
        async with self._session() as session:
            result = await session.execute(
                select(MeetingModel).where(
                    MeetingModel.id == parsed,
                    MeetingModel.deleted == False,  # noqa: E712
                )
            )
            model = result.scalar_one_or_none()
            if model is None:
                return None
            return _model_to_meeting(model)

    async def list_summaries(self, filters: MeetingFilter) -> list[MeetingSummary]:
        """List live meetings matching filters with the creator's display name.

        The creator is left-outer-joined, so meetings whose creator no
        longer exists are returned with creator_display_name=None.
        Ordered by creation timestamp.
        """
        async with self._session() as session:
            stmt = (
                select(
                    MeetingModel.id,
                    MeetingModel.agenda,
                    MeetingModel.date_time,
                    MeetingModel.timestamp,
                    User.first_name,
                    User.last_name,
                )
                .outerjoin(User, User.id == MeetingModel.created_by)
                .where(*_filter_clauses(filters))
                .order_by(MeetingModel.timestamp, MeetingModel.id)
            )
            rows = (await session.execute(stmt)).all()
            return [
                MeetingSummary(
                    id=row.id,
                    agenda=row.agenda,
                    date_time=_ensure_utc(row.date_time),
                    timestamp=_ensure_utc(row.timestamp),
                    creator_display_name=display_name(row.first_name, row.last_name),
                )
                for row in rows
            ]

    async def get_detail(self, meeting_id: str | uuid.UUID) -> MeetingDetail | None:
        """Get a live meeting enriched with creator and attendee names.

        Attendees are fetched in one query by id set and merged back in
        the meeting's attendee order.
        """
        parsed = _parse_id(meeting_id)
        async with self._session() as session:
            result = await session.execute(
                select(MeetingModel).where(
                    MeetingModel.id == parsed,
                    MeetingModel.deleted == False,  # noqa: E712
                )
            )
            model = result.scalar_one_or_none()
            if model is None:
                return None
            meeting = _model_to_meeting(model)

            creator = None
            if meeting.created_by is not None:
                creator = await session.get(User, meeting.created_by)

            contacts_by_id: dict[uuid.UUID, Contact] = {}
            attendee_ids = set(meeting.attendees)
            if attendee_ids:
                contacts = await session.scalars(
                    select(Contact).where(Contact.id.in_(attendee_ids))
                )
                contacts_by_id = {c.id: c for c in contacts}

            return build_detail(meeting, creator, contacts_by_id)

    async def get_user(self, user_id: str | uuid.UUID) -> User | None:
        """Load a user row (used to read the actor's role)."""
        parsed = _parse_id(user_id)
        async with self._session() as session:
            return await session.get(User, parsed)
