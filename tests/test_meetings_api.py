"""Integration tests for meeting history API endpoints.

Uses InMemoryMeetingRepository test double and httpx AsyncClient with the
repository installed on app.state and get_current_user overridden. Covers
list visibility, add, view enrichment, soft delete and bulk soft delete,
plus the error response shapes clients rely on.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.meeting_history.api.deps import AuthenticatedUser
from src.meeting_history.meetings.enrichment import build_detail
from src.meeting_history.meetings.schemas import (
    BulkDeleteResult,
    Meeting,
    MeetingCreate,
    MeetingDetail,
    MeetingFilter,
    MeetingSummary,
)


# ── In-Memory Test Double ────────────────────────────────────────────────────


class InMemoryMeetingRepository:
    """In-memory MeetingRepository for testing without database."""

    def __init__(self) -> None:
        self._meetings: dict[uuid.UUID, Meeting] = {}
        self.users: dict[uuid.UUID, SimpleNamespace] = {}
        self.contacts: dict[uuid.UUID, SimpleNamespace] = {}
        self.last_filter: MeetingFilter | None = None

    def add_user(self, first: str, last: str, role: str = "user") -> uuid.UUID:
        user_id = uuid.uuid4()
        self.users[user_id] = SimpleNamespace(id=user_id, first_name=first, last_name=last, role=role)
        return user_id

    def add_contact(self, first: str, last: str) -> uuid.UUID:
        contact_id = uuid.uuid4()
        self.contacts[contact_id] = SimpleNamespace(id=contact_id, first_name=first, last_name=last)
        return contact_id

    async def create_meeting(self, data: MeetingCreate, created_by: uuid.UUID) -> Meeting:
        meeting = Meeting(
            id=uuid.uuid4(),
            agenda=data.agenda,
            date_time=data.date_time,
            timestamp=datetime.now(timezone.utc),
            location=data.location,
            notes=data.notes,
            created_by=data.created_by or created_by,
            attendees=list(data.attendees),
        )
        self._meetings[meeting.id] = meeting
        return meeting

    async def soft_delete(self, meeting_id: str) -> Meeting | None:
        key = uuid.UUID(str(meeting_id))
        meeting = self._meetings.get(key)
        if meeting is None:
            return None
        self._meetings[key] = meeting.model_copy(update={"deleted": True})
        return meeting

    async def soft_delete_many(self, meeting_ids: list[Any]) -> BulkDeleteResult:
        keys = {uuid.UUID(str(mid)) for mid in meeting_ids}
        matched = [k for k in keys if k in self._meetings]
        modified = 0
        for key in matched:
            if not self._meetings[key].deleted:
                self._meetings[key] = self._meetings[key].model_copy(update={"deleted": True})
                modified += 1
        return BulkDeleteResult(matched_count=len(matched), modified_count=modified)

    async def get_meeting(self, meeting_id: str) -> Meeting | None:
        meeting = self._meetings.get(uuid.UUID(str(meeting_id)))
        if meeting is None or meeting.deleted:
            return None
        return meeting

    async def list_summaries(self, filters: MeetingFilter) -> list[MeetingSummary]:
        self.last_filter = filters
        result = []
        for m in self._meetings.values():
            if m.deleted:
                continue
            if filters.created_by is not None and m.created_by != filters.created_by:
                continue
            if filters.agenda is not None and m.agenda != filters.agenda:
                continue
            if filters.location is not None and m.location != filters.location:
                continue
            creator = self.users.get(m.created_by) if m.created_by else None
            result.append(
                MeetingSummary(
                    id=m.id,
                    agenda=m.agenda,
                    date_time=m.date_time,
                    timestamp=m.timestamp,
                    creator_display_name=(
                        f"{creator.first_name} {creator.last_name}" if creator else None
                    ),
                )
            )
        return result

    async def get_detail(self, meeting_id: uuid.UUID) -> MeetingDetail | None:
        meeting = await self.get_meeting(str(meeting_id))
        if meeting is None:
            return None
        creator = self.users.get(meeting.created_by) if meeting.created_by else None
        return build_detail(meeting, creator, self.contacts)

    async def get_user(self, user_id: uuid.UUID) -> SimpleNamespace | None:
        return self.users.get(user_id)


class FailingMeetingRepository(InMemoryMeetingRepository):
    """Repository whose every store call fails."""

    async def create_meeting(self, data, created_by):
        raise RuntimeError("database unavailable")

    async def list_summaries(self, filters):
        raise RuntimeError("database unavailable")

    async def get_meeting(self, meeting_id):
        raise RuntimeError("database unavailable")

    async def soft_delete(self, meeting_id):
        raise RuntimeError("database unavailable")

    async def soft_delete_many(self, meeting_ids):
        raise RuntimeError("database unavailable")


# ── Test Fixtures ────────────────────────────────────────────────────────────


def _make_app(repo: InMemoryMeetingRepository | None, actor_id: uuid.UUID | None):
    """Create a minimal FastAPI app with the meetings router and mocked auth."""
    from fastapi import FastAPI

    from src.meeting_history.api.deps import get_current_user
    from src.meeting_history.api.v1.meetings import router

    app = FastAPI()
    app.include_router(router)
    if actor_id is not None:
        app.dependency_overrides[get_current_user] = lambda: AuthenticatedUser(user_id=actor_id)
    app.state.meeting_repository = repo
    return app


@pytest.fixture
def repo() -> InMemoryMeetingRepository:
    return InMemoryMeetingRepository()


@pytest.fixture
def actor_id(repo) -> uuid.UUID:
    return repo.add_user("Alice", "Smith")


@pytest_asyncio.fixture
async def client(repo, actor_id):
    app = _make_app(repo, actor_id)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ── Add ──────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_add_meeting_defaults_creator_to_actor(client, actor_id):
    """POST /add without createdBy -> creator is the caller."""
    response = await client.post(
        "/api/v1/meeting/add",
        json={"agenda": "Kickoff", "location": "HQ", "unknownField": 1},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["agenda"] == "Kickoff"
    assert data["createdBy"] == str(actor_id)
    assert data["deleted"] is False
    assert "timestamp" in data
    assert "unknownField" not in data


@pytest.mark.asyncio
async def test_add_then_view_round_trip(client):
    created = await client.post(
        "/api/v1/meeting/add",
        json={
            "agenda": "Planning",
            "dateTime": "2024-05-02T09:30:00Z",
            "location": "Room 1",
            "notes": "Draft roadmap",
        },
    )
    meeting_id = created.json()["id"]

    response = await client.get(f"/api/v1/meeting/view/{meeting_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["agenda"] == "Planning"
    assert data["location"] == "Room 1"
    assert data["notes"] == "Draft roadmap"
    assert datetime.fromisoformat(data["dateTime"].replace("Z", "+00:00")) == datetime(
        2024, 5, 2, 9, 30, tzinfo=timezone.utc
    )


@pytest.mark.asyncio
async def test_add_invalid_body_returns_400(client):
    response = await client.post("/api/v1/meeting/add", json={"dateTime": "not a date"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Failed to create"
    assert "err" in body


@pytest.mark.asyncio
async def test_add_store_failure_returns_400(actor_id):
    app = _make_app(FailingMeetingRepository(), actor_id)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.post("/api/v1/meeting/add", json={"agenda": "x"})

    assert response.status_code == 400
    assert response.json() == {"err": "database unavailable", "error": "Failed to create"}


# ── View ─────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_view_sync_scenario(client, repo):
    creator = repo.add_user("Ada", "Lovelace")
    c1 = repo.add_contact("Grace", "Hopper")
    c2 = repo.add_contact("Alan", "Turing")

    created = await client.post(
        "/api/v1/meeting/add",
        json={
            "agenda": "Sync",
            "dateTime": "2024-01-01T10:00:00Z",
            "createdBy": str(creator),
            "attendees": [str(c1), str(c2)],
        },
    )
    assert created.status_code == 200

    response = await client.get(f"/api/v1/meeting/view/{created.json()['id']}")

    assert response.status_code == 200
    data = response.json()
    assert data["agenda"] == "Sync"
    assert data["creatorDisplayName"] == "Ada Lovelace"
    assert data["attendeeDisplayNames"] == ["Grace Hopper", "Alan Turing"]


@pytest.mark.asyncio
async def test_view_missing_id_returns_404(client):
    response = await client.get(f"/api/v1/meeting/view/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json() == {"message": "No meeting found."}


@pytest.mark.asyncio
async def test_view_deleted_meeting_returns_404(client):
    created = await client.post("/api/v1/meeting/add", json={"agenda": "Old"})
    meeting_id = created.json()["id"]
    await client.delete(f"/api/v1/meeting/delete/{meeting_id}")

    response = await client.get(f"/api/v1/meeting/view/{meeting_id}")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_view_malformed_id_returns_400(client):
    response = await client.get("/api/v1/meeting/view/not-a-uuid")

    assert response.status_code == 400
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_view_no_enriched_data_returns_404(client, repo):
    created = await client.post("/api/v1/meeting/add", json={"agenda": "Race"})

    async def _vanished(meeting_id):
        return None

    repo.get_detail = _vanished
    response = await client.get(f"/api/v1/meeting/view/{created.json()['id']}")

    assert response.status_code == 404
    assert response.json() == {"message": "No data found for this meeting."}


# ── List ─────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_list_non_admin_sees_only_own_meetings(client, repo, actor_id):
    other = repo.add_user("Bob", "Jones")
    await client.post("/api/v1/meeting/add", json={"agenda": "Mine"})
    await client.post("/api/v1/meeting/add", json={"agenda": "Theirs", "createdBy": str(other)})

    response = await client.get("/api/v1/meeting/")

    assert response.status_code == 200
    data = response.json()
    assert [m["agenda"] for m in data] == ["Mine"]
    assert data[0]["creatorDisplayName"] == "Alice Smith"
    assert set(data[0]) == {"id", "agenda", "dateTime", "timestamp", "creatorDisplayName"}


@pytest.mark.asyncio
async def test_list_non_admin_cannot_widen_creator_filter(client, repo, actor_id):
    other = repo.add_user("Bob", "Jones")
    await client.post("/api/v1/meeting/add", json={"agenda": "Theirs", "createdBy": str(other)})

    response = await client.get("/api/v1/meeting/", params={"createdBy": str(other)})

    assert response.status_code == 200
    assert response.json() == []
    assert repo.last_filter.created_by == actor_id


@pytest.mark.asyncio
async def test_list_super_admin_sees_all(repo):
    admin = repo.add_user("Root", "Admin", role="superAdmin")
    other = repo.add_user("Bob", "Jones")
    app = _make_app(repo, admin)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        await ac.post("/api/v1/meeting/add", json={"agenda": "Admin's"})
        await ac.post("/api/v1/meeting/add", json={"agenda": "Bob's", "createdBy": str(other)})
        response = await ac.get("/api/v1/meeting/")

    assert response.status_code == 200
    assert {m["agenda"] for m in response.json()} == {"Admin's", "Bob's"}
    assert repo.last_filter.created_by is None


@pytest.mark.asyncio
async def test_list_applies_query_filters(client):
    await client.post("/api/v1/meeting/add", json={"agenda": "A", "location": "Berlin"})
    await client.post("/api/v1/meeting/add", json={"agenda": "B", "location": "Paris"})

    response = await client.get("/api/v1/meeting/", params={"location": "Paris", "page": "2"})

    assert response.status_code == 200
    assert [m["agenda"] for m in response.json()] == ["B"]


@pytest.mark.asyncio
async def test_list_excludes_deleted(client):
    kept = await client.post("/api/v1/meeting/add", json={"agenda": "Kept"})
    gone = await client.post("/api/v1/meeting/add", json={"agenda": "Gone"})
    await client.delete(f"/api/v1/meeting/delete/{gone.json()['id']}")

    response = await client.get("/api/v1/meeting/")

    assert [m["id"] for m in response.json()] == [kept.json()["id"]]


@pytest.mark.asyncio
async def test_list_invalid_filter_returns_400(client):
    response = await client.get("/api/v1/meeting/", params={"createdBy": "nope"})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid filter"


@pytest.mark.asyncio
async def test_list_store_failure_returns_500(actor_id):
    app = _make_app(FailingMeetingRepository(), actor_id)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/api/v1/meeting/")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal Server Error"}


# ── Delete ───────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_delete_returns_prior_state(client):
    created = await client.post("/api/v1/meeting/add", json={"agenda": "Retro"})
    meeting_id = created.json()["id"]

    response = await client.delete(f"/api/v1/meeting/delete/{meeting_id}")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Meeting deleted successfully"
    assert body["result"]["id"] == meeting_id
    assert body["result"]["deleted"] is False


@pytest.mark.asyncio
async def test_delete_twice_is_idempotent(client):
    created = await client.post("/api/v1/meeting/add", json={"agenda": "Retro"})
    meeting_id = created.json()["id"]

    first = await client.delete(f"/api/v1/meeting/delete/{meeting_id}")
    second = await client.delete(f"/api/v1/meeting/delete/{meeting_id}")

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["result"]["deleted"] is True


@pytest.mark.asyncio
async def test_delete_missing_id_returns_null_result(client):
    response = await client.delete(f"/api/v1/meeting/delete/{uuid.uuid4()}")

    assert response.status_code == 200
    assert response.json() == {"message": "Meeting deleted successfully", "result": None}


@pytest.mark.asyncio
async def test_delete_malformed_id_returns_400(client):
    response = await client.delete("/api/v1/meeting/delete/not-a-uuid")

    assert response.status_code == 400
    assert response.json() == {"error": "Failed to delete meeting"}


# ── Delete Many ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_delete_many_with_missing_id(client):
    m1 = (await client.post("/api/v1/meeting/add", json={"agenda": "one"})).json()["id"]
    m3 = (await client.post("/api/v1/meeting/add", json={"agenda": "three"})).json()["id"]

    response = await client.post(
        "/api/v1/meeting/deleteMany",
        json=[m1, str(uuid.uuid4()), m3],
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Meetings deleted successfully"
    assert body["result"] == {"acknowledged": True, "matchedCount": 2, "modifiedCount": 2}

    listing = await client.get("/api/v1/meeting/")
    assert listing.json() == []


@pytest.mark.asyncio
async def test_delete_many_non_list_body_returns_400(client):
    response = await client.post("/api/v1/meeting/deleteMany", json={"ids": []})

    assert response.status_code == 400
    assert response.json() == {"error": "Failed to delete meetings"}


@pytest.mark.asyncio
async def test_delete_many_store_failure_returns_400(actor_id):
    app = _make_app(FailingMeetingRepository(), actor_id)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.post("/api/v1/meeting/deleteMany", json=[str(uuid.uuid4())])

    assert response.status_code == 400
    assert response.json() == {"error": "Failed to delete meetings"}


# ── Auth / Wiring ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_requires_bearer_token(repo, session_factory):
    """No override of get_current_user and no Authorization header -> 401."""
    from src.meeting_history.api.deps import get_db

    app = _make_app(repo, actor_id=None)
    app.dependency_overrides[get_db] = session_factory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/api/v1/meeting/")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_meetings_api_503_when_not_initialized(actor_id):
    """app.state.meeting_repository = None -> 503."""
    app = _make_app(None, actor_id)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/api/v1/meeting/")

    assert response.status_code == 503
    assert "not initialized" in response.json()["detail"]
