"""Pytest configuration and shared fixtures."""

from datetime import date, datetime, time, timedelta, timezone

import pytest
from rest_framework.test import APIClient

from events.domain import (
    Capacity,
    Event,
    EventId,
    Session,
    SessionId,
    Visibility,
)
from events.stores.memory_store import (
    InMemoryDatabase,
    InMemoryEnrollmentStore,
    InMemoryEventStore,
    InMemoryUserStore,
)

FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def memory_db() -> InMemoryDatabase:
    return InMemoryDatabase()


@pytest.fixture
def event_store(memory_db) -> InMemoryEventStore:
    return InMemoryEventStore(memory_db)


@pytest.fixture
def enrollment_store(memory_db) -> InMemoryEnrollmentStore:
    return InMemoryEnrollmentStore(memory_db)


@pytest.fixture
def user_store(memory_db) -> InMemoryUserStore:
    return InMemoryUserStore(memory_db)


@pytest.fixture
def event_service(event_store):
    from events.services.event_service import EventService
    from events.services.retry import RetryPolicy

    return EventService(event_store, retry=RetryPolicy(max_attempts=5))


@pytest.fixture
def enrollment_service(event_store, enrollment_store, user_store):
    from events.services.enrollment_service import EnrollmentService
    from events.services.retry import RetryPolicy

    return EnrollmentService(
        event_store,
        enrollment_store,
        user_store,
        clock=lambda: FIXED_NOW,
        retry=RetryPolicy(max_attempts=5, base_backoff_ms=1, max_backoff_ms=5),
        sleep=lambda _: None,
    )


@pytest.fixture
def make_session():
    def factory(
        day: date = date(2024, 3, 4),
        start: time = time(9, 0),
        end: time = time(10, 30),
        capacity: int = 10,
        filled: int = 0,
    ) -> Session:
        return Session(
            id=SessionId.new(),
            date=day,
            start_time=start,
            end_time=end,
            capacity=Capacity(capacity),
            filled=filled,
        )

    return factory


@pytest.fixture
def make_event(make_session):
    """Build an Event; created_at steps back one minute per call."""
    counter = {"n": 0}

    def factory(
        name: str = "Workshop",
        sessions: tuple[Session, ...] | None = None,
        visibility: Visibility = Visibility.PUBLIC,
        parent_id: EventId | None = None,
        allowed_courses: frozenset[str] = frozenset(),
        allowed_classes: frozenset[str] = frozenset(),
        description: str = "",
    ) -> Event:
        counter["n"] += 1
        return Event(
            id=EventId.new(),
            name=name,
            description=description,
            location="Room 1",
            visibility=visibility,
            created_by="admin-1",
            created_at=FIXED_NOW - timedelta(minutes=counter["n"]),
            sessions=sessions if sessions is not None else (make_session(),),
            allowed_courses=allowed_courses,
            allowed_classes=allowed_classes,
            parent_id=parent_id,
        )

    return factory
