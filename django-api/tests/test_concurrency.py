"""Concurrent enrollment races against the in-memory stores.

Threads share one InMemoryDatabase, so every seat write goes through the
same version check the ORM store performs with a conditional UPDATE.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import time

import pytest

from events.domain.errors import DomainError, DuplicateEnrollmentError, SessionFullError

WORKERS = 12


def race(fn, args_list):
    """Start every call at once and collect ('ok', result) or ('err', error)."""
    barrier = threading.Barrier(len(args_list))

    def run(args):
        barrier.wait()
        try:
            return "ok", fn(*args)
        except DomainError as exc:
            return "err", exc

    with ThreadPoolExecutor(max_workers=len(args_list)) as pool:
        return list(pool.map(run, args_list))


@pytest.fixture
def racing_service(event_store, enrollment_store, user_store):
    from events.services.enrollment_service import EnrollmentService
    from events.services.retry import RetryPolicy

    return EnrollmentService(
        event_store,
        enrollment_store,
        user_store,
        retry=RetryPolicy(max_attempts=50, base_backoff_ms=1, max_backoff_ms=2),
    )


class TestLastSeatRace:
    def test_exactly_one_caller_gets_the_last_seat(
        self, event_store, racing_service, make_event, make_session
    ):
        session = make_session(capacity=5, filled=4)
        event = event_store.create_event(make_event(sessions=(session,)))

        results = race(
            racing_service.create_enrollment,
            [(f"user-{i}", str(event.id), str(session.id)) for i in range(WORKERS)],
        )

        winners = [r for kind, r in results if kind == "ok"]
        losers = [r for kind, r in results if kind == "err"]
        assert len(winners) == 1
        assert all(isinstance(e, SessionFullError) for e in losers)
        assert event_store.get_event(event.id).find_session(session.id).filled == 5

    def test_capacity_is_never_exceeded(
        self, event_store, enrollment_store, racing_service, make_event, make_session
    ):
        session = make_session(capacity=3)
        event = event_store.create_event(make_event(sessions=(session,)))

        results = race(
            racing_service.create_enrollment,
            [(f"user-{i}", str(event.id), str(session.id)) for i in range(WORKERS)],
        )

        assert sum(1 for kind, _ in results if kind == "ok") == 3
        assert event_store.get_event(event.id).find_session(session.id).filled == 3
        assert len(enrollment_store.list_confirmed_for_event(event.id)) == 3


class TestDuplicateRace:
    def test_one_confirmed_enrollment_per_user_and_event(
        self, event_store, enrollment_store, racing_service, make_event, make_session
    ):
        sessions = tuple(
            make_session(start=time(8 + i, 0), end=time(9 + i, 0), capacity=50) for i in range(4)
        )
        event = event_store.create_event(make_event(sessions=sessions))

        results = race(
            racing_service.create_enrollment,
            [("same-user", str(event.id), str(sessions[i % 4].id)) for i in range(WORKERS)],
        )

        assert sum(1 for kind, _ in results if kind == "ok") == 1
        assert all(isinstance(r, DuplicateEnrollmentError) for kind, r in results if kind == "err")
        assert len(enrollment_store.list_confirmed_for_user("same-user")) == 1
        stored = event_store.get_event(event.id)
        assert sum(s.filled for s in stored.sessions) == 1


class TestEnrollCancelRace:
    def test_filled_matches_confirmed_enrollments(
        self, event_store, enrollment_store, racing_service, make_event, make_session
    ):
        session = make_session(capacity=WORKERS)
        event = event_store.create_event(make_event(sessions=(session,)))
        holders = [f"holder-{i}" for i in range(WORKERS // 2)]
        for uid in holders:
            racing_service.create_enrollment(uid, str(event.id), str(session.id))

        def step(kind, uid):
            if kind == "cancel":
                return racing_service.cancel_enrollment(f"{uid}_{event.id}")
            return racing_service.create_enrollment(uid, str(event.id), str(session.id))

        calls = [("cancel", uid) for uid in holders] + [
            ("enroll", f"newcomer-{i}") for i in range(WORKERS // 2)
        ]
        results = race(step, calls)

        assert all(kind == "ok" for kind, _ in results)
        filled = event_store.get_event(event.id).find_session(session.id).filled
        assert filled == len(enrollment_store.list_confirmed_for_event(event.id)) == WORKERS // 2
