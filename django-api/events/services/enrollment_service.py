"""Enrollment engine: seat allocation and release under concurrent access.

create_enrollment runs in two phases:

1. A read-only pre-check outside any transaction that rejects obviously
   invalid requests early (missing event/session, duplicate, schedule
   conflict) and produces the detailed conflict message.
2. An atomic phase that re-reads the enrollment key and the event, checks
   capacity, and writes the incremented seat counter together with the
   enrollment. The write is conditional on the event version read in this
   phase; losing that race raises TransactionConflictError and the phase is
   retried against the post-commit state.

Only the atomic phase is authoritative.
"""

import logging
import time
from datetime import datetime
from typing import Callable

from django.utils import timezone

from events.domain.errors import (
    DuplicateEnrollmentError,
    EventNotFoundError,
    ScheduleConflictError,
    SessionFullError,
    SessionNotFoundError,
)
from events.domain.models import (
    Enrollment,
    EnrollmentDetail,
    Event,
    RosterEntry,
    Session,
)
from events.domain.value_objects import (
    EnrollmentId,
    EnrollmentStatus,
    EventId,
    SessionId,
)
from events.services.event_service import parse_event_id
from events.services.retry import RetryPolicy, run_with_retry
from events.stores.interfaces import EnrollmentStore, EventStore, UserStore

logger = logging.getLogger(__name__)

UNKNOWN_MEMBER = "Unknown"


def _parse_session_id(event_id: str, session_id: str) -> SessionId:
    try:
        return SessionId.from_string(str(session_id))
    except ValueError:
        raise SessionNotFoundError(event_id, session_id) from None


class EnrollmentService:
    """Service for enrolling users into sessions and reversing it."""

    def __init__(
        self,
        events: EventStore,
        enrollments: EnrollmentStore,
        users: UserStore,
        clock: Callable[[], datetime] = timezone.now,
        retry: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._events = events
        self._enrollments = enrollments
        self._users = users
        self._clock = clock
        self._retry = retry or RetryPolicy.from_settings()
        self._sleep = sleep

    def create_enrollment(self, user_id: str, event_id: str, session_id: str) -> Enrollment:
        """Claim one seat of ``session_id`` for ``user_id``.

        Raises:
            InvalidEventIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
            SessionNotFoundError: If the session is not part of the event.
            DuplicateEnrollmentError: If the user already holds a seat in the event.
            ScheduleConflictError: If the session overlaps one the user holds.
            SessionFullError: If no seat is left.
            StoreUnavailableError: If the store keeps failing.
        """
        target_event_id = parse_event_id(event_id)
        target_session_id = _parse_session_id(event_id, session_id)

        existing = self._enrollments.list_confirmed_for_user(user_id)
        event = self._events.get_event(target_event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        target = event.find_session(target_session_id)
        if target is None:
            raise SessionNotFoundError(event_id, session_id)
        self._check_schedule(user_id, event, target, existing)

        enrollment_id = EnrollmentId.for_pair(user_id, target_event_id)
        enrollment = run_with_retry(
            "create_enrollment",
            lambda: self._allocate(enrollment_id, user_id, target_event_id, target_session_id),
            self._retry,
            self._sleep,
        )
        logger.info(
            "[enroll] committed enrollment=%s user=%s event=%s session=%s",
            enrollment.id,
            user_id,
            target_event_id,
            target_session_id,
        )
        return enrollment

    def cancel_enrollment(self, enrollment_id: str) -> None:
        """Release the seat held by an enrollment and delete it.

        Cancelling an unknown enrollment succeeds silently.
        """
        if not enrollment_id:
            return
        key = EnrollmentId(str(enrollment_id))
        released = run_with_retry(
            "cancel_enrollment", lambda: self._release(key), self._retry, self._sleep
        )
        if released:
            logger.info("[enroll] canceled enrollment=%s", key)
        else:
            logger.info("[enroll] cancel no-op enrollment=%s reason=missing", key)

    def cancel_event_enrollments(self, event_id: EventId) -> int:
        """Cancel every confirmed enrollment of one event; returns the count."""
        canceled = 0
        for enrollment in self._enrollments.list_confirmed_for_event(event_id):
            self.cancel_enrollment(enrollment.id.value)
            canceled += 1
        if canceled:
            logger.info("[enroll] purged event=%s enrollments=%s", event_id, canceled)
        return canceled

    def get_enrollment(self, enrollment_id: str) -> Enrollment | None:
        if not enrollment_id:
            return None
        return self._enrollments.get_enrollment(EnrollmentId(str(enrollment_id)))

    def get_enrollments_for_user(self, user_id: str) -> list[Enrollment]:
        return self._enrollments.list_confirmed_for_user(user_id)

    def get_user_enrollment_details(self, user_id: str) -> list[EnrollmentDetail]:
        """Return the user's enrollments joined with event and session data.

        Enrollments whose event or session no longer exists are skipped.
        """
        details: list[EnrollmentDetail] = []
        cache: dict[EventId, Event | None] = {}
        for enrollment in self._enrollments.list_confirmed_for_user(user_id):
            event = self._cached_event(cache, enrollment.event_id)
            session = event.find_session(enrollment.session_id) if event else None
            if event is None or session is None:
                logger.debug("[enroll] orphan enrollment=%s skipped", enrollment.id)
                continue
            details.append(
                EnrollmentDetail(
                    enrollment_id=enrollment.id,
                    event_id=event.id,
                    event_name=event.name,
                    event_location=event.location,
                    session_date=session.date,
                    session_time=session.time_range,
                    enrolled_at=enrollment.enrolled_at,
                )
            )
        details.sort(key=lambda d: (d.session_date, d.session_time))
        return details

    def get_event_enrollments(self, event_id: str) -> list[RosterEntry]:
        """Return the roster of an event for administrators.

        Raises:
            InvalidEventIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
        """
        event = self._events.get_event(parse_event_id(event_id))
        if event is None:
            raise EventNotFoundError(event_id)
        enrollments = self._enrollments.list_confirmed_for_event(event.id)
        members = self._users.get_users([e.user_id for e in enrollments])

        roster = []
        for enrollment in enrollments:
            member = members.get(enrollment.user_id)
            roster.append(
                RosterEntry(
                    enrollment=enrollment,
                    user_name=(member.name if member and member.name else UNKNOWN_MEMBER),
                    user_email=member.email if member else "",
                    user_rm=member.rm if member else "",
                    session=event.find_session(enrollment.session_id),
                )
            )
        return roster

    def _check_schedule(
        self,
        user_id: str,
        event: Event,
        target: Session,
        existing: list[Enrollment],
    ) -> None:
        cache: dict[EventId, Event | None] = {event.id: event}
        for enrollment in existing:
            if enrollment.event_id == event.id:
                raise DuplicateEnrollmentError(user_id, str(event.id))
            other = self._cached_event(cache, enrollment.event_id)
            if other is None:
                continue
            held = other.find_session(enrollment.session_id)
            if held is None:
                continue
            if target.overlaps(held):
                logger.info(
                    "[enroll] rejected user=%s event=%s reason=conflict with=%s",
                    user_id,
                    event.id,
                    other.id,
                )
                raise ScheduleConflictError(other.name, held.time_range)

    def _cached_event(self, cache: dict[EventId, Event | None], event_id: EventId) -> Event | None:
        if event_id not in cache:
            cache[event_id] = self._events.get_event(event_id)
        return cache[event_id]

    def _allocate(
        self,
        enrollment_id: EnrollmentId,
        user_id: str,
        event_id: EventId,
        session_id: SessionId,
    ) -> Enrollment:
        with self._enrollments.atomic():
            existing = self._enrollments.get_enrollment(enrollment_id)
            if existing is not None and existing.is_confirmed:
                raise DuplicateEnrollmentError(user_id, str(event_id))

            event = self._events.get_event(event_id)
            if event is None:
                raise EventNotFoundError(str(event_id))
            session = event.find_session(session_id)
            if session is None:
                raise SessionNotFoundError(str(event_id), str(session_id))
            if session.is_full:
                logger.info(
                    "[enroll] rejected user=%s event=%s session=%s reason=full",
                    user_id,
                    event_id,
                    session_id,
                )
                raise SessionFullError(str(session_id))

            enrollment = Enrollment(
                id=enrollment_id,
                user_id=user_id,
                event_id=event_id,
                session_id=session_id,
                status=EnrollmentStatus.CONFIRMED,
                enrolled_at=self._clock(),
            )
            self._enrollments.commit_allocation(
                event,
                session.with_filled(session.filled + 1),
                enrollment,
                replace_existing=existing is not None,
            )
        return enrollment

    def _release(self, enrollment_id: EnrollmentId) -> bool:
        with self._enrollments.atomic():
            enrollment = self._enrollments.get_enrollment(enrollment_id)
            if enrollment is None:
                return False

            event = self._events.get_event(enrollment.event_id)
            session = event.find_session(enrollment.session_id) if event else None
            if event is None or session is None:
                self._enrollments.commit_release(enrollment_id)
                return True

            try:
                self._enrollments.commit_release(
                    enrollment_id, event, session.with_filled(max(0, session.filled - 1))
                )
            except EventNotFoundError:
                # event deleted between read and write
                self._enrollments.commit_release(enrollment_id)
        return True
