"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in events/models.py (persistence layer).
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time

from events.domain.timeutils import format_time_range, intervals_overlap, time_to_minutes
from events.domain.value_objects import (
    Capacity,
    EnrollmentId,
    EnrollmentStatus,
    EventId,
    SessionId,
    UserRole,
    Visibility,
)


@dataclass(frozen=True)
class Session:
    """One dated occurrence of an event with its own seat counter."""

    id: SessionId
    date: date
    start_time: time
    end_time: time
    capacity: Capacity
    filled: int = 0

    def __post_init__(self) -> None:
        if self.start_time >= self.end_time:
            raise ValueError("Session must start before it ends")
        if not 0 <= self.filled <= self.capacity.value:
            raise ValueError("Session filled must be between 0 and capacity")

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    @property
    def time_range(self) -> str:
        return format_time_range(self.start_time, self.end_time)

    @property
    def is_full(self) -> bool:
        return self.filled >= self.capacity.value

    def overlaps(self, other: "Session") -> bool:
        """Same calendar day and intersecting [start, end) intervals."""
        if self.date != other.date:
            return False
        return intervals_overlap(
            self.start_minutes, self.end_minutes, other.start_minutes, other.end_minutes
        )

    def with_filled(self, filled: int) -> "Session":
        return replace(self, filled=filled)


@dataclass(frozen=True)
class Event:
    """Domain representation of an Event and its owned sessions."""

    id: EventId
    name: str
    description: str
    location: str
    visibility: Visibility
    created_by: str
    created_at: datetime
    sessions: tuple[Session, ...] = ()
    allowed_courses: frozenset[str] = field(default_factory=frozenset)
    allowed_classes: frozenset[str] = field(default_factory=frozenset)
    parent_id: EventId | None = None
    version: int = 0

    @property
    def is_child(self) -> bool:
        return self.parent_id is not None

    def find_session(self, session_id: SessionId) -> Session | None:
        for session in self.sessions:
            if session.id == session_id:
                return session
        return None

    def with_session(self, updated: Session) -> "Event":
        """Return a copy with one session swapped, order preserved."""
        sessions = tuple(updated if s.id == updated.id else s for s in self.sessions)
        return replace(self, sessions=sessions)

    def date_span(self) -> tuple[date, date] | None:
        if not self.sessions:
            return None
        dates = [s.date for s in self.sessions]
        return min(dates), max(dates)


@dataclass(frozen=True)
class Enrollment:
    """One user's claim on one session of one event."""

    id: EnrollmentId
    user_id: str
    event_id: EventId
    session_id: SessionId
    status: EnrollmentStatus
    enrolled_at: datetime

    @property
    def is_confirmed(self) -> bool:
        return self.status is EnrollmentStatus.CONFIRMED


@dataclass(frozen=True)
class Course:
    id: str
    name: str


@dataclass(frozen=True)
class ClassGroup:
    id: str
    course_id: str
    name: str


@dataclass(frozen=True)
class User:
    """Organization member as seen by the core (identity is external)."""

    uid: str
    email: str
    role: UserRole = UserRole.USER
    name: str = ""
    rm: str = ""
    course_id: str | None = None
    class_id: str | None = None
    is_onboarded: bool = False


@dataclass(frozen=True)
class EnrollmentDetail:
    """A user's enrollment joined with the event and session it points to."""

    enrollment_id: EnrollmentId
    event_id: EventId
    event_name: str
    event_location: str
    session_date: date
    session_time: str
    enrolled_at: datetime


@dataclass(frozen=True)
class RosterEntry:
    """An event enrollment joined with member data, for administrators."""

    enrollment: Enrollment
    user_name: str
    user_email: str
    user_rm: str
    session: Session | None
