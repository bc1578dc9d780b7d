"""In-process stores for local development and tests.

All three stores share one ``InMemoryDatabase``. Reads take a consistent
snapshot under the lock; conditional writes re-check the event version under
the same lock, which gives the same compare-and-swap semantics as the ORM
stores without holding anything between read and write.
"""

import threading
from contextlib import nullcontext
from dataclasses import dataclass, field, replace

from events.domain import (
    ClassGroup,
    Course,
    Enrollment,
    EnrollmentId,
    Event,
    EventId,
    Session,
    User,
    Visibility,
)
from events.domain.errors import (
    DuplicateEnrollmentError,
    EventNotFoundError,
    TransactionConflictError,
)
from events.stores.cursor import (
    Page,
    PageRequest,
    contains_text,
    decode_created_cursor,
    decode_cursor,
    paginate,
)
from events.stores.interfaces import EnrollmentStore, EventStore, UserStore


@dataclass
class InMemoryDatabase:
    events: dict[EventId, Event] = field(default_factory=dict)
    enrollments: dict[EnrollmentId, Enrollment] = field(default_factory=dict)
    users: dict[str, User] = field(default_factory=dict)
    courses: dict[str, Course] = field(default_factory=dict)
    classes: dict[str, ClassGroup] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock)


def _newest_first(event: Event) -> tuple:
    return (event.created_at, event.id.value.hex)


def _check_version(db: InMemoryDatabase, event: Event) -> Event:
    current = db.events.get(event.id)
    if current is None:
        raise EventNotFoundError(str(event.id))
    if current.version != event.version:
        raise TransactionConflictError(str(event.id))
    return current


class InMemoryEventStore(EventStore):
    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    def list_events(self, page: PageRequest) -> Page[Event]:
        visibility = page.filter_value("visibility")
        course = page.filter_value("course")
        with self._db.lock:
            events = sorted(self._db.events.values(), key=_newest_first, reverse=True)
            if visibility:
                events = [e for e in events if e.visibility.value == visibility]
            if course:
                events = [e for e in events if self._matches_course(e, course)]

        if page.cursor:
            created_at, last_id = decode_created_cursor(page.cursor)
            events = [e for e in events if _newest_first(e) < (created_at, last_id.hex)]

        search = page.filter_value("search")
        return paginate(
            events[: page.limit + 1],
            page.limit,
            position_of=lambda e: {"created_at": e.created_at.isoformat(), "id": str(e.id)},
            keep=lambda e: contains_text(search, e.name, e.description),
        )

    def _matches_course(self, event: Event, course_id: str) -> bool:
        if event.visibility is Visibility.COURSE:
            return course_id in event.allowed_courses
        if event.visibility is Visibility.CLASS:
            return any(
                self._db.classes[c].course_id == course_id
                for c in event.allowed_classes
                if c in self._db.classes
            )
        return False

    def get_event(self, event_id: EventId) -> Event | None:
        with self._db.lock:
            return self._db.events.get(event_id)

    def list_events_by_visibility(
        self, visibility: Visibility, scope_id: str | None = None
    ) -> list[Event]:
        with self._db.lock:
            events = sorted(self._db.events.values(), key=_newest_first, reverse=True)
        events = [e for e in events if e.visibility is visibility]
        if visibility is Visibility.COURSE:
            events = [e for e in events if scope_id in e.allowed_courses]
        elif visibility is Visibility.CLASS:
            events = [e for e in events if scope_id in e.allowed_classes]
        return events

    def list_children(self, parent_id: EventId) -> list[Event]:
        with self._db.lock:
            events = sorted(self._db.events.values(), key=_newest_first, reverse=True)
        return [e for e in events if e.parent_id == parent_id]

    def create_event(self, event: Event) -> Event:
        stored = replace(event, version=0)
        with self._db.lock:
            self._db.events[event.id] = stored
        return stored

    def replace_event(self, event: Event) -> Event:
        with self._db.lock:
            _check_version(self._db, event)
            stored = replace(event, version=event.version + 1)
            self._db.events[event.id] = stored
        return stored

    def delete_event(self, event_id: EventId) -> None:
        with self._db.lock:
            doomed = [
                e.id for e in self._db.events.values() if e.id == event_id or e.parent_id == event_id
            ]
            for key in doomed:
                del self._db.events[key]

    def atomic(self):
        return nullcontext()


class InMemoryEnrollmentStore(EnrollmentStore):
    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    def get_enrollment(self, enrollment_id: EnrollmentId) -> Enrollment | None:
        with self._db.lock:
            return self._db.enrollments.get(enrollment_id)

    def list_confirmed_for_user(self, user_id: str) -> list[Enrollment]:
        with self._db.lock:
            rows = list(self._db.enrollments.values())
        return [e for e in rows if e.user_id == user_id and e.is_confirmed]

    def list_confirmed_for_event(self, event_id: EventId) -> list[Enrollment]:
        with self._db.lock:
            rows = list(self._db.enrollments.values())
        return [e for e in rows if e.event_id == event_id and e.is_confirmed]

    def commit_allocation(
        self,
        event: Event,
        session: Session,
        enrollment: Enrollment,
        *,
        replace_existing: bool = False,
    ) -> None:
        with self._db.lock:
            current = _check_version(self._db, event)
            if enrollment.id in self._db.enrollments and not replace_existing:
                raise DuplicateEnrollmentError(enrollment.user_id, str(enrollment.event_id))
            updated = current.with_session(session)
            self._db.events[event.id] = replace(updated, version=current.version + 1)
            self._db.enrollments[enrollment.id] = enrollment

    def commit_release(
        self,
        enrollment_id: EnrollmentId,
        event: Event | None = None,
        session: Session | None = None,
    ) -> None:
        with self._db.lock:
            if event is not None and session is not None:
                current = _check_version(self._db, event)
                updated = current.with_session(session)
                self._db.events[event.id] = replace(updated, version=current.version + 1)
            self._db.enrollments.pop(enrollment_id, None)

    def atomic(self):
        return nullcontext()


class InMemoryUserStore(UserStore):
    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    def list_users(self, page: PageRequest) -> Page[User]:
        role = page.filter_value("role")
        course_id = page.filter_value("course_id")
        class_id = page.filter_value("class_id")
        with self._db.lock:
            users = sorted(self._db.users.values(), key=lambda u: (u.email, u.uid))
        if role:
            users = [u for u in users if u.role.value == role]
        if course_id:
            users = [u for u in users if u.course_id == course_id]
        if class_id:
            users = [u for u in users if u.class_id == class_id]
        if page.cursor:
            position = decode_cursor(page.cursor, ("email", "uid"))
            users = [u for u in users if (u.email, u.uid) > (position["email"], position["uid"])]

        search = page.filter_value("search")
        return paginate(
            users[: page.limit + 1],
            page.limit,
            position_of=lambda u: {"email": u.email, "uid": u.uid},
            keep=lambda u: contains_text(search, u.name, u.email, u.rm),
        )

    def get_users(self, uids: list[str]) -> dict[str, User]:
        with self._db.lock:
            return {uid: self._db.users[uid] for uid in uids if uid in self._db.users}

    def list_courses(self) -> list[Course]:
        with self._db.lock:
            return sorted(self._db.courses.values(), key=lambda c: c.name)

    def list_classes(self, course_id: str | None = None) -> list[ClassGroup]:
        with self._db.lock:
            classes = sorted(self._db.classes.values(), key=lambda c: c.name)
        if course_id:
            classes = [c for c in classes if c.course_id == course_id]
        return classes

    def add_user(self, user: User) -> None:
        with self._db.lock:
            self._db.users[user.uid] = user
