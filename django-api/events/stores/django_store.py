"""Django ORM implementation of the event, enrollment and user stores."""

import logging
from contextlib import contextmanager
from typing import Iterator

from django.db import DatabaseError, IntegrityError, OperationalError, transaction
from django.db.models import F, Prefetch, Q, QuerySet

from events import models as orm
from events.domain import (
    Capacity,
    ClassGroup,
    Course,
    Enrollment,
    EnrollmentId,
    EnrollmentStatus,
    Event,
    EventId,
    Session,
    SessionId,
    User,
    UserRole,
    Visibility,
)
from events.domain.errors import (
    DuplicateEnrollmentError,
    EventNotFoundError,
    StoreUnavailableError,
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

logger = logging.getLogger(__name__)

_TRANSIENT_MARKERS = ("locked", "deadlock", "could not serialize", "serialization failure")


def _is_transient(exc: DatabaseError) -> bool:
    return isinstance(exc, OperationalError) and any(
        marker in str(exc).lower() for marker in _TRANSIENT_MARKERS
    )


@contextmanager
def _store_errors() -> Iterator[None]:
    """Translate driver failures into StoreUnavailableError."""
    try:
        yield
    except IntegrityError:
        raise
    except DatabaseError as exc:
        transient = _is_transient(exc)
        logger.warning("[store] database error transient=%s error=%s", transient, exc)
        raise StoreUnavailableError(transient=transient) from exc


@contextmanager
def _atomic() -> Iterator[None]:
    """Transaction whose commit failures surface as StoreUnavailableError."""
    with _store_errors(), transaction.atomic():
        yield


def _event_queryset() -> QuerySet:
    return orm.Event.objects.prefetch_related(
        Prefetch("sessions", queryset=orm.Session.objects.order_by("position")),
        "allowed_courses",
        "allowed_classes",
    )


def _session_to_domain(row: orm.Session) -> Session:
    return Session(
        id=SessionId(row.id),
        date=row.date,
        start_time=row.start_time,
        end_time=row.end_time,
        capacity=Capacity(row.capacity),
        filled=row.filled,
    )


def _event_to_domain(row: orm.Event) -> Event:
    return Event(
        id=EventId(row.id),
        name=row.name,
        description=row.description,
        location=row.location,
        visibility=Visibility(row.visibility),
        created_by=row.created_by,
        created_at=row.created_at,
        sessions=tuple(_session_to_domain(s) for s in row.sessions.all()),
        allowed_courses=frozenset(c.id for c in row.allowed_courses.all()),
        allowed_classes=frozenset(c.id for c in row.allowed_classes.all()),
        parent_id=EventId(row.parent_id) if row.parent_id else None,
        version=row.version,
    )


def _enrollment_to_domain(row: orm.Enrollment) -> Enrollment:
    return Enrollment(
        id=EnrollmentId(row.id),
        user_id=row.user_id,
        event_id=EventId(row.event_id),
        session_id=SessionId(row.session_id),
        status=EnrollmentStatus(row.status),
        enrolled_at=row.enrolled_at,
    )


def _member_to_domain(row: orm.Member) -> User:
    return User(
        uid=row.uid,
        email=row.email,
        role=UserRole(row.role),
        name=row.name,
        rm=row.rm,
        course_id=row.course_id,
        class_id=row.class_group_id,
        is_onboarded=row.is_onboarded,
    )


def _bump_version(event: Event) -> None:
    """Compare-and-swap on the event version; the row stays locked until commit."""
    updated = orm.Event.objects.filter(pk=event.id.value, version=event.version).update(
        version=F("version") + 1
    )
    if updated:
        return
    if not orm.Event.objects.filter(pk=event.id.value).exists():
        raise EventNotFoundError(str(event.id))
    raise TransactionConflictError(str(event.id))


def _write_sessions(row: orm.Event, sessions: tuple[Session, ...]) -> None:
    keep = [s.id.value for s in sessions]
    orm.Session.objects.filter(event=row).exclude(pk__in=keep).delete()
    for position, session in enumerate(sessions):
        orm.Session.objects.update_or_create(
            pk=session.id.value,
            defaults={
                "event": row,
                "position": position,
                "date": session.date,
                "start_time": session.start_time,
                "end_time": session.end_time,
                "capacity": session.capacity.value,
                "filled": session.filled,
            },
        )


class DjangoEventStore(EventStore):
    """Relational event store using Django ORM."""

    def list_events(self, page: PageRequest) -> Page[Event]:
        qs = _event_queryset().order_by("-created_at", "-id")

        visibility = page.filter_value("visibility")
        if visibility:
            qs = qs.filter(visibility=visibility)

        course = page.filter_value("course")
        if course:
            qs = qs.filter(
                Q(visibility=Visibility.COURSE.value, allowed_courses__id=course)
                | Q(visibility=Visibility.CLASS.value, allowed_classes__course=course)
            ).distinct()

        if page.cursor:
            created_at, last_id = decode_created_cursor(page.cursor)
            qs = qs.filter(Q(created_at__lt=created_at) | Q(created_at=created_at, id__lt=last_id))

        search = page.filter_value("search")
        with _store_errors():
            rows = [_event_to_domain(row) for row in qs[: page.limit + 1]]
        return paginate(
            rows,
            page.limit,
            position_of=lambda e: {"created_at": e.created_at.isoformat(), "id": str(e.id)},
            keep=lambda e: contains_text(search, e.name, e.description),
        )

    def get_event(self, event_id: EventId) -> Event | None:
        with _store_errors():
            row = _event_queryset().filter(pk=event_id.value).first()
        return _event_to_domain(row) if row else None

    def list_events_by_visibility(
        self, visibility: Visibility, scope_id: str | None = None
    ) -> list[Event]:
        qs = _event_queryset().filter(visibility=visibility.value)
        if visibility is Visibility.COURSE:
            qs = qs.filter(allowed_courses__id=scope_id)
        elif visibility is Visibility.CLASS:
            qs = qs.filter(allowed_classes__id=scope_id)
        with _store_errors():
            return [_event_to_domain(row) for row in qs.distinct().order_by("-created_at", "-id")]

    def list_children(self, parent_id: EventId) -> list[Event]:
        with _store_errors():
            rows = _event_queryset().filter(parent_id=parent_id.value).order_by("-created_at", "-id")
            return [_event_to_domain(row) for row in rows]

    def create_event(self, event: Event) -> Event:
        with _store_errors(), transaction.atomic():
            row = orm.Event.objects.create(
                id=event.id.value,
                parent_id=event.parent_id.value if event.parent_id else None,
                name=event.name,
                description=event.description,
                location=event.location,
                visibility=event.visibility.value,
                created_by=event.created_by,
                created_at=event.created_at,
                version=0,
            )
            row.allowed_courses.set(sorted(event.allowed_courses))
            row.allowed_classes.set(sorted(event.allowed_classes))
            _write_sessions(row, event.sessions)
        logger.info("[events] created event=%s sessions=%s", event.id, len(event.sessions))
        return self.get_event(event.id)

    def replace_event(self, event: Event) -> Event:
        with _store_errors(), transaction.atomic():
            _bump_version(event)
            orm.Event.objects.filter(pk=event.id.value).update(
                parent_id=event.parent_id.value if event.parent_id else None,
                name=event.name,
                description=event.description,
                location=event.location,
                visibility=event.visibility.value,
            )
            row = orm.Event.objects.get(pk=event.id.value)
            row.allowed_courses.set(sorted(event.allowed_courses))
            row.allowed_classes.set(sorted(event.allowed_classes))
            _write_sessions(row, event.sessions)
        logger.info("[events] replaced event=%s version=%s", event.id, event.version + 1)
        return self.get_event(event.id)

    def delete_event(self, event_id: EventId) -> None:
        with _store_errors():
            deleted, _ = orm.Event.objects.filter(pk=event_id.value).delete()
        if deleted:
            logger.info("[events] deleted event=%s rows=%s", event_id, deleted)

    def atomic(self):
        return _atomic()


class DjangoEnrollmentStore(EnrollmentStore):
    """Enrollment store; seat writes share the event version guard."""

    def get_enrollment(self, enrollment_id: EnrollmentId) -> Enrollment | None:
        with _store_errors():
            row = orm.Enrollment.objects.filter(pk=enrollment_id.value).first()
        return _enrollment_to_domain(row) if row else None

    def list_confirmed_for_user(self, user_id: str) -> list[Enrollment]:
        with _store_errors():
            rows = orm.Enrollment.objects.filter(
                user_id=user_id, status=EnrollmentStatus.CONFIRMED.value
            )
            return [_enrollment_to_domain(row) for row in rows]

    def list_confirmed_for_event(self, event_id: EventId) -> list[Enrollment]:
        with _store_errors():
            rows = orm.Enrollment.objects.filter(
                event_id=event_id.value, status=EnrollmentStatus.CONFIRMED.value
            )
            return [_enrollment_to_domain(row) for row in rows]

    def commit_allocation(
        self,
        event: Event,
        session: Session,
        enrollment: Enrollment,
        *,
        replace_existing: bool = False,
    ) -> None:
        fields = {
            "user_id": enrollment.user_id,
            "event_id": enrollment.event_id.value,
            "session_id": enrollment.session_id.value,
            "status": enrollment.status.value,
            "enrolled_at": enrollment.enrolled_at,
        }
        with _store_errors(), transaction.atomic():
            _bump_version(event)
            orm.Session.objects.filter(pk=session.id.value, event_id=event.id.value).update(
                filled=session.filled
            )
            if replace_existing:
                orm.Enrollment.objects.update_or_create(pk=enrollment.id.value, defaults=fields)
                return
            try:
                with transaction.atomic():
                    orm.Enrollment.objects.create(id=enrollment.id.value, **fields)
            except IntegrityError:
                raise DuplicateEnrollmentError(enrollment.user_id, str(enrollment.event_id)) from None

    def commit_release(
        self,
        enrollment_id: EnrollmentId,
        event: Event | None = None,
        session: Session | None = None,
    ) -> None:
        with _store_errors(), transaction.atomic():
            if event is not None and session is not None:
                _bump_version(event)
                orm.Session.objects.filter(pk=session.id.value, event_id=event.id.value).update(
                    filled=session.filled
                )
            orm.Enrollment.objects.filter(pk=enrollment_id.value).delete()

    def atomic(self):
        return _atomic()


class DjangoUserStore(UserStore):
    """Member directory backed by Django ORM."""

    def list_users(self, page: PageRequest) -> Page[User]:
        qs = orm.Member.objects.order_by("email", "uid")

        role = page.filter_value("role")
        if role:
            qs = qs.filter(role=role)
        course_id = page.filter_value("course_id")
        if course_id:
            qs = qs.filter(course_id=course_id)
        class_id = page.filter_value("class_id")
        if class_id:
            qs = qs.filter(class_group_id=class_id)

        if page.cursor:
            position = decode_cursor(page.cursor, ("email", "uid"))
            qs = qs.filter(
                Q(email__gt=position["email"]) | Q(email=position["email"], uid__gt=position["uid"])
            )

        search = page.filter_value("search")
        with _store_errors():
            rows = [_member_to_domain(row) for row in qs[: page.limit + 1]]
        return paginate(
            rows,
            page.limit,
            position_of=lambda u: {"email": u.email, "uid": u.uid},
            keep=lambda u: contains_text(search, u.name, u.email, u.rm),
        )

    def get_users(self, uids: list[str]) -> dict[str, User]:
        with _store_errors():
            rows = orm.Member.objects.filter(uid__in=uids)
            return {row.uid: _member_to_domain(row) for row in rows}

    def list_courses(self) -> list[Course]:
        with _store_errors():
            return [Course(id=row.id, name=row.name) for row in orm.Course.objects.order_by("name")]

    def list_classes(self, course_id: str | None = None) -> list[ClassGroup]:
        qs = orm.ClassGroup.objects.order_by("name")
        if course_id:
            qs = qs.filter(course_id=course_id)
        with _store_errors():
            return [ClassGroup(id=row.id, course_id=row.course_id, name=row.name) for row in qs]
