from dataclasses import dataclass

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from events.services.availability import AvailabilityService
from events.services.enrollment_service import EnrollmentService
from events.services.event_service import EventService
from events.services.user_service import UserService
from events.stores.django_store import DjangoEnrollmentStore, DjangoEventStore, DjangoUserStore
from events.stores.memory_store import (
    InMemoryDatabase,
    InMemoryEnrollmentStore,
    InMemoryEventStore,
    InMemoryUserStore,
)

_memory_db: InMemoryDatabase | None = None


@dataclass(frozen=True)
class Services:
    events: EventService
    enrollments: EnrollmentService
    availability: AvailabilityService
    users: UserService


def _memory_database() -> InMemoryDatabase:
    global _memory_db
    if _memory_db is None:
        _memory_db = InMemoryDatabase()
    return _memory_db


def build_services(backend: str | None = None) -> Services:
    """Wire services to the configured store backend (``django`` or ``memory``)."""
    backend = backend or getattr(settings, "EVENTS_STORE_BACKEND", "django")
    if backend == "django":
        events, enrollments, users = DjangoEventStore(), DjangoEnrollmentStore(), DjangoUserStore()
    elif backend == "memory":
        db = _memory_database()
        events, enrollments, users = (
            InMemoryEventStore(db),
            InMemoryEnrollmentStore(db),
            InMemoryUserStore(db),
        )
    else:
        raise ImproperlyConfigured(f"Unknown EVENTS_STORE_BACKEND: {backend!r}")

    return Services(
        events=EventService(events),
        enrollments=EnrollmentService(events, enrollments, users),
        availability=AvailabilityService(events, enrollments),
        users=UserService(users),
    )


__all__ = [
    "Services",
    "build_services",
    "EventService",
    "EnrollmentService",
    "AvailabilityService",
    "UserService",
]
