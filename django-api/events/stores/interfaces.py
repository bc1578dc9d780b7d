"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

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
from events.stores.cursor import Page, PageRequest


class EventStore(ABC):
    """Interface for event persistence operations."""

    @abstractmethod
    def list_events(self, page: PageRequest) -> Page[Event]:
        """Return one page of events ordered by created_at descending.

        Supported filters: ``search`` (applied after the page is cut),
        ``visibility`` and ``course``.
        """
        ...

    @abstractmethod
    def get_event(self, event_id: EventId) -> Event | None:
        """Return an event by ID, or None if not found."""
        ...

    @abstractmethod
    def list_events_by_visibility(
        self, visibility: Visibility, scope_id: str | None = None
    ) -> list[Event]:
        """Return events with the given visibility.

        For ``course``/``class`` only events whose allowed set contains
        ``scope_id`` are returned.
        """
        ...

    @abstractmethod
    def list_children(self, parent_id: EventId) -> list[Event]:
        """Return child events of a parent, newest first."""
        ...

    @abstractmethod
    def create_event(self, event: Event) -> Event:
        """Persist a new event with its sessions."""
        ...

    @abstractmethod
    def replace_event(self, event: Event) -> Event:
        """Overwrite an event and its whole session list.

        The write only applies if the stored version still equals
        ``event.version``.

        Raises:
            EventNotFoundError: If the event no longer exists.
            TransactionConflictError: If another writer bumped the version.
        """
        ...

    @abstractmethod
    def delete_event(self, event_id: EventId) -> None:
        """Delete an event and its children. Missing IDs are ignored."""
        ...

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """Return a context manager wrapping one all-or-nothing unit."""
        ...


class EnrollmentStore(ABC):
    """Interface for enrollment persistence and seat allocation."""

    @abstractmethod
    def get_enrollment(self, enrollment_id: EnrollmentId) -> Enrollment | None:
        ...

    @abstractmethod
    def list_confirmed_for_user(self, user_id: str) -> list[Enrollment]:
        ...

    @abstractmethod
    def list_confirmed_for_event(self, event_id: EventId) -> list[Enrollment]:
        ...

    @abstractmethod
    def commit_allocation(
        self,
        event: Event,
        session: Session,
        enrollment: Enrollment,
        *,
        replace_existing: bool = False,
    ) -> None:
        """Write the session's new ``filled`` and the enrollment together.

        ``event`` is the snapshot the caller validated against; the write is
        conditional on its version.

        Raises:
            EventNotFoundError: If the event was deleted meanwhile.
            TransactionConflictError: If the event changed since it was read.
            DuplicateEnrollmentError: If the enrollment key is already taken.
        """
        ...

    @abstractmethod
    def commit_release(
        self,
        enrollment_id: EnrollmentId,
        event: Event | None = None,
        session: Session | None = None,
    ) -> None:
        """Delete an enrollment, writing the session's new ``filled`` when given.

        Raises:
            TransactionConflictError: If the event changed since it was read.
        """
        ...

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        ...


class UserStore(ABC):
    """Interface for member and course/class lookups."""

    @abstractmethod
    def list_users(self, page: PageRequest) -> Page[User]:
        """Return one page of users ordered by email ascending.

        Supported filters: ``search`` over name/email/rm (applied after the
        page is cut), ``role``, ``course_id`` and ``class_id``.
        """
        ...

    @abstractmethod
    def get_users(self, uids: list[str]) -> dict[str, User]:
        """Return the users that exist among ``uids``, keyed by uid."""
        ...

    @abstractmethod
    def list_courses(self) -> list[Course]:
        ...

    @abstractmethod
    def list_classes(self, course_id: str | None = None) -> list[ClassGroup]:
        ...
