"""Event service - all business logic lives here.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors
"""

import logging
from dataclasses import replace

from events.domain.errors import (
    EventNotFoundError,
    InvalidDateRangeError,
    InvalidEventHierarchyError,
    InvalidEventIdError,
    InvalidSessionError,
)
from events.domain.models import Event, Session
from events.domain.timeutils import format_date
from events.domain.value_objects import EventId, SessionId, Visibility
from events.services.retry import RetryPolicy, run_with_retry
from events.stores.cursor import Page, PageRequest
from events.stores.interfaces import EventStore

logger = logging.getLogger(__name__)


def parse_event_id(event_id: str) -> EventId:
    try:
        return EventId.from_string(str(event_id))
    except ValueError:
        raise InvalidEventIdError() from None


class EventService:
    """Service for event catalog operations."""

    def __init__(self, store: EventStore, retry: RetryPolicy | None = None) -> None:
        self._store = store
        self._retry = retry or RetryPolicy.from_settings()

    def list_events(self, page: PageRequest) -> Page[Event]:
        """Return one page of events, newest first."""
        return self._store.list_events(page)

    def get_event(self, event_id: str) -> Event:
        """Return an event by ID.

        Raises:
            InvalidEventIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
        """
        event = self._store.get_event(parse_event_id(event_id))
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    def get_event_by_id(self, event_id: str) -> Event | None:
        """Return an event by ID, or None when it is absent or the ID is malformed."""
        try:
            return self._store.get_event(parse_event_id(event_id))
        except InvalidEventIdError:
            return None

    def get_sessions_for_event(self, event_id: str) -> list[Session]:
        """Return sessions for an event in stored order.

        Raises:
            InvalidEventIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
        """
        return list(self.get_event(event_id).sessions)

    def get_public_events(self) -> list[Event]:
        return self._store.list_events_by_visibility(Visibility.PUBLIC)

    def get_children(self, parent_id: str) -> list[Event]:
        parent = self.get_event(parent_id)
        return self._store.list_children(parent.id)

    def create_event(self, event: Event) -> Event:
        """Persist a new event. Every session gets a new ID and no seats filled."""
        self._validate_hierarchy(event, is_new=True)
        fresh = replace(
            event,
            sessions=tuple(replace(s, id=SessionId.new(), filled=0) for s in event.sessions),
            version=0,
        )
        created = self._store.create_event(fresh)
        logger.info(
            "[events] create event=%s parent=%s sessions=%s",
            created.id,
            created.parent_id,
            len(created.sessions),
        )
        return created

    def update_event(self, event: Event) -> Event:
        """Replace an event document, including its full session list.

        Seat counters of sessions that already exist are kept from storage;
        sessions the event does not own yet start empty under a new ID.

        Raises:
            EventNotFoundError: If the event does not exist.
        """

        def attempt() -> Event:
            current = self._store.get_event(event.id)
            if current is None:
                raise EventNotFoundError(str(event.id))
            self._validate_hierarchy(event, is_new=False)
            merged = replace(
                event,
                created_by=current.created_by,
                created_at=current.created_at,
                sessions=self._merge_sessions(current, event.sessions),
                version=current.version,
            )
            return self._store.replace_event(merged)

        updated = run_with_retry("update_event", attempt, self._retry)
        logger.info("[events] update event=%s sessions=%s", updated.id, len(updated.sessions))
        return updated

    def delete_event(self, event_id: str) -> None:
        """Delete an event and its children. Unknown IDs are ignored.

        Enrollments are left untouched; callers cancel them first.
        """
        parsed = parse_event_id(event_id)
        self._store.delete_event(parsed)
        logger.info("[events] delete event=%s", parsed)

    def _merge_sessions(self, current: Event, sessions: tuple[Session, ...]) -> tuple[Session, ...]:
        merged: list[Session] = []
        for session in sessions:
            stored = current.find_session(session.id)
            if stored is None:
                merged.append(replace(session, id=SessionId.new(), filled=0))
                continue
            if session.capacity.value < stored.filled:
                raise InvalidSessionError(
                    f"Capacity cannot be lower than the {stored.filled} seats already taken"
                )
            merged.append(session.with_filled(stored.filled))
        return tuple(merged)

    def _validate_hierarchy(self, event: Event, *, is_new: bool) -> None:
        if event.parent_id is None:
            if not is_new:
                self._validate_children_span(event)
            return
        if event.parent_id == event.id:
            raise InvalidEventHierarchyError("An event cannot be its own parent")

        parent = self._store.get_event(event.parent_id)
        if parent is None:
            raise EventNotFoundError(str(event.parent_id))
        if parent.is_child:
            raise InvalidEventHierarchyError("Sub-events cannot have sub-events of their own")
        if not is_new and self._store.list_children(event.id):
            raise InvalidEventHierarchyError("An event with sub-events cannot become a sub-event")

        span = parent.date_span()
        if span is None:
            return
        first, last = span
        for session in event.sessions:
            if not first <= session.date <= last:
                raise InvalidDateRangeError(
                    f"Session dates must be between {format_date(first)} and {format_date(last)}"
                )

    def _validate_children_span(self, parent: Event) -> None:
        span = parent.date_span()
        if span is None:
            return
        first, last = span
        for child in self._store.list_children(parent.id):
            for session in child.sessions:
                if not first <= session.date <= last:
                    raise InvalidDateRangeError(
                        f"Sub-event '{child.name}' has sessions outside "
                        f"{format_date(first)} - {format_date(last)}"
                    )
