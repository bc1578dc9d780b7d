"""Which events a member may see and enroll in."""

from dataclasses import dataclass, field

from events.domain.models import Enrollment, Event, User
from events.domain.value_objects import EventId, SessionId, Visibility
from events.stores.interfaces import EnrollmentStore, EventStore


@dataclass(frozen=True)
class AvailableEvent:
    event: Event
    enrolled_session_id: SessionId | None = None

    @property
    def is_enrolled(self) -> bool:
        return self.enrolled_session_id is not None


@dataclass(frozen=True)
class EventHierarchy:
    """Parent events shown as cards; children reachable through their parent."""

    parents: list[AvailableEvent]
    children: dict[EventId, list[AvailableEvent]] = field(default_factory=dict)


def annotate_enrollment_state(
    events: list[Event], enrollments: list[Enrollment]
) -> list[AvailableEvent]:
    enrolled = {e.event_id: e.session_id for e in enrollments if e.is_confirmed}
    return [AvailableEvent(event=event, enrolled_session_id=enrolled.get(event.id)) for event in events]


def split_hierarchy(items: list[AvailableEvent]) -> EventHierarchy:
    parents = [item for item in items if not item.event.is_child]
    children: dict[EventId, list[AvailableEvent]] = {}
    for item in items:
        if item.event.parent_id is not None:
            children.setdefault(item.event.parent_id, []).append(item)
    return EventHierarchy(parents=parents, children=children)


class AvailabilityService:
    def __init__(self, events: EventStore, enrollments: EnrollmentStore) -> None:
        self._events = events
        self._enrollments = enrollments

    def get_available_events_for_user(self, user: User) -> list[Event]:
        """Union of public, course-scoped and class-scoped events, deduplicated by ID."""
        sources = [self._events.list_events_by_visibility(Visibility.PUBLIC)]
        if user.course_id:
            sources.append(self._events.list_events_by_visibility(Visibility.COURSE, user.course_id))
        if user.class_id:
            sources.append(self._events.list_events_by_visibility(Visibility.CLASS, user.class_id))

        seen: set[EventId] = set()
        available: list[Event] = []
        for events in sources:
            for event in events:
                if event.id in seen:
                    continue
                seen.add(event.id)
                available.append(event)
        return available

    def get_catalog_for_user(self, user: User) -> EventHierarchy:
        events = self.get_available_events_for_user(user)
        enrollments = self._enrollments.list_confirmed_for_user(user.uid)
        return split_hierarchy(annotate_enrollment_state(events, enrollments))
