from events.handlers.views import (
    AvailableEventListView,
    EnrollmentDetailView,
    EnrollmentListView,
    EventChildrenView,
    EventDetailView,
    EventListView,
    EventRosterView,
    PublicEventListView,
    RecurringSessionsView,
    SessionListView,
    UserListView,
)

__all__ = [
    "AvailableEventListView",
    "EnrollmentDetailView",
    "EnrollmentListView",
    "EventChildrenView",
    "EventDetailView",
    "EventListView",
    "EventRosterView",
    "PublicEventListView",
    "RecurringSessionsView",
    "SessionListView",
    "UserListView",
]
