from django.urls import path

from events.handlers import (
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

urlpatterns = [
    path("events", EventListView.as_view(), name="event-list"),
    path("events/public", PublicEventListView.as_view(), name="event-public"),
    path("events/available", AvailableEventListView.as_view(), name="event-available"),
    path("events/<str:event_id>", EventDetailView.as_view(), name="event-detail"),
    path(
        "events/<str:event_id>/sessions",
        SessionListView.as_view(),
        name="session-list",
    ),
    path(
        "events/<str:event_id>/children",
        EventChildrenView.as_view(),
        name="event-children",
    ),
    path(
        "events/<str:event_id>/enrollments",
        EventRosterView.as_view(),
        name="event-roster",
    ),
    path("sessions/recurring", RecurringSessionsView.as_view(), name="session-recurring"),
    path("enrollments", EnrollmentListView.as_view(), name="enrollment-list"),
    path(
        "enrollments/<str:enrollment_id>",
        EnrollmentDetailView.as_view(),
        name="enrollment-detail",
    ),
    path("users", UserListView.as_view(), name="user-list"),
]
