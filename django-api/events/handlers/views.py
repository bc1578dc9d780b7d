"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Resolve the caller from the X-User-Id header
- Call services for business logic
- Leave domain error mapping to events.handlers.errors
"""

import logging

from django.conf import settings
from rest_framework import status
from rest_framework.exceptions import APIException, PermissionDenied, ValidationError
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from events.domain import EventId, User, UserRole
from events.handlers.serializers import (
    AvailableEventSerializer,
    EnrollmentCreateSerializer,
    EnrollmentDetailSerializer,
    EnrollmentSerializer,
    EventSerializer,
    RecurrenceSerializer,
    RosterEntrySerializer,
    SessionSerializer,
    UserSerializer,
)
from events.services import Services, build_services
from events.services.event_service import parse_event_id
from events.services.recurrence import generate_recurring_sessions
from events.stores.cursor import PageRequest

logger = logging.getLogger(__name__)

USER_HEADER = "X-User-Id"


class MissingCallerError(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = f"{USER_HEADER} header is required"
    default_code = "not_authenticated"


class ServiceView(APIView):
    """Base view wiring services and caller identity."""

    services: Services | None = None

    def get_services(self) -> Services:
        return self.services or build_services()

    def caller_id(self, request: Request) -> str:
        uid = request.headers.get(USER_HEADER, "").strip()
        if not uid:
            raise MissingCallerError()
        return uid

    def caller(self, request: Request) -> User:
        return self.get_services().users.resolve_caller(self.caller_id(request))

    def require_admin(self, request: Request) -> User:
        user = self.caller(request)
        if user.role is not UserRole.ADMIN:
            raise PermissionDenied("Administrator role required")
        return user

    def page_request(self, request: Request, filter_keys: tuple[str, ...]) -> PageRequest:
        default = settings.EVENTS_PAGE_SIZE
        raw = request.query_params.get("limit", default)
        try:
            limit = int(raw)
        except (TypeError, ValueError):
            raise ValidationError({"limit": "Must be a positive integer"}) from None
        if limit < 1:
            raise ValidationError({"limit": "Must be a positive integer"})
        return PageRequest(
            limit=min(limit, settings.EVENTS_MAX_PAGE_SIZE),
            cursor=request.query_params.get("cursor") or None,
            filters={key: request.query_params.get(key) for key in filter_keys},
        )


class EventListView(ServiceView):
    """Handler for GET/POST /api/events"""

    def get(self, request: Request) -> Response:
        page = self.get_services().events.list_events(
            self.page_request(request, ("visibility", "course", "search"))
        )
        return Response(
            {
                "data": EventSerializer(page.data, many=True).data,
                "next_cursor": page.next_cursor,
            }
        )

    def post(self, request: Request) -> Response:
        admin = self.require_admin(request)
        serializer = EventSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        event = self.get_services().events.create_event(
            serializer.to_event(EventId.new(), created_by=admin.uid)
        )
        return Response(EventSerializer(event).data, status=status.HTTP_201_CREATED)


class EventDetailView(ServiceView):
    """Handler for GET/PUT/DELETE /api/events/{event_id}"""

    def get(self, request: Request, event_id: str) -> Response:
        event = self.get_services().events.get_event(event_id)
        return Response(EventSerializer(event).data)

    def put(self, request: Request, event_id: str) -> Response:
        admin = self.require_admin(request)
        target = parse_event_id(event_id)
        serializer = EventSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        event = self.get_services().events.update_event(
            serializer.to_event(target, created_by=admin.uid)
        )
        return Response(EventSerializer(event).data)

    def delete(self, request: Request, event_id: str) -> Response:
        """Cancel enrollments of the event and its children, then delete them."""
        self.require_admin(request)
        services = self.get_services()
        target = parse_event_id(event_id)
        if services.events.get_event_by_id(event_id) is not None:
            canceled = sum(
                services.enrollments.cancel_event_enrollments(child.id)
                for child in services.events.get_children(event_id)
            )
            canceled += services.enrollments.cancel_event_enrollments(target)
            logger.info("[http] delete event=%s canceled_enrollments=%s", target, canceled)
        services.events.delete_event(event_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class SessionListView(ServiceView):
    """Handler for GET /api/events/{event_id}/sessions"""

    def get(self, request: Request, event_id: str) -> Response:
        sessions = self.get_services().events.get_sessions_for_event(event_id)
        return Response(SessionSerializer(sessions, many=True).data)


class EventChildrenView(ServiceView):
    def get(self, request: Request, event_id: str) -> Response:
        children = self.get_services().events.get_children(event_id)
        return Response(EventSerializer(children, many=True).data)


class EventRosterView(ServiceView):
    """Handler for GET /api/events/{event_id}/enrollments (administrators)."""

    def get(self, request: Request, event_id: str) -> Response:
        self.require_admin(request)
        roster = self.get_services().enrollments.get_event_enrollments(event_id)
        return Response(RosterEntrySerializer(roster, many=True).data)


class PublicEventListView(ServiceView):
    def get(self, request: Request) -> Response:
        events = self.get_services().events.get_public_events()
        return Response(EventSerializer(events, many=True).data)


class AvailableEventListView(ServiceView):
    """Handler for GET /api/events/available

    Parent events are returned at the top level; children are grouped
    under their parent's ID.
    """

    def get(self, request: Request) -> Response:
        services = self.get_services()
        catalog = services.availability.get_catalog_for_user(self.caller(request))
        return Response(
            {
                "events": AvailableEventSerializer(catalog.parents, many=True).data,
                "children": {
                    str(parent_id): AvailableEventSerializer(items, many=True).data
                    for parent_id, items in catalog.children.items()
                },
            }
        )


class RecurringSessionsView(ServiceView):
    """Handler for POST /api/sessions/recurring

    Expands a weekly rule into sessions appended to the staged ones. When a
    parent event is given, the range must fall within its session dates.
    """

    def post(self, request: Request) -> Response:
        self.require_admin(request)
        serializer = RecurrenceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        parent_range = None
        parent_id = serializer.validated_data.get("parent_id")
        if parent_id:
            parent = self.get_services().events.get_event(str(parent_id))
            parent_range = parent.date_span()

        sessions = generate_recurring_sessions(
            serializer.to_rule(),
            parent_range=parent_range,
            existing=serializer.staged_sessions(),
        )
        return Response({"sessions": SessionSerializer(sessions, many=True).data})


class EnrollmentListView(ServiceView):
    """Handler for GET/POST /api/enrollments"""

    def get(self, request: Request) -> Response:
        details = self.get_services().enrollments.get_user_enrollment_details(
            self.caller_id(request)
        )
        return Response(EnrollmentDetailSerializer(details, many=True).data)

    def post(self, request: Request) -> Response:
        user_id = self.caller_id(request)
        serializer = EnrollmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        enrollment = self.get_services().enrollments.create_enrollment(
            user_id,
            serializer.validated_data["event_id"],
            serializer.validated_data["session_id"],
        )
        return Response(EnrollmentSerializer(enrollment).data, status=status.HTTP_201_CREATED)


class EnrollmentDetailView(ServiceView):
    """Handler for DELETE /api/enrollments/{enrollment_id}"""

    def delete(self, request: Request, enrollment_id: str) -> Response:
        user = self.caller(request)
        enrollments = self.get_services().enrollments
        if user.role is not UserRole.ADMIN:
            enrollment = enrollments.get_enrollment(enrollment_id)
            if enrollment is not None and enrollment.user_id != user.uid:
                raise PermissionDenied("You can only cancel your own enrollments")
        enrollments.cancel_enrollment(enrollment_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class UserListView(ServiceView):
    """Handler for GET /api/users (administrators)."""

    def get(self, request: Request) -> Response:
        self.require_admin(request)
        page = self.get_services().users.list_users(
            self.page_request(request, ("role", "course_id", "class_id", "search"))
        )
        return Response(
            {
                "data": UserSerializer(page.data, many=True).data,
                "next_cursor": page.next_cursor,
            }
        )
