"""Serializers for transforming domain models to API responses and back."""

from django.utils import timezone
from rest_framework import serializers

from events.domain import (
    Capacity,
    Event,
    EventId,
    Session,
    SessionId,
    Visibility,
)
from events.domain.timeutils import format_time
from events.services.recurrence import RecurrenceRule


class SessionSerializer(serializers.Serializer):
    """Serializer for Session domain model."""

    id = serializers.UUIDField(required=False)
    date = serializers.DateField()
    start_time = serializers.TimeField(format="%H:%M")
    end_time = serializers.TimeField(format="%H:%M")
    capacity = serializers.IntegerField(min_value=1)
    filled = serializers.IntegerField(read_only=True)

    def to_representation(self, instance: Session) -> dict:
        return {
            "id": str(instance.id),
            "date": instance.date.isoformat(),
            "start_time": format_time(instance.start_time),
            "end_time": format_time(instance.end_time),
            "capacity": instance.capacity.value,
            "filled": instance.filled,
        }

    def validate(self, attrs: dict) -> dict:
        if attrs["start_time"] >= attrs["end_time"]:
            raise serializers.ValidationError("Session must start before it ends")
        return attrs


def session_from_data(data: dict) -> Session:
    session_id = data.get("id")
    return Session(
        id=SessionId(session_id) if session_id else SessionId.new(),
        date=data["date"],
        start_time=data["start_time"],
        end_time=data["end_time"],
        capacity=Capacity(data["capacity"]),
    )


class EventSerializer(serializers.Serializer):
    """Serializer for Event domain model; also validates create/update payloads."""

    id = serializers.UUIDField(read_only=True)
    parent_id = serializers.UUIDField(required=False, allow_null=True)
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    location = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    visibility = serializers.ChoiceField(choices=[v.value for v in Visibility])
    allowed_courses = serializers.ListField(
        child=serializers.CharField(max_length=64), required=False, default=list
    )
    allowed_classes = serializers.ListField(
        child=serializers.CharField(max_length=64), required=False, default=list
    )
    sessions = SessionSerializer(many=True)
    created_by = serializers.CharField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)

    def to_representation(self, instance: Event) -> dict:
        return {
            "id": str(instance.id),
            "parent_id": str(instance.parent_id) if instance.parent_id else None,
            "name": instance.name,
            "description": instance.description,
            "location": instance.location,
            "visibility": instance.visibility.value,
            "allowed_courses": sorted(instance.allowed_courses),
            "allowed_classes": sorted(instance.allowed_classes),
            "sessions": SessionSerializer(instance.sessions, many=True).data,
            "created_by": instance.created_by,
            "created_at": instance.created_at.isoformat(),
        }

    def to_event(self, event_id: EventId, created_by: str) -> Event:
        data = self.validated_data
        visibility = Visibility(data["visibility"])
        parent_id = data.get("parent_id")
        return Event(
            id=event_id,
            name=data["name"],
            description=data.get("description", ""),
            location=data.get("location", ""),
            visibility=visibility,
            created_by=created_by,
            created_at=timezone.now(),
            sessions=tuple(session_from_data(s) for s in data["sessions"]),
            allowed_courses=frozenset(data["allowed_courses"])
            if visibility is Visibility.COURSE
            else frozenset(),
            allowed_classes=frozenset(data["allowed_classes"])
            if visibility is Visibility.CLASS
            else frozenset(),
            parent_id=EventId(parent_id) if parent_id else None,
        )


class AvailableEventSerializer(serializers.Serializer):
    def to_representation(self, instance) -> dict:
        data = EventSerializer(instance.event).data
        data["enrolled_session_id"] = (
            str(instance.enrolled_session_id) if instance.enrolled_session_id else None
        )
        return data


class EnrollmentCreateSerializer(serializers.Serializer):
    event_id = serializers.CharField()
    session_id = serializers.CharField()


class EnrollmentSerializer(serializers.Serializer):
    """Serializer for Enrollment domain model."""

    def to_representation(self, instance) -> dict:
        return {
            "id": instance.id.value,
            "user_id": instance.user_id,
            "event_id": str(instance.event_id),
            "session_id": str(instance.session_id),
            "status": instance.status.value,
            "enrolled_at": instance.enrolled_at.isoformat(),
        }


class EnrollmentDetailSerializer(serializers.Serializer):
    def to_representation(self, instance) -> dict:
        return {
            "enrollment_id": instance.enrollment_id.value,
            "event_id": str(instance.event_id),
            "event_name": instance.event_name,
            "event_location": instance.event_location,
            "session_date": instance.session_date.isoformat(),
            "session_time": instance.session_time,
            "enrolled_at": instance.enrolled_at.isoformat(),
        }


class RosterEntrySerializer(serializers.Serializer):
    def to_representation(self, instance) -> dict:
        session = instance.session
        return {
            "id": instance.enrollment.id.value,
            "user": {
                "uid": instance.enrollment.user_id,
                "name": instance.user_name,
                "email": instance.user_email,
                "rm": instance.user_rm,
            },
            "session": SessionSerializer(session).data if session else None,
            "status": instance.enrollment.status.value,
            "enrolled_at": instance.enrollment.enrolled_at.isoformat(),
        }


class UserSerializer(serializers.Serializer):
    def to_representation(self, instance) -> dict:
        return {
            "uid": instance.uid,
            "email": instance.email,
            "name": instance.name,
            "rm": instance.rm,
            "role": instance.role.value,
            "course_id": instance.course_id,
            "class_id": instance.class_id,
            "is_onboarded": instance.is_onboarded,
        }


class RecurrenceSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False, allow_null=True, default=None)
    end_date = serializers.DateField(required=False, allow_null=True, default=None)
    start_time = serializers.TimeField(required=False, allow_null=True, default=None)
    end_time = serializers.TimeField(required=False, allow_null=True, default=None)
    capacity = serializers.IntegerField(required=False, allow_null=True, default=None)
    weekdays = serializers.ListField(
        child=serializers.IntegerField(), required=False, default=list
    )
    parent_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    sessions = SessionSerializer(many=True, required=False, default=list)

    def to_rule(self) -> RecurrenceRule:
        data = self.validated_data
        return RecurrenceRule(
            start_date=data["start_date"],
            end_date=data["end_date"],
            start_time=data["start_time"],
            end_time=data["end_time"],
            capacity=data["capacity"],
            weekdays=frozenset(data["weekdays"]),
        )

    def staged_sessions(self) -> tuple[Session, ...]:
        return tuple(session_from_data(s) for s in self.validated_data["sessions"])
