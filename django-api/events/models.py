"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models


class Course(models.Model):
    """Persistence model for courses."""

    id = models.CharField(primary_key=True, max_length=64)
    name = models.CharField(max_length=255)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class ClassGroup(models.Model):
    """Persistence model for class groups within a course."""

    id = models.CharField(primary_key=True, max_length=64)
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="classes")
    name = models.CharField(max_length=255)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Member(models.Model):
    """Persistence model for organization members (identity is external)."""

    ROLE_CHOICES = [("admin", "Admin"), ("user", "User")]

    uid = models.CharField(primary_key=True, max_length=128)
    email = models.EmailField(max_length=255, unique=True)
    name = models.CharField(max_length=255, blank=True, default="")
    rm = models.CharField(max_length=64, blank=True, default="")
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default="user")
    course = models.ForeignKey(
        Course, on_delete=models.SET_NULL, null=True, blank=True, related_name="members"
    )
    class_group = models.ForeignKey(
        ClassGroup, on_delete=models.SET_NULL, null=True, blank=True, related_name="members"
    )
    is_onboarded = models.BooleanField(default=False)

    class Meta:
        ordering = ["email"]

    def __str__(self) -> str:
        return self.email


class Event(models.Model):
    """Persistence model for events.

    ``version`` guards the event's session collection: every write to a
    session's ``filled`` counter or to the session list bumps it with a
    conditional update.
    """

    VISIBILITY_CHOICES = [("public", "Public"), ("course", "Course"), ("class", "Class")]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    parent = models.ForeignKey(
        "self", on_delete=models.CASCADE, null=True, blank=True, related_name="children"
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    location = models.CharField(max_length=255, blank=True, default="")
    visibility = models.CharField(max_length=10, choices=VISIBILITY_CHOICES, default="public")
    allowed_courses = models.ManyToManyField(Course, blank=True, related_name="events")
    allowed_classes = models.ManyToManyField(ClassGroup, blank=True, related_name="events")
    created_by = models.CharField(max_length=128, blank=True, default="")
    created_at = models.DateTimeField()
    version = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["-created_at", "-id"], name="event_created_idx"),
            models.Index(fields=["visibility"], name="event_visibility_idx"),
        ]

    def __str__(self) -> str:
        return self.name


class Session(models.Model):
    """Persistence model for event sessions."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="sessions")
    position = models.PositiveIntegerField(default=0)
    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    capacity = models.PositiveIntegerField()
    filled = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position"]
        indexes = [
            models.Index(fields=["event", "position"], name="session_event_position_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(filled__lte=models.F("capacity")),
                name="session_filled_lte_capacity",
            ),
            models.CheckConstraint(
                condition=models.Q(start_time__lt=models.F("end_time")),
                name="session_starts_before_end",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.event.name} - {self.date} {self.start_time}"


class Enrollment(models.Model):
    """Persistence model for enrollments.

    The primary key is ``"{user_id}_{event_id}"``; user, event and session are
    referenced by id only so that deleting an event leaves enrollment cleanup
    to the caller.
    """

    STATUS_CHOICES = [
        ("confirmed", "Confirmed"),
        ("canceled", "Canceled"),
        ("waitlist", "Waitlist"),
    ]

    id = models.CharField(primary_key=True, max_length=255)
    user_id = models.CharField(max_length=128)
    event_id = models.UUIDField()
    session_id = models.UUIDField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="confirmed")
    enrolled_at = models.DateTimeField()

    class Meta:
        ordering = ["enrolled_at"]
        indexes = [
            models.Index(fields=["user_id", "status"], name="enrollment_user_status_idx"),
            models.Index(fields=["event_id", "status"], name="enrollment_event_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} -> {self.event_id} ({self.status})"
