from events.domain.models import (
    ClassGroup,
    Course,
    Enrollment,
    EnrollmentDetail,
    Event,
    RosterEntry,
    Session,
    User,
)
from events.domain.value_objects import (
    Capacity,
    EnrollmentId,
    EnrollmentStatus,
    EventId,
    SessionId,
    UserRole,
    Visibility,
)

__all__ = [
    "Event",
    "Session",
    "Enrollment",
    "EnrollmentDetail",
    "RosterEntry",
    "User",
    "Course",
    "ClassGroup",
    "EventId",
    "SessionId",
    "EnrollmentId",
    "Capacity",
    "Visibility",
    "EnrollmentStatus",
    "UserRole",
]
