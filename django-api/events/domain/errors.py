"""Domain error codes for the events module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_EVENT_ID = "INVALID_EVENT_ID"
    INVALID_EVENT_HIERARCHY = "INVALID_EVENT_HIERARCHY"
    INVALID_SESSION = "INVALID_SESSION"
    DUPLICATE_ENROLLMENT = "DUPLICATE_ENROLLMENT"
    SCHEDULE_CONFLICT = "SCHEDULE_CONFLICT"
    SESSION_FULL = "SESSION_FULL"
    NO_SESSIONS_GENERATED = "NO_SESSIONS_GENERATED"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    INVALID_RECURRENCE = "INVALID_RECURRENCE"
    INVALID_CURSOR = "INVALID_CURSOR"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class EventNotFoundError(DomainError):
    """Raised when an event is not found."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.EVENT_NOT_FOUND,
            message="Event not found",
        )
        self.event_id = event_id


class SessionNotFoundError(DomainError):
    """Raised when a session is not among the event's sessions."""

    def __init__(self, event_id: str, session_id: str) -> None:
        super().__init__(
            code=ErrorCode.SESSION_NOT_FOUND,
            message="Session not found for event",
        )
        self.event_id = event_id
        self.session_id = session_id


class InvalidEventIdError(DomainError):
    """Raised when an event ID is invalid."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_EVENT_ID,
            message="Invalid event ID format",
        )


class InvalidEventHierarchyError(DomainError):
    """Raised when a parent/child link would nest deeper than two levels."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_EVENT_HIERARCHY, message=message)


class InvalidSessionError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_SESSION, message=message)


class DuplicateEnrollmentError(DomainError):
    """Raised when the user already holds a confirmed seat in the event."""

    def __init__(self, user_id: str, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_ENROLLMENT,
            message="You are already enrolled in this event",
        )
        self.user_id = user_id
        self.event_id = event_id


class ScheduleConflictError(DomainError):
    """Raised when the target session overlaps one the user already holds.

    Carries the conflicting event name and time range for display.
    """

    def __init__(self, event_name: str, time_range: str) -> None:
        super().__init__(
            code=ErrorCode.SCHEDULE_CONFLICT,
            message=(
                f'Schedule conflict: you are already enrolled in "{event_name}" '
                f"at {time_range}"
            ),
        )
        self.event_name = event_name
        self.time_range = time_range


class SessionFullError(DomainError):
    """Raised when the session has no seats left."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            code=ErrorCode.SESSION_FULL,
            message="This session has reached its maximum capacity",
        )
        self.session_id = session_id


class NoSessionsGeneratedError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.NO_SESSIONS_GENERATED,
            message="No dates in the range match the selected weekdays",
        )


class InvalidDateRangeError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_DATE_RANGE, message=message)


class InvalidRecurrenceError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_RECURRENCE, message=message)


class InvalidCursorError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_CURSOR,
            message="Invalid pagination cursor",
        )


class StoreUnavailableError(DomainError):
    """Raised on backend failures.

    ``transient`` marks failures that are safe to retry, such as a lost
    optimistic-concurrency race or a serialization abort.
    """

    def __init__(self, message: str = "Storage is unavailable", *, transient: bool = False) -> None:
        super().__init__(code=ErrorCode.STORE_UNAVAILABLE, message=message)
        self.transient = transient


class TransactionConflictError(StoreUnavailableError):
    """Raised when another writer committed to the same event first."""

    def __init__(self, event_id: str) -> None:
        super().__init__("Concurrent modification detected", transient=True)
        self.event_id = event_id
