"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from enum import Enum
from typing import Self
from uuid import UUID, uuid4


@dataclass(frozen=True)
class EventId:
    """Unique identifier for an Event."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    @classmethod
    def new(cls) -> Self:
        return cls(value=uuid4())

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class SessionId:
    """Unique identifier for a Session."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    @classmethod
    def new(cls) -> Self:
        return cls(value=uuid4())

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class EnrollmentId:
    """Deterministic enrollment key derived from (user, event).

    Reusing the same key for every attempt by one user on one event lets the
    store's primary key reject a second confirmed enrollment.
    """

    value: str

    @classmethod
    def for_pair(cls, user_id: str, event_id: EventId) -> Self:
        if not user_id:
            raise ValueError("user_id is required")
        return cls(value=f"{user_id}_{event_id.value}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Capacity:
    """Positive integer representing the seat ceiling of a session."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 1:
            raise ValueError("Capacity must be a positive integer")


class Visibility(str, Enum):
    PUBLIC = "public"
    COURSE = "course"
    CLASS = "class"


class EnrollmentStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELED = "canceled"
    WAITLIST = "waitlist"


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"
