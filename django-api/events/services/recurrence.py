"""Recurring session generation for the event authoring flow."""

import logging
from dataclasses import dataclass, field
from datetime import date, time, timedelta

from django.conf import settings
from django.utils import timezone

from events.domain.errors import (
    InvalidDateRangeError,
    InvalidRecurrenceError,
    NoSessionsGeneratedError,
)
from events.domain.models import Session
from events.domain.timeutils import format_date
from events.domain.value_objects import Capacity, SessionId

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 370


@dataclass(frozen=True)
class RecurrenceRule:
    """Weekly pattern: every selected weekday between two dates, inclusive.

    Weekdays are numbered 0=Sunday .. 6=Saturday.
    """

    start_date: date | None
    end_date: date | None
    start_time: time | None
    end_time: time | None
    capacity: int | None
    weekdays: frozenset[int] = field(default_factory=frozenset)


def sunday_based_weekday(day: date) -> int:
    return (day.weekday() + 1) % 7


def _validate(rule: RecurrenceRule, parent_range: tuple[date, date] | None, today: date) -> None:
    required = (rule.start_date, rule.end_date, rule.start_time, rule.end_time, rule.capacity)
    if any(value is None for value in required) or not rule.weekdays:
        raise InvalidRecurrenceError("Fill in every field and select at least one weekday")
    if any(day not in range(7) for day in rule.weekdays):
        raise InvalidRecurrenceError("Weekdays must be between 0 (Sunday) and 6 (Saturday)")
    if rule.start_time >= rule.end_time:
        raise InvalidRecurrenceError("Sessions must start before they end")
    if rule.capacity < 1:
        raise InvalidRecurrenceError("Capacity must be a positive integer")

    if parent_range is not None:
        first, last = parent_range
        if rule.start_date < first or rule.end_date > last:
            raise InvalidDateRangeError(
                f"The range must be between {format_date(first)} and {format_date(last)}"
            )
    end_of_year = date(today.year, 12, 31)
    if rule.end_date > end_of_year:
        raise InvalidDateRangeError(f"Generation is limited to {format_date(end_of_year)}")
    if rule.start_date > rule.end_date:
        raise InvalidDateRangeError("The start date must not be after the end date")


def generate_recurring_sessions(
    rule: RecurrenceRule,
    *,
    parent_range: tuple[date, date] | None = None,
    today: date | None = None,
    existing: tuple[Session, ...] = (),
    max_iterations: int | None = None,
) -> tuple[Session, ...]:
    """Expand a rule into sessions and append them to ``existing``.

    Every generated session has a fresh ID and no seats filled. The day walk
    stops after ``max_iterations`` days whatever the range.

    Raises:
        InvalidRecurrenceError: If a field is missing or malformed.
        InvalidDateRangeError: If the range is inverted or out of bounds.
        NoSessionsGeneratedError: If no day in the range matches.
    """
    today = today or timezone.localdate()
    limit = max_iterations or getattr(settings, "RECURRENCE_MAX_ITERATIONS", DEFAULT_MAX_ITERATIONS)
    _validate(rule, parent_range, today)

    generated: list[Session] = []
    day = rule.start_date
    iterations = 0
    while day <= rule.end_date and iterations < limit:
        if sunday_based_weekday(day) in rule.weekdays:
            generated.append(
                Session(
                    id=SessionId.new(),
                    date=day,
                    start_time=rule.start_time,
                    end_time=rule.end_time,
                    capacity=Capacity(rule.capacity),
                    filled=0,
                )
            )
        day += timedelta(days=1)
        iterations += 1

    if not generated:
        raise NoSessionsGeneratedError()
    logger.debug(
        "[recurrence] generated=%s from=%s to=%s iterations=%s",
        len(generated),
        rule.start_date,
        rule.end_date,
        iterations,
    )
    return tuple(existing) + tuple(generated)
