"""Tests for recurring session generation."""

from datetime import date, time

import pytest

from events.domain import Capacity, Session, SessionId
from events.domain.errors import (
    InvalidDateRangeError,
    InvalidRecurrenceError,
    NoSessionsGeneratedError,
)
from events.services.recurrence import (
    RecurrenceRule,
    generate_recurring_sessions,
    sunday_based_weekday,
)

TODAY = date(2024, 1, 1)
MONDAY = 1


def rule(**overrides) -> RecurrenceRule:
    values = {
        "start_date": date(2024, 3, 1),
        "end_date": date(2024, 3, 31),
        "start_time": time(9, 0),
        "end_time": time(10, 0),
        "capacity": 20,
        "weekdays": frozenset({MONDAY}),
    }
    values.update(overrides)
    return RecurrenceRule(**values)


class TestWeekdayIndex:
    def test_sunday_is_zero(self):
        assert sunday_based_weekday(date(2024, 3, 3)) == 0

    def test_monday_is_one(self):
        assert sunday_based_weekday(date(2024, 3, 4)) == 1

    def test_saturday_is_six(self):
        assert sunday_based_weekday(date(2024, 3, 9)) == 6


class TestGenerateRecurringSessions:
    def test_every_monday_of_march_2024(self):
        sessions = generate_recurring_sessions(rule(), today=TODAY)

        assert [s.date for s in sessions] == [
            date(2024, 3, 4),
            date(2024, 3, 11),
            date(2024, 3, 18),
            date(2024, 3, 25),
        ]

    def test_every_monday_of_april_2024(self):
        sessions = generate_recurring_sessions(
            rule(start_date=date(2024, 4, 1), end_date=date(2024, 4, 30)), today=TODAY
        )

        assert [s.date.day for s in sessions] == [1, 8, 15, 22, 29]

    def test_sessions_carry_time_capacity_and_no_seats_taken(self):
        sessions = generate_recurring_sessions(rule(), today=TODAY)

        for session in sessions:
            assert session.start_time == time(9, 0)
            assert session.end_time == time(10, 0)
            assert session.capacity.value == 20
            assert session.filled == 0
        assert len({s.id for s in sessions}) == len(sessions)

    def test_range_bounds_are_inclusive(self):
        sessions = generate_recurring_sessions(
            rule(start_date=date(2024, 3, 4), end_date=date(2024, 3, 4)), today=TODAY
        )
        assert [s.date for s in sessions] == [date(2024, 3, 4)]

    def test_several_weekdays(self):
        sessions = generate_recurring_sessions(
            rule(end_date=date(2024, 3, 10), weekdays=frozenset({0, 6})), today=TODAY
        )
        assert [s.date for s in sessions] == [date(2024, 3, 2), date(2024, 3, 3), date(2024, 3, 9), date(2024, 3, 10)]

    def test_appends_to_staged_sessions(self):
        staged = Session(
            id=SessionId.new(),
            date=date(2024, 2, 1),
            start_time=time(14, 0),
            end_time=time(15, 0),
            capacity=Capacity(5),
        )
        sessions = generate_recurring_sessions(rule(), today=TODAY, existing=(staged,))

        assert sessions[0] is staged
        assert len(sessions) == 5

    def test_iteration_bound_stops_the_walk(self):
        sessions = generate_recurring_sessions(
            rule(weekdays=frozenset(range(7))), today=TODAY, max_iterations=3
        )
        assert [s.date.day for s in sessions] == [1, 2, 3]

    def test_no_matching_day(self):
        with pytest.raises(NoSessionsGeneratedError):
            generate_recurring_sessions(
                rule(start_date=date(2024, 3, 5), end_date=date(2024, 3, 8)), today=TODAY
            )


class TestRecurrenceValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"start_date": None},
            {"end_time": None},
            {"capacity": None},
            {"weekdays": frozenset()},
            {"weekdays": frozenset({7})},
            {"start_time": time(10, 0), "end_time": time(9, 0)},
            {"capacity": 0},
        ],
    )
    def test_malformed_rule(self, overrides):
        with pytest.raises(InvalidRecurrenceError):
            generate_recurring_sessions(rule(**overrides), today=TODAY)

    def test_start_after_end(self):
        with pytest.raises(InvalidDateRangeError):
            generate_recurring_sessions(
                rule(start_date=date(2024, 3, 31), end_date=date(2024, 3, 1)), today=TODAY
            )

    def test_end_date_past_current_year(self):
        with pytest.raises(InvalidDateRangeError):
            generate_recurring_sessions(
                rule(end_date=date(2025, 1, 6)), today=TODAY
            )

    def test_range_outside_parent_span(self):
        with pytest.raises(InvalidDateRangeError) as exc_info:
            generate_recurring_sessions(
                rule(),
                today=TODAY,
                parent_range=(date(2024, 3, 10), date(2024, 3, 20)),
            )
        assert "10/03/2024" in exc_info.value.message

    def test_range_inside_parent_span(self):
        sessions = generate_recurring_sessions(
            rule(start_date=date(2024, 3, 10), end_date=date(2024, 3, 20)),
            today=TODAY,
            parent_range=(date(2024, 3, 1), date(2024, 3, 31)),
        )
        assert [s.date.day for s in sessions] == [11, 18]
