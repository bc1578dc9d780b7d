"""Unit tests for domain primitives.

These test invariants that must hold at construction time.
Run with: pytest tests/test_domain.py -v
"""

from datetime import date, time
from uuid import UUID

import pytest

from events.domain import Capacity, EnrollmentId, EventId, Session, SessionId
from events.domain.errors import (
    DuplicateEnrollmentError,
    ErrorCode,
    ScheduleConflictError,
    StoreUnavailableError,
    TransactionConflictError,
)
from events.domain.timeutils import (
    format_date,
    format_time_range,
    intervals_overlap,
    time_to_minutes,
)


class TestCapacity:
    """Tests for Capacity value object."""

    def test_capacity_accepts_positive_value(self):
        assert Capacity(3).value == 3

    @pytest.mark.parametrize("value", [0, -1])
    def test_capacity_rejects_non_positive_value(self, value):
        """Capacity raises ValueError below one seat."""
        with pytest.raises(ValueError):
            Capacity(value)


class TestEventId:
    """Tests for EventId value object."""

    def test_from_string_valid_uuid(self):
        raw = "12345678-1234-5678-1234-567812345678"
        assert EventId.from_string(raw).value == UUID(raw)

    def test_from_string_invalid_uuid(self):
        """EventId.from_string raises ValueError for invalid UUID."""
        with pytest.raises(ValueError):
            EventId.from_string("not-a-uuid")


class TestEnrollmentId:
    def test_key_is_user_and_event(self):
        event_id = EventId.from_string("12345678-1234-5678-1234-567812345678")
        key = EnrollmentId.for_pair("user-7", event_id)
        assert key.value == "user-7_12345678-1234-5678-1234-567812345678"

    def test_same_pair_gives_same_key(self):
        event_id = EventId.new()
        assert EnrollmentId.for_pair("u", event_id) == EnrollmentId.for_pair("u", event_id)

    def test_user_id_is_required(self):
        with pytest.raises(ValueError):
            EnrollmentId.for_pair("", EventId.new())


class TestSession:
    def _session(self, start, end, filled=0, day=date(2024, 3, 4)):
        return Session(
            id=SessionId.new(),
            date=day,
            start_time=start,
            end_time=end,
            capacity=Capacity(2),
            filled=filled,
        )

    def test_rejects_start_after_end(self):
        with pytest.raises(ValueError):
            self._session(time(10, 0), time(9, 0))

    def test_rejects_filled_above_capacity(self):
        with pytest.raises(ValueError):
            self._session(time(9, 0), time(10, 0), filled=3)

    def test_is_full_at_capacity(self):
        assert self._session(time(9, 0), time(10, 0), filled=2).is_full
        assert not self._session(time(9, 0), time(10, 0), filled=1).is_full

    def test_overlap_same_day(self):
        a = self._session(time(9, 0), time(10, 30))
        b = self._session(time(10, 0), time(11, 0))
        assert a.overlaps(b)
        assert b.overlaps(a)

    def test_back_to_back_sessions_do_not_overlap(self):
        a = self._session(time(9, 0), time(10, 0))
        b = self._session(time(10, 0), time(11, 0))
        assert not a.overlaps(b)

    def test_different_days_do_not_overlap(self):
        a = self._session(time(9, 0), time(10, 0))
        b = self._session(time(9, 0), time(10, 0), day=date(2024, 3, 5))
        assert not a.overlaps(b)

    def test_time_range_label(self):
        assert self._session(time(9, 0), time(10, 30)).time_range == "09:00 - 10:30"


class TestTimeUtils:
    def test_time_to_minutes(self):
        assert time_to_minutes("09:30") == 570
        assert time_to_minutes(time(23, 59)) == 1439

    @pytest.mark.parametrize("value", ["", "9", "ab:cd", "24:00", "12:60"])
    def test_time_to_minutes_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            time_to_minutes(value)

    def test_format_time_range(self):
        assert format_time_range(time(9, 0), time(10, 30)) == "09:00 - 10:30"

    def test_format_date_from_iso_day_string(self):
        assert format_date("2024-03-04") == "04/03/2024"

    def test_format_date_from_date(self):
        assert format_date(date(2024, 12, 31)) == "31/12/2024"

    def test_format_date_from_iso_datetime(self):
        assert format_date("2024-03-04T10:00:00Z") == "04/03/2024"

    def test_format_date_empty_and_garbage(self):
        assert format_date("") == ""
        assert format_date(None) == ""
        assert format_date("next tuesday") == "next tuesday"

    def test_intervals_are_half_open(self):
        assert intervals_overlap(540, 630, 600, 660)
        assert not intervals_overlap(540, 600, 600, 660)


class TestErrors:
    def test_duplicate_message(self):
        error = DuplicateEnrollmentError("u", "e")
        assert error.code is ErrorCode.DUPLICATE_ENROLLMENT
        assert error.message == "You are already enrolled in this event"

    def test_schedule_conflict_carries_details(self):
        error = ScheduleConflictError("Yoga", "09:00 - 10:30")
        assert error.event_name == "Yoga"
        assert error.time_range == "09:00 - 10:30"
        assert "Yoga" in error.message and "09:00 - 10:30" in error.message

    def test_transaction_conflict_is_transient_store_error(self):
        error = TransactionConflictError("e")
        assert isinstance(error, StoreUnavailableError)
        assert error.transient
        assert not StoreUnavailableError().transient
