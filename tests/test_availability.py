"""Tests for the availability calculator."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from venue_chat.booking.availability import (
    DEFAULT_DURATION_SECONDS,
    MAX_SUGGESTIONS,
    is_available,
    next_available_dates,
    occupied_span,
    parse_duration,
    stay_days,
    validate_stay,
)
from venue_chat.errors import InvalidDateRange
from venue_chat.storage.models import Reservation


def _reservation(start: str, duration=None, rid: str = "r1") -> Reservation:
    return Reservation(
        id=rid,
        venue_id="v1",
        start=datetime.fromisoformat(start).replace(tzinfo=timezone.utc),
        duration=duration,
    )


class TestParseDuration:
    def test_missing_defaults_to_day_use(self):
        assert parse_duration(None) == DEFAULT_DURATION_SECONDS == 43200

    @pytest.mark.parametrize("raw", ["", "abc", "0", "-3600", "12.5h"])
    def test_unparseable_or_non_positive_defaults(self, raw):
        assert parse_duration(raw) == 43200

    def test_numeric_string(self):
        assert parse_duration("86400") == 86400
        assert parse_duration(" 172800 ") == 172800


class TestOccupiedSpan:
    def test_default_duration_stays_on_same_day(self):
        first, last = occupied_span(_reservation("2025-03-01T08:00:00"))
        assert first == last == date(2025, 3, 1)

    def test_default_duration_crossing_midnight(self):
        first, last = occupied_span(_reservation("2025-03-01T15:00:00"))
        assert (first, last) == (date(2025, 3, 1), date(2025, 3, 2))

    def test_oversized_duration_blocks_to_calendar_end(self):
        reservation = _reservation("2025-03-01T10:00:00", str(10**15))
        assert occupied_span(reservation) == (date(2025, 3, 1), date.max)

    def test_multi_day_duration(self):
        first, last = occupied_span(_reservation("2025-03-01T10:00:00", "172800"))
        assert (first, last) == (date(2025, 3, 1), date(2025, 3, 3))


class TestIsAvailable:
    def test_empty_calendar(self):
        assert is_available([], date(2025, 3, 1))

    def test_single_day_conflict(self):
        reservations = [_reservation("2025-03-01T10:00:00")]
        assert not is_available(reservations, date(2025, 3, 1))
        assert is_available(reservations, date(2025, 3, 2))
        assert is_available(reservations, date(2025, 2, 28))

    def test_range_touching_reservation_is_unavailable(self):
        reservations = [_reservation("2025-03-05T10:00:00", "86400")]
        # Occupies 5th and 6th
        assert not is_available(reservations, date(2025, 3, 3), date(2025, 3, 5))
        assert not is_available(reservations, date(2025, 3, 6), date(2025, 3, 8))
        assert is_available(reservations, date(2025, 3, 7), date(2025, 3, 9))

    def test_stay_enclosing_reservation(self):
        reservations = [_reservation("2025-03-05T10:00:00")]
        assert not is_available(reservations, date(2025, 3, 1), date(2025, 3, 10))

    def test_garbage_duration_uses_default(self):
        reservations = [_reservation("2025-03-01T20:00:00", "n/a")]
        # 20:00 + 12h lands on the next day
        assert not is_available(reservations, date(2025, 3, 2))

    def test_adding_reservations_never_frees_a_date(self):
        day = date(2025, 3, 10)
        reservations = [_reservation("2025-03-10T09:00:00")]
        assert not is_available(reservations, day)
        more = reservations + [_reservation("2025-04-01T09:00:00", rid="r2")]
        assert not is_available(more, day)


class TestStayDays:
    def test_single_day(self):
        assert stay_days(date(2025, 3, 1)) == 1
        assert stay_days(date(2025, 3, 1), date(2025, 3, 1)) == 1

    def test_inclusive_range(self):
        assert stay_days(date(2025, 3, 1), date(2025, 3, 3)) == 3


class TestValidateStay:
    today = date(2025, 2, 20)

    def test_future_stay_passes(self):
        validate_stay(date(2025, 3, 1), date(2025, 3, 2), self.today)

    def test_today_is_allowed(self):
        validate_stay(self.today, None, self.today)

    def test_past_check_in(self):
        with pytest.raises(InvalidDateRange) as exc_info:
            validate_stay(date(2025, 2, 1), None, self.today)
        assert "llegada" in exc_info.value.message
        assert exc_info.value.today == self.today

    def test_check_out_before_check_in(self):
        with pytest.raises(InvalidDateRange) as exc_info:
            validate_stay(date(2025, 3, 5), date(2025, 3, 3), self.today)
        assert "posterior" in exc_info.value.message


class TestNextAvailableDates:
    def test_scenario_saturday_taken_suggests_sunday_first(self):
        reservations = [_reservation("2025-03-01T10:00:00")]
        found = next_available_dates(reservations, date(2025, 3, 1), prefer_weekends=True)
        assert found[0].date == "2025-03-02"
        assert found[0].day_of_week == "domingo"
        assert found[0].is_weekend is True

    def test_weekday_scan_starts_day_after(self):
        found = next_available_dates([], date(2025, 3, 3))
        assert [d.date for d in found] == [
            "2025-03-04",
            "2025-03-05",
            "2025-03-06",
            "2025-03-07",
            "2025-03-08",
        ]

    def test_caps_at_five(self):
        found = next_available_dates([], date(2025, 3, 3), num_days=60, prefer_weekends=True)
        assert len(found) == MAX_SUGGESTIONS
        assert all(d.is_weekend for d in found)

    def test_weekend_shortfall_tops_up_without_duplicates(self):
        # 2025-03-03 is a Monday; a 5-day window only holds Sat 8 and Sun 9
        reservations = [_reservation("2025-03-08T08:00:00", rid="sat")]
        found = next_available_dates(reservations, date(2025, 3, 3), num_days=6, prefer_weekends=True)
        dates = [d.date for d in found]
        assert dates[0] == "2025-03-09"
        assert len(dates) == len(set(dates))
        assert "2025-03-08" not in dates
        assert len(dates) == MAX_SUGGESTIONS

    def test_multi_day_stay_skips_blocked_windows(self):
        reservations = [_reservation("2025-03-06T10:00:00")]
        found = next_available_dates(reservations, date(2025, 3, 3), stay_length=3)
        # Starting on the 4th or 5th would overlap the 6th
        assert found[0].date == "2025-03-07"

    def test_no_candidates_when_fully_booked(self):
        reservations = [_reservation("2025-03-02T00:00:00", str(40 * 86400))]
        assert next_available_dates(reservations, date(2025, 3, 1), num_days=30) == []

    def test_suggestions_are_free(self):
        reservations = [
            _reservation("2025-03-04T10:00:00", rid="a"),
            _reservation("2025-03-07T10:00:00", "86400", rid="b"),
        ]
        for suggestion in next_available_dates(reservations, date(2025, 3, 3)):
            assert is_available(reservations, date.fromisoformat(suggestion.date))

    def test_stay_reaching_past_calendar_end_yields_nothing(self):
        reservations = [_reservation("2025-03-01T10:00:00")]
        stay_length = stay_days(date(2025, 3, 1), date(9999, 12, 31))
        assert next_available_dates(
            reservations, date(2025, 3, 1), prefer_weekends=True, stay_length=stay_length
        ) == []

    def test_scan_stops_at_last_representable_day(self):
        found = next_available_dates([], date(9999, 12, 29))
        assert [d.date for d in found] == ["9999-12-30", "9999-12-31"]
