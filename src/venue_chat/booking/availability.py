"""Availability calculation over a venue's reservation calendar.

Everything here is pure: callers pass the full reservation list of one venue
and get answers at day granularity (UTC). A reservation occupies every day
from the day it starts to the day ``start + duration`` falls on, inclusive.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from venue_chat.errors import InvalidDateRange
from venue_chat.storage.models import Reservation

DEFAULT_DURATION_SECONDS = 43200  # day-use, 12h
MAX_SUGGESTIONS = 5
MIN_WEEKEND_SUGGESTIONS = 3

DAY_NAMES = ("lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo")


@dataclass(frozen=True)
class AvailableDate:
    date: str
    day_of_week: str
    is_weekend: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def parse_duration(value: Any) -> int:
    """Duration in seconds; absent, unparseable or non-positive values mean day-use."""
    try:
        seconds = int(str(value).strip())
    except (TypeError, ValueError):
        return DEFAULT_DURATION_SECONDS
    return seconds if seconds > 0 else DEFAULT_DURATION_SECONDS


def _utc_day(moment: datetime) -> date:
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date()


def occupied_span(reservation: Reservation) -> tuple[date, date]:
    """First and last occupied day of a reservation."""
    first = _utc_day(reservation.start)
    try:
        end = reservation.start + timedelta(seconds=parse_duration(reservation.duration))
    except OverflowError:
        return first, date.max
    return first, _utc_day(end)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def _conflicts(spans: Iterable[tuple[date, date]], first: date, last: date) -> bool:
    return any(start <= last and end >= first for start, end in spans)


def is_available(
    reservations: Iterable[Reservation], check_in: date, check_out: Optional[date] = None
) -> bool:
    """True when no reservation touches any day of ``[check_in, check_out]``."""
    last = check_out or check_in
    return not _conflicts((occupied_span(r) for r in reservations), check_in, last)


def stay_days(check_in: date, check_out: Optional[date] = None) -> int:
    """Number of calendar days the stay occupies, at least one."""
    if check_out is None:
        return 1
    return max(1, (check_out - check_in).days + 1)


def validate_stay(check_in: date, check_out: Optional[date], today: date) -> None:
    """Raise InvalidDateRange for stays in the past or ending before they start."""
    last = check_out or check_in
    if check_in < today:
        raise InvalidDateRange(
            "La fecha de llegada está en el pasado. Por favor proporciona una fecha futura.", today
        )
    if last < check_in:
        raise InvalidDateRange(
            "La fecha de salida debe ser igual o posterior a la fecha de llegada.", today
        )
    if last < today:
        raise InvalidDateRange(
            "La fecha de salida está en el pasado. Por favor proporciona una fecha futura.", today
        )


def next_available_dates(
    reservations: Iterable[Reservation],
    from_date: date,
    num_days: int = 30,
    prefer_weekends: bool = False,
    stay_length: int = 1,
) -> list[AvailableDate]:
    """Suggest up to five start dates after *from_date* whose whole stay is free.

    Candidates are the ``num_days`` days following *from_date*. With
    *prefer_weekends* only Saturday and Sunday starts are considered, and
    when that yields fewer than three dates the list is topped up from an
    unrestricted scan without repeating dates.
    """
    spans = [occupied_span(r) for r in reservations]
    # Reservations that end before the first candidate can never conflict
    spans = [span for span in spans if span[1] > from_date]
    found = _scan(spans, from_date, num_days, prefer_weekends, max(1, stay_length))

    if prefer_weekends and len(found) < MIN_WEEKEND_SUGGESTIONS:
        seen = {d.date for d in found}
        for alternative in _scan(spans, from_date, num_days, False, max(1, stay_length)):
            if alternative.date in seen:
                continue
            found.append(alternative)
            seen.add(alternative.date)
            if len(found) >= MAX_SUGGESTIONS:
                break

    return found


def _scan(
    spans: list[tuple[date, date]],
    from_date: date,
    num_days: int,
    weekends_only: bool,
    length: int,
) -> list[AvailableDate]:
    found: list[AvailableDate] = []
    for offset in range(1, num_days + 1):
        if len(found) >= MAX_SUGGESTIONS:
            break
        try:
            candidate = from_date + timedelta(days=offset)
            last = candidate + timedelta(days=length - 1)
        except OverflowError:
            # window runs past date.max
            break
        weekend = is_weekend(candidate)
        if weekends_only and not weekend:
            continue
        if _conflicts(spans, candidate, last):
            continue
        found.append(
            AvailableDate(
                date=candidate.isoformat(),
                day_of_week=DAY_NAMES[candidate.weekday()],
                is_weekend=weekend,
            )
        )
    return found
