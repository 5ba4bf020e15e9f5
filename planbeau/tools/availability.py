"""
Vendor availability and booking time-slot generation.

Everything here is derived from a vendor's weekly business hours, the
bookings already on their calendar and one-off availability exceptions.
Days of the week follow the 0=Sunday..6=Saturday convention used by the
backend.
"""

import calendar
import logging
from datetime import date, datetime, timedelta
from typing import Any, Iterator, Optional, Sequence

from planbeau.config import settings
from planbeau.schemas.vendor_schema import AvailabilityException, BusinessHours, VendorBooking
from planbeau.utils import MINUTES_PER_DAY, format_slot, parse_date, time_to_minutes

logger = logging.getLogger(__name__)

SUNDAY = 0
ALT_SUNDAY = 7
MAX_DAYS_TO_SCAN = 60


def day_of_week(day: date) -> int:
    """Day index with Sunday as 0."""
    return (day.weekday() + 1) % 7


def find_business_hours(
    business_hours: Sequence[BusinessHours], weekday: int
) -> Optional[BusinessHours]:
    """Find the hours row for a weekday, accepting 7 for Sunday when 0 is absent."""
    for row in business_hours:
        if row.day_of_week == weekday:
            return row
    if weekday == SUNDAY:
        for row in business_hours:
            if row.day_of_week == ALT_SUNDAY:
                return row
    return None


def _open_close_minutes(row: Optional[BusinessHours]) -> Optional[tuple[int, int]]:
    if row is None or not row.is_available:
        return None
    open_mins = time_to_minutes(row.open_time)
    close_mins = time_to_minutes(row.close_time)
    if open_mins is None or close_mins is None:
        return None
    return open_mins, close_mins


def _slot_step(interval_minutes: Optional[int]) -> int:
    """Requested interval when positive, else the configured one."""
    if interval_minutes and interval_minutes > 0:
        return interval_minutes
    return settings.availability.slot_interval_minutes


def _next_slot(current: int, step: int) -> int:
    """Advance one interval, snapping back to :00 when a sub-hour step crosses the hour."""
    nxt = current + step
    if step < 60 and nxt // 60 != current // 60:
        return (nxt // 60) * 60
    return nxt


def generate_time_slots(
    business_hours: Sequence[BusinessHours],
    selected_date: Any,
    interval_minutes: Optional[int] = None,
) -> Iterator[str]:
    """
    Yield bookable start times (``HH:MM``) for a date.

    Slots start at opening time and step by the interval. Crossing into a
    new hour realigns to the top of that hour (09:15, 09:45, 10:00, 10:30),
    and the run continues up to and including closing time. Missing or unavailable days and malformed
    hours yield nothing. Each call returns a fresh iterator.
    """
    day = parse_date(selected_date)
    if day is None:
        return

    row = find_business_hours(business_hours, day_of_week(day))
    window = _open_close_minutes(row)
    if window is None:
        logger.debug("No open hours on %s", day.isoformat())
        return

    step = _slot_step(interval_minutes)
    current, close_mins = window
    while current <= close_mins:
        yield format_slot(current)
        current = _next_slot(current, step)


def is_vendor_available_on_day(
    selected_date: date, business_hours: Sequence[BusinessHours]
) -> bool:
    """Whether the vendor opens on this weekday. No hours on file means open."""
    if not business_hours:
        return True
    row = find_business_hours(business_hours, day_of_week(selected_date))
    return row is not None and row.is_available


def is_date_past(selected_date: Optional[date], today: Optional[date] = None) -> bool:
    if selected_date is None:
        return True
    return selected_date < (today or date.today())


def earliest_bookable_date(lead_time_hours: int, now: Optional[datetime] = None) -> date:
    """
    First selectable calendar day given a vendor's minimum lead time.

    When the lead-time deadline lands on a later day, that whole day is
    skipped as well.
    """
    now = now or datetime.now()
    if lead_time_hours <= 0:
        return now.date()
    deadline = now + timedelta(hours=lead_time_hours)
    if deadline.date() != now.date():
        return deadline.date() + timedelta(days=1)
    return deadline.date()


def is_within_lead_time(
    selected_date: date, lead_time_hours: int, now: Optional[datetime] = None
) -> bool:
    """True when a date is too soon to book under the vendor's lead time."""
    return selected_date < earliest_bookable_date(lead_time_hours, now)


def get_first_available_date(
    business_hours: Sequence[BusinessHours],
    lead_time_hours: int = 0,
    now: Optional[datetime] = None,
) -> date:
    """First date at or after the lead time on which the vendor opens."""
    candidate = earliest_bookable_date(lead_time_hours, now)
    for _ in range(MAX_DAYS_TO_SCAN):
        if is_vendor_available_on_day(candidate, business_hours):
            break
        candidate += timedelta(days=1)
    return candidate


def _active_bookings_on(
    bookings: Optional[Sequence[VendorBooking]], day: date
) -> list[VendorBooking]:
    return [b for b in bookings or [] if b.is_active and b.event_day == day]


def get_date_availability_status(
    selected_date: Optional[date],
    business_hours: Sequence[BusinessHours],
    bookings: Optional[Sequence[VendorBooking]] = None,
    exceptions: Optional[Sequence[AvailabilityException]] = None,
    today: Optional[date] = None,
) -> str:
    """
    Calendar status for a date.

    One of ``empty``, ``past``, ``unavailable``, ``partially_booked`` or
    ``available``.
    """
    if selected_date is None:
        return "empty"
    if is_date_past(selected_date, today):
        return "past"
    if not is_vendor_available_on_day(selected_date, business_hours):
        return "unavailable"
    for exception in exceptions or []:
        if exception.day == selected_date and not exception.is_available:
            return "unavailable"
    if _active_bookings_on(bookings, selected_date):
        return "partially_booked"
    return "available"


def all_time_options(interval_minutes: Optional[int] = None) -> list[str]:
    """Every slot in a day, ``00:00`` through ``23:30`` at 30-minute steps."""
    step = _slot_step(interval_minutes)
    return [format_slot(m) for m in range(0, MINUTES_PER_DAY, step)]


def _previous_day_overnight_close(
    business_hours: Sequence[BusinessHours], weekday: int
) -> int:
    """Close minute of yesterday's overnight hours spilling into today, else 0."""
    prev = find_business_hours(business_hours, 6 if weekday == SUNDAY else weekday - 1)
    window = _open_close_minutes(prev)
    if window is None:
        return 0
    open_mins, close_mins = window
    if 0 < close_mins < open_mins:
        return close_mins
    return 0


def get_filtered_start_times(
    selected_date: Optional[date],
    business_hours: Sequence[BusinessHours],
    bookings: Optional[Sequence[VendorBooking]],
    options: Sequence[str],
) -> list[str]:
    """
    Start times inside business hours and outside existing bookings.

    Overnight hours (e.g. 18:00 to 02:00) contribute their evening part to
    the opening day and their morning part to the following day.
    """
    if selected_date is None:
        return []
    if not business_hours:
        return list(options)

    weekday = day_of_week(selected_date)
    morning_close = _previous_day_overnight_close(business_hours, weekday)
    window = _open_close_minutes(find_business_hours(business_hours, weekday))
    if window is None and not morning_close:
        return []

    day_bookings = _active_bookings_on(bookings, selected_date)
    result = []
    for option in options:
        mins = time_to_minutes(option)
        if mins is None:
            continue

        within_hours = bool(morning_close) and mins < morning_close
        if window is not None:
            open_mins, close_mins = window
            if close_mins < open_mins:
                within_hours = within_hours or mins >= open_mins
            else:
                within_hours = within_hours or open_mins <= mins < close_mins
        if not within_hours:
            continue

        if any(_booking_covers(b, mins) for b in day_bookings):
            continue
        result.append(option)
    return result


def _booking_covers(booking: VendorBooking, mins: int) -> bool:
    start = time_to_minutes(booking.event_time)
    end = time_to_minutes(booking.event_end_time)
    if start is None or end is None:
        return False
    return start <= mins < end


def get_filtered_end_times(
    selected_date: Optional[date],
    start_time: Optional[str],
    business_hours: Sequence[BusinessHours],
    bookings: Optional[Sequence[VendorBooking]],
    options: Sequence[str],
) -> list[str]:
    """End times after the start, up to closing or the next booking, whichever is first."""
    if selected_date is None or not start_time:
        return []
    start_mins = time_to_minutes(start_time)
    if start_mins is None:
        return []

    weekday = day_of_week(selected_date)
    morning_close = _previous_day_overnight_close(business_hours, weekday)
    max_end = settings.availability.latest_end_minutes

    if morning_close and start_mins < morning_close:
        max_end = morning_close
    else:
        window = _open_close_minutes(find_business_hours(business_hours, weekday))
        if window is not None:
            open_mins, close_mins = window
            if close_mins >= open_mins:
                max_end = close_mins

    for booking in _active_bookings_on(bookings, selected_date):
        booked_start = time_to_minutes(booking.event_time)
        if booked_start is not None and start_mins < booked_start < max_end:
            max_end = booked_start

    result = []
    for option in options:
        mins = time_to_minutes(option)
        if mins is not None and start_mins < mins <= max_end:
            result.append(option)
    return result


def get_days_in_month(year: int, month: int) -> list[Optional[date]]:
    """Calendar grid cells for a month: leading None padding, then each date."""
    first = date(year, month, 1)
    padding: list[Optional[date]] = [None] * day_of_week(first)
    _, last_day = calendar.monthrange(year, month)
    return padding + [date(year, month, d) for d in range(1, last_day + 1)]
