"""Clock-string parsing and appointment window formatting.

Appointment times are stored as display strings ("1:00 PM - 2:30 PM") rather
than structured times, so everything here works on free-form text and
minutes since midnight.
"""

import re
from dataclasses import dataclass

from beautybook.core.errors import InvalidInput

MINUTES_PER_DAY = 1440

_CLOCK_PATTERN = re.compile(
    r'^\s*(?P<hour>\d{1,2})(?:[:.](?P<minute>\d{2}))?\s*(?P<meridiem>[ap])?\.?\s*(?:m\.?)?\s*$',
    re.IGNORECASE,
)
_DURATION_PART = re.compile(
    r'(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>hours?|hrs?|h|minutes?|mins?|m)?',
    re.IGNORECASE,
)


@dataclass(frozen=True)
class TimeWindow:
    start: str
    end: str | None
    display: str
    duration_minutes: int | None


def parse_clock_time(value: str | None) -> int:
    """Return minutes since midnight for "1:00 PM", "14:00", "9 am" and friends."""
    if value is None or not value.strip():
        raise InvalidInput('Start time is required.')

    match = _CLOCK_PATTERN.match(value)
    if not match:
        raise InvalidInput(f'Unrecognised time of day: {value!r}.')

    hour = int(match.group('hour'))
    minute = int(match.group('minute') or 0)
    meridiem = (match.group('meridiem') or '').lower()

    if minute > 59:
        raise InvalidInput(f'Unrecognised time of day: {value!r}.')

    if meridiem:
        if not 1 <= hour <= 12:
            raise InvalidInput(f'Unrecognised time of day: {value!r}.')
        if meridiem == 'a' and hour == 12:
            hour = 0
        elif meridiem == 'p' and hour != 12:
            hour += 12
    elif hour > 23:
        raise InvalidInput(f'Unrecognised time of day: {value!r}.')

    return hour * 60 + minute


def format_clock_time(minutes: int) -> str:
    minutes %= MINUTES_PER_DAY
    hour24, minute = divmod(minutes, 60)
    period = 'PM' if hour24 >= 12 else 'AM'
    hour12 = hour24 % 12 or 12
    return f'{hour12}:{minute:02d} {period}'


def compute_window(
    start_time: str | None,
    end_time: str | None = None,
    duration_minutes: int | None = None,
) -> TimeWindow:
    """Build the stored window.

    Only a duration forces the start to be a clock time. With neither an end
    nor a duration the start is kept verbatim, so a client may send a whole
    range such as "1:00 PM - 2:30 PM".
    """
    if start_time is None or not start_time.strip():
        raise InvalidInput('Start time is required.')
    start = start_time.strip()

    if end_time and end_time.strip():
        # An explicit end is kept verbatim; it is not checked against the start.
        end = end_time.strip()
        try:
            derived = (parse_clock_time(end) - parse_clock_time(start)) % MINUTES_PER_DAY
        except InvalidInput:
            derived = None
        return TimeWindow(start=start, end=end, display=f'{start} - {end}', duration_minutes=derived)

    if duration_minutes:
        end = format_clock_time(parse_clock_time(start) + duration_minutes)
        return TimeWindow(start=start, end=end, display=f'{start} - {end}', duration_minutes=duration_minutes)

    return TimeWindow(start=start, end=None, display=start, duration_minutes=None)


def parse_duration_label(value: str | None) -> int:
    """Convert an artist-entered label ("3 hours", "1h 30m", "90 min") into minutes.

    A bare number counts as hours, which is how blocked-time labels were entered.
    """
    if value is None or not value.strip():
        raise InvalidInput('Duration is required.')

    total = 0.0
    matched = False
    for part in _DURATION_PART.finditer(value):
        matched = True
        amount = float(part.group('value'))
        unit = (part.group('unit') or 'h').lower()
        total += amount if unit.startswith('m') else amount * 60

    minutes = int(round(total))
    if not matched or minutes <= 0:
        raise InvalidInput(f'Unrecognised duration: {value!r}.')
    return minutes
