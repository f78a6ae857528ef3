"""
Clinic-hours arithmetic and booking validation.

Appointment dates and times are local wall-clock values; ``now`` arguments
are expected already converted to local time. An aware ``now`` simply has
its tzinfo dropped.
"""
import re
from datetime import date, datetime, time, timedelta

CLINIC_OPENS = time(9, 0)
CLINIC_CLOSES = time(21, 0)
SLOT_MINUTES = 30

REASON_CHOICES = (
    ('Checkup', 'Checkup'),
    ('Consultation', 'Consultation'),
    ('Follow-up', 'Follow-up'),
    ('Treatment', 'Treatment'),
    ('Other', 'Other'),
)
REASONS = tuple(value for value, _ in REASON_CHOICES)

_TIME_12H = re.compile(r'^(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AaPp][Mm])$')
_TIME_24H = re.compile(r'^(\d{1,2}):(\d{2})(?::(\d{2}))?$')


def parse_time(raw):
    """
    Parse '14:30', '14:30:00', '02:30 PM' or '2:30pm' into a ``time``.

    12 AM is midnight (00:xx) and 12 PM is noon (12:xx).
    """
    if isinstance(raw, time):
        return raw
    value = str(raw or '').strip()

    match = _TIME_12H.match(value)
    if match:
        hours, minutes, seconds, meridiem = match.groups()
        hours = int(hours)
        if not 1 <= hours <= 12:
            raise ValueError(f'Invalid 12-hour time: {raw!r}')
        if meridiem.upper() == 'AM':
            hours = 0 if hours == 12 else hours
        elif hours != 12:
            hours += 12
        return time(hours, int(minutes), int(seconds or 0))

    match = _TIME_24H.match(value)
    if match:
        hours, minutes, seconds = match.groups()
        return time(int(hours), int(minutes), int(seconds or 0))

    raise ValueError(f'Unrecognized time: {raw!r}')


def format_time_12h(value):
    value = parse_time(value)
    hour12 = value.hour % 12 or 12
    meridiem = 'PM' if value.hour >= 12 else 'AM'
    return f'{hour12:02d}:{value.minute:02d} {meridiem}'


def _local(now):
    return now.replace(tzinfo=None) if now.tzinfo is not None else now


def _as_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def appointment_datetime(day, at):
    return datetime.combine(_as_date(day), parse_time(at))


def is_appointment_time_passed(day, at, now):
    return _local(now) > appointment_datetime(day, at)


def is_same_day(day, now):
    return _as_date(day) == _local(now).date()


def within_clinic_hours(at):
    return CLINIC_OPENS <= parse_time(at) <= CLINIC_CLOSES


def validate_booking(day, at, reason, now):
    """
    Check a booking request against clinic rules.

    Returns a dict of field name to message, empty when the booking is
    acceptable. Unparseable input is reported rather than raised.
    """
    errors = {}
    now = _local(now)

    try:
        day = _as_date(day)
    except (TypeError, ValueError):
        errors['appointment_date'] = 'Enter a valid date (YYYY-MM-DD).'
        day = None
    try:
        at = parse_time(at)
    except ValueError:
        errors['appointment_time'] = 'Enter a valid time, e.g. 14:30 or 02:30 PM.'
        at = None

    if day is not None and day < now.date():
        errors['appointment_date'] = 'Appointments cannot be booked in the past.'

    if at is not None:
        if not within_clinic_hours(at):
            errors['appointment_time'] = (
                f'The clinic is open from {CLINIC_OPENS:%H:%M} to {CLINIC_CLOSES:%H:%M}.')
        elif at.minute % SLOT_MINUTES or at.second:
            errors['appointment_time'] = 'Appointments start on the hour or half hour.'
        elif day is not None and day == now.date() and datetime.combine(day, at) <= now:
            errors['appointment_time'] = 'This time has already passed today.'

    if reason not in REASONS:
        errors['reason'] = f"Reason must be one of: {', '.join(REASONS)}."

    return errors


def clinic_slots(day, now=None):
    """Every bookable slot start on ``day``; on today's date only future ones."""
    day = _as_date(day)
    current = datetime.combine(day, CLINIC_OPENS)
    closes = datetime.combine(day, CLINIC_CLOSES)
    step = timedelta(minutes=SLOT_MINUTES)
    cutoff = _local(now) if now is not None else None

    slots = []
    while current <= closes:
        if cutoff is None or current > cutoff:
            slots.append(current.time())
        current += step
    return slots
