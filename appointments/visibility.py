"""
Which appointments (and payments) a user may see, plus the list filters
the screens apply on top.

Records can be model instances or plain dicts; both expose
``patient_name``, ``doctor_name``, ``reason``, ``status`` and
``appointment_date``.
"""
import calendar
from datetime import date, timedelta

from users.roles import Role, parse_role

UPCOMING = 'upcoming'
RECENT = 'recent'

DATE_RANGES = ('today', 'week', 'month')


def _get(record, key, default=None):
    if isinstance(record, dict):
        return record.get(key, default)
    return getattr(record, key, default)


def visible(records, user):
    """
    The subset of ``records`` ``user`` may see, in the original order.

    Doctors match on their display name and patients on theirs; both are
    exact, case-sensitive comparisons.
    """
    try:
        role = parse_role(_get(user, 'role'))
    except ValueError:
        return []

    if role == Role.ADMIN:
        return list(records)
    if role == Role.DOCTOR:
        name = _get(user, 'doctor_name')
        return [r for r in records if name and _get(r, 'doctor_name') == name]
    if role == Role.PATIENT:
        name = _get(user, 'name')
        return [r for r in records if name and _get(r, 'patient_name') == name]
    return []


def add_months(day, months):
    """Same day-of-month ``months`` later, clamped to the month's last day."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last_day))


def date_window(date_range, today, direction=UPCOMING):
    """
    Inclusive (start, end) dates for 'today', 'week' or 'month'.

    Appointment lists look forward from today; payment history looks back.
    """
    if date_range == 'today':
        return today, today
    if date_range == 'week':
        span = timedelta(days=7)
        return (today, today + span) if direction == UPCOMING else (today - span, today)
    if date_range == 'month':
        if direction == UPCOMING:
            return today, add_months(today, 1)
        return add_months(today, -1), today
    raise ValueError(f'Unknown date range: {date_range!r}')


def _as_date(value):
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _matches_search(record, term):
    for key in ('patient_name', 'doctor_name', 'reason'):
        value = _get(record, key)
        if value and term in str(value).lower():
            return True
    return False


def filter_records(records, search=None, status=None, date_range=None,
                   today=None, direction=UPCOMING):
    """
    Apply the search box, status dropdown and date-range filter together.

    Each filter left as None (or 'all') is skipped; the rest must all
    match. Order is preserved.
    """
    filtered = list(records)

    term = (search or '').strip().lower()
    if term:
        filtered = [r for r in filtered if _matches_search(r, term)]

    if status and status != 'all':
        filtered = [r for r in filtered if str(_get(r, 'status')) == str(status)]

    if date_range and date_range != 'all':
        start, end = date_window(date_range, today or date.today(), direction)
        kept = []
        for record in filtered:
            day = _as_date(_get(record, 'appointment_date'))
            if day is not None and start <= day <= end:
                kept.append(record)
        filtered = kept

    return filtered
