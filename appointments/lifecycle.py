"""
Appointment status state machine.

    pending_approval ──approve──▶ accepted ──schedule──▶ scheduled
           │                         │  ╲                  │  ╲
         deny                     cancel complete       cancel complete
           ▼                         ▼     ▼               ▼     ▼
        denied                  cancelled completed   cancelled completed

``completed``, ``cancelled`` and ``denied`` are terminal. Every operation
validates first and only then writes, so a rejected call leaves the
appointment exactly as it was. Operations mutate the object in memory and
bump its ``version``; saving is the caller's job.

Nothing here touches the database or reads the clock: ``now`` is always
passed in as a naive local wall-clock datetime.
"""
from django.db import models

from users.roles import Role, parse_role

from .scheduling import is_appointment_time_passed, is_same_day


class AppointmentStatus(models.TextChoices):
    PENDING_APPROVAL = 'pending_approval', 'Pending Approval'
    ACCEPTED = 'accepted', 'Accepted'
    SCHEDULED = 'scheduled', 'Scheduled'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'
    DENIED = 'denied', 'Denied'

    @property
    def badge(self):
        """CSS badge class the front end shows for this status."""
        return _BADGES[self]

    @property
    def api_code(self):
        """Upper-case code used by the older booking API (PENDING, APPROVED, ...)."""
        return _API_CODES[self]

    @property
    def is_terminal(self):
        return self in TERMINAL_STATUSES

    @classmethod
    def parse(cls, raw):
        """Accept a status value or an API code, in any case."""
        if isinstance(raw, cls):
            return raw
        value = str(raw or '').strip()
        try:
            return cls(value.lower())
        except ValueError:
            pass
        for status, code in _API_CODES.items():
            if code == value.upper():
                return status
        raise ValueError(f'Unknown appointment status: {raw!r}')


_BADGES = {
    AppointmentStatus.PENDING_APPROVAL: 'bg-warning',
    AppointmentStatus.ACCEPTED: 'bg-primary',
    AppointmentStatus.SCHEDULED: 'bg-info',
    AppointmentStatus.COMPLETED: 'bg-success',
    AppointmentStatus.CANCELLED: 'bg-danger',
    AppointmentStatus.DENIED: 'bg-dark',
}

_API_CODES = {
    AppointmentStatus.PENDING_APPROVAL: 'PENDING',
    AppointmentStatus.ACCEPTED: 'APPROVED',
    AppointmentStatus.SCHEDULED: 'SCHEDULED',
    AppointmentStatus.COMPLETED: 'COMPLETED',
    AppointmentStatus.CANCELLED: 'CANCELLED',
    AppointmentStatus.DENIED: 'DENIED',
}

TERMINAL_STATUSES = frozenset({
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.DENIED,
})

# Statuses that hold a doctor's time slot.
ACTIVE_STATUSES = (
    AppointmentStatus.PENDING_APPROVAL,
    AppointmentStatus.ACCEPTED,
    AppointmentStatus.SCHEDULED,
)

APPROVAL_TARGETS = (AppointmentStatus.ACCEPTED, AppointmentStatus.SCHEDULED)

PATIENT_DELETABLE_STATUSES = frozenset({
    AppointmentStatus.PENDING_APPROVAL,
    AppointmentStatus.ACCEPTED,
})


# ─────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────

class LifecycleError(Exception):
    """Base class for every rejected lifecycle operation."""


class InvalidTransition(LifecycleError):
    def __init__(self, action, current):
        self.action = action
        self.current = current
        super().__init__(f"Cannot {action} an appointment that is {current.label.lower()}.")


class TransitionNotPermitted(LifecycleError):
    def __init__(self, action, role):
        self.action = action
        self.role = role
        super().__init__(f"The {role.label.lower()} role cannot {action} this appointment.")


class CancellationMessageRequired(LifecycleError):
    def __init__(self):
        super().__init__("A cancellation message is required.")


class CancellationWindowClosed(LifecycleError):
    pass


# ─────────────────────────────────────────────
# Rules
# ─────────────────────────────────────────────

class _Rule:
    __slots__ = ('sources', 'roles')

    def __init__(self, sources, roles):
        self.sources = frozenset(sources)
        self.roles = frozenset(roles)


RULES = {
    'approve': _Rule({AppointmentStatus.PENDING_APPROVAL}, {Role.ADMIN}),
    'deny': _Rule({AppointmentStatus.PENDING_APPROVAL}, {Role.ADMIN}),
    'schedule': _Rule({AppointmentStatus.ACCEPTED}, {Role.ADMIN, Role.DOCTOR}),
    'cancel': _Rule({AppointmentStatus.ACCEPTED, AppointmentStatus.SCHEDULED},
                    {Role.ADMIN, Role.DOCTOR, Role.PATIENT}),
    'complete': _Rule({AppointmentStatus.ACCEPTED, AppointmentStatus.SCHEDULED},
                      {Role.ADMIN, Role.DOCTOR}),
}


def current_status(appointment):
    return AppointmentStatus.parse(appointment.status)


def _check(action, appointment, role):
    rule = RULES[action]
    role = parse_role(role)
    if role not in rule.roles:
        raise TransitionNotPermitted(action, role)
    status = current_status(appointment)
    if status not in rule.sources:
        raise InvalidTransition(action, status)
    return role


def _check_cancel(appointment, role, message, now):
    role = _check('cancel', appointment, role)
    message = (message or '').strip()
    if not message:
        raise CancellationMessageRequired()
    date, time = appointment.appointment_date, appointment.appointment_time
    if is_appointment_time_passed(date, time, now):
        raise CancellationWindowClosed("This appointment's time has already passed.")
    if role == Role.DOCTOR and is_same_day(date, now):
        raise CancellationWindowClosed("Doctors cannot cancel an appointment on the day it takes place.")
    return role, message


def _write(appointment, status):
    appointment.status = status.value
    appointment.version = (appointment.version or 0) + 1
    return appointment


# ─────────────────────────────────────────────
# Operations
# ─────────────────────────────────────────────

def approve(appointment, role, result=AppointmentStatus.ACCEPTED):
    """Admin approves a pending request; ``result`` is accepted or scheduled."""
    result = AppointmentStatus.parse(result)
    if result not in APPROVAL_TARGETS:
        raise ValueError(f'Approval cannot lead to {result.value!r}.')
    _check('approve', appointment, role)
    return _write(appointment, result)


def deny(appointment, role):
    _check('deny', appointment, role)
    return _write(appointment, AppointmentStatus.DENIED)


def schedule(appointment, role):
    _check('schedule', appointment, role)
    return _write(appointment, AppointmentStatus.SCHEDULED)


def complete(appointment, role):
    _check('complete', appointment, role)
    return _write(appointment, AppointmentStatus.COMPLETED)


def cancel(appointment, role, message, now):
    """
    Cancel an accepted or scheduled appointment before it takes place.

    Doctors additionally cannot cancel on the appointment's own day. The
    trimmed message and the cancelling role are recorded.
    """
    role, message = _check_cancel(appointment, role, message, now)
    appointment.cancellation_message = message
    appointment.cancelled_by = role.value.lower()
    return _write(appointment, AppointmentStatus.CANCELLED)


def can_delete(appointment, role):
    """Admins may always hard-delete; patients only before the visit is scheduled."""
    role = parse_role(role)
    if role == Role.ADMIN:
        return True
    if role == Role.PATIENT:
        return current_status(appointment) in PATIENT_DELETABLE_STATUSES
    return False


def allowed_actions(appointment, role, now):
    """Names of the operations ``role`` could perform right now, for the UI."""
    actions = []
    for action in RULES:
        try:
            if action == 'cancel':
                _check_cancel(appointment, role, 'preview', now)
            else:
                _check(action, appointment, role)
        except LifecycleError:
            continue
        actions.append(action)
    if can_delete(appointment, role):
        actions.append('delete')
    return actions
