"""
Database side of the appointment lifecycle.

Each write re-reads the row under ``select_for_update`` inside a
transaction, compares the client's ``version`` when one was sent, runs the
pure transition from ``lifecycle`` and saves. The database row is the
source of truth: a client holding an older version gets ``StaleAppointment``
instead of overwriting a newer state.
"""
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from clinicdesk.log import get_logger
from users.roles import parse_role

from . import lifecycle
from .models import Appointment

logger = get_logger(__name__)

LIFECYCLE_FIELDS = ['status', 'version', 'cancelled_by', 'cancellation_message', 'updated_at']


class StaleAppointment(Exception):
    """The client acted on an outdated copy of the appointment."""

    def __init__(self, appointment, expected_version):
        self.appointment = appointment
        self.expected_version = expected_version
        super().__init__(
            f"Appointment {appointment.pk} is at version {appointment.version}, "
            f"not {expected_version}. Reload and try again.")


def local_now():
    """Current local wall-clock time, naive, as the lifecycle rules expect."""
    return timezone.localtime().replace(tzinfo=None)


def _lock(appointment, expected_version):
    locked = (Appointment.objects.select_for_update()
              .select_related('patient', 'doctor__user')
              .get(pk=appointment.pk))
    if expected_version is not None and int(expected_version) != locked.version:
        raise StaleAppointment(locked, expected_version)
    return locked


@transaction.atomic
def transition(appointment, action, user, expected_version=None, message=None, now=None):
    """
    Run ``action`` (approve, deny, schedule, cancel, complete) as ``user``.

    Raises ``lifecycle.LifecycleError`` or ``StaleAppointment``; the row is
    left untouched in both cases.
    """
    locked = _lock(appointment, expected_version)
    previous = locked.status

    if action == 'approve':
        lifecycle.approve(locked, user.role, result=settings.APPOINTMENT_APPROVAL_STATUS)
    elif action == 'deny':
        lifecycle.deny(locked, user.role)
    elif action == 'schedule':
        lifecycle.schedule(locked, user.role)
    elif action == 'complete':
        lifecycle.complete(locked, user.role)
    elif action == 'cancel':
        lifecycle.cancel(locked, user.role, message, now or local_now())
    else:
        raise ValueError(f'Unknown lifecycle action: {action!r}')

    locked.save(update_fields=LIFECYCLE_FIELDS)
    logger.info('appointment_transition', appointment_id=locked.pk, action=action,
                from_status=previous, to_status=locked.status,
                version=locked.version, by=str(user.pk), role=user.role)
    return locked


@transaction.atomic
def delete(appointment, user, expected_version=None):
    """Hard-delete, subject to ``lifecycle.can_delete``. Linked payment goes with it."""
    locked = _lock(appointment, expected_version)
    if not lifecycle.can_delete(locked, user.role):
        raise lifecycle.TransitionNotPermitted('delete', parse_role(user.role))
    pk, status = locked.pk, locked.status
    locked.delete()
    logger.info('appointment_deleted', appointment_id=pk, status=status,
                by=str(user.pk), role=user.role)
