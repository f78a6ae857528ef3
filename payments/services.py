"""Payment status changes. Each one mirrors the new status onto the appointment."""
from django.db import transaction
from django.utils import timezone

from appointments.lifecycle import AppointmentStatus
from appointments.models import PaymentMethod, PaymentStatus
from clinicdesk.log import get_logger

from .models import Payment

logger = get_logger(__name__)


class PaymentError(Exception):
    """A payment operation that does not apply to the payment's current state."""


def _lock(payment):
    return (Payment.objects.select_for_update()
            .select_related('appointment__patient', 'appointment__doctor__user')
            .get(pk=payment.pk))


def _write(payment, new_status, **fields):
    payment.status = new_status
    for name, value in fields.items():
        setattr(payment, name, value)
    payment.save()
    appointment = payment.appointment
    appointment.payment_status = new_status
    appointment.payment_method = payment.payment_method
    appointment.save(update_fields=['payment_status', 'payment_method', 'updated_at'])


def create_for_appointment(appointment):
    return Payment.objects.create(
        appointment=appointment,
        amount=appointment.amount,
        payment_method=appointment.payment_method,
    )


@transaction.atomic
def approve(payment, user):
    """Admin marks a pending payment as paid (cash taken at the desk)."""
    payment = _lock(payment)
    if payment.status != PaymentStatus.PENDING:
        raise PaymentError(f"Only pending payments can be approved; this one is {payment.status}.")
    _write(payment, PaymentStatus.PAID, payment_date=timezone.now())
    logger.info('payment_approved', payment_id=payment.pk, amount=str(payment.amount), by=str(user.pk))
    return payment


@transaction.atomic
def deny(payment, user):
    payment = _lock(payment)
    if payment.status != PaymentStatus.PENDING:
        raise PaymentError(f"Only pending payments can be denied; this one is {payment.status}.")
    _write(payment, PaymentStatus.FAILED)
    logger.info('payment_denied', payment_id=payment.pk, by=str(user.pk))
    return payment


@transaction.atomic
def pay_by_card(payment, user, card_last4):
    """Patient settles a pending payment by card; recorded as paid."""
    payment = _lock(payment)
    if payment.status != PaymentStatus.PENDING:
        raise PaymentError(f"This payment is already {payment.status}.")
    appt_status = AppointmentStatus.parse(payment.appointment.status)
    if appt_status in (AppointmentStatus.CANCELLED, AppointmentStatus.DENIED):
        raise PaymentError(f"Cannot pay for an appointment that is {appt_status.label.lower()}.")
    payment.payment_method = PaymentMethod.VISA
    _write(payment, PaymentStatus.PAID, card_last4=card_last4, payment_date=timezone.now())
    logger.info('payment_card_paid', payment_id=payment.pk, amount=str(payment.amount), by=str(user.pk))
    return payment


@transaction.atomic
def delete(payment, user):
    payment = _lock(payment)
    appointment = payment.appointment
    pk = payment.pk
    payment.delete()
    appointment.payment_status = PaymentStatus.PENDING
    appointment.save(update_fields=['payment_status', 'updated_at'])
    logger.info('payment_deleted', payment_id=pk, appointment_id=appointment.pk, by=str(user.pk))
