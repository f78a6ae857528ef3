from decimal import Decimal

from django.db import models

from appointments.models import Appointment, PaymentMethod, PaymentStatus
from users.models import scope_to_user
from .split import split


class PaymentQuerySet(models.QuerySet):

    def for_user(self, user):
        return scope_to_user(self, user, 'appointment__patient', 'appointment__doctor__user')


class Payment(models.Model):
    """
    Money owed for one appointment.

    Created together with the appointment; ``status`` is mirrored onto
    ``Appointment.payment_status`` but never changes the appointment's own
    lifecycle status.
    """
    appointment = models.OneToOneField(
        Appointment, on_delete=models.CASCADE, related_name='payment')
    amount = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('0.00'))
    payment_method = models.CharField(max_length=10, choices=PaymentMethod.choices, default=PaymentMethod.CASH)
    status = models.CharField(
        max_length=10, choices=PaymentStatus.choices, default=PaymentStatus.PENDING, db_index=True)
    card_last4 = models.CharField(max_length=4, blank=True, null=True)
    payment_date = models.DateTimeField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PaymentQuerySet.as_manager()

    class Meta:
        db_table = 'payment'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.payment_method} {self.amount} for appointment {self.appointment_id} [{self.status}]"

    @property
    def clinic_tax(self):
        return split(self.amount).clinic_tax

    @property
    def doctor_earning(self):
        return split(self.amount).doctor_earning

    # Fields the list filters and visibility rules read
    @property
    def patient_name(self):
        return self.appointment.patient_name

    @property
    def doctor_name(self):
        return self.appointment.doctor_name

    @property
    def reason(self):
        return self.appointment.reason

    @property
    def appointment_date(self):
        return self.appointment.appointment_date

    @property
    def status_enum(self):
        return PaymentStatus(self.status)
