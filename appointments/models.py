from decimal import Decimal

from django.db import models

from users.models import User, scope_to_user
from doctors.models import DoctorProfile

from .lifecycle import ACTIVE_STATUSES, AppointmentStatus
from .scheduling import REASON_CHOICES, format_time_12h


class PaymentMethod(models.TextChoices):
    CASH = 'CASH', 'Cash'
    VISA = 'VISA', 'Visa'


class PaymentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PAID = 'paid', 'Paid'
    FAILED = 'failed', 'Failed'

    @property
    def badge(self):
        return _PAYMENT_BADGES[self]


_PAYMENT_BADGES = {
    PaymentStatus.PENDING: 'bg-warning',
    PaymentStatus.PAID: 'bg-success',
    PaymentStatus.FAILED: 'bg-danger',
}


class AppointmentQuerySet(models.QuerySet):

    def for_user(self, user):
        return scope_to_user(self, user, 'patient', 'doctor__user')


class Appointment(models.Model):
    # Parties
    patient = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name='patient_appointments')
    doctor = models.ForeignKey(
        DoctorProfile, on_delete=models.CASCADE, related_name='doctor_appointments')

    # Scheduling
    appointment_date = models.DateField(db_index=True)
    appointment_time = models.TimeField()
    reason = models.CharField(max_length=30, choices=REASON_CHOICES)

    # Written only through appointments.lifecycle
    status = models.CharField(
        max_length=20, choices=AppointmentStatus.choices,
        default=AppointmentStatus.PENDING_APPROVAL, db_index=True)
    version = models.PositiveIntegerField(default=1)

    # Payment
    amount = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('0.00'))
    payment_method = models.CharField(max_length=10, choices=PaymentMethod.choices, default=PaymentMethod.CASH)
    payment_status = models.CharField(max_length=10, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)

    # Cancellation
    cancelled_by = models.CharField(max_length=20, blank=True, null=True)  # 'patient' | 'doctor' | 'admin'
    cancellation_message = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AppointmentQuerySet.as_manager()

    class Meta:
        db_table = 'appointment'
        ordering = ['-appointment_date', '-appointment_time']
        indexes = [
            models.Index(fields=['appointment_date', 'doctor'], name='appt_date_doctor_idx'),
            models.Index(fields=['patient', 'status'], name='appt_patient_status_idx'),
        ]
        constraints = [
            # One active booking per doctor and slot
            models.UniqueConstraint(
                fields=['doctor', 'appointment_date', 'appointment_time'],
                condition=models.Q(status__in=ACTIVE_STATUSES),
                name='appt_active_slot_unique',
            ),
        ]

    def __str__(self):
        return f"{self.patient_name} → Dr. {self.doctor_name} | {self.appointment_date} {self.appointment_time}"

    @property
    def patient_name(self):
        return self.patient.name

    @property
    def doctor_name(self):
        return self.doctor.user.name

    @property
    def display_time(self):
        return format_time_12h(self.appointment_time)

    @property
    def status_enum(self):
        return AppointmentStatus.parse(self.status)
