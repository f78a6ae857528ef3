from django.db import models

from appointments.models import Appointment
from doctors.models import DoctorProfile
from users.models import User, scope_to_user


class PrescriptionQuerySet(models.QuerySet):

    def for_user(self, user):
        return scope_to_user(self, user, 'patient', 'doctor__user')


class Prescription(models.Model):
    """
    A doctor's prescription for one of their patients.
    Optionally tied to the appointment it was written at.
    """
    doctor = models.ForeignKey(
        DoctorProfile, on_delete=models.CASCADE, related_name='prescriptions')
    patient = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name='prescriptions')
    appointment = models.ForeignKey(
        Appointment, on_delete=models.SET_NULL, blank=True, null=True, related_name='prescriptions')

    medications = models.TextField()
    instructions = models.TextField(blank=True, default='')
    diagnosis = models.TextField(blank=True, default='')
    notes = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PrescriptionQuerySet.as_manager()

    class Meta:
        db_table = 'prescription'
        ordering = ['-created_at']

    def __str__(self):
        return f"Dr. {self.doctor_name} → {self.patient_name} ({self.created_at:%Y-%m-%d})"

    @property
    def doctor_name(self):
        return self.doctor.user.name

    @property
    def patient_name(self):
        return self.patient.name
