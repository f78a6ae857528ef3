from decimal import Decimal

from django.db import models

from users.models import User


DEFAULT_CONSULTATION_FEE = Decimal('100.00')


class DoctorProfile(models.Model):
    """
    Professional profile for a doctor.
    One-to-one with the User model (role = DOCTOR); the doctor's display
    name is the user's name.
    """
    user = models.OneToOneField(
        User, on_delete=models.CASCADE, related_name='doctor_profile')

    # Free text shown on the booking screen, e.g. "Cardiology"
    specialty = models.CharField(max_length=100, blank=True, default='')
    qualification = models.CharField(max_length=200, blank=True, null=True)
    experience_years = models.PositiveIntegerField(default=0)
    biography = models.TextField(blank=True, null=True)

    # Charged when a patient books; copied onto the appointment
    consultation_fee = models.DecimalField(max_digits=8, decimal_places=2, default=DEFAULT_CONSULTATION_FEE)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'doctor_profile'
        ordering = ['user__name']

    def __str__(self):
        return f"Dr. {self.user.name} ({self.specialty})"

    @property
    def name(self):
        return self.user.name
