"""Shared test fixtures."""
from datetime import time, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from appointments.lifecycle import AppointmentStatus
from appointments.models import Appointment, PaymentMethod
from doctors.models import DoctorProfile
from payments.models import Payment
from users.models import User
from users.roles import Role


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def as_user(api_client):
    """Authenticate the shared API client as the given user."""
    def _as(user):
        api_client.force_authenticate(user=user)
        return api_client
    return _as


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        contact=9000000001, password='secret123', name='Clinic Admin', role=Role.ADMIN)


def _make_doctor(contact, name, fee):
    user = User.objects.create_user(contact=contact, password='secret123', name=name, role=Role.DOCTOR)
    return DoctorProfile.objects.create(user=user, specialty='Diagnostic Medicine', consultation_fee=fee)


@pytest.fixture
def doctor(db):
    return _make_doctor(9000000002, 'Gregory House', Decimal('150.00'))


@pytest.fixture
def other_doctor(db):
    return _make_doctor(9000000003, 'Lisa Cuddy', Decimal('200.00'))


@pytest.fixture
def patient(db):
    return User.objects.create_user(
        contact=9000000010, password='secret123', name='John Doe', role=Role.PATIENT)


@pytest.fixture
def other_patient(db):
    return User.objects.create_user(
        contact=9000000011, password='secret123', name='Jane Roe', role=Role.PATIENT)


@pytest.fixture
def make_appointment(patient, doctor):
    """Create an appointment (with its pending payment) ``days`` from today."""
    def _make(patient=patient, doctor=doctor, days=3, at=time(10, 0),
              status=AppointmentStatus.PENDING_APPROVAL, reason='Checkup',
              method=PaymentMethod.CASH):
        appt = Appointment.objects.create(
            patient=patient,
            doctor=doctor,
            appointment_date=timezone.localdate() + timedelta(days=days),
            appointment_time=at,
            reason=reason,
            status=status,
            amount=doctor.consultation_fee,
            payment_method=method,
        )
        Payment.objects.create(appointment=appt, amount=appt.amount, payment_method=method)
        return appt
    return _make
