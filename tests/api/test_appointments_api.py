"""API tests for booking, listing and the appointment lifecycle."""
from datetime import datetime, time, timedelta

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone

from appointments import serializers as appt_serializers
from appointments import services
from appointments.lifecycle import AppointmentStatus
from appointments.models import Appointment
from payments.models import Payment

pytestmark = pytest.mark.django_db

BASE = '/api/appointments/'


def booking(doctor, days=1, at='02:30 PM', reason='Checkup'):
    return {
        'doctor': doctor.pk,
        'appointment_date': (timezone.localdate() + timedelta(days=days)).isoformat(),
        'appointment_time': at,
        'reason': reason,
    }


# ─────────────────────────────────────────────
# Booking
# ─────────────────────────────────────────────

class TestBooking:

    def test_patient_books_pending_appointment(self, as_user, patient, doctor):
        response = as_user(patient).post(BASE, booking(doctor), format='json')

        assert response.status_code == 201
        body = response.data
        assert body['status'] == 'pending_approval'
        assert body['api_status'] == 'PENDING'
        assert body['appointment_time'] == '14:30:00'
        assert body['display_time'] == '02:30 PM'
        assert body['patient_name'] == 'John Doe'
        assert body['doctor_name'] == 'Gregory House'
        assert body['amount'] == '150.00'
        assert body['version'] == 1
        assert body['payment_status'] == 'pending'

        payment = Payment.objects.get(appointment_id=body['id'])
        assert payment.status == 'pending'
        assert str(payment.amount) == '150.00'

    def test_past_date_is_rejected(self, as_user, patient, doctor):
        response = as_user(patient).post(BASE, booking(doctor, days=-1), format='json')
        assert response.status_code == 400
        assert 'appointment_date' in response.data
        assert not Appointment.objects.exists()

    def test_outside_clinic_hours(self, as_user, patient, doctor):
        response = as_user(patient).post(BASE, booking(doctor, at='07:00'), format='json')
        assert response.status_code == 400
        assert 'appointment_time' in response.data

    def test_earlier_today_is_rejected(self, as_user, patient, doctor, monkeypatch):
        monkeypatch.setattr(services, 'local_now',
                            lambda: datetime.combine(timezone.localdate(), time(12, 0)))
        response = as_user(patient).post(BASE, booking(doctor, days=0, at='10:00'), format='json')
        assert response.status_code == 400
        assert 'appointment_time' in response.data

    def test_taken_slot_is_rejected(self, as_user, patient, other_patient, doctor):
        as_user(other_patient).post(BASE, booking(doctor, at='10:00'), format='json')
        response = as_user(patient).post(BASE, booking(doctor, at='10:00 AM'), format='json')
        assert response.status_code == 400
        assert 'appointment_time' in response.data

    def test_cancelled_slot_can_be_rebooked(self, as_user, patient, doctor, make_appointment):
        make_appointment(days=1, at=time(10, 0), status=AppointmentStatus.CANCELLED)
        response = as_user(patient).post(BASE, booking(doctor, at='10:00'), format='json')
        assert response.status_code == 201

    def test_only_patients_book(self, as_user, doctor, admin_user):
        assert as_user(doctor.user).post(BASE, booking(doctor), format='json').status_code == 403
        assert as_user(admin_user).post(BASE, booking(doctor), format='json').status_code == 403

    def test_unauthenticated(self, api_client, doctor):
        assert api_client.post(BASE, booking(doctor), format='json').status_code == 401


# ─────────────────────────────────────────────
# Listing & visibility
# ─────────────────────────────────────────────

class TestListing:

    @pytest.fixture
    def appointments(self, make_appointment, patient, other_patient, doctor, other_doctor):
        return [
            make_appointment(patient=patient, doctor=doctor, days=1),
            make_appointment(patient=other_patient, doctor=doctor, days=2),
            make_appointment(patient=patient, doctor=other_doctor, days=3,
                             status=AppointmentStatus.ACCEPTED, reason='Follow-up'),
        ]

    @staticmethod
    def ids(response):
        return sorted(a['id'] for a in response.data)

    def test_patient_sees_own(self, as_user, patient, appointments):
        response = as_user(patient).get(BASE + 'my/')
        assert response.status_code == 200
        assert self.ids(response) == sorted([appointments[0].pk, appointments[2].pk])

    def test_doctor_sees_own_schedule(self, as_user, doctor, appointments):
        response = as_user(doctor.user).get(BASE + 'doctor/my/')
        assert self.ids(response) == sorted([appointments[0].pk, appointments[1].pk])

    def test_admin_sees_all(self, as_user, admin_user, appointments):
        response = as_user(admin_user).get(BASE + 'admin/all/')
        assert len(response.data) == 3

    def test_generic_list_follows_the_caller(self, as_user, other_patient, appointments):
        response = as_user(other_patient).get(BASE)
        assert self.ids(response) == [appointments[1].pk]

    def test_role_endpoints_are_guarded(self, as_user, patient, appointments):
        client = as_user(patient)
        assert client.get(BASE + 'doctor/my/').status_code == 403
        assert client.get(BASE + 'admin/all/').status_code == 403

    def test_status_filter_accepts_api_code(self, as_user, admin_user, appointments):
        response = as_user(admin_user).get(BASE + 'admin/all/', {'status': 'APPROVED'})
        assert self.ids(response) == [appointments[2].pk]

    def test_unknown_status_filter(self, as_user, admin_user, appointments):
        response = as_user(admin_user).get(BASE + 'admin/all/', {'status': 'lost'})
        assert response.status_code == 400

    def test_search_and_range(self, as_user, admin_user, appointments):
        client = as_user(admin_user)
        assert self.ids(client.get(BASE, {'search': 'follow'})) == [appointments[2].pk]
        assert len(client.get(BASE, {'range': 'week'}).data) == 3
        assert client.get(BASE, {'range': 'today'}).data == []

    def test_admin_by_status(self, as_user, admin_user, appointments):
        response = as_user(admin_user).get(BASE + 'admin/status/PENDING/')
        assert self.ids(response) == sorted([appointments[0].pk, appointments[1].pk])

    def test_detail_hidden_from_other_patient(self, as_user, other_patient, appointments):
        response = as_user(other_patient).get(f'{BASE}{appointments[0].pk}/')
        assert response.status_code == 404

    def test_detail_lists_allowed_actions(self, as_user, admin_user, appointments):
        response = as_user(admin_user).get(f'{BASE}{appointments[0].pk}/')
        assert response.data['allowed_actions'] == ['approve', 'deny', 'delete']


# ─────────────────────────────────────────────
# Lifecycle
# ─────────────────────────────────────────────

class TestApproveDeny:

    def test_admin_approves(self, as_user, admin_user, make_appointment):
        appt = make_appointment()
        response = as_user(admin_user).put(f'{BASE}admin/{appt.pk}/approve/', {}, format='json')
        assert response.status_code == 200
        assert response.data['status'] == 'accepted'
        assert response.data['version'] == 2

    def test_approval_target_is_configurable(self, as_user, admin_user, make_appointment, settings):
        settings.APPOINTMENT_APPROVAL_STATUS = 'scheduled'
        appt = make_appointment()
        response = as_user(admin_user).put(f'{BASE}admin/{appt.pk}/approve/', {}, format='json')
        assert response.data['status'] == 'scheduled'

    def test_patient_cannot_approve(self, as_user, patient, make_appointment):
        appt = make_appointment()
        response = as_user(patient).put(f'{BASE}admin/{appt.pk}/approve/', {}, format='json')
        assert response.status_code == 403
        appt.refresh_from_db()
        assert appt.status == 'pending_approval'

    def test_admin_denies(self, as_user, admin_user, make_appointment):
        appt = make_appointment()
        response = as_user(admin_user).put(f'{BASE}admin/{appt.pk}/deny/', {}, format='json')
        assert response.data['status'] == 'denied'

    def test_cannot_approve_twice(self, as_user, admin_user, make_appointment):
        appt = make_appointment(status=AppointmentStatus.ACCEPTED)
        response = as_user(admin_user).put(f'{BASE}admin/{appt.pk}/approve/', {}, format='json')
        assert response.status_code == 400

    def test_stale_version_conflicts(self, as_user, admin_user, make_appointment):
        appt = make_appointment()
        client = as_user(admin_user)
        client.put(f'{BASE}admin/{appt.pk}/approve/', {'version': 1}, format='json')

        response = client.put(f'{BASE}admin/{appt.pk}/deny/', {'version': 1}, format='json')
        assert response.status_code == 409
        assert response.data['appointment']['status'] == 'accepted'
        assert response.data['appointment']['version'] == 2
        appt.refresh_from_db()
        assert appt.status == 'accepted'


class TestScheduleComplete:

    def test_doctor_schedules_then_completes(self, as_user, doctor, make_appointment):
        appt = make_appointment(status=AppointmentStatus.ACCEPTED)
        client = as_user(doctor.user)
        assert client.put(f'{BASE}{appt.pk}/schedule/', {}, format='json').data['status'] == 'scheduled'
        assert client.put(f'{BASE}{appt.pk}/complete/', {}, format='json').data['status'] == 'completed'

    def test_other_doctor_cannot_see_it(self, as_user, other_doctor, make_appointment):
        appt = make_appointment(status=AppointmentStatus.ACCEPTED)
        response = as_user(other_doctor.user).put(f'{BASE}{appt.pk}/schedule/', {}, format='json')
        assert response.status_code == 404

    def test_completed_is_terminal(self, as_user, admin_user, make_appointment):
        appt = make_appointment(status=AppointmentStatus.COMPLETED)
        response = as_user(admin_user).put(
            f'{BASE}{appt.pk}/cancel/', {'message': 'oops'}, format='json')
        assert response.status_code == 400
        appt.refresh_from_db()
        assert appt.status == 'completed'


class TestCancel:

    def test_patient_cancels_with_message(self, as_user, patient, make_appointment):
        appt = make_appointment(status=AppointmentStatus.SCHEDULED)
        response = as_user(patient).put(
            f'{BASE}{appt.pk}/cancel/', {'message': 'Feeling better'}, format='json')
        assert response.status_code == 200
        assert response.data['status'] == 'cancelled'
        assert response.data['cancelled_by'] == 'patient'
        assert response.data['cancellation_message'] == 'Feeling better'

    def test_blank_message_is_rejected(self, as_user, patient, make_appointment):
        appt = make_appointment(status=AppointmentStatus.ACCEPTED)
        response = as_user(patient).put(f'{BASE}{appt.pk}/cancel/', {'message': '  '}, format='json')
        assert response.status_code == 400
        appt.refresh_from_db()
        assert appt.status == 'accepted'
        assert appt.version == 1

    def test_pending_cannot_be_cancelled(self, as_user, patient, make_appointment):
        appt = make_appointment()
        response = as_user(patient).put(f'{BASE}{appt.pk}/cancel/', {'message': 'no'}, format='json')
        assert response.status_code == 400

    def test_doctor_cannot_cancel_on_the_day(self, as_user, doctor, make_appointment, monkeypatch):
        monkeypatch.setattr(services, 'local_now',
                            lambda: datetime.combine(timezone.localdate(), time(8, 0)))
        appt = make_appointment(days=0, at=time(20, 0), status=AppointmentStatus.SCHEDULED)
        response = as_user(doctor.user).put(
            f'{BASE}{appt.pk}/cancel/', {'message': 'called away'}, format='json')
        assert response.status_code == 400
        appt.refresh_from_db()
        assert appt.status == 'scheduled'

    def test_doctor_cancels_a_later_day(self, as_user, doctor, make_appointment):
        appt = make_appointment(days=2, status=AppointmentStatus.SCHEDULED)
        response = as_user(doctor.user).put(
            f'{BASE}{appt.pk}/cancel/', {'message': 'conference'}, format='json')
        assert response.data['status'] == 'cancelled'
        assert response.data['cancelled_by'] == 'doctor'

    def test_past_appointment_cannot_be_cancelled(self, as_user, patient, make_appointment):
        appt = make_appointment(days=-1, status=AppointmentStatus.ACCEPTED)
        response = as_user(patient).put(f'{BASE}{appt.pk}/cancel/', {'message': 'late'}, format='json')
        assert response.status_code == 400


class TestDelete:

    def test_patient_deletes_pending(self, as_user, patient, make_appointment):
        appt = make_appointment()
        response = as_user(patient).delete(f'{BASE}{appt.pk}/')
        assert response.status_code == 204
        assert not Appointment.objects.filter(pk=appt.pk).exists()
        assert not Payment.objects.filter(appointment_id=appt.pk).exists()

    def test_patient_cannot_delete_scheduled(self, as_user, patient, make_appointment):
        appt = make_appointment(status=AppointmentStatus.SCHEDULED)
        assert as_user(patient).delete(f'{BASE}{appt.pk}/').status_code == 403
        assert Appointment.objects.filter(pk=appt.pk).exists()

    def test_doctor_cannot_delete(self, as_user, doctor, make_appointment):
        appt = make_appointment()
        assert as_user(doctor.user).delete(f'{BASE}{appt.pk}/').status_code == 403

    def test_other_patient_gets_not_found(self, as_user, other_patient, make_appointment):
        appt = make_appointment()
        assert as_user(other_patient).delete(f'{BASE}{appt.pk}/').status_code == 404

    def test_admin_deletes_anything(self, as_user, admin_user, make_appointment):
        appt = make_appointment(status=AppointmentStatus.COMPLETED)
        assert as_user(admin_user).delete(f'{BASE}{appt.pk}/').status_code == 204

    def test_stale_delete_conflicts(self, as_user, patient, make_appointment):
        appt = make_appointment()
        response = as_user(patient).delete(f'{BASE}{appt.pk}/?version=3')
        assert response.status_code == 409
        assert Appointment.objects.filter(pk=appt.pk).exists()


# ─────────────────────────────────────────────
# Ownership follows the account, not the name
# ─────────────────────────────────────────────

class TestOwnership:

    def test_renamed_patient_does_not_inherit_appointments(self, as_user, patient, other_patient, make_appointment):
        appt = make_appointment(patient=patient)
        client = as_user(other_patient)
        assert client.put('/api/users/me/', {'name': 'John Doe'}, format='json').status_code == 200

        assert client.get(BASE + 'my/').data == []
        assert client.get(f'{BASE}{appt.pk}/').status_code == 404
        assert client.delete(f'{BASE}{appt.pk}/').status_code == 404
        assert Appointment.objects.filter(pk=appt.pk).exists()

    def test_patients_sharing_a_name_see_only_their_own(self, as_user, patient, other_patient, make_appointment):
        other_patient.name = patient.name
        other_patient.save()
        mine = make_appointment(patient=patient, days=1)
        theirs = make_appointment(patient=other_patient, days=2)

        assert [a['id'] for a in as_user(patient).get(BASE + 'my/').data] == [mine.pk]
        assert [a['id'] for a in as_user(other_patient).get(BASE + 'my/').data] == [theirs.pk]

    def test_doctor_cannot_take_a_colleagues_name(self, as_user, doctor, other_doctor):
        response = as_user(other_doctor.user).put(
            '/api/users/me/', {'name': 'Gregory House'}, format='json')
        assert response.status_code == 400
        assert 'name' in response.data
        other_doctor.user.refresh_from_db()
        assert other_doctor.user.name == 'Lisa Cuddy'

    def test_colleague_cannot_complete_or_cancel(self, as_user, other_doctor, make_appointment):
        appt = make_appointment(status=AppointmentStatus.SCHEDULED)
        client = as_user(other_doctor.user)
        assert client.put(f'{BASE}{appt.pk}/complete/', {}, format='json').status_code == 404
        assert client.put(f'{BASE}{appt.pk}/cancel/', {'message': 'no'}, format='json').status_code == 404
        appt.refresh_from_db()
        assert appt.status == 'scheduled'

    def test_queryset_is_narrowed_per_role(self, patient, other_patient, doctor, other_doctor,
                                           admin_user, make_appointment):
        first = make_appointment(patient=patient, doctor=doctor, days=1)
        second = make_appointment(patient=other_patient, doctor=other_doctor, days=2)

        assert list(Appointment.objects.for_user(patient)) == [first]
        assert list(Appointment.objects.for_user(other_doctor.user)) == [second]
        assert Appointment.objects.for_user(admin_user).count() == 2

    def test_unknown_role_sees_nothing(self, patient, make_appointment):
        make_appointment()
        patient.role = 'JANITOR'
        assert not Appointment.objects.for_user(patient).exists()


# ─────────────────────────────────────────────
# Slot uniqueness in the database
# ─────────────────────────────────────────────

class TestSlotConstraint:

    def test_second_active_booking_is_refused_by_the_database(self, make_appointment, other_patient):
        make_appointment(days=1, at=time(10, 0))
        with pytest.raises(IntegrityError), transaction.atomic():
            make_appointment(patient=other_patient, days=1, at=time(10, 0))

    def test_inactive_bookings_do_not_hold_the_slot(self, make_appointment, other_patient):
        make_appointment(days=1, at=time(10, 0), status=AppointmentStatus.CANCELLED)
        make_appointment(days=1, at=time(10, 0), status=AppointmentStatus.DENIED)
        make_appointment(patient=other_patient, days=1, at=time(10, 0))
        assert Appointment.objects.count() == 3

    def test_race_past_the_serializer_check_is_a_validation_error(
            self, as_user, patient, doctor, make_appointment, other_patient, monkeypatch):
        make_appointment(patient=other_patient, days=1, at=time(10, 0))
        monkeypatch.setattr(appt_serializers, 'slot_taken', lambda *args: False)

        response = as_user(patient).post(BASE, booking(doctor, at='10:00'), format='json')
        assert response.status_code == 400
        assert 'appointment_time' in response.data
        assert Appointment.objects.count() == 1
        assert Payment.objects.count() == 1
