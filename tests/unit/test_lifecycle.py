"""Unit tests for the appointment status state machine."""
from datetime import date, datetime, time
from types import SimpleNamespace

import pytest

from appointments import lifecycle
from appointments.lifecycle import (
    AppointmentStatus, CancellationMessageRequired, CancellationWindowClosed,
    InvalidTransition, TransitionNotPermitted,
)
from users.roles import Role

NOW = datetime(2024, 1, 1, 10, 0)


def make(status=AppointmentStatus.PENDING_APPROVAL, day=date(2024, 1, 5), at=time(14, 30)):
    return SimpleNamespace(
        status=status.value, version=1,
        appointment_date=day, appointment_time=at,
        cancellation_message=None, cancelled_by=None,
    )


def snapshot(appt):
    return dict(vars(appt))


class TestStatusEnum:

    def test_six_statuses(self):
        assert set(AppointmentStatus.values) == {
            'pending_approval', 'accepted', 'scheduled', 'completed', 'cancelled', 'denied',
        }

    def test_terminal_statuses(self):
        terminal = {s for s in AppointmentStatus if s.is_terminal}
        assert terminal == {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.DENIED}

    @pytest.mark.parametrize('raw, expected', [
        ('pending_approval', AppointmentStatus.PENDING_APPROVAL),
        ('PENDING', AppointmentStatus.PENDING_APPROVAL),
        ('APPROVED', AppointmentStatus.ACCEPTED),
        ('approved', AppointmentStatus.ACCEPTED),
        ('Scheduled', AppointmentStatus.SCHEDULED),
        ('DENIED', AppointmentStatus.DENIED),
    ])
    def test_parse_accepts_values_and_api_codes(self, raw, expected):
        assert AppointmentStatus.parse(raw) is expected

    def test_parse_rejects_unknown(self):
        with pytest.raises(ValueError):
            AppointmentStatus.parse('rescheduled')

    def test_every_status_has_badge_and_api_code(self):
        for status in AppointmentStatus:
            assert status.badge.startswith('bg-')
            assert status.api_code.isupper()


class TestApproveDeny:

    def test_admin_approves_pending(self):
        appt = lifecycle.approve(make(), Role.ADMIN)
        assert appt.status == 'accepted'
        assert appt.version == 2

    def test_approve_can_go_straight_to_scheduled(self):
        appt = lifecycle.approve(make(), Role.ADMIN, result='scheduled')
        assert appt.status == 'scheduled'

    def test_approve_refuses_a_terminal_result(self):
        with pytest.raises(ValueError):
            lifecycle.approve(make(), Role.ADMIN, result='completed')

    @pytest.mark.parametrize('role', [Role.DOCTOR, Role.PATIENT])
    def test_only_admin_may_approve_or_deny(self, role):
        appt = make()
        before = snapshot(appt)
        with pytest.raises(TransitionNotPermitted):
            lifecycle.approve(appt, role)
        with pytest.raises(TransitionNotPermitted):
            lifecycle.deny(appt, role)
        assert snapshot(appt) == before

    def test_deny_pending(self):
        assert lifecycle.deny(make(), Role.ADMIN).status == 'denied'

    @pytest.mark.parametrize('status', [
        AppointmentStatus.ACCEPTED, AppointmentStatus.SCHEDULED, AppointmentStatus.DENIED,
    ])
    def test_deny_only_from_pending(self, status):
        with pytest.raises(InvalidTransition):
            lifecycle.deny(make(status), Role.ADMIN)

    def test_role_strings_are_normalized(self):
        assert lifecycle.approve(make(), 'ROLE_admin').status == 'accepted'


class TestTerminalStates:

    @pytest.mark.parametrize('status', [
        AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.DENIED,
    ])
    def test_no_transition_leaves_a_terminal_state(self, status):
        appt = make(status)
        before = snapshot(appt)
        for op in (lifecycle.approve, lifecycle.deny, lifecycle.schedule, lifecycle.complete):
            with pytest.raises(InvalidTransition):
                op(appt, Role.ADMIN)
        with pytest.raises(InvalidTransition):
            lifecycle.cancel(appt, Role.ADMIN, 'no longer needed', NOW)
        assert snapshot(appt) == before


class TestScheduleComplete:

    def test_doctor_schedules_accepted(self):
        appt = lifecycle.schedule(make(AppointmentStatus.ACCEPTED), Role.DOCTOR)
        assert appt.status == 'scheduled'

    def test_patient_cannot_schedule(self):
        with pytest.raises(TransitionNotPermitted):
            lifecycle.schedule(make(AppointmentStatus.ACCEPTED), Role.PATIENT)

    def test_complete_from_scheduled(self):
        appt = lifecycle.complete(make(AppointmentStatus.SCHEDULED), Role.DOCTOR)
        assert appt.status == 'completed'

    def test_cannot_complete_pending(self):
        with pytest.raises(InvalidTransition):
            lifecycle.complete(make(), Role.ADMIN)


class TestCancel:

    def test_patient_cancels_with_message(self):
        appt = lifecycle.cancel(make(AppointmentStatus.ACCEPTED), Role.PATIENT, '  Feeling better  ', NOW)
        assert appt.status == 'cancelled'
        assert appt.cancellation_message == 'Feeling better'
        assert appt.cancelled_by == 'patient'
        assert appt.version == 2

    @pytest.mark.parametrize('message', ['', '   ', None])
    def test_empty_message_changes_nothing(self, message):
        appt = make(AppointmentStatus.SCHEDULED)
        before = snapshot(appt)
        with pytest.raises(CancellationMessageRequired):
            lifecycle.cancel(appt, Role.PATIENT, message, NOW)
        assert snapshot(appt) == before

    def test_cannot_cancel_pending(self):
        with pytest.raises(InvalidTransition):
            lifecycle.cancel(make(), Role.PATIENT, 'changed my mind', NOW)

    def test_cannot_cancel_after_time_passed(self):
        appt = make(AppointmentStatus.ACCEPTED, day=date(2023, 12, 30))
        with pytest.raises(CancellationWindowClosed):
            lifecycle.cancel(appt, Role.PATIENT, 'too late', NOW)
        assert appt.status == 'accepted'

    def test_doctor_cannot_cancel_same_day(self):
        appt = make(AppointmentStatus.SCHEDULED, day=NOW.date(), at=time(15, 0))
        with pytest.raises(CancellationWindowClosed):
            lifecycle.cancel(appt, Role.DOCTOR, 'emergency surgery', NOW)
        assert appt.status == 'scheduled'

    def test_patient_may_cancel_later_the_same_day(self):
        appt = make(AppointmentStatus.SCHEDULED, day=NOW.date(), at=time(15, 0))
        assert lifecycle.cancel(appt, Role.PATIENT, 'stuck at work', NOW).status == 'cancelled'

    def test_doctor_cancels_future_day(self):
        appt = lifecycle.cancel(make(AppointmentStatus.ACCEPTED), Role.DOCTOR, 'conference', NOW)
        assert appt.cancelled_by == 'doctor'


class TestDeleteAndActions:

    def test_admin_may_always_delete(self):
        for status in AppointmentStatus:
            assert lifecycle.can_delete(make(status), Role.ADMIN)

    def test_patient_deletes_only_before_scheduling(self):
        allowed = {s for s in AppointmentStatus if lifecycle.can_delete(make(s), Role.PATIENT)}
        assert allowed == {AppointmentStatus.PENDING_APPROVAL, AppointmentStatus.ACCEPTED}

    def test_doctor_never_deletes(self):
        assert not lifecycle.can_delete(make(AppointmentStatus.ACCEPTED), Role.DOCTOR)

    def test_allowed_actions_for_admin_on_pending(self):
        assert lifecycle.allowed_actions(make(), Role.ADMIN, NOW) == ['approve', 'deny', 'delete']

    def test_allowed_actions_for_patient_on_accepted(self):
        actions = lifecycle.allowed_actions(make(AppointmentStatus.ACCEPTED), Role.PATIENT, NOW)
        assert actions == ['cancel', 'delete']

    def test_allowed_actions_do_not_mutate(self):
        appt = make(AppointmentStatus.SCHEDULED)
        before = snapshot(appt)
        lifecycle.allowed_actions(appt, Role.DOCTOR, NOW)
        assert snapshot(appt) == before
