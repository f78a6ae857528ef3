from django.db import IntegrityError, transaction
from django.utils import timezone
from drf_spectacular.utils import extend_schema_field
from rest_framework import serializers

from doctors.models import DoctorProfile
from payments import services as payment_services
from .lifecycle import ACTIVE_STATUSES, allowed_actions
from .models import Appointment, PaymentMethod
from .scheduling import REASONS, parse_time, validate_booking


class AppointmentSerializer(serializers.ModelSerializer):
    """Full read serializer, used for GET responses."""
    patient_id = serializers.UUIDField(source='patient.id', read_only=True)
    patient_name = serializers.CharField(read_only=True)
    patient_initials = serializers.CharField(source='patient.initials', read_only=True)
    doctor_id = serializers.IntegerField(source='doctor.id', read_only=True)
    doctor_name = serializers.CharField(read_only=True)
    display_time = serializers.CharField(read_only=True)
    status_label = serializers.CharField(source='status_enum.label', read_only=True)
    status_badge = serializers.CharField(source='status_enum.badge', read_only=True)
    api_status = serializers.CharField(source='status_enum.api_code', read_only=True)
    allowed_actions = serializers.SerializerMethodField()

    class Meta:
        model = Appointment
        fields = [
            'id', 'patient_id', 'patient_name', 'patient_initials',
            'doctor_id', 'doctor_name',
            'appointment_date', 'appointment_time', 'display_time', 'reason',
            'status', 'status_label', 'status_badge', 'api_status', 'version',
            'amount', 'payment_method', 'payment_status',
            'cancelled_by', 'cancellation_message',
            'allowed_actions', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    @extend_schema_field(serializers.ListField(child=serializers.CharField()))
    def get_allowed_actions(self, obj):
        request = self.context.get('request')
        if not request or not request.user.is_authenticated:
            return []
        now = self.context.get('now') or timezone.localtime().replace(tzinfo=None)
        return allowed_actions(obj, request.user.role, now)


SLOT_TAKEN = "This time slot is already booked for the doctor."


def slot_taken(doctor, day, at):
    return Appointment.objects.filter(
        doctor=doctor, appointment_date=day, appointment_time=at,
        status__in=ACTIVE_STATUSES,
    ).exists()


class AppointmentCreateSerializer(serializers.Serializer):
    """
    Booking request from a patient.

    ``appointment_time`` accepts 24-hour ('14:30') or 12-hour ('02:30 PM')
    input. ``now`` (naive local time) comes from the serializer context.
    """
    doctor = serializers.PrimaryKeyRelatedField(queryset=DoctorProfile.objects.filter(is_active=True))
    appointment_date = serializers.DateField()
    appointment_time = serializers.CharField(max_length=20)
    reason = serializers.ChoiceField(choices=REASONS)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, default=PaymentMethod.CASH)

    def validate(self, data):
        now = self.context['now']
        errors = validate_booking(data['appointment_date'], data['appointment_time'], data['reason'], now)
        if errors:
            raise serializers.ValidationError(errors)

        data['appointment_time'] = parse_time(data['appointment_time'])
        if slot_taken(data['doctor'], data['appointment_date'], data['appointment_time']):
            raise serializers.ValidationError({'appointment_time': SLOT_TAKEN})
        return data

    def create(self, validated_data):
        doctor = validated_data['doctor']
        # A concurrent booking of the same slot loses on the unique constraint.
        try:
            with transaction.atomic():
                appointment = Appointment.objects.create(amount=doctor.consultation_fee, **validated_data)
                payment_services.create_for_appointment(appointment)
        except IntegrityError:
            raise serializers.ValidationError({'appointment_time': SLOT_TAKEN})
        return appointment


class CancelSerializer(serializers.Serializer):
    message = serializers.CharField(allow_blank=True, required=False, default='')
    version = serializers.IntegerField(required=False, min_value=1)


class VersionSerializer(serializers.Serializer):
    version = serializers.IntegerField(required=False, min_value=1)
