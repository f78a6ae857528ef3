from rest_framework import serializers

from appointments.models import Appointment
from doctors.models import DoctorProfile
from users.models import User
from users.roles import Role
from .models import Prescription


class PrescribingDoctorSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source='user.name', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = DoctorProfile
        fields = ['id', 'name', 'email', 'specialty']


class PrescribedPatientSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email']


class PrescriptionSerializer(serializers.ModelSerializer):
    doctor = PrescribingDoctorSerializer(read_only=True)
    patient = PrescribedPatientSerializer(read_only=True)

    class Meta:
        model = Prescription
        fields = [
            'id', 'doctor', 'patient', 'appointment',
            'medications', 'instructions', 'diagnosis', 'notes',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class PrescriptionCreateSerializer(serializers.ModelSerializer):
    """
    Doctor writes a prescription. The prescribing doctor comes from the
    serializer context; the patient must have booked with that doctor.
    """
    patient = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(role=Role.PATIENT))
    appointment = serializers.PrimaryKeyRelatedField(
        queryset=Appointment.objects.all(), required=False, allow_null=True)

    class Meta:
        model = Prescription
        fields = ['patient', 'appointment', 'medications', 'instructions', 'diagnosis', 'notes']

    def validate_medications(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Medications cannot be blank.')
        return value

    def validate(self, data):
        doctor = self.context['doctor']
        patient = data['patient']
        appointment = data.get('appointment')
        if appointment is not None:
            if appointment.doctor_id != doctor.pk or appointment.patient_id != patient.pk:
                raise serializers.ValidationError(
                    {'appointment': 'This appointment is not between you and this patient.'})
        elif not Appointment.objects.filter(doctor=doctor, patient=patient).exists():
            raise serializers.ValidationError(
                {'patient': 'You can only prescribe for patients who have booked with you.'})
        return data
