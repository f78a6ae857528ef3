from rest_framework import serializers

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    appointment_id = serializers.IntegerField(source='appointment.id', read_only=True)
    patient_name = serializers.CharField(read_only=True)
    doctor_name = serializers.CharField(read_only=True)
    appointment_date = serializers.DateField(read_only=True)
    appointment_time = serializers.TimeField(source='appointment.appointment_time', read_only=True)
    display_time = serializers.CharField(source='appointment.display_time', read_only=True)
    reason = serializers.CharField(read_only=True)
    clinic_tax = serializers.DecimalField(max_digits=8, decimal_places=2, read_only=True)
    doctor_earning = serializers.DecimalField(max_digits=8, decimal_places=2, read_only=True)
    status_label = serializers.CharField(source='status_enum.label', read_only=True)
    status_badge = serializers.CharField(source='status_enum.badge', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'appointment_id', 'patient_name', 'doctor_name',
            'appointment_date', 'appointment_time', 'display_time', 'reason',
            'amount', 'clinic_tax', 'doctor_earning',
            'payment_method', 'status', 'status_label', 'status_badge',
            'card_last4', 'payment_date', 'created_at',
        ]
        read_only_fields = fields


class CardPaymentSerializer(serializers.Serializer):
    """Patient pays an appointment by card. Only the last four digits are kept."""
    appointment_id = serializers.IntegerField()
    card_last4 = serializers.RegexField(r'^\d{4}$', error_messages={'invalid': 'Enter the last 4 digits of the card.'})
