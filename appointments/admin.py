from django.contrib import admin
from .models import Appointment


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'patient', 'doctor', 'appointment_date', 'appointment_time',
        'reason', 'status', 'payment_method', 'payment_status', 'amount'
    ]
    list_filter = ['status', 'reason', 'payment_method', 'payment_status', 'appointment_date']
    search_fields = ['patient__name', 'patient__contact', 'doctor__user__name']
    ordering = ['-appointment_date', '-appointment_time']
    # Status changes go through the API so the lifecycle rules apply
    readonly_fields = ['status', 'version', 'cancelled_by', 'cancellation_message', 'created_at', 'updated_at']
