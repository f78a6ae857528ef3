from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['id', 'appointment', 'amount', 'clinic_tax', 'doctor_earning',
                    'payment_method', 'status', 'payment_date']
    list_filter = ['status', 'payment_method']
    search_fields = ['appointment__patient__name', 'appointment__doctor__user__name']
    readonly_fields = ['clinic_tax', 'doctor_earning', 'created_at', 'updated_at']
