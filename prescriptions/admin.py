from django.contrib import admin

from .models import Prescription


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ['id', 'doctor', 'patient', 'diagnosis', 'created_at']
    search_fields = ['patient__name', 'doctor__user__name', 'diagnosis', 'medications']
    raw_id_fields = ['appointment']
    readonly_fields = ['created_at', 'updated_at']
