from django.contrib import admin

from .models import DoctorProfile


@admin.register(DoctorProfile)
class DoctorProfileAdmin(admin.ModelAdmin):
    list_display = [
        'doctor_name', 'contact', 'specialty', 'experience_years',
        'consultation_fee', 'is_active',
    ]
    list_filter = ['is_active']
    search_fields = ['user__name', 'user__contact', 'specialty']
    list_editable = ['is_active']
    readonly_fields = ['created_at', 'updated_at']

    @admin.display(description='Doctor', ordering='user__name')
    def doctor_name(self, obj):
        return f"Dr. {obj.user.name}"

    @admin.display(description='Contact')
    def contact(self, obj):
        return obj.user.contact
