from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['contact', 'name', 'email', 'role', 'is_active', 'date_joined']
    list_filter = ['role', 'is_active', 'gender']
    search_fields = ['contact', 'name', 'email']
    ordering = ['-date_joined']
    fieldsets = (
        (None, {'fields': ('contact', 'password')}),
        ('Personal Info', {'fields': ('name', 'email', 'age', 'gender')}),
        ('Role & Status', {'fields': ('role', 'is_active', 'is_staff')}),
        ('Permissions', {'fields': ('groups', 'user_permissions')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('contact', 'name', 'role', 'password1', 'password2'),
        }),
    )
