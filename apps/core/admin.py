"""
Django admin configuration for core models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin interface for POS operators."""

    list_display = ["username", "email", "role", "counter_number", "is_active", "last_login"]

    list_filter = ["role", "is_active", "is_staff"]

    search_fields = ["username", "email", "first_name", "last_name", "phone"]

    fieldsets = BaseUserAdmin.fieldsets + (
        ("POS", {"fields": ("role", "phone", "counter_number")}),
    )

    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("POS", {"fields": ("role", "phone", "counter_number")}),
    )
