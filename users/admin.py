# users/admin.py

"""
USERS ADMIN

Staff accounts: email identity plus a job role. The role decides the
capabilities (permissions/roles.py); groups and model permissions only
matter for Django Admin itself.
"""

from __future__ import annotations

from django.contrib import admin
from django.contrib.auth import get_user_model
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from permissions.roles import effective_capabilities_for

User = get_user_model()


@admin.register(User)
class StaffUserAdmin(DjangoUserAdmin):
    ordering = ("email",)
    list_display = ("email", "full_name", "role", "is_active", "is_superuser", "created_at")
    list_filter = ("role", "is_active", "is_superuser")
    search_fields = ("email", "first_name", "last_name")
    readonly_fields = ("capabilities", "last_login", "created_at", "updated_at")

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Perfil", {"fields": ("first_name", "last_name", "role", "capabilities")}),
        ("Acceso", {"fields": ("is_active", "is_staff", "is_superuser", "groups")}),
        ("Auditoría", {"fields": ("last_login", "created_at", "updated_at")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "role", "password1", "password2"),
            },
        ),
    )

    @admin.display(description="Capabilities")
    def capabilities(self, obj) -> str:
        return ", ".join(sorted(effective_capabilities_for(None, obj)))
