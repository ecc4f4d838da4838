from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "full_name", "rating", "verified", "is_staff", "is_active")
    list_filter = BaseUserAdmin.list_filter + ("verified",)
    fieldsets = BaseUserAdmin.fieldsets + (
        (
            "Marketplace profile",
            {
                "fields": (
                    "full_name",
                    "phone",
                    "bio",
                    "avatar_url",
                    "address",
                    "verified",
                )
            },
        ),
        ("Reputation", {"fields": ("rating", "total_reviews")}),
    )
    readonly_fields = ("rating", "total_reviews")
