from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Staff accounts for the people who run the booking calendar."""
    model = User

    list_display = (
        "email",
        "full_name",
        "role",
        "can_manage_bookings",
        "is_active",
        "created_at",
    )
    list_filter = ("role", "is_active")
    search_fields = ("email", "full_name")
    ordering = ("-created_at",)
    actions = ["grant_booking_admin", "revoke_booking_admin"]

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Contact", {"fields": ("full_name", "phone_number")}),
        ("Access", {
            "fields": (
                "role",
                "is_active",
                "is_staff",
                "is_superuser",
            )
        }),
        ("Dates", {"fields": ("last_login", "created_at")}),
    )
    readonly_fields = ("created_at", "last_login")

    add_fieldsets = (
        (None, {
            "classes": ("wide",),
            "fields": (
                "email",
                "full_name",
                "role",
                "password1",
                "password2",
            ),
        }),
    )

    @admin.display(boolean=True, description="Booking admin")
    def can_manage_bookings(self, obj):
        return obj.is_booking_admin

    @admin.action(description="Allow selected users to manage bookings")
    def grant_booking_admin(self, request, queryset):
        queryset.update(role=User.ADMIN)

    @admin.action(description="Remove booking access from selected users")
    def revoke_booking_admin(self, request, queryset):
        queryset.exclude(is_superuser=True).update(role=User.STAFF)
