from django.contrib import admin

from .models import DayCalendar, Slot


class SlotInline(admin.TabularInline):
    model = Slot
    extra = 0
    fields = ("time", "booked_by", "blocked_by", "updated_at")
    readonly_fields = ("time", "booked_by", "blocked_by", "updated_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(DayCalendar)
class DayCalendarAdmin(admin.ModelAdmin):
    list_display = ("date", "created_at")
    ordering = ("-date",)
    inlines = [SlotInline]


@admin.register(Slot)
class SlotAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "day",
        "time",
        "status",
        "booked_by",
        "blocked_by",
    )

    list_filter = (
        "day__date",
    )

    ordering = ("day__date", "time")

    readonly_fields = (
        "booked_by",
        "created_at",
        "updated_at",
    )

    # ---------------------------------
    # HARD SAFETY RULES
    # ---------------------------------

    def has_delete_permission(self, request, obj=None):
        if obj and obj.booked_by_id:
            return False
        return super().has_delete_permission(request, obj)
