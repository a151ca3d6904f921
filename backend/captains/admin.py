from django.contrib import admin
from captains.models import Captain


@admin.register(Captain)
class CaptainAdmin(admin.ModelAdmin):
    """Admin panel for reviewing and managing Captains"""

    list_display = [
        "user",
        "ride_class",
        "vehicle_number",
        "approval_status",
        "is_available",
        "rating_average",
        "rating_count",
        "total_rides",
    ]

    list_filter = [
        "ride_class",
        "approval_status",
        "is_available",
    ]

    search_fields = [
        "user__username",
        "user__phone_number",
        "vehicle_number",
    ]

    # Rating statistics only move through ride ratings
    readonly_fields = [
        "rating_average",
        "rating_count",
        "total_rides",
        "created_at",
        "updated_at",
    ]

    ordering = ("user__username",)
    actions = ["approve_captains", "suspend_captains"]

    @admin.action(description="Approve selected captains")
    def approve_captains(self, request, queryset):
        updated = queryset.update(approval_status="approved")
        self.message_user(request, f"{updated} captain(s) approved.")

    @admin.action(description="Suspend selected captains")
    def suspend_captains(self, request, queryset):
        updated = queryset.update(approval_status="suspended")
        self.message_user(request, f"{updated} captain(s) suspended.")
