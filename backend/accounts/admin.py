from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from accounts.models import PhoneOTP, User


class CaptainProfileFilter(admin.SimpleListFilter):
    """Split captain accounts by whether their vehicle profile exists."""

    title = "captain profile"
    parameter_name = "captain_profile"

    def lookups(self, request, model_admin):
        return [("yes", "Has profile"), ("no", "Missing profile")]

    def queryset(self, request, queryset):
        if self.value() == "yes":
            return queryset.filter(role="captain", captain_profile__isnull=False)
        if self.value() == "no":
            return queryset.filter(role="captain", captain_profile__isnull=True)
        return queryset


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = [
        "username",
        "role",
        "phone_number",
        "is_phone_verified",
        "completed_rides",
        "vehicle",
        "date_joined",
    ]
    list_filter = ["role", "is_phone_verified", CaptainProfileFilter, "is_staff"]
    search_fields = ["username", "phone_number", "captain_profile__vehicle_number"]
    ordering = ("-date_joined",)
    list_select_related = ("captain_profile",)

    fieldsets = BaseUserAdmin.fieldsets + (
        ("QuickRide", {"fields": ("role", "phone_number", "is_phone_verified", "completed_rides")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("QuickRide", {"fields": ("role", "phone_number")}),
    )

    @admin.display(description="Vehicle")
    def vehicle(self, obj):
        profile = getattr(obj, "captain_profile", None)
        return profile.vehicle_number if profile else "-"


@admin.register(PhoneOTP)
class PhoneOTPAdmin(admin.ModelAdmin):
    list_display = ["user", "created_at", "expires_at", "attempts", "is_used"]
    list_filter = ["is_used"]
    search_fields = ["user__phone_number"]
    readonly_fields = ["code", "created_at"]
