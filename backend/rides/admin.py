"""Tells what to show in the Django admin interface for rides app"""

from django.contrib import admin
from .models import Ride, RoutePoint


class RoutePointInline(admin.TabularInline):
    model = RoutePoint
    extra = 0
    readonly_fields = ("latitude", "longitude", "speed", "recorded_at")
    can_delete = False


@admin.register(Ride)
class RideAdmin(admin.ModelAdmin):
    """Ride admin"""
    list_display = ['ride_code', 'rider', 'captain', 'ride_class', 'status', 'estimated_cost', 'created_at']
    list_filter = ['status', 'ride_class', 'created_at']
    search_fields = ['ride_code', 'rider__username', 'captain__vehicle_number', 'pickup_address']
    readonly_fields = [
        'ride_code', 'fare_breakdown', 'created_at', 'accepted_at',
        'started_at', 'completed_at', 'cancelled_at',
    ]
    date_hierarchy = 'created_at'
    inlines = [RoutePointInline]
