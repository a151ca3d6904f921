from rest_framework import serializers

from captains.models import RIDE_CLASS_CHOICES
from captains.serializers import CaptainBasicSerializer
from .models import Ride, RoutePoint


class RoutePointSerializer(serializers.ModelSerializer):
    class Meta:
        model = RoutePoint
        fields = ['latitude', 'longitude', 'speed', 'recorded_at']


class RideSerializer(serializers.ModelSerializer):
    """Serializer for rides"""
    captain = CaptainBasicSerializer(read_only=True)

    class Meta:
        model = Ride
        fields = [
            'ride_code', 'passenger_name', 'passenger_phone', 'captain',
            'pickup_address', 'pickup_latitude', 'pickup_longitude',
            'drop_address', 'drop_latitude', 'drop_longitude',
            'ride_class', 'scheduled_at', 'status',
            'estimated_distance_km', 'actual_distance_km',
            'estimated_duration_minutes', 'actual_duration_minutes',
            'fare_breakdown', 'surge_multiplier', 'estimated_cost', 'actual_cost', 'waiting_charge',
            'payment_method', 'payment_status',
            'passenger_rating', 'passenger_feedback', 'captain_rating', 'captain_feedback',
            'current_latitude', 'current_longitude', 'location_updated_at',
            'cancelled_by', 'cancellation_reason', 'cancelled_at', 'cancellation_fee',
            'created_at', 'accepted_at', 'started_at', 'completed_at',
        ]
        read_only_fields = fields


class RideDetailSerializer(RideSerializer):
    """Ride plus its recorded route"""
    route = RoutePointSerializer(many=True, read_only=True)

    class Meta(RideSerializer.Meta):
        fields = RideSerializer.Meta.fields + ['route']
        read_only_fields = fields


class BookRideSerializer(serializers.Serializer):
    """Serializer for booking a ride"""
    passenger_name = serializers.CharField(max_length=50)
    pickup_location = serializers.CharField(max_length=200)
    drop_location = serializers.CharField(max_length=200)
    ride_type = serializers.ChoiceField(choices=RIDE_CLASS_CHOICES)
    scheduled_at = serializers.DateTimeField()
    payment_method = serializers.ChoiceField(choices=Ride.PAYMENT_METHOD_CHOICES, default='cash')


class FareEstimateSerializer(serializers.Serializer):
    """Serializer for a fare quote without booking"""
    pickup_location = serializers.CharField(min_length=5, max_length=200)
    drop_location = serializers.CharField(min_length=5, max_length=200)
    ride_type = serializers.ChoiceField(choices=RIDE_CLASS_CHOICES)
    scheduled_at = serializers.DateTimeField(required=False)


class RideCancelSerializer(serializers.Serializer):
    """Serializer for ride cancellation"""
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)


class RideRateSerializer(serializers.Serializer):
    """Serializer for rating a completed ride. Range checks happen in the service."""
    rating = serializers.IntegerField()
    feedback = serializers.CharField(required=False, allow_blank=True, default='')


class RideCompleteSerializer(serializers.Serializer):
    actual_distance_km = serializers.FloatField(required=False, min_value=0)
    actual_duration_minutes = serializers.IntegerField(required=False, min_value=0)
    actual_cost = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, min_value=0)
    waiting_minutes = serializers.FloatField(required=False, min_value=0, default=0)


class LocationUpdateSerializer(serializers.Serializer):
    """
    Serializer for a captain GPS sample during a trip.
    """
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    speed = serializers.FloatField(required=False, min_value=0, allow_null=True)
