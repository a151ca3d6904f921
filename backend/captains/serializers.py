from rest_framework import serializers
from captains.models import Captain
from accounts.serializers import UserSerializer


class CaptainProfileSerializer(serializers.ModelSerializer):
    """
    Full captain profile serializer
    """
    user = UserSerializer(read_only=True)

    class Meta:
        model = Captain
        fields = [
            "id",
            "user",
            "ride_class",
            "vehicle_number",
            "vehicle_model",
            "vehicle_color",
            "is_available",
            "approval_status",
            "rating_average",
            "rating_count",
            "total_rides",
            "created_at",
        ]
        read_only_fields = [
            "id", "ride_class", "is_available", "approval_status",
            "rating_average", "rating_count", "total_rides", "created_at",
        ]


class CaptainBasicSerializer(serializers.ModelSerializer):
    """
    Lite version of captain info for ride details shown to passengers.
    """
    name = serializers.CharField(source="display_name", read_only=True)
    phone_number = serializers.CharField(source="user.phone_number", read_only=True)

    class Meta:
        model = Captain
        fields = [
            "id",
            "name",
            "phone_number",
            "ride_class",
            "vehicle_number",
            "vehicle_model",
            "vehicle_color",
            "rating_average",
        ]


class AvailabilitySerializer(serializers.Serializer):
    """
    Serializer for toggling captain availability.
    """
    is_available = serializers.BooleanField()
