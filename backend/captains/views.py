from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from captains.models import Captain
from captains.serializers import (
    CaptainProfileSerializer,
    AvailabilitySerializer,
)
from rides.serializers import RideSerializer
from services.ride_management import get_ride_lifecycle

from captains import services


# Utility: Ensure request.user is a captain
def require_captain(user):
    if user.role != "captain":
        return False, Response({"error": "Only captains allowed"}, status=403)
    try:
        profile = user.captain_profile
        return True, profile
    except Captain.DoesNotExist:
        return False, Response({"error": "Captain profile not found"}, status=404)


class CaptainProfileView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        ok, profile = require_captain(request.user)
        if ok is False:
            return profile  # Response object

        serializer = CaptainProfileSerializer(profile, context={"request": request})
        return Response(serializer.data)

    def post(self, request):
        ok, profile = require_captain(request.user)
        if ok is False:
            return profile

        serializer = CaptainProfileSerializer(profile, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()

        return Response(serializer.data, status=200)


class CaptainAvailabilityView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        ok, profile = require_captain(request.user)
        if ok is False:
            return profile

        return Response({
            "is_available": profile.is_available,
            "approval_status": profile.approval_status,
        })

    def put(self, request):
        ok, profile = require_captain(request.user)
        if ok is False:
            return profile

        serializer = AvailabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        is_available = serializer.validated_data["is_available"]

        services.update_availability(profile, is_available)

        return Response({
            "message": "You are now available" if is_available else "You are now offline",
            "is_available": profile.is_available,
        })


class CaptainCurrentRideView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        ok, profile = require_captain(request.user)
        if ok is False:
            return profile

        ride = get_ride_lifecycle().get_current_captain_ride(profile)
        if not ride:
            return Response({"message": "No active ride"}, status=404)

        serializer = RideSerializer(ride, context={"request": request})
        return Response(serializer.data)


class CaptainRideHistoryView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        ok, profile = require_captain(request.user)
        if ok is False:
            return profile

        completed = services.ride_history(profile)
        serializer = RideSerializer(completed, many=True, context={"request": request})

        return Response({"count": len(serializer.data), "rides": serializer.data})
