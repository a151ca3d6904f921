import os
import redis
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from rest_framework import status
from channels.layers import get_channel_layer

from captains.models import Captain
from captains.serializers import CaptainProfileSerializer
from rides.models import Ride
from rides.tasks import send_ride_confirmation_sms
from services.ride_management import ACTIVE_STATUSES, RideValidationError


@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """Health check endpoint for monitoring system status"""

    health_status = {
        "status": "healthy",
        "timestamp": timezone.now().isoformat(),
        "services": {}
    }

    # Database check
    try:
        Ride.objects.count()
        health_status["services"]["database"] = "healthy"
    except Exception as e:
        health_status["services"]["database"] = f"unhealthy: {e}"
        health_status["status"] = "unhealthy"

    # Redis check
    try:
        redis_client = redis.Redis(
            host=os.getenv("REDIS_HOST", "localhost"),
            port=int(os.getenv("REDIS_PORT", 6379)),
            db=0,
            socket_timeout=3
        )
        redis_client.ping()
        health_status["services"]["redis"] = "healthy"
    except Exception as e:
        health_status["services"]["redis"] = f"unhealthy: {e}"
        health_status["status"] = "unhealthy"

    # Channel layer check
    try:
        channel_layer = get_channel_layer()
        if channel_layer is not None:
            health_status["services"]["channels"] = "healthy"
        else:
            health_status["services"]["channels"] = "unhealthy: no channel layer"
            health_status["status"] = "unhealthy"
    except Exception as e:
        health_status["services"]["channels"] = f"unhealthy: {e}"
        health_status["status"] = "unhealthy"

    # Celery check
    if send_ride_confirmation_sms.name:
        health_status["services"]["celery"] = "healthy"
    else:
        health_status["services"]["celery"] = "unhealthy: task not registered"
        health_status["status"] = "unhealthy"

    status_code = (
        status.HTTP_200_OK
        if health_status["status"] == "healthy"
        else status.HTTP_503_SERVICE_UNAVAILABLE
    )

    return Response(health_status, status=status_code)


# ==================== Admin APIs ====================

@api_view(["GET"])
@permission_classes([IsAdminUser])
def system_stats(request):
    """Counts plus the ten most recent rides"""
    recent = Ride.objects.select_related("rider", "captain__user").order_by("-created_at")[:10]

    return Response({
        "success": True,
        "stats": {
            "users": get_user_model().objects.count(),
            "captains": Captain.objects.count(),
            "available_captains": Captain.objects.filter(approval_status="approved", is_available=True).count(),
            "total_rides": Ride.objects.count(),
            "active_rides": Ride.objects.filter(status__in=ACTIVE_STATUSES).count(),
        },
        "recent_rides": [
            {
                "ride_code": ride.ride_code,
                "passenger": ride.passenger_name or ride.rider.username,
                "captain": ride.captain.display_name if ride.captain else "Not assigned",
                "status": ride.status,
                "amount": ride.estimated_cost,
                "created_at": ride.created_at,
            }
            for ride in recent
        ],
    })


@api_view(["GET"])
@permission_classes([IsAdminUser])
def captain_list(request):
    """All captains, optionally filtered by approval status"""
    try:
        page = int(request.query_params.get("page", 1))
        limit = int(request.query_params.get("limit", 20))
    except ValueError:
        raise RideValidationError("page and limit must be integers") from None
    if page < 1 or limit < 1:
        raise RideValidationError("Page and limit must be positive")

    captains = Captain.objects.select_related("user").order_by("-created_at")
    approval_status = request.query_params.get("status")
    if approval_status:
        captains = captains.filter(approval_status=approval_status)

    total = captains.count()
    offset = (page - 1) * limit
    page_items = list(captains[offset:offset + limit])

    return Response({
        "success": True,
        "captains": CaptainProfileSerializer(page_items, many=True).data,
        "pagination": {
            "page": page,
            "total_pages": -(-total // limit),
            "has_next": offset + len(page_items) < total,
        },
    })
