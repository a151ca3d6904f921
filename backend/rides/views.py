from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.utils import timezone

from services.ride_management import (
    BookingRequest,
    InvalidRatingError,
    RideValidationError,
    get_ride_lifecycle,
)
from .permissions import IsPassenger, IsCaptain
from .serializers import (
    RideSerializer,
    RideDetailSerializer,
    BookRideSerializer,
    FareEstimateSerializer,
    RideCancelSerializer,
    RideRateSerializer,
    RideCompleteSerializer,
    LocationUpdateSerializer,
)


def _validated(serializer_class, data):
    serializer = serializer_class(data=data)
    if not serializer.is_valid():
        raise RideValidationError("Validation error", errors=serializer.errors)
    return serializer.validated_data


def _rating_data(request):
    serializer = RideRateSerializer(data=request.data)
    if not serializer.is_valid():
        rating_errors = serializer.errors.get('rating')
        if rating_errors and rating_errors[0].code != 'required':
            raise InvalidRatingError("Rating must be between 1 and 5")
        raise RideValidationError("Validation error", errors=serializer.errors)
    return serializer.validated_data


def _query_int(request, name, default):
    raw = request.query_params.get(name)
    if raw in (None, ''):
        return default
    try:
        return int(raw)
    except ValueError:
        raise RideValidationError(f"{name} must be an integer", errors={name: "Must be an integer"}) from None


# ==================== Passenger Ride APIs ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPassenger])
def book_ride(request):
    """Book a ride: quote, match a captain and confirm in one call"""
    data = _validated(BookRideSerializer, request.data)

    result = get_ride_lifecycle().create(
        request.user,
        BookingRequest(
            passenger_name=data['passenger_name'],
            pickup_address=data['pickup_location'],
            drop_address=data['drop_location'],
            ride_class=data['ride_type'],
            scheduled_at=data['scheduled_at'],
            payment_method=data['payment_method'],
        ),
    )

    return Response({
        'success': True,
        'message': result.message,
        'ride': RideSerializer(result.ride).data,
        'eta_minutes': result.extra['eta_minutes'],
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def fare_estimate(request):
    """Quote a fare without booking anything"""
    data = _validated(FareEstimateSerializer, request.data)
    lifecycle = get_ride_lifecycle()

    distance = lifecycle.geo.estimate_distance(data['pickup_location'], data['drop_location'])
    fare = lifecycle.pricing.quote(
        distance,
        data['ride_type'],
        data.get('scheduled_at') or timezone.now(),
        data['pickup_location'],
    )

    return Response({
        'success': True,
        'distance_km': distance,
        'fare': fare.to_dict(),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPassenger])
def list_rides(request):
    """Passenger ride history, newest first"""
    page = get_ride_lifecycle().list_rides(
        request.user,
        status=request.query_params.get('status') or None,
        page=_query_int(request, 'page', 1),
        limit=_query_int(request, 'limit', 20),
    )

    return Response({
        'success': True,
        'rides': RideSerializer(page.rides, many=True).data,
        'pagination': {
            'page': page.page,
            'limit': page.limit,
            'total': page.total,
            'total_pages': page.total_pages,
            'has_next': page.has_next,
        },
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPassenger])
def ride_detail(request, ride_code):
    ride = get_ride_lifecycle().get_ride(ride_code, 'passenger', request.user)
    return Response({'success': True, 'ride': RideDetailSerializer(ride).data})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsPassenger])
def cancel_ride(request, ride_code):
    """Cancel ride by passenger"""
    data = _validated(RideCancelSerializer, request.data)
    result = get_ride_lifecycle().cancel(
        ride_code, 'passenger', data.get('reason', ''), actor=request.user
    )
    return _cancel_response(result)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsPassenger])
def rate_ride(request, ride_code):
    """Passenger rates the captain after a completed ride"""
    data = _rating_data(request)
    result = get_ride_lifecycle().rate(
        ride_code, 'passenger', data['rating'], data['feedback'], actor=request.user
    )
    return Response({'success': True, 'message': result.message, 'ride': RideSerializer(result.ride).data})


# ==================== Captain Ride Actions ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCaptain])
def captain_start_ride(request, ride_code):
    """Captain picked up the passenger"""
    result = get_ride_lifecycle().start(ride_code, actor=request.user)
    return Response({'success': True, 'message': result.message, 'ride': RideSerializer(result.ride).data})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCaptain])
def captain_track_ride(request, ride_code):
    """Captain app posts GPS samples while the trip is running"""
    data = _validated(LocationUpdateSerializer, request.data)
    point = get_ride_lifecycle().record_location(
        ride_code, data['latitude'], data['longitude'], data.get('speed'), actor=request.user
    )
    return Response({
        'success': True,
        'latitude': point.latitude,
        'longitude': point.longitude,
        'recorded_at': point.recorded_at,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCaptain])
def captain_complete_ride(request, ride_code):
    data = _validated(RideCompleteSerializer, request.data)
    result = get_ride_lifecycle().complete(
        ride_code,
        actual_distance_km=data.get('actual_distance_km'),
        actual_duration_minutes=data.get('actual_duration_minutes'),
        actual_cost=data.get('actual_cost'),
        waiting_minutes=data.get('waiting_minutes', 0),
        actor=request.user,
    )
    return Response({'success': True, 'message': result.message, 'ride': RideSerializer(result.ride).data})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCaptain])
def captain_cancel_ride(request, ride_code):
    """Cancel ride by captain"""
    data = _validated(RideCancelSerializer, request.data)
    result = get_ride_lifecycle().cancel(
        ride_code, 'captain', data.get('reason', ''), actor=request.user
    )
    return _cancel_response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCaptain])
def captain_rate_ride(request, ride_code):
    """Captain rates the passenger"""
    data = _rating_data(request)
    result = get_ride_lifecycle().rate(
        ride_code, 'captain', data['rating'], data['feedback'], actor=request.user
    )
    return Response({'success': True, 'message': result.message, 'ride': RideSerializer(result.ride).data})


def _cancel_response(result):
    return Response({
        'success': True,
        'message': result.message,
        'cancellation_fee': result.extra['cancellation_fee'],
        'ride': RideSerializer(result.ride).data,
    })
