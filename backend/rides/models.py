import random
import string
import time
from decimal import Decimal

from django.db import models
from django.conf import settings

from captains.models import Captain, RIDE_CLASS_CHOICES

_CODE_ALPHABET = string.digits + string.ascii_uppercase


def generate_ride_code():
    """QR + epoch millis + 4 random base-36 characters."""
    suffix = ''.join(random.choices(_CODE_ALPHABET, k=4))
    return f"QR{int(time.time() * 1000)}{suffix}"


class Ride(models.Model):
    """A booked trip and everything that happens to it."""

    STATUS_CHOICES = [
        ('requested', 'Requested'),
        ('searching', 'Searching'),
        ('accepted', 'Accepted'),
        ('started', 'Started'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    PAYMENT_METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('card', 'Card'),
        ('wallet', 'Wallet'),
        ('upi', 'UPI'),
    ]

    PAYMENT_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('processing', 'Processing'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
        ('refunded', 'Refunded'),
    ]

    CANCELLED_BY_CHOICES = [
        ('passenger', 'Passenger'),
        ('captain', 'Captain'),
        ('system', 'System'),
    ]

    ride_code = models.CharField(max_length=32, unique=True, default=generate_ride_code, editable=False)

    # Foreign keys
    rider = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='rides'
    )

    captain = models.ForeignKey(
        Captain,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='rides'
    )

    passenger_name = models.CharField(max_length=50)
    passenger_phone = models.CharField(max_length=15, blank=True)

    # Pickup & drop (mock coordinates derived from the address text)
    pickup_address = models.CharField(max_length=200)
    pickup_latitude = models.DecimalField(max_digits=9, decimal_places=6)
    pickup_longitude = models.DecimalField(max_digits=9, decimal_places=6)
    drop_address = models.CharField(max_length=200)
    drop_latitude = models.DecimalField(max_digits=9, decimal_places=6)
    drop_longitude = models.DecimalField(max_digits=9, decimal_places=6)

    # Trip details
    ride_class = models.CharField(max_length=10, choices=RIDE_CLASS_CHOICES)
    scheduled_at = models.DateTimeField()
    estimated_distance_km = models.DecimalField(max_digits=7, decimal_places=1)
    actual_distance_km = models.DecimalField(max_digits=7, decimal_places=1, null=True, blank=True)
    estimated_duration_minutes = models.PositiveIntegerField()
    actual_duration_minutes = models.PositiveIntegerField(null=True, blank=True)

    # Pricing: the breakdown is frozen at booking time
    fare_breakdown = models.JSONField(default=dict)
    surge_multiplier = models.DecimalField(max_digits=4, decimal_places=2, default=Decimal('1.00'))
    estimated_cost = models.DecimalField(max_digits=10, decimal_places=2)
    actual_cost = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    waiting_charge = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='requested')

    # Payment
    payment_method = models.CharField(max_length=10, choices=PAYMENT_METHOD_CHOICES, default='cash')
    payment_status = models.CharField(max_length=12, choices=PAYMENT_STATUS_CHOICES, default='pending')

    # Rating slots, each settable once
    passenger_rating = models.PositiveSmallIntegerField(null=True, blank=True)
    passenger_feedback = models.TextField(blank=True, default='')
    passenger_rated_at = models.DateTimeField(null=True, blank=True)
    captain_rating = models.PositiveSmallIntegerField(null=True, blank=True)
    captain_feedback = models.TextField(blank=True, default='')
    captain_rated_at = models.DateTimeField(null=True, blank=True)

    # Live tracking
    current_latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    current_longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    location_updated_at = models.DateTimeField(null=True, blank=True)

    # Cancellation record
    cancelled_by = models.CharField(max_length=10, choices=CANCELLED_BY_CHOICES, null=True, blank=True)
    cancellation_reason = models.TextField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'rides'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['rider', '-created_at'], name='ride_rider_created_idx'),
            models.Index(fields=['captain', '-created_at'], name='ride_captain_created_idx'),
            models.Index(fields=['status', '-created_at'], name='ride_status_created_idx'),
        ]

    def __str__(self):
        return f"Ride {self.ride_code} - {self.rider} - {self.status}"


class RoutePoint(models.Model):
    """One timestamped sample of the trip route. Append-only."""

    ride = models.ForeignKey(
        Ride,
        on_delete=models.CASCADE,
        related_name='route'
    )
    latitude = models.DecimalField(max_digits=9, decimal_places=6)
    longitude = models.DecimalField(max_digits=9, decimal_places=6)
    speed = models.FloatField(null=True, blank=True)
    recorded_at = models.DateTimeField()

    class Meta:
        db_table = 'ride_route_points'
        ordering = ['recorded_at', 'id']

    def __str__(self):
        return f"{self.ride.ride_code} @ {self.recorded_at:%H:%M:%S}"
