from decimal import Decimal

from django.db import models
from django.conf import settings

User = settings.AUTH_USER_MODEL

# Vehicle categories a captain can serve; each has its own rate table
RIDE_CLASS_CHOICES = [
    ('light', 'Two-wheeler'),
    ('auto', 'Three-wheeler'),
    ('car', 'Car'),
]


class Captain(models.Model):
    """Captain-specific details, availability and rating statistics"""
    APPROVAL_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
        ('suspended', 'Suspended'),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='captain_profile')
    ride_class = models.CharField(max_length=10, choices=RIDE_CLASS_CHOICES)

    # Vehicle details
    vehicle_number = models.CharField(max_length=20, unique=True)
    vehicle_model = models.CharField(max_length=100, blank=True)
    vehicle_color = models.CharField(max_length=30, blank=True)

    # Availability and approval are independent flags
    is_available = models.BooleanField(default=True)
    approval_status = models.CharField(max_length=10, choices=APPROVAL_CHOICES, default='pending')

    # Running rating mean, only moved by CaptainAvailabilityLedger.apply_rating
    rating_average = models.DecimalField(max_digits=2, decimal_places=1, default=Decimal('4.5'))
    rating_count = models.PositiveIntegerField(default=0)
    total_rides = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'captains'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['ride_class', 'is_available'], name='captain_class_avail_idx'),
        ]

    @property
    def display_name(self):
        return self.user.get_full_name() or self.user.username

    def __str__(self):
        return f"{self.user.username} - {self.vehicle_number}"
