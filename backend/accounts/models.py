import random
import string
from datetime import timedelta

from django.conf import settings
from django.db import models
from django.contrib.auth.models import AbstractUser
from django.utils import timezone


class User(AbstractUser):
    """Extended user model with role selection"""
    ROLE_CHOICES = [
        ('passenger', 'Passenger'),
        ('captain', 'Captain'),
    ]

    # Role & basic info
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='passenger')
    phone_number = models.CharField(max_length=15)
    is_phone_verified = models.BooleanField(default=False)
    completed_rides = models.IntegerField(default=0)

    class Meta:
        db_table = 'users'

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"


class PhoneOTP(models.Model):
    """One-time login code sent to a user's phone"""

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='phone_otps')
    code = models.CharField(max_length=6)
    attempts = models.IntegerField(default=0)
    is_used = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()

    class Meta:
        db_table = 'phone_otps'
        ordering = ['-created_at']

    def __str__(self):
        return f"OTP for {self.user}"

    def save(self, *args, **kwargs):
        if not self.expires_at:
            self.expires_at = timezone.now() + timedelta(minutes=settings.OTP_EXPIRY_MINUTES)
        super().save(*args, **kwargs)

    def is_expired(self):
        return timezone.now() > self.expires_at

    def can_attempt(self):
        return not self.is_used and not self.is_expired() and self.attempts < settings.OTP_MAX_ATTEMPTS

    @classmethod
    def issue(cls, user):
        """Retire any outstanding codes for the user and create a fresh one."""
        cls.objects.filter(user=user, is_used=False).update(is_used=True)
        code = ''.join(random.choices(string.digits, k=settings.OTP_LENGTH))
        return cls.objects.create(user=user, code=code)
