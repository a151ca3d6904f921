"""Captains app configuration."""

from django.apps import AppConfig


class CaptainsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'captains'
