"""WebSocket URL routing for the realtime app."""

from django.urls import re_path

from .consumers import RideEventsConsumer

websocket_urlpatterns = [
    # URL: ws://localhost:8000/ws/rides/?token=<access>
    re_path(r"ws/rides/$", RideEventsConsumer.as_asgi(), name="ride-events-ws"),
]
