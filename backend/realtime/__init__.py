"""
Realtime app for pushing ride events over the channel layer.

Key Components:
    - notifications.py: group_send helpers used after ride transitions commit
    - consumers.py: WebSocket consumer relaying those events to clients
    - middleware.py: JWT authentication for WebSocket connections

Usage:
    from realtime.notifications import notify_passenger_event, notify_captain_event
"""
