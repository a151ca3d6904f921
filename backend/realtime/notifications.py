"""
Notification helpers for pushing ride events to connected clients.

Events go through the channel layer to per-user groups:
    - user_<rider_id> for the passenger
    - captain_<captain_user_id> for the captain
"""

import logging
from typing import Dict, Any, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


def _ride_payload(event_type: str, ride, message: str, extra: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    payload = {
        "type": event_type,
        "ride_code": ride.ride_code,
        "status": ride.status,
        **(extra or {}),
    }
    if message:
        payload["message"] = message
    return payload


def _send(group: str, payload: Dict[str, Any]) -> bool:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return False

    logger.debug("WS -> %s: %s", group, payload)
    async_to_sync(channel_layer.group_send)(group, payload)
    return True


def notify_passenger_event(
    event_type: str,
    ride,
    message: str = "",
    extra: Dict[str, Any] = None,
) -> bool:
    """
    Send a ride event to the passenger through: user_<rider_id>

    Returns:
        True if sent, False when there is no channel layer
    """
    if not ride.rider_id:
        return False
    return _send(f"user_{ride.rider_id}", _ride_payload(event_type, ride, message, extra))


def notify_captain_event(
    event_type: str,
    ride,
    message: str = "",
    extra: Dict[str, Any] = None,
) -> bool:
    """Send a ride event to the assigned captain through: captain_<user_id>"""
    captain = ride.captain
    if captain is None:
        return False
    return _send(f"captain_{captain.user_id}", _ride_payload(event_type, ride, message, extra))
