"""Side effects fired after a ride transition commits."""

import logging
from typing import Any, Dict

from realtime.notifications import notify_passenger_event, notify_captain_event

logger = logging.getLogger(__name__)


class RideNotifier:
    """
    Best-effort outbound notifications.

    Failures are logged and never propagate: the ride state is already
    committed by the time these run.
    """

    def notify_ride_confirmed(self, phone_number: str, details: Dict[str, Any]):
        from rides.tasks import send_ride_confirmation_sms

        if phone_number:
            try:
                send_ride_confirmation_sms.delay(phone_number, details)
            except Exception:
                logger.exception("Failed to enqueue confirmation SMS for %s", details.get("ride_code"))

    def notify_ride_event(self, event_type: str, ride, message: str = ""):
        try:
            notify_passenger_event(event_type, ride, message)
            notify_captain_event(event_type, ride, message)
        except Exception:
            logger.exception("Failed to push %s for ride %s", event_type, ride.ride_code)
