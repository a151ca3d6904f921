"""Celery tasks for ride-related background processing."""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def send_ride_confirmation_sms(self, phone_number: str, details: dict):
    """Send the booking confirmation SMS, retrying with backoff on failure."""
    from rides.sms import get_sms_service

    success, message = get_sms_service().send_ride_confirmation(phone_number, details)

    if success:
        logger.info("Ride confirmation SMS sent for %s", details.get("ride_code"))
        return {'success': True, 'message': message}

    logger.error("Ride confirmation SMS failed for %s: %s", details.get("ride_code"), message)
    if self.request.retries < self.max_retries:
        raise self.retry(countdown=60 * (2 ** self.request.retries))
    return {'success': False, 'message': message}
