"""Celery tasks for account verification."""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def send_otp_sms(self, phone_number: str, code: str):
    """Deliver a login OTP by SMS, retrying with backoff on failure."""
    from rides.sms import get_sms_service

    success, message = get_sms_service().send_otp(phone_number, code)

    if success:
        logger.info("OTP SMS sent to %s", phone_number)
        return {'success': True, 'message': message}

    logger.error("OTP SMS failed for %s: %s", phone_number, message)
    if self.request.retries < self.max_retries:
        raise self.retry(countdown=60 * (2 ** self.request.retries))
    return {'success': False, 'message': message}
