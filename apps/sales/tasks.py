"""
Celery tasks for the sales app.
"""

import logging

from celery import shared_task
from twilio.base.exceptions import TwilioException

from apps.core.exceptions import ValidationError

from .receipt_service import build_whatsapp_message
from .services import BillStore
from .whatsapp import send_whatsapp_message

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def send_whatsapp_receipt_task(self, bill_id: str):
    """
    Send the receipt of a bill to the customer's WhatsApp.

    Args:
        bill_id: UUID of the Bill

    Returns:
        The Twilio message SID, or None if nothing was sent.
    """
    bill = BillStore.get_bill_with_items(bill_id)
    if bill is None:
        logger.error(f"Bill {bill_id} not found")
        return None

    try:
        sid = send_whatsapp_message(bill.customer_phone, build_whatsapp_message(bill))

    except ValidationError as e:
        # A bad number will not get better on retry
        logger.error(f"Cannot send WhatsApp receipt for bill {bill.bill_number}: {e.message}")
        return None

    except (TwilioException, OSError) as exc:
        logger.error(f"Failed to send WhatsApp receipt for bill {bill.bill_number}: {str(exc)}")

        # Retry with exponential backoff
        raise self.retry(exc=exc, countdown=60 * (2**self.request.retries))

    if sid:
        logger.info(f"Sent WhatsApp receipt for bill {bill.bill_number}")
    return sid
