"""Celery tasks for push notification delivery."""

import asyncio
import logging

from kyc_admin.celery_app import app as celery_app
from kyc_admin.database import SessionLocal
from kyc_admin.services.errors import PushError
from kyc_admin.services.kyc_service import KYC_APPROVED_BODY, KYC_APPROVED_DATA, KYC_APPROVED_TITLE
from kyc_admin.services.notification_service import get_notification_service

logger = logging.getLogger(__name__)


@celery_app.task
def send_kyc_approved_notification(user_id: str) -> dict:
    """Notify a rider on every registered device that their KYC was approved.

    Delivery is best-effort: signing and token exchange failures are logged
    and reported in the result, never raised.

    Args:
        user_id: ID of the rider whose submission was approved

    Returns:
        dict with sent/failed counts, or an error description
    """
    db = SessionLocal()
    try:
        service = get_notification_service(db)
        result = asyncio.run(
            service.notify_user(
                user_id,
                title=KYC_APPROVED_TITLE,
                body=KYC_APPROVED_BODY,
                data=KYC_APPROVED_DATA,
            )
        )
        return {"user_id": user_id, "sent": result.sent, "failed": result.failed}
    except PushError as e:
        logger.error(f"KYC approval notification for user {user_id} not sent: {e}")
        return {"user_id": user_id, "error": str(e)}
    finally:
        db.close()
