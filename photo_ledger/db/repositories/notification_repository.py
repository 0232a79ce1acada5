import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from photo_ledger.core.enums import NotificationStatus
from photo_ledger.db.models import PaymentNotification

logger = logging.getLogger(__name__)


class NotificationRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_notification(
        self,
        notification_id: str,
        order_id: str,
        status: NotificationStatus,
        occurred_at: datetime,
        provider_reference: Optional[str] = None,
        payload: Optional[dict] = None,
    ) -> tuple[PaymentNotification, bool]:
        """Record a notification or return the stored one if it is a duplicate.

        Args:
            notification_id: Provider-unique identifier of the notification.
            order_id: Order the notification refers to.
            status: Reported payment status (completed, failed, refunded).
            occurred_at: When the provider observed the status (timezone-aware).
            provider_reference: Provider transaction id.
            payload: Raw provider payload, stored for audit.

        Returns:
            Tuple of (PaymentNotification instance, is_new flag).
            is_new=True if the notification was recorded, False if it already existed.
        """
        existing = await self.get_by_notification_id(notification_id)
        if existing:
            return existing, False

        notification = PaymentNotification(
            notification_id=notification_id,
            order_id=order_id,
            status=status,
            occurred_at=occurred_at,
            provider_reference=provider_reference,
            payload=payload,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(notification)
                await self.session.flush()
        except IntegrityError:
            logger.info(
                "Notification recorded concurrently notification_id=%s",
                notification_id,
                extra={"notification_id": notification_id},
            )
            stored = await self.get_by_notification_id(notification_id)
            if stored is None:
                raise
            return stored, False

        return notification, True

    async def get_by_notification_id(
        self, notification_id: str
    ) -> Optional[PaymentNotification]:
        stmt = select(PaymentNotification).where(
            PaymentNotification.notification_id == notification_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
