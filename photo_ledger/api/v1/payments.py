from fastapi import APIRouter, Response, status

from photo_ledger.api.dependencies import SessionDep
from photo_ledger.core.clock import ensure_utc
from photo_ledger.schemas.orders import (
    PaymentNotificationCreate,
    PaymentNotificationResponse,
)
from photo_ledger.services.order_processor import OrderProcessor

router = APIRouter()


@router.post("/notifications", response_model=PaymentNotificationResponse)
async def receive_notification(
    notification_data: PaymentNotificationCreate,
    session: SessionDep,
    response: Response,
) -> PaymentNotificationResponse:
    async with session.begin():
        processor = OrderProcessor(session)
        notification, order, is_new = await processor.process_notification(
            notification_data
        )

        response.status_code = status.HTTP_201_CREATED if is_new else status.HTTP_200_OK

        return PaymentNotificationResponse(
            id=notification.id,
            notification_id=notification.notification_id,
            order_id=notification.order_id,
            status=notification.status,
            provider_reference=notification.provider_reference,
            occurred_at=ensure_utc(notification.occurred_at),
            created_at=ensure_utc(notification.created_at),
            order_payment_status=order.payment_status,
            idempotent=not is_new,
        )
