import logging
from collections import defaultdict
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from photo_ledger.core.clock import ensure_utc
from photo_ledger.core.config import settings
from photo_ledger.core.enums import NotificationStatus, OrderPaymentStatus
from photo_ledger.db.models import Order, PaymentNotification
from photo_ledger.db.repositories import (
    NotificationRepository,
    OrderRepository,
    PhotographerRepository,
)
from photo_ledger.exceptions import (
    InvalidOrderTransitionException,
    OrderAlreadyPaidOutException,
    OrderNotFoundException,
    OrderTotalsMismatchException,
)
from photo_ledger.metrics import notifications_total, orders_total
from photo_ledger.schemas.orders import OrderCreate, PaymentNotificationCreate
from photo_ledger.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)


class OrderProcessor:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.order_repo = OrderRepository(session)
        self.notification_repo = NotificationRepository(session)
        self.photographer_repo = PhotographerRepository(session)
        self.ledger_service = LedgerService(session)

    async def register_order(self, order_data: OrderCreate) -> Order:
        items_total = sum(item.price for item in order_data.items)
        if items_total != order_data.subtotal:
            raise OrderTotalsMismatchException(
                "Line item prices must add up to subtotal",
                {"subtotal": order_data.subtotal, "items_total": items_total},
            )
        expected_total = order_data.subtotal + order_data.tax - order_data.discount
        if order_data.total != expected_total:
            raise OrderTotalsMismatchException(
                "Total must equal subtotal + tax - discount",
                {"total": order_data.total, "expected_total": expected_total},
            )

        photographer_ids = {item.photographer_id for item in order_data.items}
        for photographer_id in sorted(photographer_ids):
            await self.photographer_repo.get_or_create(
                photographer_id=photographer_id,
                commission_bps=settings.default_commission_bps,
            )

        order = await self.order_repo.create_order(
            order_id=f"ord_{uuid4().hex}",
            buyer_id=order_data.buyer_id,
            currency=order_data.currency or settings.default_currency,
            subtotal=order_data.subtotal,
            tax=order_data.tax,
            discount=order_data.discount,
            total=order_data.total,
            items=[item.model_dump() for item in order_data.items],
            metadata_=order_data.metadata,
        )
        orders_total.labels(status=OrderPaymentStatus.PENDING.value).inc()
        logger.info(
            "Order registered order_id=%s buyer_id=%s items=%s total=%s",
            order.id,
            order.buyer_id,
            len(order.items),
            order.total,
            extra={"order_id": order.id, "buyer_id": order.buyer_id},
        )
        return order

    async def get_order(self, order_id: str) -> Order:
        order = await self.order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundException(order_id)
        return order

    async def process_notification(
        self, notification_data: PaymentNotificationCreate
    ) -> tuple[PaymentNotification, Order, bool]:
        """Apply a payment provider notification to its order.

        Duplicates (same notification_id) are returned untouched with
        is_new=False and have no ledger effect.
        """
        order = await self.order_repo.get_for_update(notification_data.order_id)
        if order is None:
            raise OrderNotFoundException(notification_data.order_id)

        notification, is_new = await self.notification_repo.create_notification(
            notification_id=notification_data.notification_id,
            order_id=notification_data.order_id,
            status=notification_data.status,
            occurred_at=ensure_utc(notification_data.occurred_at),
            provider_reference=notification_data.provider_reference,
            payload=notification_data.payload,
        )
        status_value = NotificationStatus(notification.status).value

        if not is_new:
            logger.info(
                "Idempotent notification received notification_id=%s order_id=%s",
                notification.notification_id,
                order.id,
                extra={
                    "notification_id": notification.notification_id,
                    "order_id": order.id,
                    "status": status_value,
                },
            )
            return notification, order, False

        logger.info(
            "Processing payment notification notification_id=%s order_id=%s status=%s",
            notification.notification_id,
            order.id,
            status_value,
            extra={
                "notification_id": notification.notification_id,
                "order_id": order.id,
                "status": status_value,
            },
        )
        notifications_total.labels(status=status_value).inc()

        if notification.status == NotificationStatus.COMPLETED:
            await self.complete_order(order, notification)
        elif notification.status == NotificationStatus.FAILED:
            await self.fail_order(order)
        elif notification.status == NotificationStatus.REFUNDED:
            await self.refund_order(order)

        return notification, order, True

    async def complete_order(
        self, order: Order, notification: PaymentNotification
    ) -> None:
        if order.payment_status == OrderPaymentStatus.COMPLETED:
            logger.info(
                "Order already completed, nothing to realize order_id=%s",
                order.id,
                extra={"order_id": order.id},
            )
            return
        self._ensure_transition(
            order, OrderPaymentStatus.PENDING, OrderPaymentStatus.COMPLETED
        )

        completed_at = ensure_utc(notification.occurred_at)
        per_photographer: dict[str, list[int]] = defaultdict(lambda: [0, 0])
        rates: dict[str, int] = {}

        for item in order.items:
            if item.photographer_id not in rates:
                photographer, _ = await self.photographer_repo.get_or_create(
                    photographer_id=item.photographer_id,
                    commission_bps=settings.default_commission_bps,
                )
                rates[item.photographer_id] = photographer.commission_bps
            self.ledger_service.realize_line_item(
                item, rates[item.photographer_id], completed_at
            )
            per_photographer[item.photographer_id][0] += 1
            per_photographer[item.photographer_id][1] += item.photographer_amount

        order.payment_status = OrderPaymentStatus.COMPLETED
        order.completed_at = completed_at
        order.payment_reference = notification.provider_reference
        await self.session.flush()

        for photographer_id, (sales, revenue) in per_photographer.items():
            await self.photographer_repo.increment_counters(
                photographer_id, sales, revenue
            )

        orders_total.labels(status=OrderPaymentStatus.COMPLETED.value).inc()
        logger.info(
            "Order completed order_id=%s items=%s photographers=%s",
            order.id,
            len(order.items),
            len(per_photographer),
            extra={"order_id": order.id},
        )

    async def fail_order(self, order: Order) -> None:
        if order.payment_status == OrderPaymentStatus.FAILED:
            return
        self._ensure_transition(
            order, OrderPaymentStatus.PENDING, OrderPaymentStatus.FAILED
        )
        order.payment_status = OrderPaymentStatus.FAILED
        await self.session.flush()
        orders_total.labels(status=OrderPaymentStatus.FAILED.value).inc()
        logger.info(
            "Order payment failed order_id=%s",
            order.id,
            extra={"order_id": order.id},
        )

    async def refund_order(self, order: Order) -> None:
        if order.payment_status == OrderPaymentStatus.REFUNDED:
            return
        self._ensure_transition(
            order, OrderPaymentStatus.COMPLETED, OrderPaymentStatus.REFUNDED
        )

        if await self.order_repo.has_allocations(order.id):
            logger.warning(
                "Refund refused, revenue already paid out order_id=%s",
                order.id,
                extra={"order_id": order.id},
            )
            raise OrderAlreadyPaidOutException(order.id)

        per_photographer: dict[str, list[int]] = defaultdict(lambda: [0, 0])
        for item in order.items:
            per_photographer[item.photographer_id][0] += 1
            per_photographer[item.photographer_id][1] += item.photographer_amount

        # Refunds shrink available funds; serialize with withdrawal writers.
        for photographer_id in sorted(per_photographer):
            photographer = await self.photographer_repo.get_for_update(photographer_id)
            await self.photographer_repo.touch_ledger(photographer)

        order.payment_status = OrderPaymentStatus.REFUNDED
        await self.session.flush()

        for photographer_id, (sales, revenue) in per_photographer.items():
            await self.photographer_repo.increment_counters(
                photographer_id, -sales, -revenue
            )

        orders_total.labels(status=OrderPaymentStatus.REFUNDED.value).inc()
        logger.info(
            "Order refunded order_id=%s",
            order.id,
            extra={"order_id": order.id},
        )

    def _ensure_transition(
        self,
        order: Order,
        expected: OrderPaymentStatus,
        target: OrderPaymentStatus,
    ) -> None:
        current = OrderPaymentStatus(order.payment_status).value
        if order.payment_status != expected:
            logger.warning(
                "Invalid order transition order_id=%s from=%s to=%s",
                order.id,
                current,
                target.value,
                extra={"order_id": order.id},
            )
            raise InvalidOrderTransitionException(order.id, current, target.value)
