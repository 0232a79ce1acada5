from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from photo_ledger.db.models import PaymentNotification, Photographer
from tests.utils import (
    ADMIN_HEADERS,
    NotificationFactory,
    OrderFactory,
    create_completed_order,
    get_balance,
    register_photographer,
)


@pytest.mark.integration
class TestOrdersAPI:
    async def test_register_order_creates_pending_order(
        self, client: AsyncClient, sample_photographer_id: str
    ) -> None:
        order_data = OrderFactory.create_order_data(
            sample_photographer_id, prices=(5000, 7500), tax=900, discount=400
        )

        response = await client.post("/v1/orders", json=order_data)

        assert response.status_code == 201
        data = response.json()
        assert data["id"].startswith("ord_")
        assert data["payment_status"] == "pending"
        assert data["total"] == 12500 + 900 - 400
        assert [item["price"] for item in data["items"]] == [5000, 7500]
        assert all(item["photographer_amount"] is None for item in data["items"])
        assert all(item["available_at"] is None for item in data["items"])

    async def test_register_order_creates_unknown_photographer(
        self,
        client: AsyncClient,
        sample_photographer_id: str,
        db_session: AsyncSession,
    ) -> None:
        await client.post(
            "/v1/orders", json=OrderFactory.create_order_data(sample_photographer_id)
        )

        photographer = await db_session.get(Photographer, sample_photographer_id)
        assert photographer is not None
        assert photographer.commission_bps == 2000
        assert photographer.total_sales == 0

    async def test_register_order_subtotal_mismatch(
        self, client: AsyncClient, sample_photographer_id: str
    ) -> None:
        order_data = OrderFactory.create_order_data(
            sample_photographer_id, prices=(5000, 5000)
        )
        order_data["subtotal"] = 9000
        order_data["total"] = 9000

        response = await client.post("/v1/orders", json=order_data)

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "ORDER_TOTALS_MISMATCH"
        assert error["details"] == {"subtotal": 9000, "items_total": 10000}

    async def test_register_order_total_mismatch(
        self, client: AsyncClient, sample_photographer_id: str
    ) -> None:
        order_data = OrderFactory.create_order_data(
            sample_photographer_id, prices=(5000,), tax=500
        )
        order_data["total"] = 5000

        response = await client.post("/v1/orders", json=order_data)

        assert response.status_code == 422
        assert response.json()["error"]["details"]["expected_total"] == 5500

    @pytest.mark.parametrize("price", [0, -100])
    async def test_register_order_rejects_non_positive_price(
        self, client: AsyncClient, sample_photographer_id: str, price: int
    ) -> None:
        order_data = OrderFactory.create_order_data(sample_photographer_id)
        order_data["items"][0]["price"] = price

        response = await client.post("/v1/orders", json=order_data)

        assert response.status_code == 422

    async def test_register_order_requires_items(
        self, client: AsyncClient, sample_photographer_id: str
    ) -> None:
        order_data = OrderFactory.create_order_data(sample_photographer_id)
        order_data["items"] = []

        response = await client.post("/v1/orders", json=order_data)

        assert response.status_code == 422

    async def test_get_order_not_found(self, client: AsyncClient) -> None:
        response = await client.get("/v1/orders/ord_missing")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ORDER_NOT_FOUND"


@pytest.mark.integration
class TestPaymentNotificationsAPI:
    async def test_completed_notification_realizes_split(
        self, client: AsyncClient, sample_photographer_id: str
    ) -> None:
        await register_photographer(client, sample_photographer_id, commission_bps=2000)
        completed_at = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)

        order = await create_completed_order(
            client, sample_photographer_id, (10000, 3), completed_at
        )

        assert order["payment_status"] == "completed"
        first, second = order["items"]
        assert (first["platform_commission"], first["photographer_amount"]) == (2000, 8000)
        assert (second["platform_commission"], second["photographer_amount"]) == (1, 2)
        assert first["commission_bps"] == 2000
        available_at = datetime.fromisoformat(first["available_at"])
        if available_at.tzinfo is None:
            available_at = available_at.replace(tzinfo=timezone.utc)
        assert available_at == completed_at + timedelta(days=30)

        profile = await client.get(
            f"/v1/photographers/{sample_photographer_id}", headers=ADMIN_HEADERS
        )
        assert profile.json()["total_sales"] == 2
        assert profile.json()["total_revenue"] == 8002

    async def test_notification_for_unknown_order(self, client: AsyncClient) -> None:
        notification = NotificationFactory.create_notification("ord_missing")

        response = await client.post("/v1/payments/notifications", json=notification)

        assert response.status_code == 404

    @pytest.mark.idempotency
    async def test_duplicate_notification_is_idempotent(
        self,
        client: AsyncClient,
        sample_photographer_id: str,
        db_session: AsyncSession,
    ) -> None:
        order = (
            await client.post(
                "/v1/orders",
                json=OrderFactory.create_order_data(
                    sample_photographer_id, prices=(20000,)
                ),
            )
        ).json()
        notification = NotificationFactory.create_notification(
            order["id"], notification_id="ntf_dup_001"
        )

        first = await client.post("/v1/payments/notifications", json=notification)
        second = await client.post("/v1/payments/notifications", json=notification)

        assert first.status_code == 201
        assert first.json()["idempotent"] is False
        assert second.status_code == 200
        assert second.json()["idempotent"] is True
        assert second.json()["id"] == first.json()["id"]

        balance = await get_balance(client, sample_photographer_id)
        assert balance["lifetime_total"] == 16000

        profile = await client.get(
            f"/v1/photographers/{sample_photographer_id}", headers=ADMIN_HEADERS
        )
        assert profile.json()["total_sales"] == 1

        rows = await db_session.execute(
            select(PaymentNotification).where(
                PaymentNotification.notification_id == "ntf_dup_001"
            )
        )
        assert len(rows.scalars().all()) == 1

    @pytest.mark.idempotency
    async def test_second_completion_is_a_no_op(
        self, client: AsyncClient, sample_photographer_id: str
    ) -> None:
        order = await create_completed_order(client, sample_photographer_id, (10000,))

        again = await client.post(
            "/v1/payments/notifications",
            json=NotificationFactory.create_notification(order["id"]),
        )

        assert again.status_code == 201
        assert again.json()["order_payment_status"] == "completed"
        balance = await get_balance(client, sample_photographer_id)
        assert balance["lifetime_total"] == 8000

    async def test_failed_notification_marks_order_failed(
        self, client: AsyncClient, sample_photographer_id: str
    ) -> None:
        order = (
            await client.post(
                "/v1/orders",
                json=OrderFactory.create_order_data(sample_photographer_id),
            )
        ).json()

        response = await client.post(
            "/v1/payments/notifications",
            json=NotificationFactory.create_notification(order["id"], status="failed"),
        )

        assert response.status_code == 201
        assert response.json()["order_payment_status"] == "failed"
        balance = await get_balance(client, sample_photographer_id)
        assert balance["lifetime_total"] == 0

    async def test_completed_order_cannot_fail(
        self, client: AsyncClient, sample_photographer_id: str
    ) -> None:
        order = await create_completed_order(client, sample_photographer_id, (10000,))

        response = await client.post(
            "/v1/payments/notifications",
            json=NotificationFactory.create_notification(order["id"], status="failed"),
        )

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "ORDER_INVALID_TRANSITION"
        assert error["details"]["current_status"] == "completed"

    async def test_refund_removes_revenue(
        self, client: AsyncClient, sample_photographer_id: str
    ) -> None:
        order = await create_completed_order(
            client, sample_photographer_id, (10000, 5000)
        )

        response = await client.post(
            "/v1/payments/notifications",
            json=NotificationFactory.create_notification(
                order["id"], status="refunded"
            ),
        )

        assert response.status_code == 201
        assert response.json()["order_payment_status"] == "refunded"
        balance = await get_balance(client, sample_photographer_id)
        assert balance["lifetime_total"] == 0
        assert balance["pending"] == 0

        profile = await client.get(
            f"/v1/photographers/{sample_photographer_id}", headers=ADMIN_HEADERS
        )
        assert profile.json()["total_sales"] == 0
        assert profile.json()["total_revenue"] == 0

    async def test_pending_order_cannot_be_refunded(
        self, client: AsyncClient, sample_photographer_id: str
    ) -> None:
        order = (
            await client.post(
                "/v1/orders",
                json=OrderFactory.create_order_data(sample_photographer_id),
            )
        ).json()

        response = await client.post(
            "/v1/payments/notifications",
            json=NotificationFactory.create_notification(
                order["id"], status="refunded"
            ),
        )

        assert response.status_code == 409
