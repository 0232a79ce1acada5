import asyncio
from datetime import datetime
from typing import List, Optional

from httpx import AsyncClient, Response

from tests.utils.factories import NotificationFactory, OrderFactory, PhotographerFactory

ADMIN_HEADERS = {"X-Actor-Id": "adm_001", "X-Actor-Role": "admin"}


def photographer_headers(photographer_id: str) -> dict:
    return {"X-Actor-Id": photographer_id, "X-Actor-Role": "photographer"}


async def register_photographer(
    client: AsyncClient, photographer_id: str, commission_bps: Optional[int] = None
) -> dict:
    response = await client.post(
        "/v1/photographers",
        json=PhotographerFactory.create_photographer_data(
            photographer_id, commission_bps
        ),
        headers=ADMIN_HEADERS,
    )
    assert response.status_code == 201, response.text
    return response.json()


async def create_completed_order(
    client: AsyncClient,
    photographer_id: str,
    prices: tuple[int, ...],
    completed_at: Optional[datetime] = None,
) -> dict:
    """Register an order and deliver its payment-completed notification."""
    order_response = await client.post(
        "/v1/orders",
        json=OrderFactory.create_order_data(photographer_id, prices=prices),
    )
    assert order_response.status_code == 201, order_response.text
    order = order_response.json()

    notification = NotificationFactory.create_notification(
        order["id"], occurred_at=completed_at
    )
    notification_response = await client.post(
        "/v1/payments/notifications", json=notification
    )
    assert notification_response.status_code == 201, notification_response.text

    return (await client.get(f"/v1/orders/{order['id']}")).json()


async def get_balance(client: AsyncClient, photographer_id: str, **params) -> dict:
    response = await client.get(
        f"/v1/photographers/{photographer_id}/balance",
        params=params,
        headers=ADMIN_HEADERS,
    )
    assert response.status_code == 200, response.text
    return response.json()


async def create_withdrawals_concurrent(
    client: AsyncClient, photographer_id: str, payloads: List[dict]
) -> List[Response]:
    """Submit several withdrawal requests at once."""
    headers = photographer_headers(photographer_id)
    tasks = [
        client.post("/v1/withdrawals", json=payload, headers=headers)
        for payload in payloads
    ]
    return list(await asyncio.gather(*tasks))


def assert_balance_conserved(balance: dict) -> None:
    assert (
        balance["available"] + balance["reserved"] + balance["pending"] + balance["paid"]
        == balance["lifetime_total"]
    )
