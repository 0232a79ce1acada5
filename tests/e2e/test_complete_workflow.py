from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from tests.utils import (
    ADMIN_HEADERS,
    NotificationFactory,
    WithdrawalFactory,
    assert_balance_conserved,
    create_completed_order,
    create_withdrawals_concurrent,
    get_balance,
    photographer_headers,
    register_photographer,
)


async def _withdraw_and_complete(
    client: AsyncClient, photographer_id: str, amount: int, reference: str
) -> dict:
    created = await client.post(
        "/v1/withdrawals",
        json=WithdrawalFactory.create_withdrawal_data(amount=amount),
        headers=photographer_headers(photographer_id),
    )
    assert created.status_code == 201, created.text
    withdrawal_id = created.json()["id"]

    approved = await client.post(
        f"/v1/withdrawals/{withdrawal_id}/approve", json={}, headers=ADMIN_HEADERS
    )
    assert approved.status_code == 200, approved.text

    completed = await client.post(
        f"/v1/withdrawals/{withdrawal_id}/complete",
        json={"transaction_reference": reference},
        headers=ADMIN_HEADERS,
    )
    assert completed.status_code == 200, completed.text
    return completed.json()


@pytest.mark.e2e
class TestCompleteWorkflow:
    async def test_payout_consumes_oldest_revenue_first(
        self,
        client: AsyncClient,
        sample_photographer_id: str,
        matured_completion: datetime,
    ) -> None:
        # 20% commission: 5,000 / 7,500 / 12,500 leave 4,000 / 6,000 / 10,000.
        await register_photographer(client, sample_photographer_id, commission_bps=2000)
        order = await create_completed_order(
            client, sample_photographer_id, (5000, 7500, 12500), matured_completion
        )
        item_ids = [item["id"] for item in order["items"]]
        assert [i["photographer_amount"] for i in order["items"]] == [4000, 6000, 10000]

        before = await get_balance(client, sample_photographer_id)
        assert before["available"] == 20000
        assert_balance_conserved(before)

        withdrawal = await _withdraw_and_complete(
            client, sample_photographer_id, 15000, "MM-E2E-1"
        )

        assert {a["line_item_id"]: a["amount"] for a in withdrawal["allocations"]} == {
            item_ids[0]: 4000,
            item_ids[1]: 6000,
            item_ids[2]: 5000,
        }

        after = await get_balance(client, sample_photographer_id)
        assert after["available"] == 5000
        assert after["paid"] == 15000
        assert after["reserved"] == 0
        assert_balance_conserved(after)

        items = (await client.get(f"/v1/orders/{order['id']}")).json()["items"]
        assert [i["paid"] for i in items] == [True, True, False]
        assert items[0]["payout_withdrawal_id"] == withdrawal["id"]
        assert items[2]["payout_withdrawal_id"] is None

        paid_items = await client.get(
            f"/v1/photographers/{sample_photographer_id}/revenue/items",
            params={"state": "paid"},
            headers=ADMIN_HEADERS,
        )
        assert [i["id"] for i in paid_items.json()["items"]] == item_ids[:2]

    async def test_completed_funds_never_reappear(
        self,
        client: AsyncClient,
        sample_photographer_id: str,
        matured_completion: datetime,
    ) -> None:
        await register_photographer(client, sample_photographer_id, commission_bps=0)
        await create_completed_order(
            client, sample_photographer_id, (12000, 13000), matured_completion
        )

        await _withdraw_and_complete(client, sample_photographer_id, 15000, "MM-1")
        await _withdraw_and_complete(client, sample_photographer_id, 10000, "MM-2")

        balance = await get_balance(client, sample_photographer_id)
        assert balance["available"] == 0
        assert balance["paid"] == 25000
        assert_balance_conserved(balance)

        response = await client.post(
            "/v1/withdrawals",
            json=WithdrawalFactory.create_withdrawal_data(amount=10000),
            headers=photographer_headers(sample_photographer_id),
        )
        assert response.status_code == 409

        stats = await client.get(
            f"/v1/photographers/{sample_photographer_id}/revenue/statistics",
            headers=ADMIN_HEADERS,
        )
        assert stats.json()["last_payout_at"] is not None

    async def test_revenue_matures_after_hold_period(
        self, client: AsyncClient, sample_photographer_id: str
    ) -> None:
        await register_photographer(client, sample_photographer_id, commission_bps=2000)
        completed_at = datetime.now(timezone.utc) - timedelta(days=10)
        await create_completed_order(
            client, sample_photographer_id, (10000,), completed_at
        )

        now = await get_balance(client, sample_photographer_id)
        assert (now["pending"], now["available"]) == (8000, 0)

        day_29 = completed_at + timedelta(days=29)
        day_30 = completed_at + timedelta(days=30)
        assert (await get_balance(
            client, sample_photographer_id, as_of=day_29.isoformat()
        ))["pending"] == 8000
        matured = await get_balance(
            client, sample_photographer_id, as_of=day_30.isoformat()
        )
        assert (matured["pending"], matured["available"]) == (0, 8000)

    async def test_terminal_withdrawals_never_transition(
        self,
        client: AsyncClient,
        sample_photographer_id: str,
        matured_completion: datetime,
    ) -> None:
        await register_photographer(client, sample_photographer_id, commission_bps=0)
        await create_completed_order(
            client, sample_photographer_id, (50000,), matured_completion
        )
        headers = photographer_headers(sample_photographer_id)

        completed = await _withdraw_and_complete(
            client, sample_photographer_id, 10000, "MM-T1"
        )
        rejected = (
            await client.post(
                "/v1/withdrawals",
                json=WithdrawalFactory.create_withdrawal_data(amount=10000),
                headers=headers,
            )
        ).json()
        await client.post(
            f"/v1/withdrawals/{rejected['id']}/reject",
            json={"rejection_reason": "duplicate request"},
            headers=ADMIN_HEADERS,
        )
        cancelled = (
            await client.post(
                "/v1/withdrawals",
                json=WithdrawalFactory.create_withdrawal_data(amount=10000),
                headers=headers,
            )
        ).json()
        await client.delete(f"/v1/withdrawals/{cancelled['id']}", headers=headers)

        attempts = []
        for withdrawal_id in (completed["id"], rejected["id"], cancelled["id"]):
            attempts += [
                await client.post(
                    f"/v1/withdrawals/{withdrawal_id}/approve",
                    json={},
                    headers=ADMIN_HEADERS,
                ),
                await client.post(
                    f"/v1/withdrawals/{withdrawal_id}/reject",
                    json={"rejection_reason": "late"},
                    headers=ADMIN_HEADERS,
                ),
                await client.post(
                    f"/v1/withdrawals/{withdrawal_id}/complete",
                    json={"transaction_reference": "MM-LATE"},
                    headers=ADMIN_HEADERS,
                ),
                await client.delete(
                    f"/v1/withdrawals/{withdrawal_id}", headers=headers
                ),
            ]

        assert all(r.status_code == 409 for r in attempts)
        balance = await get_balance(client, sample_photographer_id)
        assert balance["available"] == 40000
        assert balance["paid"] == 10000
        assert_balance_conserved(balance)

    @pytest.mark.concurrency
    async def test_concurrent_withdrawals_cannot_overdraw(
        self,
        client: AsyncClient,
        sample_photographer_id: str,
        matured_completion: datetime,
    ) -> None:
        await register_photographer(client, sample_photographer_id, commission_bps=0)
        await create_completed_order(
            client, sample_photographer_id, (20000,), matured_completion
        )

        responses = await create_withdrawals_concurrent(
            client,
            sample_photographer_id,
            [WithdrawalFactory.create_withdrawal_data(amount=15000) for _ in range(2)],
        )

        assert sorted(r.status_code for r in responses) == [201, 409]
        balance = await get_balance(client, sample_photographer_id)
        assert balance["reserved"] == 15000
        assert balance["available"] == 5000
        assert_balance_conserved(balance)

    async def test_refund_refused_once_revenue_paid_out(
        self,
        client: AsyncClient,
        sample_photographer_id: str,
        matured_completion: datetime,
    ) -> None:
        await register_photographer(client, sample_photographer_id, commission_bps=0)
        order = await create_completed_order(
            client, sample_photographer_id, (15000,), matured_completion
        )
        await _withdraw_and_complete(client, sample_photographer_id, 10000, "MM-R1")

        response = await client.post(
            "/v1/payments/notifications",
            json=NotificationFactory.create_notification(
                order["id"], status="refunded"
            ),
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "ORDER_ALREADY_PAID_OUT"
        balance = await get_balance(client, sample_photographer_id)
        assert balance["lifetime_total"] == 15000
        assert balance["available"] == 5000

    async def test_refunded_revenue_cannot_be_approved_for_payout(
        self,
        client: AsyncClient,
        sample_photographer_id: str,
        matured_completion: datetime,
    ) -> None:
        await register_photographer(client, sample_photographer_id, commission_bps=0)
        order = await create_completed_order(
            client, sample_photographer_id, (20000,), matured_completion
        )
        created = await client.post(
            "/v1/withdrawals",
            json=WithdrawalFactory.create_withdrawal_data(amount=20000),
            headers=photographer_headers(sample_photographer_id),
        )
        assert created.status_code == 201
        withdrawal_id = created.json()["id"]

        refund = await client.post(
            "/v1/payments/notifications",
            json=NotificationFactory.create_notification(
                order["id"], status="refunded"
            ),
        )
        assert refund.status_code == 201

        approved = await client.post(
            f"/v1/withdrawals/{withdrawal_id}/approve", json={}, headers=ADMIN_HEADERS
        )

        assert approved.status_code == 409
        assert approved.json()["error"]["code"] == "WITHDRAWAL_INSUFFICIENT_BALANCE"
        detail = await client.get(
            f"/v1/withdrawals/{withdrawal_id}", headers=ADMIN_HEADERS
        )
        assert detail.json()["status"] == "pending"

        rejected = await client.post(
            f"/v1/withdrawals/{withdrawal_id}/reject",
            json={"rejection_reason": "order refunded"},
            headers=ADMIN_HEADERS,
        )
        assert rejected.status_code == 200
        balance = await get_balance(client, sample_photographer_id)
        assert (balance["available"], balance["reserved"]) == (0, 0)
        assert balance["lifetime_total"] == 0
        assert_balance_conserved(balance)

    async def test_metrics_exposed(self, client: AsyncClient) -> None:
        response = await client.get("/metrics/")

        assert response.status_code == 200
        assert "photo_ledger_withdrawals_total" in response.text

    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
