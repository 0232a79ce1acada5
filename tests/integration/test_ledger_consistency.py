import json
from datetime import datetime

import pytest
from fastapi import Request
from httpx import AsyncClient
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from photo_ledger.api.middlewares import stale_data_handler
from photo_ledger.core.clock import utcnow
from photo_ledger.db.models import Photographer
from photo_ledger.db.repositories import LedgerRepository
from photo_ledger.db.session import engine
from photo_ledger.exceptions import ConcurrencyConflictException
from photo_ledger.services import WithdrawalService
from tests.utils import (
    WithdrawalFactory,
    create_completed_order,
    photographer_headers,
    register_photographer,
)


def _request(path: str) -> Request:
    return Request(
        {
            "type": "http",
            "method": "POST",
            "path": path,
            "headers": [],
            "query_string": b"",
        }
    )


@pytest.mark.integration
class TestBalanceSnapshot:
    async def test_balance_summary_is_one_statement(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        sample_photographer_id: str,
        matured_completion: datetime,
    ) -> None:
        await register_photographer(client, sample_photographer_id, commission_bps=0)
        await create_completed_order(
            client, sample_photographer_id, (30000,), matured_completion
        )
        created = await client.post(
            "/v1/withdrawals",
            json=WithdrawalFactory.create_withdrawal_data(amount=12000),
            headers=photographer_headers(sample_photographer_id),
        )
        assert created.status_code == 201

        selects: list[str] = []

        def record(conn, cursor, statement, parameters, context, executemany):
            if statement.lstrip().upper().startswith("SELECT"):
                selects.append(statement)

        event.listen(engine.sync_engine, "before_cursor_execute", record)
        try:
            summary = await LedgerRepository(db_session).get_balance_summary(
                sample_photographer_id, "XOF", utcnow()
            )
        finally:
            event.remove(engine.sync_engine, "before_cursor_execute", record)

        assert len(selects) == 1
        assert summary.reserved == 12000
        assert summary.matured_unpaid == 30000
        assert summary.matured_unpaid - summary.reserved == 18000


@pytest.mark.integration
@pytest.mark.concurrency
class TestLedgerVersionConflict:
    async def test_stale_ledger_version_is_retryable_conflict(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        sample_photographer_id: str,
    ) -> None:
        await register_photographer(client, sample_photographer_id)

        photographer = await db_session.get(Photographer, sample_photographer_id)
        assert photographer is not None
        # Another writer commits a ledger change the session has not seen.
        connection = await db_session.connection()
        await connection.execute(
            text(
                "UPDATE photographers SET ledger_version = ledger_version + 1 "
                "WHERE id = :id"
            ),
            {"id": sample_photographer_id},
        )

        service = WithdrawalService(db_session)
        with pytest.raises(ConcurrencyConflictException) as exc_info:
            await service._touch_ledger(photographer, "create")

        assert exc_info.value.status_code == 409
        assert exc_info.value.details["retryable"] is True
        assert exc_info.value.details["operation"] == "create"
        assert isinstance(exc_info.value.__cause__, StaleDataError)

    async def test_stale_data_handler_renders_retryable_conflict(self) -> None:
        response = await stale_data_handler(
            _request("/v1/withdrawals"), StaleDataError("version mismatch")
        )

        body = json.loads(response.body)
        assert response.status_code == 409
        assert body["success"] is False
        assert body["error"]["code"] == "CONCURRENT_LEDGER_UPDATE"
        assert body["error"]["details"]["retryable"] is True
        assert body["meta"]["path"] == "/v1/withdrawals"
