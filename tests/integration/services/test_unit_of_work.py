"""
작업 단위 원자성 통합 테스트

저장소 오류가 나면 레코드/분개/감사 로그가 모두 롤백되는지 검증
"""

from unittest.mock import patch

import aiosqlite
import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import Workbench
from core.engine import LedgerEngine
from core.errors import PersistenceError
from core.storage import AuditLog, RecordStore
from core.types import RecordStatus
from tests.helpers import txn


async def _counts(db: SQLiteAdapter) -> dict[str, int]:
    return {
        table: await db.count_rows(table)
        for table in ("record", "ledger_entry", "audit_log", "party", "budget")
    }


def _failing_audit():
    return patch.object(
        AuditLog, "append", side_effect=aiosqlite.OperationalError("disk I/O error")
    )


class TestRollback:
    """감사 로그 쓰기 실패 시 전체 롤백"""

    @pytest.mark.asyncio
    async def test_create_record(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        before = await _counts(db)

        with _failing_audit(), pytest.raises(PersistenceError):
            await engine.create_record(workbench.id, "transaction", "Sale", txn("10"))

        assert await _counts(db) == before

    @pytest.mark.asyncio
    async def test_create_party_and_budget(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        before = await _counts(db)

        with _failing_audit():
            with pytest.raises(PersistenceError):
                await engine.create_record(workbench.id, "party", "Acme", {})
            with pytest.raises(PersistenceError):
                await engine.create_record(workbench.id, "budget", "Q1", {"amount": "100"})

        assert await _counts(db) == before

    @pytest.mark.asyncio
    async def test_confirm(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("10"))
        before = await _counts(db)

        with _failing_audit(), pytest.raises(PersistenceError):
            await engine.confirm_record(record.id)

        assert await _counts(db) == before
        assert (await RecordStore(db).get(record.id)).status == RecordStatus.DRAFT

        # 실패 후에도 정상 확정 가능
        result = await engine.confirm_record(record.id)
        assert len(result["ledger_entries"]) == 2

    @pytest.mark.asyncio
    async def test_adjustment(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("10"))
        await engine.confirm_record(record.id)
        before = await _counts(db)

        with _failing_audit(), pytest.raises(PersistenceError):
            await engine.push_adjustment(workbench.id, record.id, "reverse", "oops")

        assert await _counts(db) == before
        unchanged = await RecordStore(db).get(record.id)
        assert unchanged.net_amount == record.net_amount
        assert unchanged.transaction_meta.is_reversed is False

    @pytest.mark.asyncio
    async def test_cancel(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("10"))

        with _failing_audit(), pytest.raises(PersistenceError):
            await engine.cancel_record(record.id)

        assert (await RecordStore(db).get(record.id)).status == RecordStatus.DRAFT
