"""
스키마 트리거 통합 테스트

append-only 분개/감사 로그, 레코드 삭제 금지, 분개 참조 계정 불변
"""

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import Workbench
from core.engine import LedgerEngine
from core.errors import PersistenceError
from core.ledger.schema import init_ledger_schema
from tests.helpers import txn


async def _confirmed(engine: LedgerEngine, workbench: Workbench) -> str:
    record = await engine.create_record(workbench.id, "transaction", "Sale", txn("1000"))
    await engine.confirm_record(record.id)
    return record.id


class TestSchema:
    """스키마 생성 테스트"""

    @pytest.mark.asyncio
    async def test_tables_exist(self, db: SQLiteAdapter) -> None:
        for table in (
            "workbench", "account", "party", "record",
            "budget", "budget_item", "ledger_entry", "audit_log",
        ):
            assert await db.table_exists(table), table

    @pytest.mark.asyncio
    async def test_init_is_idempotent(self, db: SQLiteAdapter) -> None:
        await init_ledger_schema(db)
        await init_ledger_schema(db)

        assert await db.table_exists("ledger_entry")


class TestAppendOnly:
    """append-only 트리거 테스트"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "sql",
        [
            "UPDATE ledger_entry SET amount = '1'",
            "DELETE FROM ledger_entry",
            "UPDATE audit_log SET actor = 'mallory'",
            "DELETE FROM audit_log",
        ],
    )
    async def test_mutation_rejected(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench, sql: str
    ) -> None:
        await _confirmed(engine, workbench)

        with pytest.raises(PersistenceError, match="append-only"):
            async with db.transaction():
                await db.execute(sql)

        assert await db.count_rows("ledger_entry") == 2

    @pytest.mark.asyncio
    async def test_record_cannot_be_deleted(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record_id = await _confirmed(engine, workbench)

        with pytest.raises(PersistenceError, match="cannot be deleted"):
            async with db.transaction():
                await db.execute("DELETE FROM record WHERE id = ?", (record_id,))


class TestAccountImmutability:
    """분개가 참조한 계정 불변 테스트"""

    @pytest.mark.asyncio
    async def test_posted_account_cannot_change(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        await _confirmed(engine, workbench)

        with pytest.raises(PersistenceError, match="referenced by ledger entries"):
            async with db.transaction():
                await db.execute(
                    "UPDATE account SET account_type = 'Expense' "
                    "WHERE workbench_id = ? AND name = 'Cash'",
                    (workbench.id,),
                )

    @pytest.mark.asyncio
    async def test_unposted_account_can_change(
        self, db: SQLiteAdapter, workbench: Workbench
    ) -> None:
        async with db.transaction():
            await db.execute(
                "UPDATE account SET category = 'Petty' WHERE workbench_id = ? AND name = 'Cash'",
                (workbench.id,),
            )

        row = await db.fetchone(
            "SELECT category FROM account WHERE workbench_id = ? AND name = 'Cash'",
            (workbench.id,),
        )
        assert row[0] == "Petty"

    @pytest.mark.asyncio
    async def test_posted_account_can_be_deactivated(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        await _confirmed(engine, workbench)
        cash = next(
            a for a in await engine.list_accounts(workbench.id) if a.name == "Cash"
        )

        await engine.accounts.deactivate(cash.id)

        assert (await engine.accounts.get(cash.id)).is_active is False
