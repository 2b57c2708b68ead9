"""
저장소 통합 테스트

WorkbenchStore, AccountRegistry, PartyDirectory, RecordStore, LedgerStore, AuditLog
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import (
    BudgetItem,
    LedgerEntry,
    Record,
    TransactionMetadata,
    Workbench,
)
from core.engine import LedgerEngine
from core.errors import NotFound, PersistenceError, ValidationError, WorkbenchNotFound
from core.ledger.entry_builder import Posting
from core.ledger.store import LedgerStore
from core.ledger.types import DEFAULT_ACCOUNTS
from core.storage import (
    AccountRegistry,
    AuditLog,
    BudgetStore,
    PartyDirectory,
    RecordStore,
    WorkbenchStore,
)
from core.types import (
    AccountType,
    AuditAction,
    Direction,
    EntryLeg,
    EntryType,
    PartyType,
    RecordStatus,
    RecordType,
)

def _draft(workbench_id: str, amount: str = "100", party_id: str | None = None) -> Record:
    return Record(
        id=str(uuid4()),
        workbench_id=workbench_id,
        record_type=RecordType.TRANSACTION,
        summary="Draft sale",
        gross_amount=Decimal(amount),
        net_amount=Decimal(amount),
        party_id=party_id,
        issue_date=date(2026, 3, 1),
        metadata=TransactionMetadata(direction=Direction.CREDIT),
    )


class TestWorkbenchStore:
    """워크벤치 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_create_and_require(self, db: SQLiteAdapter) -> None:
        store = WorkbenchStore(db)

        created = await store.create("  Acme  ", currency="USD")

        assert created.name == "Acme"
        assert (await store.require(created.id)).currency == "USD"

    @pytest.mark.asyncio
    async def test_missing(self, db: SQLiteAdapter) -> None:
        store = WorkbenchStore(db)

        assert await store.get("nope") is None
        with pytest.raises(WorkbenchNotFound):
            await store.require("nope")

    @pytest.mark.asyncio
    async def test_blank_name(self, db: SQLiteAdapter) -> None:
        with pytest.raises(ValidationError):
            await WorkbenchStore(db).create(" ")


class TestAccountRegistry:
    """계정과목 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_seeded_chart(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        accounts = await AccountRegistry(db).list(workbench.id)

        assert [a.name for a in accounts] == [name for name, *_ in DEFAULT_ACCOUNTS]
        assert {a.name for a in accounts if a.cash_impact} == {"Cash", "Bank"}

    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        registry = AccountRegistry(db)

        await registry.seed_default_chart(workbench.id)

        assert len(await registry.list(workbench.id)) == len(DEFAULT_ACCOUNTS)

    @pytest.mark.asyncio
    async def test_cash_impact_requires_asset(
        self, db: SQLiteAdapter, workbench: Workbench
    ) -> None:
        with pytest.raises(ValidationError):
            await AccountRegistry(db).create(
                workbench.id, "Wallet", AccountType.LIABILITY, cash_impact=True
            )

    @pytest.mark.asyncio
    async def test_invalid_type(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        with pytest.raises(ValidationError):
            await AccountRegistry(db).create(workbench.id, "Odd", "Mystery")

    @pytest.mark.asyncio
    async def test_deactivate_hides_account(
        self, db: SQLiteAdapter, workbench: Workbench
    ) -> None:
        registry = AccountRegistry(db)
        account = await registry.create(workbench.id, "Travel", AccountType.EXPENSE, "Travel")

        await registry.deactivate(account.id)

        assert account.id not in {a.id for a in await registry.list(workbench.id)}
        assert account.id in {
            a.id for a in await registry.list(workbench.id, include_inactive=True)
        }

    @pytest.mark.asyncio
    async def test_get_missing(self, db: SQLiteAdapter) -> None:
        with pytest.raises(NotFound):
            await AccountRegistry(db).get("missing")


class TestPartyDirectory:
    """거래처 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_create_and_list(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        directory = PartyDirectory(db)

        party = await directory.create(workbench.id, "Acme", "customer", gstin="27AAAAA0000A1Z5")

        assert party.party_type == PartyType.CUSTOMER
        assert [p.id for p in await directory.list(workbench.id)] == [party.id]

    @pytest.mark.asyncio
    async def test_invalid_party_type(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        with pytest.raises(ValidationError):
            await PartyDirectory(db).create(workbench.id, "Acme", "partner")

    @pytest.mark.asyncio
    async def test_deactivate(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        directory = PartyDirectory(db)
        party = await directory.create(workbench.id, "Acme")

        updated = await directory.deactivate(party.id)

        assert updated.is_active is False
        assert await directory.list(workbench.id, include_inactive=False) == []

    @pytest.mark.asyncio
    async def test_delete_unreferenced(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        directory = PartyDirectory(db)
        party = await directory.create(workbench.id, "Acme")

        await directory.delete(party.id)

        assert await directory.find(party.id) is None

    @pytest.mark.asyncio
    async def test_delete_referenced_party(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        """레코드가 참조하는 거래처는 삭제 불가"""
        directory = PartyDirectory(db)
        party = await directory.create(workbench.id, "Acme")
        await RecordStore(db).create(_draft(workbench.id, party_id=party.id))

        with pytest.raises(ValidationError):
            await directory.delete(party.id)

        assert await directory.find(party.id) is not None

    @pytest.mark.asyncio
    async def test_foreign_key_blocks_raw_delete(
        self, db: SQLiteAdapter, workbench: Workbench
    ) -> None:
        party = await PartyDirectory(db).create(workbench.id, "Acme")
        await RecordStore(db).create(_draft(workbench.id, party_id=party.id))

        with pytest.raises(PersistenceError):
            async with db.transaction():
                await db.execute("DELETE FROM party WHERE id = ?", (party.id,))


class TestRecordStore:
    """레코드 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_create_and_get(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        store = RecordStore(db)
        draft = _draft(workbench.id, "250.50")

        created = await store.create(draft)

        assert created.net_amount == Decimal("250.50")
        assert created.status == RecordStatus.DRAFT
        assert created.created_at is not None
        assert (await store.get(draft.id)).summary == "Draft sale"

    @pytest.mark.asyncio
    async def test_transaction_requires_direction(
        self, db: SQLiteAdapter, workbench: Workbench
    ) -> None:
        draft = _draft(workbench.id)
        draft.metadata = TransactionMetadata()

        with pytest.raises(ValidationError):
            await RecordStore(db).create(draft)

    @pytest.mark.asyncio
    async def test_update_allowed_fields(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        store = RecordStore(db)
        created = await store.create(_draft(workbench.id))

        updated = await store.update(
            created.id, {"net_amount": "80", "metadata": {"direction": "credit", "note": "x"}}
        )

        assert updated.net_amount == Decimal("80")
        assert updated.gross_amount == Decimal("100")
        assert updated.metadata.extra == {"note": "x"}

    @pytest.mark.asyncio
    async def test_update_rejects_other_fields(
        self, db: SQLiteAdapter, workbench: Workbench
    ) -> None:
        store = RecordStore(db)
        created = await store.create(_draft(workbench.id))

        with pytest.raises(ValidationError):
            await store.update(created.id, {"summary": "rewritten"})

    @pytest.mark.asyncio
    async def test_transition_status_compare_and_swap(
        self, db: SQLiteAdapter, workbench: Workbench
    ) -> None:
        store = RecordStore(db)
        created = await store.create(_draft(workbench.id))

        first = await store.transition_status(created.id, RecordStatus.DRAFT, RecordStatus.CONFIRMED)
        second = await store.transition_status(created.id, RecordStatus.DRAFT, RecordStatus.CONFIRMED)

        assert first is True
        assert second is False

    @pytest.mark.asyncio
    async def test_list_filters(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        store = RecordStore(db)
        first = await store.create(_draft(workbench.id))
        await store.create(_draft(workbench.id))
        await store.transition_status(first.id, RecordStatus.DRAFT, RecordStatus.CANCELLED)

        assert len(await store.list_by_workbench(workbench.id)) == 2
        assert len(await store.list_by_workbench(workbench.id, RecordStatus.DRAFT)) == 1
        assert len(await store.list_by_type(workbench.id, RecordType.BUDGET)) == 0

    @pytest.mark.asyncio
    async def test_get_missing(self, db: SQLiteAdapter) -> None:
        with pytest.raises(NotFound):
            await RecordStore(db).get("missing")


class TestBudgetStore:
    """예산 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_create_with_items(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        store = BudgetStore(db)

        budget = await store.create(
            workbench.id, "Q1", Decimal("10000"),
            items=[BudgetItem("Marketing", Decimal("6000")), BudgetItem("Rent", Decimal("4000"))],
        )

        assert [item.category for item in budget.items] == ["Marketing", "Rent"]
        assert [b.id for b in await store.list_with_items(workbench.id)] == [budget.id]

    @pytest.mark.asyncio
    async def test_negative_amount(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        with pytest.raises(ValidationError):
            await BudgetStore(db).create(workbench.id, "Q1", Decimal("-1"))


class TestLedgerStore:
    """분개 저장소 테스트"""

    def _posting(self, record: Record, accounts: dict[str, str], debit: str, credit: str) -> Posting:
        posting = Posting(posting_id=str(uuid4()), record_id=record.id)
        posting.entries = [
            LedgerEntry(
                id=str(uuid4()), workbench_id=record.workbench_id,
                posting_id=posting.posting_id, record_id=record.id,
                leg=EntryLeg.PRIMARY, account_id=accounts["Sales Revenue"],
                amount=Decimal(credit), entry_type=EntryType.CREDIT,
            ),
            LedgerEntry(
                id=str(uuid4()), workbench_id=record.workbench_id,
                posting_id=posting.posting_id, record_id=record.id,
                leg=EntryLeg.COUNTER, account_id=accounts["Cash"],
                amount=Decimal(debit), entry_type=EntryType.DEBIT,
            ),
        ]
        return posting

    async def _setup(self, db: SQLiteAdapter, workbench: Workbench):
        accounts = {a.name: a.id for a in await AccountRegistry(db).list(workbench.id)}
        record = await RecordStore(db).create(_draft(workbench.id))
        return accounts, record

    @pytest.mark.asyncio
    async def test_save_and_trial_balance(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        accounts, record = await self._setup(db, workbench)
        store = LedgerStore(db)

        await store.save_posting(self._posting(record, accounts, "100", "100"))

        balances = await store.trial_balance(workbench.id)
        assert balances[accounts["Cash"]] == Decimal("100")
        assert balances[accounts["Sales Revenue"]] == Decimal("-100")
        assert sum(balances.values()) == Decimal("0")
        assert await store.has_posting(record.id)
        assert await store.processed_record_ids(workbench.id) == {record.id}
        assert len(await store.list_by_account(accounts["Cash"])) == 1

    @pytest.mark.asyncio
    async def test_unbalanced_rejected(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        accounts, record = await self._setup(db, workbench)

        with pytest.raises(ValueError):
            await LedgerStore(db).save_posting(self._posting(record, accounts, "100", "90"))

        assert await LedgerStore(db).count(workbench.id) == 0

    @pytest.mark.asyncio
    async def test_same_record_leg_once(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        accounts, record = await self._setup(db, workbench)
        store = LedgerStore(db)
        await store.save_posting(self._posting(record, accounts, "100", "100"))

        with pytest.raises(PersistenceError):
            await store.save_posting(self._posting(record, accounts, "100", "100"))

        assert await store.count(workbench.id) == 2


class TestAuditLog:
    """감사 로그 테스트"""

    @pytest.mark.asyncio
    async def test_append_and_list(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        audit = AuditLog(db)

        first = await audit.append(
            workbench.id, "alice", AuditAction.CREATE_RECORD, "record", "r1",
            new_data={"amount": Decimal("10")},
        )
        await audit.append(workbench.id, "bob", AuditAction.CANCEL_RECORD, "record", "r1")

        entries = await audit.list_by_workbench(workbench.id)
        assert [e.actor for e in entries] == ["bob", "alice"]
        assert first.new_data == {"amount": "10"}
        assert len(await audit.list_by_entity("record", "r1")) == 2

    @pytest.mark.asyncio
    async def test_filter_and_limit(self, db: SQLiteAdapter, workbench: Workbench) -> None:
        audit = AuditLog(db)
        for _ in range(3):
            await audit.append(workbench.id, "a", AuditAction.CREATE_RECORD, "record", "r")
        await audit.append(workbench.id, "a", AuditAction.CONFIRM_RECORD, "record", "r")

        assert len(await audit.list_by_workbench(workbench.id, limit=2)) == 2
        confirmed = await audit.list_by_workbench(workbench.id, action=AuditAction.CONFIRM_RECORD)
        assert [e.action for e in confirmed] == ["CONFIRM_RECORD"]
        assert await audit.count(workbench.id) == 4
