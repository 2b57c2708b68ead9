"""
레코드 확정 통합 테스트

posting 1건(두 다리) 생성, 중복 확정 방지, 결제 정보 검증
"""

import asyncio
from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import Workbench
from core.engine import LedgerEngine
from core.errors import (
    AlreadyConfirmed,
    InvalidStateTransition,
    NotFound,
    ValidationError,
)
from core.ledger.store import LedgerStore
from core.storage import AuditLog
from core.types import EntryLeg, EntryType, RecordStatus
from tests.helpers import txn


async def _accounts(engine: LedgerEngine, workbench: Workbench) -> dict[str, str]:
    return {a.name: a.id for a in await engine.list_accounts(workbench.id)}


class TestConfirm:
    """확정 기본 동작 테스트"""

    @pytest.mark.asyncio
    async def test_creates_balanced_posting(
        self, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("1000"))
        accounts = await _accounts(engine, workbench)

        result = await engine.confirm_record(record.id, actor="alice")

        confirmed = result["record"]
        primary, counter = result["ledger_entries"]
        assert confirmed.status == RecordStatus.CONFIRMED
        assert confirmed.transaction_meta.confirmed_by == "alice"
        assert primary.leg == EntryLeg.PRIMARY
        assert primary.account_id == accounts["Sales Revenue"]
        assert primary.entry_type == EntryType.CREDIT
        assert counter.account_id == accounts["Cash"]
        assert counter.entry_type == EntryType.DEBIT
        assert primary.amount == counter.amount == Decimal("1000")
        assert primary.posting_id == counter.posting_id

    @pytest.mark.asyncio
    async def test_expense_posting(self, engine: LedgerEngine, workbench: Workbench) -> None:
        record = await engine.create_record(
            workbench.id, "transaction", "Ads", txn("300", "debit", category="Marketing")
        )
        accounts = await _accounts(engine, workbench)

        result = await engine.confirm_record(record.id)

        primary, counter = result["ledger_entries"]
        assert primary.account_id == accounts["Marketing"]
        assert primary.entry_type == EntryType.DEBIT
        assert counter.entry_type == EntryType.CREDIT

    @pytest.mark.asyncio
    async def test_ledger_is_zero_sum(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        for amount, direction in (("1000", "credit"), ("250.75", "debit"), ("99.99", "credit")):
            record = await engine.create_record(
                workbench.id, "transaction", "Txn", txn(amount, direction)
            )
            await engine.confirm_record(record.id)

        balances = await LedgerStore(db).trial_balance(workbench.id)

        assert sum(balances.values()) == Decimal("0")
        assert await LedgerStore(db).count(workbench.id) == 6

    @pytest.mark.asyncio
    async def test_audit_entry(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("10"))

        result = await engine.confirm_record(record.id, actor="alice")

        entry = (await AuditLog(db).list_by_entity("record", record.id))[-1]
        assert entry.action == "CONFIRM_RECORD"
        assert entry.actor == "alice"
        assert entry.old_data["status"] == "draft"
        assert entry.new_data["posting_id"] == result["ledger_entries"][0].posting_id


class TestConfirmGuards:
    """중복 확정/상태 검증 테스트"""

    @pytest.mark.asyncio
    async def test_second_confirm_rejected(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        """두 번째 확정은 AlreadyConfirmed, 분개는 그대로 2건"""
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("1000"))
        await engine.confirm_record(record.id)

        with pytest.raises(AlreadyConfirmed):
            await engine.confirm_record(record.id)

        assert len(await LedgerStore(db).list_by_record(record.id)) == 2

    @pytest.mark.asyncio
    async def test_concurrent_confirms_post_once(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("1000"))

        results = await asyncio.gather(
            engine.confirm_record(record.id),
            engine.confirm_record(record.id),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], AlreadyConfirmed)
        assert len(await LedgerStore(db).list_by_record(record.id)) == 2

    @pytest.mark.asyncio
    async def test_cancelled_record(self, engine: LedgerEngine, workbench: Workbench) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("10"))
        await engine.cancel_record(record.id)

        with pytest.raises(InvalidStateTransition):
            await engine.confirm_record(record.id)

    @pytest.mark.asyncio
    async def test_non_transaction(self, engine: LedgerEngine, workbench: Workbench) -> None:
        record = await engine.create_record(
            workbench.id, "compliance", "GST", {"deadline": "2026-03-20"}
        )

        with pytest.raises(ValidationError):
            await engine.confirm_record(record.id)

    @pytest.mark.asyncio
    async def test_missing_record(self, engine: LedgerEngine) -> None:
        with pytest.raises(NotFound):
            await engine.confirm_record("missing")

    @pytest.mark.asyncio
    async def test_zero_amount(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Empty", txn("0"))

        with pytest.raises(ValidationError):
            await engine.confirm_record(record.id)

        assert (await engine.list_records(workbench.id))[0].status == RecordStatus.DRAFT
        assert await LedgerStore(db).count(workbench.id) == 0


class TestConfirmPayment:
    """확정 시 결제 정보 테스트"""

    @pytest.mark.asyncio
    async def test_non_cash_requires_reference(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(
            workbench.id, "transaction", "UPI sale", txn("500", payment_type="upi")
        )

        with pytest.raises(ValidationError):
            await engine.confirm_record(record.id)

        assert await LedgerStore(db).count(workbench.id) == 0

    @pytest.mark.asyncio
    async def test_non_cash_settles_to_bank(
        self, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("500"))
        accounts = await _accounts(engine, workbench)

        result = await engine.confirm_record(
            record.id, payment={"payment_type": "upi", "external_reference": "UTR123"}
        )

        assert result["ledger_entries"][1].account_id == accounts["Bank"]
        assert result["record"].transaction_meta.external_reference == "UTR123"

    @pytest.mark.asyncio
    async def test_amount_and_date_override(
        self, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("500"))

        result = await engine.confirm_record(
            record.id, payment={"amount": "450", "transaction_date": "2026-03-12"}
        )

        assert result["record"].net_amount == Decimal("450")
        assert result["record"].gross_amount == Decimal("500")
        assert str(result["ledger_entries"][0].transaction_date) == "2026-03-12"

    @pytest.mark.asyncio
    async def test_partial_requires_paid_amount(
        self, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("500"))

        with pytest.raises(ValidationError):
            await engine.confirm_record(record.id, payment={"payment_status": "partial"})

    @pytest.mark.asyncio
    async def test_unknown_payment_field(
        self, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("500"))

        with pytest.raises(ValidationError):
            await engine.confirm_record(record.id, payment={"summary": "changed"})

    @pytest.mark.asyncio
    async def test_settlement_account_must_be_cash(
        self, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("500"))
        accounts = await _accounts(engine, workbench)

        with pytest.raises(ValidationError):
            await engine.confirm_record(
                record.id, payment={"settlement_account_id": accounts["Equipment"]}
            )
