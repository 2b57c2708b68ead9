"""
레코드 생성/취소 통합 테스트
"""

from datetime import date
from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import Workbench
from core.engine import LedgerEngine
from core.errors import (
    InvalidStateTransition,
    NotFound,
    ValidationError,
    WorkbenchNotFound,
)
from core.storage import AuditLog, BudgetStore, PartyDirectory
from core.types import (
    ComplianceStatus,
    Direction,
    PartyType,
    PaymentStatus,
    RecordStatus,
    RecordType,
)
from tests.helpers import txn


class TestCreateTransaction:
    """거래 레코드 생성 테스트"""

    @pytest.mark.asyncio
    async def test_draft_with_amounts(self, engine: LedgerEngine, workbench: Workbench) -> None:
        record = await engine.create_record(
            workbench.id, "transaction", "Invoice #1",
            txn("5000", payment_status="partial", paid_amount="2000", category="Sales"),
            actor="alice",
        )

        assert record.status == RecordStatus.DRAFT
        assert record.gross_amount == record.net_amount == Decimal("5000")
        assert record.issue_date == date(2026, 3, 10)
        assert record.created_by == "alice"
        meta = record.transaction_meta
        assert meta.direction == Direction.CREDIT
        assert meta.payment_status == PaymentStatus.PARTIAL
        assert meta.paid_amount == Decimal("2000")

    @pytest.mark.asyncio
    async def test_net_amount_zero_is_kept(
        self, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(
            workbench.id, "transaction", "Free sample", txn("100", net_amount="0")
        )

        assert record.net_amount == Decimal("0")
        assert record.gross_amount == Decimal("100")

    @pytest.mark.asyncio
    async def test_audit_entry(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("10"))

        entries = await AuditLog(db).list_by_entity("record", record.id)
        assert [e.action for e in entries] == ["CREATE_RECORD"]
        assert entries[0].actor == engine.config.default_actor
        assert entries[0].new_data["net_amount"] == "10"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "record_type, summary, metadata",
        [
            ("transaction", "No direction", {"amount": "10"}),
            ("transaction", "Negative", txn("-5")),
            ("transaction", "Bad date", txn("5", transaction_date="tomorrow")),
            ("transaction", "   ", txn("5")),
            ("adjustment", "Direct", {}),
            ("invoice", "Unknown", {}),
        ],
    )
    async def test_invalid_input(
        self,
        db: SQLiteAdapter,
        engine: LedgerEngine,
        workbench: Workbench,
        record_type: str,
        summary: str,
        metadata: dict,
    ) -> None:
        before = await db.count_rows("record")

        with pytest.raises(ValidationError):
            await engine.create_record(workbench.id, record_type, summary, metadata)

        assert await db.count_rows("record") == before

    @pytest.mark.asyncio
    async def test_unknown_workbench(self, engine: LedgerEngine) -> None:
        with pytest.raises(WorkbenchNotFound):
            await engine.create_record("missing", "transaction", "Sale", txn("1"))

    @pytest.mark.asyncio
    async def test_unknown_party(self, engine: LedgerEngine, workbench: Workbench) -> None:
        with pytest.raises(NotFound):
            await engine.create_record(
                workbench.id, "transaction", "Sale", txn("1", party_id="ghost")
            )


class TestCreateOtherTypes:
    """신고/예산/거래처 레코드 생성 테스트"""

    @pytest.mark.asyncio
    async def test_compliance_pending_is_draft(
        self, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(
            workbench.id, "compliance", "GST return", {"deadline": "2026-03-20"}
        )

        assert record.status == RecordStatus.DRAFT
        assert record.due_date == date(2026, 3, 20)
        assert record.metadata.name == "GST return"

    @pytest.mark.asyncio
    async def test_compliance_filed_is_confirmed(
        self, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(
            workbench.id, "compliance", "TDS", {"deadline": "2026-03-07", "status": "filed"}
        )

        assert record.status == RecordStatus.CONFIRMED
        assert record.metadata.status == ComplianceStatus.FILED

    @pytest.mark.asyncio
    async def test_compliance_bad_deadline(
        self, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        with pytest.raises(ValidationError):
            await engine.create_record(
                workbench.id, "compliance", "GST", {"deadline": "next week"}
            )

    @pytest.mark.asyncio
    async def test_budget_creates_budget_and_item(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(
            workbench.id, "budget", "Q1 Marketing", {"amount": "10000", "department": "Marketing"}
        )

        assert record.status == RecordStatus.CONFIRMED
        budgets = await BudgetStore(db).list_with_items(workbench.id)
        assert len(budgets) == 1
        assert budgets[0].record_id == record.id
        assert budgets[0].total_amount == Decimal("10000")
        assert [(i.category, i.amount) for i in budgets[0].items] == [("Marketing", Decimal("10000"))]

    @pytest.mark.asyncio
    async def test_budget_default_category(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        await engine.create_record(workbench.id, "budget", "Misc", {"amount": "500"})

        budget = (await BudgetStore(db).list_with_items(workbench.id))[0]
        assert budget.items[0].category == "General"

    @pytest.mark.asyncio
    async def test_party_record(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(
            workbench.id, "party", "Acme Corp", {"party_type": "customer", "gstin": "29ABCDE1234F1Z5"}
        )

        party = await PartyDirectory(db).get(record.party_id)
        assert record.record_type == RecordType.PARTY
        assert record.status == RecordStatus.CONFIRMED
        assert party.name == "Acme Corp"
        assert party.party_type == PartyType.CUSTOMER
        assert party.gstin == "29ABCDE1234F1Z5"


class TestCancel:
    """레코드 취소 테스트"""

    @pytest.mark.asyncio
    async def test_cancel_draft(
        self, db: SQLiteAdapter, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("10"))

        cancelled = await engine.cancel_record(record.id, actor="bob")

        assert cancelled.status == RecordStatus.CANCELLED
        entries = await AuditLog(db).list_by_entity("record", record.id)
        assert [e.action for e in entries] == ["CREATE_RECORD", "CANCEL_RECORD"]
        assert entries[-1].old_data == {"status": "draft"}

    @pytest.mark.asyncio
    async def test_cancel_confirmed(self, engine: LedgerEngine, workbench: Workbench) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("10"))
        await engine.confirm_record(record.id)

        with pytest.raises(InvalidStateTransition):
            await engine.cancel_record(record.id)

    @pytest.mark.asyncio
    async def test_cancel_twice(self, engine: LedgerEngine, workbench: Workbench) -> None:
        record = await engine.create_record(workbench.id, "transaction", "Sale", txn("10"))
        await engine.cancel_record(record.id)

        with pytest.raises(InvalidStateTransition):
            await engine.cancel_record(record.id)

    @pytest.mark.asyncio
    async def test_cancel_missing(self, engine: LedgerEngine) -> None:
        with pytest.raises(NotFound):
            await engine.cancel_record("missing")


class TestDeactivateParty:
    """거래처 비활성화 테스트"""

    @pytest.mark.asyncio
    async def test_referencing_records_survive(
        self, engine: LedgerEngine, workbench: Workbench
    ) -> None:
        party_record = await engine.create_record(workbench.id, "party", "Acme", {})
        sale = await engine.create_record(
            workbench.id, "transaction", "Sale", txn("10", party_id=party_record.party_id)
        )

        party = await engine.deactivate_party(party_record.party_id)

        assert party.is_active is False
        records = await engine.list_records(workbench.id, record_type="transaction")
        assert [r.party_id for r in records] == [party_record.party_id]
        assert records[0].id == sale.id
