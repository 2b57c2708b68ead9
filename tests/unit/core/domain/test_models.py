"""
도메인 모델 테스트

metadata tagged union 변환, extra 보존, DB row 복원
"""

import json
from datetime import date
from decimal import Decimal

import pytest

from core.domain.models import (
    AdjustmentMetadata,
    BudgetMetadata,
    ComplianceMetadata,
    LedgerEntry,
    PartyMetadata,
    Record,
    TransactionMetadata,
    parse_metadata,
    to_json,
    to_plain,
)
from core.errors import ValidationError
from core.types import (
    AdjustmentType,
    ComplianceStatus,
    Direction,
    EntryLeg,
    EntryType,
    PartyType,
    PaymentStatus,
    PaymentType,
    RecordStatus,
    RecordType,
)


class TestToPlain:
    """직렬화 헬퍼 테스트"""

    def test_converts_nested_values(self) -> None:
        value = {
            "amount": Decimal("12.50"),
            "direction": Direction.CREDIT,
            "day": date(2026, 3, 1),
            "tags": {"b", "a"},
            "items": [Decimal("1"), (Decimal("2"),)],
        }

        assert to_plain(value) == {
            "amount": "12.50",
            "direction": "credit",
            "day": "2026-03-01",
            "tags": ["a", "b"],
            "items": ["1", ["2"]],
        }

    def test_to_json_is_sorted(self) -> None:
        assert to_json({"b": Decimal("1"), "a": "x"}) == '{"a": "x", "b": "1"}'


class TestTransactionMetadata:
    """거래 metadata 테스트"""

    def test_defaults(self) -> None:
        meta = TransactionMetadata.from_dict({})

        assert meta.direction is None
        assert meta.payment_status == PaymentStatus.COMPLETED
        assert meta.payment_type == PaymentType.CASH
        assert meta.tags == set()
        assert meta.is_reversed is False

    def test_parses_known_fields(self) -> None:
        meta = TransactionMetadata.from_dict({
            "direction": "CREDIT",
            "payment_status": "partial",
            "paid_amount": "2000",
            "tags": "gst, export ,",
            "payment_type": "upi",
            "is_reversed": "true",
        })

        assert meta.direction == Direction.CREDIT
        assert meta.payment_status == PaymentStatus.PARTIAL
        assert meta.paid_amount == Decimal("2000")
        assert meta.tags == {"gst", "export"}
        assert meta.payment_type == PaymentType.UPI
        assert meta.is_reversed is True

    def test_unknown_keys_preserved_in_extra(self) -> None:
        meta = TransactionMetadata.from_dict({"direction": "debit", "color": "red"})

        assert meta.extra == {"color": "red"}
        assert meta.to_dict()["color"] == "red"

    def test_to_dict_omits_none(self) -> None:
        data = TransactionMetadata(direction=Direction.DEBIT, tags={"x"}).to_dict()

        assert "category" not in data
        assert data["direction"] == "debit"
        assert data["tags"] == ["x"]
        assert data["payment_type"] == "cash"

    def test_from_dict_to_dict_keeps_values(self) -> None:
        source = {"direction": "credit", "paid_amount": "10.5", "note": "hi"}

        restored = TransactionMetadata.from_dict(TransactionMetadata.from_dict(source).to_dict())

        assert restored.paid_amount == Decimal("10.5")
        assert restored.extra == {"note": "hi"}

    def test_invalid_enum(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            TransactionMetadata.from_dict({"direction": "sideways"})

        assert "credit" in exc_info.value.details["allowed"]

    def test_invalid_amount(self) -> None:
        with pytest.raises(ValidationError):
            TransactionMetadata.from_dict({"paid_amount": "abc"})


class TestOtherMetadata:
    """기타 record_type metadata 테스트"""

    def test_compliance(self) -> None:
        meta = ComplianceMetadata.from_dict({"name": "GSTR-3B", "deadline": "2026-03-20"})

        assert meta.deadline == date(2026, 3, 20)
        assert meta.status == ComplianceStatus.PENDING
        assert meta.is_filed is False

    def test_compliance_filed(self) -> None:
        assert ComplianceMetadata(status=ComplianceStatus.FILED).is_filed
        assert ComplianceMetadata(status=ComplianceStatus.COMPLETED).is_filed

    def test_budget(self) -> None:
        meta = BudgetMetadata.from_dict({"budget_name": "Q1", "amount": 10000})

        assert meta.amount == Decimal("10000")

    def test_party(self) -> None:
        meta = PartyMetadata.from_dict({"party_name": "Acme", "party_type": "customer"})

        assert meta.party_type == PartyType.CUSTOMER

    def test_adjustment(self) -> None:
        meta = AdjustmentMetadata.from_dict({
            "adjustment_type": "reverse",
            "adjustment_amount": "-500",
        })

        assert meta.adjustment_type == AdjustmentType.REVERSE
        assert meta.adjustment_amount == Decimal("-500")

    @pytest.mark.parametrize(
        "record_type, expected",
        [
            (RecordType.TRANSACTION, TransactionMetadata),
            (RecordType.COMPLIANCE, ComplianceMetadata),
            (RecordType.BUDGET, BudgetMetadata),
            (RecordType.PARTY, PartyMetadata),
            (RecordType.ADJUSTMENT, AdjustmentMetadata),
        ],
    )
    def test_parse_metadata_dispatch(self, record_type: RecordType, expected: type) -> None:
        assert isinstance(parse_metadata(record_type, None), expected)


class TestRecord:
    """Record 엔티티 테스트"""

    def _row(self, **overrides) -> dict:
        row = {
            "id": "rec-1",
            "workbench_id": "wb-1",
            "record_type": "transaction",
            "summary": "Invoice",
            "status": "draft",
            "gross_amount": "1000",
            "net_amount": "1000",
            "tax_amount": "0",
            "party_id": None,
            "issue_date": "2026-03-01",
            "due_date": None,
            "metadata_json": json.dumps({"direction": "credit", "memo": "x"}),
            "created_by": "tester",
            "created_at": "2026-03-01T00:00:00+00:00",
            "updated_at": None,
        }
        row.update(overrides)
        return row

    def test_from_row(self) -> None:
        record = Record.from_row(self._row())

        assert record.record_type == RecordType.TRANSACTION
        assert record.status == RecordStatus.DRAFT
        assert record.net_amount == Decimal("1000")
        assert record.issue_date == date(2026, 3, 1)
        assert record.transaction_meta.direction == Direction.CREDIT
        assert record.metadata.extra == {"memo": "x"}

    def test_carrying_amount_is_net(self) -> None:
        record = Record.from_row(self._row(net_amount="0"))

        assert record.carrying_amount == Decimal("0")
        assert record.gross_amount == Decimal("1000")

    def test_transaction_meta_on_other_type(self) -> None:
        record = Record.from_row(self._row(record_type="budget", metadata_json="{}"))

        assert record.is_transaction is False
        with pytest.raises(ValidationError):
            _ = record.transaction_meta

    def test_to_dict(self) -> None:
        data = Record.from_row(self._row()).to_dict()

        assert data["gross_amount"] == "1000"
        assert data["metadata"]["direction"] == "credit"
        assert data["issue_date"] == "2026-03-01"
        assert data["due_date"] is None


class TestLedgerEntry:
    """LedgerEntry 테스트"""

    def test_signed_amount(self) -> None:
        common = dict(
            id="e", workbench_id="wb", posting_id="p", record_id="r",
            leg=EntryLeg.PRIMARY, account_id="a", amount=Decimal("10"),
        )

        assert LedgerEntry(entry_type=EntryType.DEBIT, **common).signed_amount == Decimal("10")
        assert LedgerEntry(entry_type=EntryType.CREDIT, **common).signed_amount == Decimal("-10")
