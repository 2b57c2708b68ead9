"""
도메인 모델

Account, Party, Record, LedgerEntry, AuditLogEntry, Budget, Workbench 정의.

Record.metadata는 record_type별 tagged union:
- transaction → TransactionMetadata
- compliance  → ComplianceMetadata
- budget      → BudgetMetadata
- party       → PartyMetadata
- adjustment  → AdjustmentMetadata
알려지지 않은 키(UI 표시용 필드 등)는 extra에 그대로 보존.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, ClassVar

from core.errors import ValidationError
from core.types import (
    AccountType,
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
from core.utils.dates import parse_date
from core.utils.money import ZERO, to_decimal, to_decimal_or_none


# =============================================================================
# 직렬화 헬퍼
# =============================================================================


def to_plain(value: Any) -> Any:
    """JSON 저장 가능한 값으로 변환"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(str(v) for v in value)
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


def _enum(enum_cls: type[Enum]) -> Callable[[Any], Any]:
    def parse(value: Any) -> Any:
        if value is None or isinstance(value, enum_cls):
            return value
        try:
            return enum_cls(value)
        except ValueError:
            pass
        try:
            return enum_cls(str(value).strip().lower())
        except ValueError as e:
            allowed = [m.value for m in enum_cls]
            raise ValidationError(
                f"invalid {enum_cls.__name__}: {value!r}", {"allowed": allowed}
            ) from e

    return parse


def _tags(value: Any) -> set[str]:
    if value is None:
        return set()
    if isinstance(value, str):
        return {t.strip() for t in value.split(",") if t.strip()}
    return {str(t) for t in value}


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _date(value: Any) -> date | None:
    return parse_date(value)


# =============================================================================
# Record metadata (tagged union)
# =============================================================================


@dataclass
class RecordMetadata:
    """record_type별 metadata 공통 기반

    PARSERS에 정의된 필드만 타입 변환, 나머지는 extra에 보존.
    """

    PARSERS: ClassVar[dict[str, Callable[[Any], Any]]] = {}

    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "RecordMetadata":
        """dict → metadata 변환

        Raises:
            ValidationError: enum/금액 필드 값이 유효하지 않은 경우
        """
        remaining = dict(data or {})
        extra = dict(remaining.pop("extra", None) or {})
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name == "extra" or f.name not in remaining:
                continue
            raw = remaining.pop(f.name)
            if raw is None:
                continue
            parser = cls.PARSERS.get(f.name, lambda v: v)
            kwargs[f.name] = parser(raw)
        extra.update(remaining)
        return cls(extra=extra, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        """metadata → dict 변환 (None 필드 생략, extra 병합)"""
        result: dict[str, Any] = {}
        for f in fields(self):
            if f.name == "extra":
                continue
            value = getattr(self, f.name)
            if value is None:
                continue
            result[f.name] = to_plain(value)
        for key, value in self.extra.items():
            result.setdefault(key, to_plain(value))
        return result


@dataclass
class TransactionMetadata(RecordMetadata):
    """거래 레코드 metadata"""

    PARSERS: ClassVar[dict[str, Callable[[Any], Any]]] = {
        "direction": _enum(Direction),
        "payment_status": _enum(PaymentStatus),
        "paid_amount": lambda v: to_decimal_or_none(v, "paid_amount"),
        "category": _opt_str,
        "tags": _tags,
        "payment_type": _enum(PaymentType),
        "external_reference": _opt_str,
        "account_id": _opt_str,
        "settlement_account_id": _opt_str,
        "is_reversed": _bool,
        "last_adjustment_id": _opt_str,
        "confirmed_at": _opt_str,
        "confirmed_by": _opt_str,
    }

    direction: Direction | None = None
    payment_status: PaymentStatus = PaymentStatus.COMPLETED
    paid_amount: Decimal | None = None
    category: str | None = None
    tags: set[str] = field(default_factory=set)
    payment_type: PaymentType = PaymentType.CASH
    external_reference: str | None = None
    account_id: str | None = None
    settlement_account_id: str | None = None
    is_reversed: bool = False
    last_adjustment_id: str | None = None
    confirmed_at: str | None = None
    confirmed_by: str | None = None


@dataclass
class ComplianceMetadata(RecordMetadata):
    """신고/컴플라이언스 레코드 metadata"""

    PARSERS: ClassVar[dict[str, Callable[[Any], Any]]] = {
        "name": _opt_str,
        "deadline": _date,
        "status": _enum(ComplianceStatus),
        "filed_date": _date,
    }

    name: str | None = None
    deadline: date | None = None
    status: ComplianceStatus = ComplianceStatus.PENDING
    filed_date: date | None = None

    @property
    def is_filed(self) -> bool:
        """신고 완료 여부"""
        return self.status in (ComplianceStatus.FILED, ComplianceStatus.COMPLETED)


@dataclass
class BudgetMetadata(RecordMetadata):
    """예산 레코드 metadata"""

    PARSERS: ClassVar[dict[str, Callable[[Any], Any]]] = {
        "budget_name": _opt_str,
        "amount": lambda v: to_decimal_or_none(v, "amount"),
        "category": _opt_str,
        "department": _opt_str,
        "budget_id": _opt_str,
    }

    budget_name: str | None = None
    amount: Decimal | None = None
    category: str | None = None
    department: str | None = None
    budget_id: str | None = None


@dataclass
class PartyMetadata(RecordMetadata):
    """거래처 레코드 metadata"""

    PARSERS: ClassVar[dict[str, Callable[[Any], Any]]] = {
        "party_name": _opt_str,
        "party_type": _enum(PartyType),
        "gstin": _opt_str,
        "pan": _opt_str,
    }

    party_name: str | None = None
    party_type: PartyType | None = None
    gstin: str | None = None
    pan: str | None = None


@dataclass
class AdjustmentMetadata(RecordMetadata):
    """조정 레코드 metadata

    adjustment_amount는 부호 있는 delta.
    """

    PARSERS: ClassVar[dict[str, Callable[[Any], Any]]] = {
        "original_record_id": _opt_str,
        "adjustment_type": _enum(AdjustmentType),
        "adjustment_amount": lambda v: to_decimal(v, "adjustment_amount"),
        "reason": _opt_str,
        "actor": _opt_str,
        "corrected_party_id": _opt_str,
        "new_status": _enum(ComplianceStatus),
        "filed_date": _date,
    }

    original_record_id: str | None = None
    adjustment_type: AdjustmentType | None = None
    adjustment_amount: Decimal = ZERO
    reason: str | None = None
    actor: str | None = None
    corrected_party_id: str | None = None
    new_status: ComplianceStatus | None = None
    filed_date: date | None = None


METADATA_TYPES: dict[RecordType, type[RecordMetadata]] = {
    RecordType.TRANSACTION: TransactionMetadata,
    RecordType.COMPLIANCE: ComplianceMetadata,
    RecordType.BUDGET: BudgetMetadata,
    RecordType.PARTY: PartyMetadata,
    RecordType.ADJUSTMENT: AdjustmentMetadata,
}


def parse_metadata(record_type: RecordType, data: dict[str, Any] | None) -> RecordMetadata:
    """record_type에 맞는 metadata 타입으로 변환"""
    return METADATA_TYPES[record_type].from_dict(data)


# =============================================================================
# 엔티티
# =============================================================================


@dataclass
class Workbench:
    """워크벤치 (단일 통화 장부 단위)"""

    id: str
    name: str
    currency: str = "INR"
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "currency": self.currency,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class Account:
    """계정과목

    posting이 참조한 뒤에는 불변 (DB 트리거로 강제).
    """

    id: str
    workbench_id: str
    name: str
    account_type: AccountType
    category: str | None = None
    cash_impact: bool = False
    is_active: bool = True

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Account":
        return cls(
            id=row["id"],
            workbench_id=row["workbench_id"],
            name=row["name"],
            account_type=AccountType(row["account_type"]),
            category=row.get("category"),
            cash_impact=bool(row.get("cash_impact", 0)),
            is_active=bool(row.get("is_active", 1)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "workbench_id": self.workbench_id,
            "name": self.name,
            "account_type": self.account_type.value,
            "category": self.category,
            "cash_impact": self.cash_impact,
            "is_active": self.is_active,
        }


@dataclass
class Party:
    """거래처 (고객/공급자)"""

    id: str
    workbench_id: str
    name: str
    party_type: PartyType
    gstin: str | None = None
    pan: str | None = None
    is_active: bool = True
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Party":
        return cls(
            id=row["id"],
            workbench_id=row["workbench_id"],
            name=row["name"],
            party_type=PartyType(row["party_type"]),
            gstin=row.get("gstin"),
            pan=row.get("pan"),
            is_active=bool(row.get("is_active", 1)),
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "workbench_id": self.workbench_id,
            "name": self.name,
            "party_type": self.party_type.value,
            "gstin": self.gstin,
            "pan": self.pan,
            "is_active": self.is_active,
            "created_at": self.created_at,
        }


@dataclass
class Record:
    """도메인 레코드

    Posting/Adjustment 서비스만 변경 가능 (party_id, net_amount, status, metadata).
    삭제 불가, 취소는 status 전이.
    """

    id: str
    workbench_id: str
    record_type: RecordType
    summary: str
    status: RecordStatus = RecordStatus.DRAFT
    gross_amount: Decimal = ZERO
    net_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    party_id: str | None = None
    issue_date: date | None = None
    due_date: date | None = None
    metadata: RecordMetadata = field(default_factory=RecordMetadata)
    created_by: str = "system"
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def carrying_amount(self) -> Decimal:
        """장부 금액 (조정 반영된 net_amount)"""
        return self.net_amount

    @property
    def is_transaction(self) -> bool:
        return self.record_type is RecordType.TRANSACTION

    @property
    def transaction_meta(self) -> TransactionMetadata:
        """거래 metadata (거래 레코드가 아니면 ValidationError)"""
        if not isinstance(self.metadata, TransactionMetadata):
            raise ValidationError(
                f"record {self.id} is not a transaction", {"record_type": self.record_type.value}
            )
        return self.metadata

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Record":
        record_type = RecordType(row["record_type"])
        raw_metadata = json.loads(row.get("metadata_json") or "{}")
        return cls(
            id=row["id"],
            workbench_id=row["workbench_id"],
            record_type=record_type,
            summary=row["summary"],
            status=RecordStatus(row["status"]),
            gross_amount=Decimal(row["gross_amount"]),
            net_amount=Decimal(row["net_amount"]),
            tax_amount=Decimal(row["tax_amount"]),
            party_id=row.get("party_id"),
            issue_date=parse_date(row.get("issue_date")),
            due_date=parse_date(row.get("due_date")),
            metadata=parse_metadata(record_type, raw_metadata),
            created_by=row["created_by"],
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "workbench_id": self.workbench_id,
            "record_type": self.record_type.value,
            "status": self.status.value,
            "summary": self.summary,
            "gross_amount": str(self.gross_amount),
            "net_amount": str(self.net_amount),
            "tax_amount": str(self.tax_amount),
            "party_id": self.party_id,
            "issue_date": self.issue_date.isoformat() if self.issue_date else None,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "metadata": self.metadata.to_dict(),
            "created_by": self.created_by,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class LedgerEntry:
    """분개 (append-only)

    amount는 항상 0 이상, 방향은 entry_type으로 표현.
    같은 posting_id의 primary/counter 두 다리가 한 쌍.
    """

    id: str
    workbench_id: str
    posting_id: str
    record_id: str
    leg: EntryLeg
    account_id: str
    amount: Decimal
    entry_type: EntryType
    counter_account_id: str | None = None
    transaction_date: date | None = None
    category: str | None = None
    created_at: str | None = None

    @property
    def signed_amount(self) -> Decimal:
        """차변 +, 대변 -"""
        return self.amount if self.entry_type is EntryType.DEBIT else -self.amount

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "LedgerEntry":
        return cls(
            id=row["id"],
            workbench_id=row["workbench_id"],
            posting_id=row["posting_id"],
            record_id=row["record_id"],
            leg=EntryLeg(row["leg"]),
            account_id=row["account_id"],
            counter_account_id=row.get("counter_account_id"),
            amount=Decimal(row["amount"]),
            entry_type=EntryType(row["entry_type"]),
            transaction_date=parse_date(row.get("transaction_date")),
            category=row.get("category"),
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "workbench_id": self.workbench_id,
            "posting_id": self.posting_id,
            "record_id": self.record_id,
            "leg": self.leg.value,
            "account_id": self.account_id,
            "counter_account_id": self.counter_account_id,
            "amount": str(self.amount),
            "entry_type": self.entry_type.value,
            "transaction_date": self.transaction_date.isoformat() if self.transaction_date else None,
            "category": self.category,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class AuditLogEntry:
    """감사 로그 (append-only, 변경 작업 1건당 1행)"""

    id: str
    workbench_id: str
    actor: str
    action: str
    entity_type: str
    entity_id: str
    old_data: dict[str, Any] | None = None
    new_data: dict[str, Any] | None = None
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "AuditLogEntry":
        return cls(
            id=row["id"],
            workbench_id=row["workbench_id"],
            actor=row["actor"],
            action=row["action"],
            entity_type=row["entity_type"],
            entity_id=row["entity_id"],
            old_data=json.loads(row["old_data_json"]) if row.get("old_data_json") else None,
            new_data=json.loads(row["new_data_json"]) if row.get("new_data_json") else None,
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "workbench_id": self.workbench_id,
            "actor": self.actor,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "old_data": self.old_data,
            "new_data": self.new_data,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class BudgetItem:
    """예산 카테고리별 배정액"""

    category: str
    amount: Decimal
    id: int | None = None


@dataclass
class Budget:
    """예산

    실제 지출은 저장하지 않고 집계 시점에 계산.
    """

    id: str
    workbench_id: str
    name: str
    total_amount: Decimal
    category: str | None = None
    record_id: str | None = None
    items: list[BudgetItem] = field(default_factory=list)
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "workbench_id": self.workbench_id,
            "name": self.name,
            "total_amount": str(self.total_amount),
            "category": self.category,
            "record_id": self.record_id,
            "items": [
                {"category": item.category, "amount": str(item.amount)} for item in self.items
            ],
            "created_at": self.created_at,
        }


def to_json(data: Any) -> str:
    """DB 저장용 JSON 직렬화 (Decimal/date/Enum 변환)"""
    return json.dumps(to_plain(data), ensure_ascii=False, sort_keys=True)
