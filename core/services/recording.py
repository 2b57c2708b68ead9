"""
레코드 생성/취소 서비스

수동 입력, 문서 추출 결과를 Record로 등록.
레코드 생성과 감사 로그는 하나의 작업 단위.

record_type별 동작:
- transaction: metadata.amount → gross/net, transaction_date → issue_date
- compliance:  deadline → issue_date, filed/completed면 confirmed
- budget:      Budget + 기본 BudgetItem(department/category 또는 "General") 생성
- party:       Party 생성 후 해당 거래처를 참조하는 confirmed 레코드
- adjustment:  push_adjustment()로만 생성 가능
"""

import logging
from typing import Any
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import (
    BudgetItem,
    BudgetMetadata,
    ComplianceMetadata,
    PartyMetadata,
    Record,
    parse_metadata,
)
from core.domain.state_machines import RecordStateMachine
from core.errors import InvalidStateTransition, NotFound, ValidationError
from core.storage import AuditLog, BudgetStore, PartyDirectory, RecordStore, WorkbenchStore
from core.types import AuditAction, PartyType, RecordStatus, RecordType
from core.utils.dates import parse_date
from core.utils.money import ZERO, to_decimal_or_none

logger = logging.getLogger(__name__)

DEFAULT_BUDGET_CATEGORY = "General"

# metadata가 아니라 Record 필드로 옮겨지는 생성 입력
_RECORD_FIELD_KEYS = (
    "amount",
    "gross_amount",
    "net_amount",
    "tax_amount",
    "transaction_date",
    "issue_date",
    "due_date",
    "party_id",
)


def parse_record_type(value: RecordType | str) -> RecordType:
    """record_type 변환

    Raises:
        ValidationError: 알 수 없는 유형
    """
    try:
        return RecordType(value)
    except ValueError as e:
        raise ValidationError(
            f"invalid record_type: {value}",
            {"allowed": [t.value for t in RecordType]},
        ) from e


def _date_field(inputs: dict[str, Any], *keys: str):
    for key in keys:
        raw = inputs.get(key)
        if raw in (None, ""):
            continue
        parsed = parse_date(raw)
        if parsed is None:
            raise ValidationError(f"{key} must be an ISO date", {"field": key, "value": str(raw)})
        return parsed
    return None


class RecordingService:
    """레코드 생성/취소 서비스

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.records = RecordStore(db)
        self.parties = PartyDirectory(db)
        self.budgets = BudgetStore(db)
        self.workbenches = WorkbenchStore(db)
        self.audit = AuditLog(db)

    async def create_record(
        self,
        workbench_id: str,
        record_type: RecordType | str,
        summary: str,
        metadata: dict[str, Any] | None,
        actor: str,
    ) -> Record:
        """레코드 생성

        Args:
            workbench_id: 워크벤치 ID
            record_type: transaction / compliance / budget / party
            summary: 요약 (필수)
            metadata: 유형별 입력 (amount, direction, deadline 등)
            actor: 감사 로그 actor

        Returns:
            생성된 Record

        Raises:
            ValidationError: 필수 필드 누락/잘못된 값
            NotFound: 존재하지 않는 거래처
            WorkbenchNotFound: 존재하지 않는 워크벤치
        """
        record_type = parse_record_type(record_type)
        if record_type is RecordType.ADJUSTMENT:
            raise ValidationError(
                "adjustment records are created through push_adjustment",
                {"record_type": record_type.value},
            )
        if not summary or not summary.strip():
            raise ValidationError("summary is required", {"field": "summary"})

        inputs = dict(metadata or {})
        fields = {key: inputs.pop(key) for key in _RECORD_FIELD_KEYS if key in inputs}

        async with self.db.transaction():
            await self.workbenches.require(workbench_id)

            builder = {
                RecordType.TRANSACTION: self._build_transaction,
                RecordType.COMPLIANCE: self._build_compliance,
                RecordType.BUDGET: self._build_budget,
                RecordType.PARTY: self._build_party,
            }[record_type]
            record = await builder(workbench_id, summary.strip(), inputs, fields, actor)
            created = await self.records.create(record)

            if record_type is RecordType.BUDGET:
                await self._create_budget(created)

            await self.audit.append(
                workbench_id=workbench_id,
                actor=actor,
                action=AuditAction.CREATE_RECORD,
                entity_type="record",
                entity_id=created.id,
                new_data=created.to_dict(),
            )

        logger.info(
            "레코드 생성",
            extra={
                "workbench_id": workbench_id,
                "record_id": created.id,
                "record_type": record_type.value,
            },
        )
        return created

    # -------------------------------------------------------------------------
    # 유형별 Record 구성
    # -------------------------------------------------------------------------

    async def _build_transaction(
        self,
        workbench_id: str,
        summary: str,
        inputs: dict[str, Any],
        fields: dict[str, Any],
        actor: str,
    ) -> Record:
        raw_amount = fields.get("amount", fields.get("gross_amount"))
        gross = to_decimal_or_none(raw_amount, "amount") or ZERO
        if gross < ZERO:
            raise ValidationError("gross_amount must be non-negative", {"field": "amount"})

        net = to_decimal_or_none(fields.get("net_amount"), "net_amount")
        party_id = fields.get("party_id") or None
        if party_id is not None:
            await self._require_party(workbench_id, party_id)

        return Record(
            id=str(uuid4()),
            workbench_id=workbench_id,
            record_type=RecordType.TRANSACTION,
            summary=summary,
            status=RecordStatus.DRAFT,
            gross_amount=gross,
            net_amount=gross if net is None else net,
            tax_amount=to_decimal_or_none(fields.get("tax_amount"), "tax_amount") or ZERO,
            party_id=party_id,
            issue_date=_date_field(fields, "transaction_date", "issue_date"),
            due_date=_date_field(fields, "due_date"),
            metadata=parse_metadata(RecordType.TRANSACTION, inputs),
            created_by=actor,
        )

    async def _build_compliance(
        self,
        workbench_id: str,
        summary: str,
        inputs: dict[str, Any],
        fields: dict[str, Any],
        actor: str,
    ) -> Record:
        meta = parse_metadata(RecordType.COMPLIANCE, inputs)
        assert isinstance(meta, ComplianceMetadata)
        if inputs.get("deadline") and meta.deadline is None:
            raise ValidationError("deadline must be an ISO date", {"field": "deadline"})
        if meta.name is None:
            meta.name = summary

        amount = to_decimal_or_none(fields.get("amount"), "amount") or ZERO
        return Record(
            id=str(uuid4()),
            workbench_id=workbench_id,
            record_type=RecordType.COMPLIANCE,
            summary=summary,
            status=RecordStatus.CONFIRMED if meta.is_filed else RecordStatus.DRAFT,
            gross_amount=amount,
            net_amount=amount,
            issue_date=meta.deadline,
            due_date=meta.deadline,
            metadata=meta,
            created_by=actor,
        )

    async def _build_budget(
        self,
        workbench_id: str,
        summary: str,
        inputs: dict[str, Any],
        fields: dict[str, Any],
        actor: str,
    ) -> Record:
        if "amount" in fields:
            inputs["amount"] = fields["amount"]
        meta = parse_metadata(RecordType.BUDGET, inputs)
        assert isinstance(meta, BudgetMetadata)
        amount = meta.amount if meta.amount is not None else ZERO
        if amount < ZERO:
            raise ValidationError("budget amount must be non-negative", {"field": "amount"})

        meta.amount = amount
        meta.budget_name = meta.budget_name or summary
        meta.budget_id = str(uuid4())
        return Record(
            id=str(uuid4()),
            workbench_id=workbench_id,
            record_type=RecordType.BUDGET,
            summary=summary,
            status=RecordStatus.CONFIRMED,
            gross_amount=amount,
            net_amount=amount,
            metadata=meta,
            created_by=actor,
        )

    async def _create_budget(self, record: Record) -> None:
        meta = record.metadata
        assert isinstance(meta, BudgetMetadata)
        category = meta.department or meta.category or DEFAULT_BUDGET_CATEGORY
        await self.budgets.create(
            workbench_id=record.workbench_id,
            name=meta.budget_name or record.summary,
            total_amount=meta.amount or ZERO,
            items=[BudgetItem(category=category, amount=meta.amount or ZERO)],
            category=meta.category,
            record_id=record.id,
            budget_id=meta.budget_id,
        )

    async def _build_party(
        self,
        workbench_id: str,
        summary: str,
        inputs: dict[str, Any],
        fields: dict[str, Any],
        actor: str,
    ) -> Record:
        meta = parse_metadata(RecordType.PARTY, inputs)
        assert isinstance(meta, PartyMetadata)
        meta.party_name = meta.party_name or summary
        meta.party_type = meta.party_type or PartyType.BOTH

        party = await self.parties.create(
            workbench_id=workbench_id,
            name=meta.party_name,
            party_type=meta.party_type,
            gstin=meta.gstin,
            pan=meta.pan,
        )
        return Record(
            id=str(uuid4()),
            workbench_id=workbench_id,
            record_type=RecordType.PARTY,
            summary=summary,
            status=RecordStatus.CONFIRMED,
            party_id=party.id,
            metadata=meta,
            created_by=actor,
        )

    async def _require_party(self, workbench_id: str, party_id: str) -> None:
        party = await self.parties.find(party_id)
        if party is None or party.workbench_id != workbench_id:
            raise NotFound(f"party not found: {party_id}", {"party_id": party_id})

    # -------------------------------------------------------------------------
    # 취소 / 거래처 비활성화
    # -------------------------------------------------------------------------

    async def cancel_record(self, record_id: str, actor: str) -> Record:
        """draft 레코드 취소

        Raises:
            NotFound: 존재하지 않는 레코드
            InvalidStateTransition: draft가 아닌 레코드 (확정 후 정정은 adjustment)
        """
        async with self.db.transaction():
            record = await self.records.get(record_id)
            RecordStateMachine(record.status).transition(RecordStatus.CANCELLED)

            moved = await self.records.transition_status(
                record_id, RecordStatus.DRAFT, RecordStatus.CANCELLED
            )
            if not moved:
                raise InvalidStateTransition(
                    "record is no longer a draft", {"record_id": record_id}
                )
            cancelled = await self.records.get(record_id)

            await self.audit.append(
                workbench_id=record.workbench_id,
                actor=actor,
                action=AuditAction.CANCEL_RECORD,
                entity_type="record",
                entity_id=record_id,
                old_data={"status": record.status.value},
                new_data={"status": cancelled.status.value},
            )

        logger.info("레코드 취소", extra={"record_id": record_id})
        return cancelled

    async def deactivate_party(self, party_id: str, actor: str):
        """거래처 비활성화 (참조 레코드는 그대로 유지)"""
        async with self.db.transaction():
            party = await self.parties.get(party_id)
            updated = await self.parties.deactivate(party_id)
            await self.audit.append(
                workbench_id=party.workbench_id,
                actor=actor,
                action=AuditAction.DEACTIVATE_PARTY,
                entity_type="party",
                entity_id=party_id,
                old_data={"is_active": party.is_active},
                new_data={"is_active": updated.is_active},
            )

        logger.info("거래처 비활성화", extra={"party_id": party_id})
        return updated
