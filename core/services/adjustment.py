"""
조정(adjustment) 서비스

원 레코드를 직접 고치지 않고 adjustment 레코드를 새로 만들어 정정.
확정된 거래의 금액 정정은 보정 posting으로 ledger에 반영.

작업 단위 (전부 성공 또는 전부 롤백):
1. 검증 (사유, 유형, 원 레코드, 유형별 입력)
2. adjustment 레코드 생성
3. 원 레코드 반영 (거래처, carrying amount, 신고 상태, last_adjustment_id)
4. 원 레코드가 confirmed이고 delta ≠ 0이면 보정 posting
5. 감사 로그 PUSH_ADJUSTMENT

adjustment_type별 입력:
- reverse:           adjustment_amount (생략 시 -net_amount)
- reclassify:        adjustment_amount (선택)
- correct_budget:    adjustment_amount (예산 carrying amount만 변경)
- party_correction:  corrected_party_id (필수)
- status_correction: new_status (필수, compliance 전용), filed_date (선택)
"""

import logging
from decimal import Decimal
from typing import Any
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import (
    AdjustmentMetadata,
    ComplianceMetadata,
    Record,
    TransactionMetadata,
    parse_metadata,
)
from core.domain.state_machines import ComplianceStateMachine
from core.errors import InvalidStateTransition, NotFound, ValidationError
from core.ledger.entry_builder import PostingBuilder
from core.ledger.store import LedgerStore
from core.storage import AccountRegistry, AuditLog, PartyDirectory, RecordStore, WorkbenchStore
from core.types import (
    AdjustmentType,
    AuditAction,
    ComplianceStatus,
    RecordStatus,
    RecordType,
)
from core.utils.dates import parse_date, utc_now
from core.utils.money import ZERO, to_decimal_or_none

logger = logging.getLogger(__name__)


def parse_adjustment_type(value: AdjustmentType | str) -> AdjustmentType:
    """adjustment_type 변환

    Raises:
        ValidationError: 알 수 없는 유형
    """
    try:
        return AdjustmentType(value)
    except ValueError as e:
        raise ValidationError(
            f"invalid adjustment_type: {value}",
            {"allowed": [t.value for t in AdjustmentType]},
        ) from e


class AdjustmentService:
    """조정 서비스

    Args:
        db: SQLiteAdapter 인스턴스

    사용 예시:
    ```python
    service = AdjustmentService(db)
    adjustment = await service.push_adjustment(
        workbench_id, record.id, "reverse", reason="duplicate invoice",
        metadata={"adjustment_amount": "-1000"}, actor="alice",
    )
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.records = RecordStore(db)
        self.accounts = AccountRegistry(db)
        self.parties = PartyDirectory(db)
        self.workbenches = WorkbenchStore(db)
        self.ledger = LedgerStore(db)
        self.audit = AuditLog(db)

    async def push_adjustment(
        self,
        workbench_id: str,
        original_record_id: str,
        adjustment_type: AdjustmentType | str,
        reason: str,
        metadata: dict[str, Any] | None,
        actor: str,
    ) -> Record:
        """조정 레코드 생성 및 반영

        Args:
            workbench_id: 워크벤치 ID
            original_record_id: 정정 대상 레코드 ID
            adjustment_type: reverse / reclassify / correct_budget /
                party_correction / status_correction
            reason: 정정 사유 (필수)
            metadata: 유형별 입력 (adjustment_amount, corrected_party_id 등)
            actor: 감사 로그 actor

        Returns:
            생성된 adjustment Record

        Raises:
            ValidationError: 사유 누락, 잘못된 유형/입력, 음수 carrying amount
            NotFound: 원 레코드/거래처 없음
            InvalidStateTransition: 취소된 레코드 정정, 허용되지 않은 신고 상태
            PersistenceError: 저장소 오류 (전체 롤백)
        """
        if not reason or not reason.strip():
            raise ValidationError("reason is required", {"field": "reason"})
        reason = reason.strip()
        adjustment_type = parse_adjustment_type(adjustment_type)
        inputs = dict(metadata or {})

        async with self.db.transaction():
            await self.workbenches.require(workbench_id)
            original = await self.records.find(original_record_id)
            if original is None or original.workbench_id != workbench_id:
                raise NotFound(
                    f"record not found: {original_record_id}",
                    {"record_id": original_record_id, "workbench_id": workbench_id},
                )
            self._check_adjustable(original)

            delta = self._resolve_delta(original, adjustment_type, inputs)
            corrected_party_id = await self._resolve_party(original, adjustment_type, inputs)
            new_status = self._resolve_status(original, adjustment_type, inputs)

            adjustment = await self.records.create(
                self._build_adjustment(
                    original, adjustment_type, reason, inputs, delta,
                    corrected_party_id, new_status, actor,
                )
            )
            await self._apply_to_original(
                original, adjustment, adjustment_type, delta, corrected_party_id, new_status
            )

            posted = []
            if (
                original.status is RecordStatus.CONFIRMED
                and original.is_transaction
                and delta != ZERO
            ):
                builder = PostingBuilder(
                    await self.accounts.list(workbench_id, include_inactive=True)
                )
                posting = builder.build_compensation(
                    original,
                    await self.ledger.list_by_record(original.id),
                    adjustment,
                    delta,
                )
                posted = await self.ledger.save_posting(posting)

            await self.audit.append(
                workbench_id=workbench_id,
                actor=actor,
                action=AuditAction.PUSH_ADJUSTMENT,
                entity_type="record",
                entity_id=adjustment.id,
                old_data={"original_record_id": original.id},
                new_data={
                    "adjustment_type": adjustment_type.value,
                    "reason": reason,
                    "metadata": inputs,
                },
            )

        logger.info(
            "조정 반영",
            extra={
                "adjustment_id": adjustment.id,
                "original_record_id": original.id,
                "adjustment_type": adjustment_type.value,
                "delta": str(delta),
                "compensating_entries": len(posted),
            },
        )
        return adjustment

    # -------------------------------------------------------------------------
    # 검증
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_adjustable(original: Record) -> None:
        if original.record_type is RecordType.ADJUSTMENT:
            raise ValidationError(
                "adjustment records cannot be adjusted",
                {"record_id": original.id},
            )
        if original.status is RecordStatus.CANCELLED:
            raise InvalidStateTransition(
                "cancelled records cannot be adjusted",
                {"record_id": original.id, "status": original.status.value},
            )

    @staticmethod
    def _resolve_delta(
        original: Record,
        adjustment_type: AdjustmentType,
        inputs: dict[str, Any],
    ) -> Decimal:
        delta = to_decimal_or_none(inputs.get("adjustment_amount"), "adjustment_amount")
        if delta is None:
            delta = -original.net_amount if adjustment_type is AdjustmentType.REVERSE else ZERO
        if delta == ZERO:
            delta = ZERO

        if delta != ZERO and original.record_type not in (RecordType.TRANSACTION, RecordType.BUDGET):
            raise ValidationError(
                f"{original.record_type.value} records have no amount to adjust",
                {"record_id": original.id, "adjustment_amount": str(delta)},
            )
        if original.net_amount + delta < ZERO:
            raise ValidationError(
                "adjustment would make the carrying amount negative",
                {
                    "net_amount": str(original.net_amount),
                    "adjustment_amount": str(delta),
                },
            )
        return delta

    async def _resolve_party(
        self,
        original: Record,
        adjustment_type: AdjustmentType,
        inputs: dict[str, Any],
    ) -> str | None:
        if adjustment_type is not AdjustmentType.PARTY_CORRECTION:
            return None
        party_id = inputs.get("corrected_party_id")
        if not party_id:
            raise ValidationError(
                "corrected_party_id is required for party_correction",
                {"field": "corrected_party_id"},
            )
        party = await self.parties.find(party_id)
        if party is None or party.workbench_id != original.workbench_id:
            raise NotFound(f"party not found: {party_id}", {"party_id": party_id})
        return party_id

    @staticmethod
    def _resolve_status(
        original: Record,
        adjustment_type: AdjustmentType,
        inputs: dict[str, Any],
    ) -> ComplianceStatus | None:
        if adjustment_type is not AdjustmentType.STATUS_CORRECTION:
            return None
        if original.record_type is not RecordType.COMPLIANCE:
            raise ValidationError(
                "status_correction applies to compliance records only",
                {"record_type": original.record_type.value},
            )
        raw = inputs.get("new_status")
        if not raw:
            raise ValidationError(
                "new_status is required for status_correction", {"field": "new_status"}
            )
        try:
            new_status = ComplianceStatus(str(raw).lower())
        except ValueError as e:
            raise ValidationError(
                f"invalid new_status: {raw}",
                {"allowed": [s.value for s in ComplianceStatus]},
            ) from e

        meta = original.metadata
        assert isinstance(meta, ComplianceMetadata)
        ComplianceStateMachine(meta.status).transition(new_status)
        return new_status

    # -------------------------------------------------------------------------
    # 반영
    # -------------------------------------------------------------------------

    @staticmethod
    def _build_adjustment(
        original: Record,
        adjustment_type: AdjustmentType,
        reason: str,
        inputs: dict[str, Any],
        delta: Decimal,
        corrected_party_id: str | None,
        new_status: ComplianceStatus | None,
        actor: str,
    ) -> Record:
        data = dict(inputs)
        data.update({
            "original_record_id": original.id,
            "adjustment_type": adjustment_type.value,
            "adjustment_amount": delta,
            "reason": reason,
            "actor": actor,
        })
        if corrected_party_id:
            data["corrected_party_id"] = corrected_party_id
        if new_status is not None:
            data["new_status"] = new_status.value

        return Record(
            id=str(uuid4()),
            workbench_id=original.workbench_id,
            record_type=RecordType.ADJUSTMENT,
            summary=f"Adjustment: {reason}",
            status=RecordStatus.CONFIRMED,
            gross_amount=delta,
            net_amount=delta,
            party_id=corrected_party_id or original.party_id,
            issue_date=parse_date(inputs.get("transaction_date")) or utc_now().date(),
            metadata=parse_metadata(RecordType.ADJUSTMENT, data),
            created_by=actor,
        )

    async def _apply_to_original(
        self,
        original: Record,
        adjustment: Record,
        adjustment_type: AdjustmentType,
        delta: Decimal,
        corrected_party_id: str | None,
        new_status: ComplianceStatus | None,
    ) -> Record:
        patch: dict[str, Any] = {}
        meta = original.metadata

        if corrected_party_id is not None:
            patch["party_id"] = corrected_party_id

        if adjustment_type is AdjustmentType.REVERSE or delta != ZERO:
            new_net = original.net_amount + delta
            patch["net_amount"] = new_net
            if isinstance(meta, TransactionMetadata):
                meta.is_reversed = adjustment_type is AdjustmentType.REVERSE and new_net == ZERO

        if isinstance(meta, TransactionMetadata):
            meta.last_adjustment_id = adjustment.id
        else:
            meta.extra["last_adjustment_id"] = adjustment.id

        if new_status is not None:
            assert isinstance(meta, ComplianceMetadata)
            adj_meta = adjustment.metadata
            assert isinstance(adj_meta, AdjustmentMetadata)
            meta.status = new_status
            if meta.is_filed:
                meta.filed_date = adj_meta.filed_date or meta.filed_date or utc_now().date()
                if original.status is RecordStatus.DRAFT:
                    patch["status"] = RecordStatus.CONFIRMED
            else:
                meta.filed_date = None

        patch["metadata"] = meta
        return await self.records.update(original.id, patch)
