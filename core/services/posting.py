"""
레코드 확정 서비스

draft 거래 레코드를 confirmed로 전이하고 posting 1건을 기록.

작업 단위 (전부 성공 또는 전부 롤백):
1. 검증 (존재, 거래 유형, draft 상태, 금액 > 0, 비현금 결제 참조번호)
2. draft → confirmed compare-and-swap + 금액/거래처/metadata 갱신
3. posting 저장 (primary + counter)
4. 감사 로그 CONFIRM_RECORD
"""

import logging
from dataclasses import replace
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import Record, TransactionMetadata
from core.domain.state_machines import RecordStateMachine
from core.errors import AlreadyConfirmed, NotFound, ValidationError
from core.ledger.entry_builder import PostingBuilder
from core.ledger.store import LedgerStore
from core.storage import AccountRegistry, AuditLog, PartyDirectory, RecordStore
from core.types import AuditAction, PaymentStatus, PaymentType, RecordStatus
from core.utils.dates import now_iso, parse_date
from core.utils.money import ZERO, to_decimal_or_none

logger = logging.getLogger(__name__)

# 확정 시 덮어쓸 수 있는 결제 정보
PAYMENT_FIELDS = frozenset({
    "amount",
    "payment_type",
    "payment_status",
    "paid_amount",
    "external_reference",
    "transaction_date",
    "party_id",
    "account_id",
    "settlement_account_id",
    "category",
})


class PostingService:
    """레코드 확정 서비스

    Args:
        db: SQLiteAdapter 인스턴스

    사용 예시:
    ```python
    service = PostingService(db)
    result = await service.confirm_record(record_id, actor="alice",
                                          payment={"payment_type": "upi",
                                                   "external_reference": "UTR123"})
    result["record"].status      # RecordStatus.CONFIRMED
    result["ledger_entries"]     # [primary, counter]
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.records = RecordStore(db)
        self.accounts = AccountRegistry(db)
        self.parties = PartyDirectory(db)
        self.ledger = LedgerStore(db)
        self.audit = AuditLog(db)

    async def confirm_record(
        self,
        record_id: str,
        actor: str,
        payment: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """draft 거래 레코드 확정

        Args:
            record_id: 레코드 ID
            actor: 감사 로그 actor
            payment: 확정 시점의 결제 정보 (PAYMENT_FIELDS)

        Returns:
            {"record": Record, "ledger_entries": list[LedgerEntry]}

        Raises:
            NotFound: 레코드/계정/거래처 없음
            ValidationError: 거래 레코드가 아님, 금액 0 이하, 참조번호 누락
            AlreadyConfirmed: 이미 확정된 레코드 (동시 확정 경합 포함)
            InvalidStateTransition: 취소된 레코드
            PersistenceError: 저장소 오류 (전체 롤백)
        """
        payment = dict(payment or {})
        unknown = set(payment) - PAYMENT_FIELDS
        if unknown:
            raise ValidationError(
                f"unknown payment fields: {sorted(unknown)}",
                {"fields": sorted(unknown), "allowed": sorted(PAYMENT_FIELDS)},
            )

        async with self.db.transaction():
            record = await self.records.get(record_id)
            if not record.is_transaction:
                raise ValidationError(
                    "only transaction records can be confirmed",
                    {"record_id": record_id, "record_type": record.record_type.value},
                )
            RecordStateMachine(record.status).confirm()

            provisional = await self._apply_payment(record, payment)
            transaction_date = (
                parse_date(payment.get("transaction_date")) or provisional.issue_date
            )

            # 쓰기 전에 posting을 먼저 구성 (계정 해석 실패는 NotFound로 거부)
            builder = PostingBuilder(await self.accounts.list(record.workbench_id))
            posting = builder.build_confirmation(provisional, transaction_date)

            moved = await self.records.transition_status(
                record_id, RecordStatus.DRAFT, RecordStatus.CONFIRMED
            )
            if not moved:
                raise AlreadyConfirmed(
                    f"record already confirmed: {record_id}", {"record_id": record_id}
                )

            meta = provisional.transaction_meta
            meta.confirmed_at = now_iso()
            meta.confirmed_by = actor
            if transaction_date is not None:
                meta.extra["transaction_date"] = transaction_date.isoformat()

            confirmed = await self.records.update(
                record_id,
                {
                    "net_amount": provisional.net_amount,
                    "party_id": provisional.party_id,
                    "metadata": meta,
                },
            )
            entries = await self.ledger.save_posting(posting)

            await self.audit.append(
                workbench_id=record.workbench_id,
                actor=actor,
                action=AuditAction.CONFIRM_RECORD,
                entity_type="record",
                entity_id=record_id,
                old_data={"status": record.status.value, "net_amount": str(record.net_amount)},
                new_data={
                    "status": confirmed.status.value,
                    "net_amount": str(confirmed.net_amount),
                    "posting_id": posting.posting_id,
                    "payment": {k: str(v) for k, v in payment.items()},
                },
            )

        logger.info(
            "레코드 확정",
            extra={
                "record_id": record_id,
                "posting_id": posting.posting_id,
                "amount": str(confirmed.net_amount),
            },
        )
        return {"record": confirmed, "ledger_entries": entries}

    async def _apply_payment(self, record: Record, payment: dict[str, Any]) -> Record:
        """결제 정보를 반영한 임시 Record (저장 전 검증용)"""
        meta = record.transaction_meta
        overrides = {
            key: payment[key]
            for key in (
                "payment_type",
                "payment_status",
                "paid_amount",
                "external_reference",
                "account_id",
                "settlement_account_id",
                "category",
            )
            if key in payment
        }
        merged = TransactionMetadata.from_dict({**meta.to_dict(), **overrides})

        amount = to_decimal_or_none(payment.get("amount"), "amount")
        net_amount = record.net_amount if amount is None else amount
        if net_amount <= ZERO:
            raise ValidationError(
                "amount must be greater than zero",
                {"field": "amount", "value": str(net_amount)},
            )

        if merged.payment_type is not PaymentType.CASH and not merged.external_reference:
            raise ValidationError(
                "external_reference is required for non-cash payments",
                {"field": "external_reference", "payment_type": merged.payment_type.value},
            )
        if merged.payment_status is PaymentStatus.PARTIAL:
            if merged.paid_amount is None or merged.paid_amount < ZERO:
                raise ValidationError(
                    "paid_amount is required for partial payments",
                    {"field": "paid_amount"},
                )

        party_id = payment.get("party_id", record.party_id) or None
        if party_id is not None:
            party = await self.parties.find(party_id)
            if party is None or party.workbench_id != record.workbench_id:
                raise NotFound(f"party not found: {party_id}", {"party_id": party_id})

        return replace(record, net_amount=net_amount, party_id=party_id, metadata=merged)

