"""
LedgerEngine - 엔진 진입점

쓰기 서비스(기록/확정/조정/취소)와 집계(스냅샷/지표/예외)를 하나로 묶음.
UI, 스크립트, Web API는 이 파사드만 호출.

쓰기 작업은 커밋이 끝난 뒤 구독자에게 ChangeNotice를 전달.
구독자 오류는 이미 커밋된 쓰기를 되돌리지 않음.

사용 예시:
```python
engine = LedgerEngine(db, read_db=readonly_db, config=config)
workbench = await engine.create_workbench("Acme Traders")
record = await engine.create_record(
    workbench.id, "transaction", "Invoice #12",
    {"amount": "1000", "direction": "credit"}, actor="alice",
)
await engine.confirm_record(record.id, actor="alice")
snapshot = await engine.get_financial_snapshot(workbench.id)
```
"""

import logging
from datetime import date
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import IChangeListener
from core.aggregation import ExceptionDetector, ReconcilingAggregator
from core.config.loader import EngineConfig
from core.domain.models import Account, AuditLogEntry, Party, Record, Workbench
from core.errors import ValidationError
from core.services import (
    AdjustmentService,
    ChangeNotice,
    ChangeNotifier,
    PostingService,
    RecordingService,
)
from core.storage import AccountRegistry, AuditLog, PartyDirectory, RecordStore, WorkbenchStore
from core.types import AuditAction, RecordStatus, RecordType, TimeRange

logger = logging.getLogger(__name__)


class LedgerEngine:
    """Ledger 엔진 파사드

    Args:
        db: 쓰기용 SQLiteAdapter
        read_db: 집계용 SQLiteAdapter (None이면 db 공유)
        config: 엔진 설정
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        read_db: SQLiteAdapter | None = None,
        config: EngineConfig | None = None,
    ):
        self.db = db
        self.read_db = read_db or db
        self.config = config or EngineConfig()

        self.recording = RecordingService(db)
        self.posting = PostingService(db)
        self.adjustments = AdjustmentService(db)
        self.workbenches = WorkbenchStore(db)
        self.accounts = AccountRegistry(db)

        self.aggregator = ReconcilingAggregator(self.read_db, self.config)
        self.detector = ExceptionDetector()
        self.audit = AuditLog(self.read_db)
        self.notifier = ChangeNotifier()

    # -------------------------------------------------------------------------
    # 구독
    # -------------------------------------------------------------------------

    def subscribe(self, listener: IChangeListener) -> None:
        """변경 통지 구독"""
        self.notifier.subscribe(listener)

    def unsubscribe(self, listener: IChangeListener) -> None:
        """변경 통지 구독 해제"""
        self.notifier.unsubscribe(listener)

    async def _notify(
        self,
        workbench_id: str,
        action: AuditAction,
        entity_id: str,
        payload: dict[str, Any],
        entity_type: str = "record",
    ) -> None:
        await self.notifier.publish(
            ChangeNotice(
                workbench_id=workbench_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                payload=payload,
            )
        )

    def _actor(self, actor: str | None) -> str:
        return actor or self.config.default_actor

    # -------------------------------------------------------------------------
    # 설정
    # -------------------------------------------------------------------------

    async def create_workbench(
        self,
        name: str,
        currency: str | None = None,
        seed_accounts: bool = True,
    ) -> Workbench:
        """워크벤치 생성 (기본 계정과목 포함)"""
        async with self.db.transaction():
            workbench = await self.workbenches.create(name, currency or self.config.currency)
            if seed_accounts:
                await self.accounts.seed_default_chart(workbench.id)

        logger.info(
            "워크벤치 생성",
            extra={"workbench_id": workbench.id, "seeded": seed_accounts},
        )
        return workbench

    # -------------------------------------------------------------------------
    # 쓰기
    # -------------------------------------------------------------------------

    async def create_record(
        self,
        workbench_id: str,
        record_type: RecordType | str,
        summary: str,
        metadata: dict[str, Any] | None = None,
        actor: str | None = None,
    ) -> Record:
        """레코드 생성 (수동 입력/문서 추출)"""
        record = await self.recording.create_record(
            workbench_id, record_type, summary, metadata, self._actor(actor)
        )
        await self._notify(
            workbench_id, AuditAction.CREATE_RECORD, record.id,
            {"record_type": record.record_type.value, "status": record.status.value},
        )
        return record

    async def confirm_record(
        self,
        record_id: str,
        actor: str | None = None,
        payment: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """draft 거래 확정 → {"record", "ledger_entries"}"""
        result = await self.posting.confirm_record(record_id, self._actor(actor), payment)
        record = result["record"]
        await self._notify(
            record.workbench_id, AuditAction.CONFIRM_RECORD, record.id,
            {"posting_id": result["ledger_entries"][0].posting_id},
        )
        return result

    async def push_adjustment(
        self,
        workbench_id: str,
        original_record_id: str,
        adjustment_type: str,
        reason: str,
        metadata: dict[str, Any] | None = None,
        actor: str | None = None,
    ) -> Record:
        """조정 레코드 생성"""
        adjustment = await self.adjustments.push_adjustment(
            workbench_id, original_record_id, adjustment_type, reason, metadata,
            self._actor(actor),
        )
        await self._notify(
            workbench_id, AuditAction.PUSH_ADJUSTMENT, adjustment.id,
            {"original_record_id": original_record_id, "adjustment_type": str(adjustment_type)},
        )
        return adjustment

    async def cancel_record(self, record_id: str, actor: str | None = None) -> Record:
        """draft 레코드 취소"""
        record = await self.recording.cancel_record(record_id, self._actor(actor))
        await self._notify(
            record.workbench_id, AuditAction.CANCEL_RECORD, record.id,
            {"status": record.status.value},
        )
        return record

    async def deactivate_party(self, party_id: str, actor: str | None = None):
        """거래처 비활성화"""
        party = await self.recording.deactivate_party(party_id, self._actor(actor))
        await self._notify(
            party.workbench_id, AuditAction.DEACTIVATE_PARTY, party.id,
            {"is_active": party.is_active}, entity_type="party",
        )
        return party

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_financial_snapshot(
        self, workbench_id: str, as_of: date | None = None
    ) -> dict[str, Any]:
        return await self.aggregator.get_financial_snapshot(workbench_id, as_of)

    async def get_investor_metrics(
        self, workbench_id: str, as_of: date | None = None
    ) -> dict[str, Any]:
        return await self.aggregator.get_investor_metrics(workbench_id, as_of)

    async def get_budget_metrics(
        self, workbench_id: str, as_of: date | None = None
    ) -> dict[str, Any]:
        return await self.aggregator.get_budget_metrics(workbench_id, as_of)

    async def get_party_metrics(
        self, workbench_id: str, as_of: date | None = None
    ) -> dict[str, Any]:
        return await self.aggregator.get_party_metrics(workbench_id, as_of)

    async def get_compliance_metrics(
        self, workbench_id: str, as_of: date | None = None
    ) -> dict[str, Any]:
        return await self.aggregator.get_compliance_metrics(workbench_id, as_of)

    async def get_expense_categorization(
        self, workbench_id: str, as_of: date | None = None
    ) -> dict[str, Any]:
        return await self.aggregator.get_expense_categorization(workbench_id, as_of)

    async def get_operations_metrics(
        self,
        workbench_id: str,
        time_range: TimeRange | str = TimeRange.MONTHLY,
        as_of: date | None = None,
    ) -> dict[str, Any]:
        try:
            time_range = TimeRange(time_range)
        except ValueError as e:
            raise ValidationError(
                f"invalid time_range: {time_range}",
                {"allowed": [t.value for t in TimeRange]},
            ) from e
        return await self.aggregator.get_operations_metrics(workbench_id, time_range, as_of)

    async def get_exceptions(
        self, workbench_id: str, as_of: date | None = None
    ) -> list[dict[str, Any]]:
        """예외 알림 목록 (심각도 높은 순)"""
        report = await self.aggregator.report(workbench_id, as_of)
        return [alert.to_dict() for alert in self.detector.detect(report)]

    async def get_audit_log(
        self,
        workbench_id: str,
        limit: int = 100,
        action: AuditAction | str | None = None,
    ) -> list[AuditLogEntry]:
        """감사 로그 (최신 순)

        Raises:
            WorkbenchNotFound: 존재하지 않는 워크벤치
        """
        if action is not None:
            try:
                action = AuditAction(action)
            except ValueError as e:
                raise ValidationError(
                    f"invalid action: {action}",
                    {"allowed": [a.value for a in AuditAction]},
                ) from e
        async with self.read_db.snapshot():
            await WorkbenchStore(self.read_db).require(workbench_id)
            return await self.audit.list_by_workbench(workbench_id, limit=limit, action=action)

    # -------------------------------------------------------------------------
    # 목록 조회 (집계용 연결)
    # -------------------------------------------------------------------------
    # 공유 연결이면 snapshot()이 진행 중인 쓰기 트랜잭션의 커밋을 기다림

    async def get_workbench(self, workbench_id: str) -> Workbench:
        async with self.read_db.snapshot():
            return await WorkbenchStore(self.read_db).require(workbench_id)

    async def list_accounts(
        self, workbench_id: str, include_inactive: bool = False
    ) -> list[Account]:
        async with self.read_db.snapshot():
            await self.get_workbench(workbench_id)
            return await AccountRegistry(self.read_db).list(workbench_id, include_inactive)

    async def list_parties(self, workbench_id: str) -> list[Party]:
        async with self.read_db.snapshot():
            await self.get_workbench(workbench_id)
            return await PartyDirectory(self.read_db).list(workbench_id)

    async def list_records(
        self,
        workbench_id: str,
        record_type: RecordType | str | None = None,
        status: RecordStatus | str | None = None,
    ) -> list[Record]:
        """레코드 목록 (생성 순, 유형/상태 필터)"""
        try:
            record_type = RecordType(record_type) if record_type is not None else None
            status = RecordStatus(status) if status is not None else None
        except ValueError as e:
            raise ValidationError(f"invalid filter: {e}") from e

        store = RecordStore(self.read_db)
        async with self.read_db.snapshot():
            await self.get_workbench(workbench_id)
            if record_type is not None:
                records = await store.list_by_type(workbench_id, record_type)
            else:
                records = await store.list_by_workbench(workbench_id)
        if status is not None:
            records = [r for r in records if r.status is status]
        return records
