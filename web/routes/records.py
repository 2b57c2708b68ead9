"""
Records 라우트

레코드 생성, 확정(분개 생성), 취소, 목록 조회 API
"""

from fastapi import APIRouter, Depends, Query

from core.engine import LedgerEngine
from web.dependencies import get_actor, get_engine
from web.models.requests import ConfirmRequest, RecordCreateRequest
from web.models.responses import (
    ConfirmResponse,
    LedgerEntryResponse,
    RecordListResponse,
    RecordResponse,
)

router = APIRouter(prefix="/api", tags=["Records"])


@router.post(
    "/workbenches/{workbench_id}/records",
    response_model=RecordResponse,
    status_code=201,
)
async def create_record(
    workbench_id: str,
    request: RecordCreateRequest,
    engine: LedgerEngine = Depends(get_engine),
    actor: str = Depends(get_actor),
) -> RecordResponse:
    """레코드 생성

    **record_type별 metadata**:
    - transaction: amount, direction(credit/debit), payment_status, paid_amount,
      payment_type, category, transaction_date, party_id
    - compliance: name, deadline, status
    - budget: budget_name, amount, category, department
    - party: party_name, party_type, gstin, pan

    생성된 레코드는 draft (party, 신고 완료 compliance는 confirmed).
    """
    record = await engine.create_record(
        workbench_id, request.record_type, request.summary, request.metadata, actor=actor
    )
    return RecordResponse(**record.to_dict())


@router.get("/workbenches/{workbench_id}/records", response_model=RecordListResponse)
async def list_records(
    workbench_id: str,
    record_type: str | None = Query(default=None, description="레코드 유형 필터"),
    status: str | None = Query(default=None, description="상태 필터 (draft/confirmed/cancelled)"),
    engine: LedgerEngine = Depends(get_engine),
) -> RecordListResponse:
    """레코드 목록 (생성 순)"""
    records = await engine.list_records(workbench_id, record_type=record_type, status=status)
    return RecordListResponse(
        records=[RecordResponse(**r.to_dict()) for r in records],
        total=len(records),
    )


@router.post("/records/{record_id}/confirm", response_model=ConfirmResponse)
async def confirm_record(
    record_id: str,
    request: ConfirmRequest | None = None,
    engine: LedgerEngine = Depends(get_engine),
    actor: str = Depends(get_actor),
) -> ConfirmResponse:
    """draft 거래 확정

    record 상태 전이 + 분개 2줄 + 감사 로그를 한 트랜잭션으로 기록.
    이미 확정된 레코드는 409 (already_confirmed).
    """
    payment = request.payment if request is not None else None
    result = await engine.confirm_record(record_id, actor=actor, payment=payment)
    return ConfirmResponse(
        record=RecordResponse(**result["record"].to_dict()),
        ledger_entries=[LedgerEntryResponse(**e.to_dict()) for e in result["ledger_entries"]],
    )


@router.post("/records/{record_id}/cancel", response_model=RecordResponse)
async def cancel_record(
    record_id: str,
    engine: LedgerEngine = Depends(get_engine),
    actor: str = Depends(get_actor),
) -> RecordResponse:
    """draft 레코드 취소 (확정된 레코드는 조정으로만 정정)"""
    record = await engine.cancel_record(record_id, actor=actor)
    return RecordResponse(**record.to_dict())
