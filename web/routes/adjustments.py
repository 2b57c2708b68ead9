"""
Adjustments 라우트

원 레코드에 대한 조정 기록 (보정 분개 포함)
"""

from fastapi import APIRouter, Depends

from core.engine import LedgerEngine
from web.dependencies import get_actor, get_engine
from web.models.requests import AdjustmentCreateRequest
from web.models.responses import RecordResponse

router = APIRouter(prefix="/api", tags=["Adjustments"])


@router.post(
    "/workbenches/{workbench_id}/adjustments",
    response_model=RecordResponse,
    status_code=201,
)
async def push_adjustment(
    workbench_id: str,
    request: AdjustmentCreateRequest,
    engine: LedgerEngine = Depends(get_engine),
    actor: str = Depends(get_actor),
) -> RecordResponse:
    """조정 기록

    **adjustment_type**:
    - reverse: 전액 취소 (net_amount → 0)
    - reclassify / correct_budget: adjustment_amount만큼 금액 정정
    - party_correction: corrected_party_id로 거래처 변경
    - status_correction: compliance 레코드의 new_status 변경

    확정된 거래의 금액이 바뀌면 보정 분개가 함께 기록됨.
    """
    adjustment = await engine.push_adjustment(
        workbench_id,
        request.original_record_id,
        request.adjustment_type,
        request.reason,
        request.metadata,
        actor=actor,
    )
    return RecordResponse(**adjustment.to_dict())
