"""
Metrics 라우트

재무 스냅샷, 투자 지표, 예산/거래처/신고 지표, 예외 알림 API.
모든 값은 요청 시점에 분개 + 미확정 레코드에서 계산 (캐시 없음).
금액/비율은 문자열로 직렬화.
"""

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query

from core.domain.models import to_plain
from core.engine import LedgerEngine
from web.dependencies import get_engine
from web.models.responses import ExceptionAlertResponse, ExceptionListResponse

router = APIRouter(prefix="/api/workbenches/{workbench_id}", tags=["Metrics"])

AS_OF = Query(default=None, description="기준일 (YYYY-MM-DD, 기본: 오늘)")


@router.get("/snapshot")
async def get_financial_snapshot(
    workbench_id: str,
    as_of: date | None = AS_OF,
    engine: LedgerEngine = Depends(get_engine),
) -> dict[str, Any]:
    """재무 스냅샷

    현금, 매출채권/매입채무, 손익, 재무상태표, 현금흐름, 계정 잔액, 경고.
    """
    return to_plain(await engine.get_financial_snapshot(workbench_id, as_of))


@router.get("/investor")
async def get_investor_metrics(
    workbench_id: str,
    as_of: date | None = AS_OF,
    engine: LedgerEngine = Depends(get_engine),
) -> dict[str, Any]:
    """투자자 지표 (burn, runway, 의존도, 성장률, 건전성 점수)"""
    return to_plain(await engine.get_investor_metrics(workbench_id, as_of))


@router.get("/budgets")
async def get_budget_metrics(
    workbench_id: str,
    as_of: date | None = AS_OF,
    engine: LedgerEngine = Depends(get_engine),
) -> dict[str, Any]:
    """예산 대비 실적"""
    return to_plain(await engine.get_budget_metrics(workbench_id, as_of))


@router.get("/parties/metrics")
async def get_party_metrics(
    workbench_id: str,
    as_of: date | None = AS_OF,
    engine: LedgerEngine = Depends(get_engine),
) -> dict[str, Any]:
    """거래처별 매출/지출"""
    return to_plain(await engine.get_party_metrics(workbench_id, as_of))


@router.get("/compliance")
async def get_compliance_metrics(
    workbench_id: str,
    as_of: date | None = AS_OF,
    engine: LedgerEngine = Depends(get_engine),
) -> dict[str, Any]:
    """신고 현황 (완료율, 임박, 기한 경과)"""
    return to_plain(await engine.get_compliance_metrics(workbench_id, as_of))


@router.get("/expenses")
async def get_expense_categorization(
    workbench_id: str,
    as_of: date | None = AS_OF,
    engine: LedgerEngine = Depends(get_engine),
) -> dict[str, Any]:
    """카테고리별 지출"""
    return to_plain(await engine.get_expense_categorization(workbench_id, as_of))


@router.get("/operations")
async def get_operations_metrics(
    workbench_id: str,
    time_range: str = Query(default="monthly", description="daily/weekly/monthly/quarterly/yearly/all"),
    as_of: date | None = AS_OF,
    engine: LedgerEngine = Depends(get_engine),
) -> dict[str, Any]:
    """기간별 운영 지표"""
    return to_plain(await engine.get_operations_metrics(workbench_id, time_range, as_of))


@router.get("/exceptions", response_model=ExceptionListResponse)
async def get_exceptions(
    workbench_id: str,
    as_of: date | None = AS_OF,
    engine: LedgerEngine = Depends(get_engine),
) -> ExceptionListResponse:
    """예외 알림 (심각도 높은 순)"""
    alerts = await engine.get_exceptions(workbench_id, as_of)
    return ExceptionListResponse(
        alerts=[ExceptionAlertResponse(**to_plain(alert)) for alert in alerts],
        total=len(alerts),
    )
