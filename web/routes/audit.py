"""
Audit 라우트

감사 로그 조회 (append-only)
"""

from fastapi import APIRouter, Depends, Query

from core.engine import LedgerEngine
from web.dependencies import get_engine
from web.models.responses import AuditLogListResponse, AuditLogResponse

router = APIRouter(prefix="/api", tags=["Audit"])


@router.get("/workbenches/{workbench_id}/audit", response_model=AuditLogListResponse)
async def get_audit_log(
    workbench_id: str,
    limit: int = Query(default=100, ge=1, le=1000, description="최대 조회 개수"),
    action: str | None = Query(default=None, description="작업 필터 (CREATE_RECORD 등)"),
    engine: LedgerEngine = Depends(get_engine),
) -> AuditLogListResponse:
    """감사 로그 (최신 순)"""
    entries = await engine.get_audit_log(workbench_id, limit=limit, action=action)
    return AuditLogListResponse(
        entries=[AuditLogResponse(**e.to_dict()) for e in entries],
        total=len(entries),
    )
