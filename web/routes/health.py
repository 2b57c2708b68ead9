"""
헬스 체크 엔드포인트

GET /health - 서버 상태 확인
"""

from fastapi import APIRouter, Depends

from core.engine import LedgerEngine
from web.dependencies import get_engine
from web.models.responses import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(engine: LedgerEngine = Depends(get_engine)) -> HealthResponse:
    """서버 상태 확인

    Returns:
        HealthResponse: status, version, DB 연결 상태
    """
    from web.app import APP_VERSION

    connected = engine.db.is_connected and engine.read_db.is_connected
    return HealthResponse(
        status="ok" if connected else "degraded",
        version=APP_VERSION,
        database="connected" if connected else "disconnected",
    )
