"""
FastAPI 애플리케이션

라우터 등록, 오류 응답 매핑, 엔진 생명주기 관리.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import EngineConfig, get_settings
from core.engine import LedgerEngine
from core.errors import (
    AlreadyConfirmed,
    InvalidStateTransition,
    LedgerError,
    NotFound,
    PersistenceError,
    ValidationError,
)
from core.ledger.schema import init_ledger_schema
from core.logging import setup_logging
from web.routes import adjustments, audit, health, metrics, records, workbenches

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"

# 오류 유형 → HTTP 상태 코드
ERROR_STATUS: dict[type[LedgerError], int] = {
    ValidationError: 422,
    NotFound: 404,
    AlreadyConfirmed: 409,
    InvalidStateTransition: 409,
    PersistenceError: 503,
}


def error_status(error: LedgerError) -> int:
    """오류 → HTTP 상태 코드 (하위 클래스 포함, 미등록은 400)"""
    for error_cls, status in ERROR_STATUS.items():
        if isinstance(error, error_cls):
            return status
    return 400


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """LedgerError → {"success": false, "error", "message", "details"}"""
    status = error_status(exc)
    if status >= 500:
        logger.error(
            "요청 처리 실패 (저장소 오류)",
            extra={"path": request.url.path, "error": exc.message},
        )
    else:
        logger.info(
            "요청 거부",
            extra={"path": request.url.path, "error": exc.code},
        )
    return JSONResponse(status_code=status, content={"success": False, **exc.to_dict()})


def create_app(config: EngineConfig | None = None) -> FastAPI:
    """앱 생성

    Args:
        config: 엔진 설정 (None이면 settings.yaml에서 로드)

    Returns:
        FastAPI 인스턴스 (lifespan에서 app.state.engine 설정)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """앱 생명주기 관리"""
        engine_config = config or get_settings().config
        setup_logging("web", log_dir=engine_config.log_dir)

        # 시작 시 - 쓰기 연결 + 스키마 자동 초기화, 집계용 읽기 전용 연결
        write_db = SQLiteAdapter(engine_config.db_path)
        await write_db.connect()
        await init_ledger_schema(write_db)

        read_db = SQLiteAdapter(engine_config.db_path, readonly=True)
        await read_db.connect()

        app.state.engine = LedgerEngine(write_db, read_db=read_db, config=engine_config)
        logger.info("Web: LedgerEngine 초기화 완료", extra={"db_path": str(engine_config.db_path)})

        try:
            yield
        finally:
            # 종료 시 - 연결 정리
            await read_db.close()
            await write_db.close()
            logger.info("Web: DB 연결 종료 완료")

    app = FastAPI(
        title="Ledgerbench API",
        description="복식부기 원장 파생 및 대사 엔진 API",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS 설정 (개발용)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LedgerError, ledger_error_handler)

    # =========================================================================
    # API 라우터 등록
    # =========================================================================

    app.include_router(health.router)
    app.include_router(workbenches.router)
    app.include_router(records.router)
    app.include_router(adjustments.router)
    app.include_router(metrics.router)
    app.include_router(audit.router)

    return app


app = create_app()
