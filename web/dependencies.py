"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
"""

from fastapi import Header, Request

from core.engine import LedgerEngine


def get_engine(request: Request) -> LedgerEngine:
    """lifespan에서 생성된 LedgerEngine 반환"""
    return request.app.state.engine


def get_actor(
    request: Request,
    x_actor: str | None = Header(default=None, description="요청자 (인증은 외부에서 처리)"),
) -> str:
    """감사 로그 actor

    X-Actor 헤더가 없으면 설정의 default_actor 사용.
    """
    if x_actor and x_actor.strip():
        return x_actor.strip()
    return request.app.state.engine.config.default_actor
