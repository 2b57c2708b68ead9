"""
Ledger 엔진 오류 정의

모든 쓰기 오류는 LedgerError를 상속.
ConsistencyWarning은 예외가 아니라 집계 결과와 함께 반환되는 값.
"""

from dataclasses import dataclass, field
from typing import Any


class LedgerError(Exception):
    """Ledger 엔진 기본 오류

    Args:
        message: 오류 메시지
        details: 구조화된 추가 정보 (API 응답에 포함)
    """

    code: str = "ledger_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """API 응답용 직렬화"""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(LedgerError):
    """필수 필드 누락/잘못된 값 (쓰기 전에 거부)"""

    code = "validation_error"


class NotFound(LedgerError):
    """존재하지 않는 레코드/계정/거래처"""

    code = "not_found"


class WorkbenchNotFound(NotFound):
    """존재하지 않는 워크벤치"""

    code = "workbench_not_found"


class AlreadyConfirmed(LedgerError):
    """이미 확정된 레코드에 대한 재확정 시도"""

    code = "already_confirmed"


class InvalidStateTransition(LedgerError):
    """허용되지 않은 상태 전이"""

    code = "invalid_state_transition"


class PersistenceError(LedgerError):
    """저장소 오류 (트랜잭션 전체 롤백 후 전달)"""

    code = "persistence_error"


@dataclass(frozen=True)
class ConsistencyWarning:
    """집계 데이터 품질 경고

    대차 불일치, 매칭되지 않은 예산 카테고리 등.
    예외로 던지지 않고 결과의 warnings 목록에 포함.
    """

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}
