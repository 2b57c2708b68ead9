"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
엔진 바깥의 협력자(UI 갱신, 알림 발송 등)는 이 Protocol을 구현하여
LedgerEngine.subscribe()로 등록.
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from core.services.notifications import ChangeNotice


@runtime_checkable
class IChangeListener(Protocol):
    """변경 통지 수신자 인터페이스

    커밋이 끝난 쓰기 작업마다 한 번 호출.
    수신자 오류는 로그로만 남고 이미 커밋된 쓰기를 되돌리지 않음.
    """

    async def on_change(self, notice: "ChangeNotice") -> None:
        """변경 통지 수신

        Args:
            notice: 변경 내용 (워크벤치, 액션, 대상 엔티티)
        """
        ...
