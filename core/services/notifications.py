"""
변경 통지

전역 이벤트 버스 대신 명시적 구독 방식.
엔진이 커밋을 마친 뒤 구독자에게 ChangeNotice를 전달.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from adapters.interfaces import IChangeListener
from core.types import AuditAction
from core.utils.dates import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeNotice:
    """커밋된 변경 1건"""

    workbench_id: str
    action: AuditAction
    entity_type: str
    entity_id: str
    payload: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utc_now)


class ChangeNotifier:
    """구독자 관리 및 통지 전달

    사용 예시:
    ```python
    notifier = ChangeNotifier()
    notifier.subscribe(listener)
    await notifier.publish(ChangeNotice(...))
    ```
    """

    def __init__(self) -> None:
        self._listeners: list[IChangeListener] = []

    @property
    def listeners(self) -> list[IChangeListener]:
        return list(self._listeners)

    def subscribe(self, listener: IChangeListener) -> None:
        """구독자 등록 (중복 등록 무시)

        Raises:
            TypeError: on_change를 구현하지 않은 객체
        """
        if not isinstance(listener, IChangeListener):
            raise TypeError(f"{type(listener).__name__} does not implement on_change()")
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: IChangeListener) -> None:
        """구독자 해제"""
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def publish(self, notice: ChangeNotice) -> None:
        """모든 구독자에게 통지

        구독자 오류는 warning 로그만 남기고 다음 구독자로 진행.
        """
        for listener in list(self._listeners):
            try:
                await listener.on_change(notice)
            except Exception as e:
                logger.warning(
                    f"변경 통지 실패: {type(listener).__name__}: {e}",
                    extra={"workbench_id": notice.workbench_id, "action": notice.action.value},
                )
