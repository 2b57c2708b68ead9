"""
Mock 변경 통지 수신자

테스트용 Mock Listener.
IChangeListener Protocol 준수.
"""

from core.services.notifications import ChangeNotice


class MockChangeListener:
    """Mock 변경 통지 수신자

    수신한 모든 통지를 기록하여 테스트에서 검증 가능.

    사용 예시:
    ```python
    listener = MockChangeListener()
    engine.subscribe(listener)

    await engine.confirm_record(record_id)

    assert listener.notices[-1].action == AuditAction.CONFIRM_RECORD
    ```
    """

    def __init__(self, should_fail: bool = False):
        """
        Args:
            should_fail: True면 모든 수신에서 예외 발생 (에러 시나리오 테스트용)
        """
        self.should_fail = should_fail
        self.notices: list[ChangeNotice] = []

    async def on_change(self, notice: ChangeNotice) -> None:
        """통지 수신"""
        self.notices.append(notice)
        if self.should_fail:
            raise RuntimeError("Mock listener failure")

    def clear(self) -> None:
        """기록 초기화"""
        self.notices.clear()

    @property
    def actions(self) -> list[str]:
        """수신한 액션 목록"""
        return [notice.action.value for notice in self.notices]
