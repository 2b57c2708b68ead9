"""
State Machines

Record, Compliance 상태 전이 관리.
실제 DB 전이는 RecordStore.transition_status()의 compare-and-swap으로 수행하고,
여기서는 허용 여부만 판정.
"""

import logging
from enum import Enum

from core.errors import AlreadyConfirmed, InvalidStateTransition
from core.types import ComplianceStatus, RecordStatus

logger = logging.getLogger(__name__)


class StateMachine:
    """상태 머신 기본 클래스

    Args:
        initial_state: 초기 상태
        transitions: 허용된 전이 정의 {from_state: [to_states]}
        name: 머신 이름 (로깅/오류 메시지용)
    """

    def __init__(
        self,
        initial_state: str | Enum,
        transitions: dict[str, list[str]],
        name: str = "StateMachine",
    ):
        self._state = initial_state.value if isinstance(initial_state, Enum) else initial_state
        self._transitions = transitions
        self._name = name
        self._history: list[tuple[str, str]] = []

    @property
    def state(self) -> str:
        """현재 상태"""
        return self._state

    def can_transition(self, to_state: str | Enum) -> bool:
        """전이 가능 여부 확인"""
        target = to_state.value if isinstance(to_state, Enum) else to_state
        return target in self._transitions.get(self._state, [])

    def transition(self, to_state: str | Enum) -> str:
        """상태 전이

        Args:
            to_state: 목표 상태

        Returns:
            새 상태

        Raises:
            InvalidStateTransition: 허용되지 않은 전이
        """
        target = to_state.value if isinstance(to_state, Enum) else to_state

        if not self.can_transition(target):
            allowed = self._transitions.get(self._state, [])
            raise InvalidStateTransition(
                f"{self._name}: Cannot transition from {self._state} to {target}",
                {"from": self._state, "to": target, "allowed": allowed},
            )

        old_state = self._state
        self._state = target
        self._history.append((old_state, target))

        logger.debug(f"{self._name}: {old_state} → {target}")

        return target

    @property
    def history(self) -> list[tuple[str, str]]:
        """상태 전이 이력"""
        return self._history.copy()


class RecordStateMachine(StateMachine):
    """레코드 상태 머신

    전이 규칙:
    - draft → confirmed: 확정 (ledger posting 생성)
    - draft → cancelled: 취소
    confirmed/cancelled는 종료 상태. 확정 후 정정은 adjustment로만 가능.
    """

    TRANSITIONS: dict[str, list[str]] = {
        "draft": ["confirmed", "cancelled"],
    }

    def __init__(self, initial_state: str | RecordStatus = RecordStatus.DRAFT):
        super().__init__(
            initial_state=initial_state,
            transitions=self.TRANSITIONS,
            name="RecordStateMachine",
        )

    @property
    def is_terminal(self) -> bool:
        """종료 상태 여부"""
        return self._state in ("confirmed", "cancelled")

    def confirm(self) -> str:
        """draft → confirmed

        Raises:
            AlreadyConfirmed: 이미 확정된 경우 (중복 posting 방지)
            InvalidStateTransition: 취소된 레코드인 경우
        """
        if self._state == RecordStatus.CONFIRMED.value:
            raise AlreadyConfirmed(
                "record is already confirmed", {"status": self._state}
            )
        return self.transition(RecordStatus.CONFIRMED)


class ComplianceStateMachine(StateMachine):
    """신고 상태 머신

    전이 규칙:
    - pending → filed / completed
    - filed → completed
    - filed/completed → pending: status_correction 조정으로 되돌림
    """

    TRANSITIONS: dict[str, list[str]] = {
        "pending": ["filed", "completed"],
        "filed": ["completed", "pending"],
        "completed": ["pending", "filed"],
    }

    def __init__(self, initial_state: str | ComplianceStatus = ComplianceStatus.PENDING):
        super().__init__(
            initial_state=initial_state,
            transitions=self.TRANSITIONS,
            name="ComplianceStateMachine",
        )
