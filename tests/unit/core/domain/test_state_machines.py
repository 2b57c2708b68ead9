"""
State Machine 테스트
"""

import pytest

from core.domain.state_machines import (
    ComplianceStateMachine,
    RecordStateMachine,
    StateMachine,
)
from core.errors import AlreadyConfirmed, InvalidStateTransition
from core.types import ComplianceStatus, RecordStatus


class TestStateMachine:
    """기본 상태 머신 테스트"""

    def test_transition_and_history(self) -> None:
        sm = StateMachine("a", {"a": ["b"], "b": ["c"]}, name="Test")

        sm.transition("b")
        sm.transition("c")

        assert sm.state == "c"
        assert sm.history == [("a", "b"), ("b", "c")]

    def test_invalid_transition_details(self) -> None:
        sm = StateMachine("a", {"a": ["b"]})

        with pytest.raises(InvalidStateTransition) as exc_info:
            sm.transition("c")

        assert exc_info.value.details == {"from": "a", "to": "c", "allowed": ["b"]}
        assert sm.state == "a"


class TestRecordStateMachine:
    """레코드 상태 머신 테스트"""

    def test_initial_state(self) -> None:
        sm = RecordStateMachine()

        assert sm.state == "draft"
        assert sm.is_terminal is False

    def test_confirm(self) -> None:
        sm = RecordStateMachine()

        assert sm.confirm() == "confirmed"
        assert sm.is_terminal

    def test_cancel(self) -> None:
        sm = RecordStateMachine(RecordStatus.DRAFT)

        sm.transition(RecordStatus.CANCELLED)

        assert sm.state == "cancelled"
        assert sm.is_terminal

    def test_confirm_twice(self) -> None:
        """이미 확정된 레코드는 AlreadyConfirmed"""
        sm = RecordStateMachine(RecordStatus.CONFIRMED)

        with pytest.raises(AlreadyConfirmed):
            sm.confirm()

    def test_confirm_cancelled(self) -> None:
        sm = RecordStateMachine(RecordStatus.CANCELLED)

        with pytest.raises(InvalidStateTransition):
            sm.confirm()

    def test_cannot_reopen(self) -> None:
        sm = RecordStateMachine(RecordStatus.CONFIRMED)

        assert sm.can_transition(RecordStatus.DRAFT) is False
        assert sm.can_transition(RecordStatus.CANCELLED) is False


class TestComplianceStateMachine:
    """신고 상태 머신 테스트"""

    @pytest.mark.parametrize(
        "start, target",
        [
            (ComplianceStatus.PENDING, ComplianceStatus.FILED),
            (ComplianceStatus.PENDING, ComplianceStatus.COMPLETED),
            (ComplianceStatus.FILED, ComplianceStatus.COMPLETED),
            (ComplianceStatus.FILED, ComplianceStatus.PENDING),
            (ComplianceStatus.COMPLETED, ComplianceStatus.PENDING),
        ],
    )
    def test_allowed(self, start: ComplianceStatus, target: ComplianceStatus) -> None:
        sm = ComplianceStateMachine(start)

        assert sm.transition(target) == target.value

    def test_same_state_not_allowed(self) -> None:
        sm = ComplianceStateMachine()

        with pytest.raises(InvalidStateTransition):
            sm.transition(ComplianceStatus.PENDING)
