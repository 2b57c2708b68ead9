"""
어댑터 레이어

외부 자원(DB)과 엔진 바깥 협력자와의 연동을 담당.
Protocol 기반 인터페이스로 Mock 교체 가능.
"""

from adapters.interfaces import IChangeListener

__all__ = [
    "IChangeListener",
]
