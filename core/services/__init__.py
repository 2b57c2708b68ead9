"""
쓰기 서비스 모듈

레코드 생성/취소, 확정(posting), 조정(adjustment), 변경 통지
"""

from core.services.adjustment import AdjustmentService
from core.services.notifications import ChangeNotice, ChangeNotifier
from core.services.posting import PostingService
from core.services.recording import RecordingService

__all__ = [
    "AdjustmentService",
    "ChangeNotice",
    "ChangeNotifier",
    "PostingService",
    "RecordingService",
]
