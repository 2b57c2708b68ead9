"""
집계 모듈

posted 분개 + unposted 레코드를 합친 재무 지표와 예외 탐지
"""

from core.aggregation.aggregator import ReconcilingAggregator, WorkbenchReport
from core.aggregation.alerts import ExceptionAlert, ExceptionDetector
from core.aggregation.realization import Realization, realize
from core.aggregation.snapshot import Line, WorkbenchSnapshot, load_snapshot

__all__ = [
    "ReconcilingAggregator",
    "WorkbenchReport",
    "ExceptionAlert",
    "ExceptionDetector",
    "Realization",
    "realize",
    "Line",
    "WorkbenchSnapshot",
    "load_snapshot",
]
