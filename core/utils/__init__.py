"""
유틸리티 패키지

날짜 처리, Decimal 금액 처리 등 공통 유틸리티
"""

from core.utils.dates import month_key, now_iso, parse_date, shift_month, utc_now
from core.utils.money import ZERO, percent, quantize, to_decimal

__all__ = [
    "month_key",
    "now_iso",
    "parse_date",
    "shift_month",
    "utc_now",
    "ZERO",
    "percent",
    "quantize",
    "to_decimal",
]
