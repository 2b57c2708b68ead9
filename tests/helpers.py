"""
테스트 헬퍼

레코드 입력 생성과 집계 기준일.
"""

from datetime import date
from typing import Any

# 집계 테스트 기준일
AS_OF = date(2026, 3, 15)


def txn(amount: str, direction: str = "credit", **extra: Any) -> dict[str, Any]:
    """거래 레코드 metadata (기본 거래일 2026-03-10)"""
    return {"amount": amount, "direction": direction, "transaction_date": "2026-03-10", **extra}
