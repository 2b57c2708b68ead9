"""
금액 유틸리티

모든 금액은 Decimal로 처리 (float 사용 금지).
DB에는 TEXT로 저장.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from core.errors import ValidationError

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value: Any, field_name: str = "amount") -> Decimal:
    """입력값을 Decimal로 변환

    float은 문자열을 거쳐 변환 (이진 표현 오차 방지).

    Args:
        value: 숫자, 숫자 문자열 또는 Decimal
        field_name: 오류 메시지용 필드명

    Returns:
        Decimal 값

    Raises:
        ValidationError: 숫자로 해석할 수 없거나 유한하지 않은 경우
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be a number", {"field": field_name})
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise ValidationError(
                f"{field_name} must be a number", {"field": field_name, "value": str(value)}
            ) from e

    if not result.is_finite():
        raise ValidationError(f"{field_name} must be finite", {"field": field_name})
    return result


def to_decimal_or_none(value: Any, field_name: str = "amount") -> Decimal | None:
    """None/빈 문자열은 None, 나머지는 to_decimal"""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_decimal(value, field_name)


def quantize(value: Decimal) -> Decimal:
    """소수점 2자리 반올림 (표시/비교용)"""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percent(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole * 100 (whole이 0이면 0)"""
    if whole == ZERO:
        return ZERO
    return part / whole * HUNDRED
