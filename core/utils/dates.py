"""
날짜 유틸리티

내부 저장: UTC ISO 문자열 | 거래일/마감일: ISO date (YYYY-MM-DD)
"""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """현재 UTC 시각"""
    return datetime.now(timezone.utc)


def now_iso() -> str:
    """현재 UTC 시각 ISO 문자열 (DB 저장용)"""
    return utc_now().isoformat()


def parse_date(value: date | datetime | str | None) -> date | None:
    """다양한 입력을 date로 변환

    ISO datetime 문자열(`2026-02-21T10:00:00Z`)은 날짜 부분만 사용.
    해석할 수 없는 값은 None (집계는 누락 필드로 실패하지 않음).

    Args:
        value: date, datetime, ISO 문자열 또는 None

    Returns:
        date 또는 None
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def month_key(d: date) -> str:
    """월 키 (YYYY-MM)"""
    return f"{d.year:04d}-{d.month:02d}"


def shift_month(d: date, months: int) -> date:
    """d가 속한 달의 1일 기준으로 months만큼 이동

    Example:
        >>> shift_month(date(2026, 1, 15), -1)
        datetime.date(2025, 12, 1)
    """
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def recent_month_keys(as_of: date, count: int) -> list[str]:
    """as_of가 속한 달을 포함한 최근 count개월 키 (오래된 순)"""
    return [month_key(shift_month(as_of, -offset)) for offset in range(count - 1, -1, -1)]


def months_before(d: date, months: int) -> date:
    """months개월 전 같은 날 (말일 초과 시 그 달 말일)"""
    first = shift_month(d, -months)
    following = shift_month(first, 1)
    last_day = (following - first).days
    return first.replace(day=min(d.day, last_day))
