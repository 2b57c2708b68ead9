"""
core/utils/dates.py 테스트
"""

from datetime import date, datetime, timezone

from core.utils.dates import (
    month_key,
    months_before,
    now_iso,
    parse_date,
    recent_month_keys,
    shift_month,
)


class TestParseDate:
    """parse_date 테스트"""

    def test_iso_date(self) -> None:
        assert parse_date("2026-02-21") == date(2026, 2, 21)

    def test_iso_datetime_uses_date_part(self) -> None:
        assert parse_date("2026-02-21T10:00:00Z") == date(2026, 2, 21)

    def test_datetime(self) -> None:
        assert parse_date(datetime(2026, 1, 2, 3, 4, tzinfo=timezone.utc)) == date(2026, 1, 2)

    def test_date_passthrough(self) -> None:
        d = date(2026, 5, 1)
        assert parse_date(d) is d

    def test_unparseable_is_none(self) -> None:
        assert parse_date("next tuesday") is None
        assert parse_date("") is None
        assert parse_date(None) is None


class TestMonths:
    """월 단위 계산 테스트"""

    def test_month_key(self) -> None:
        assert month_key(date(2026, 3, 9)) == "2026-03"

    def test_shift_month_across_year(self) -> None:
        assert shift_month(date(2026, 1, 15), -1) == date(2025, 12, 1)
        assert shift_month(date(2025, 12, 31), 1) == date(2026, 1, 1)

    def test_recent_month_keys_oldest_first(self) -> None:
        assert recent_month_keys(date(2026, 2, 10), 3) == ["2025-12", "2026-01", "2026-02"]

    def test_months_before_same_day(self) -> None:
        assert months_before(date(2026, 3, 15), 3) == date(2025, 12, 15)

    def test_months_before_clamps_to_month_end(self) -> None:
        assert months_before(date(2026, 5, 31), 3) == date(2026, 2, 28)


def test_now_iso_is_utc() -> None:
    assert now_iso().endswith("+00:00")
