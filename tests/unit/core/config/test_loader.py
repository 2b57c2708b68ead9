"""
설정 로더 테스트
"""

from decimal import Decimal
from pathlib import Path

import pytest

from core.config.loader import (
    ConfigLoadError,
    EngineConfig,
    Settings,
    get_settings,
    load_config,
)


def _write(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadConfig:
    """load_config 테스트"""

    def test_missing_file_uses_defaults(self, temp_dir: Path) -> None:
        config = load_config(temp_dir / "nope.yaml")

        assert config == EngineConfig()
        assert config.compliance_horizon_days == 5
        assert config.budget_warning_pct == Decimal("80")
        assert config.financing_keywords == ("loan", "debt")

    def test_empty_file_uses_defaults(self, temp_dir: Path) -> None:
        config = load_config(_write(temp_dir / "settings.yaml", ""))

        assert config == EngineConfig()

    def test_sections_are_flattened(self, temp_dir: Path) -> None:
        path = _write(
            temp_dir / "settings.yaml",
            "ledger:\n"
            "  currency: USD\n"
            "  default_actor: bookkeeper\n"
            "alerts:\n"
            "  compliance_horizon_days: 7\n"
            "  budget_warning_pct: 75.5\n"
            "web:\n"
            "  host: 0.0.0.0\n"
            "  port: 9000\n",
        )

        config = load_config(path)

        assert config.currency == "USD"
        assert config.default_actor == "bookkeeper"
        assert config.compliance_horizon_days == 7
        assert config.budget_warning_pct == Decimal("75.5")
        assert config.web_host == "0.0.0.0"
        assert config.web_port == 9000

    def test_top_level_keys(self, temp_dir: Path) -> None:
        path = _write(
            temp_dir / "settings.yaml",
            "db_path: /tmp/x.db\nfinancing_keywords: [Loan, Credit Line]\n",
        )

        config = load_config(path)

        assert config.db_path == Path("/tmp/x.db")
        assert config.financing_keywords == ("loan", "credit line")

    @pytest.mark.parametrize(
        "content",
        [
            "compliance_horizon_days: soon\n",
            "compliance_horizon_days: -1\n",
            "web:\n  port: true\n",
            "budget_overrun_pct: lots\n",
            "financing_keywords: loan\n",
            "currency: ''\n",
            "unknown_key: 1\n",
        ],
    )
    def test_invalid_values(self, temp_dir: Path, content: str) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(_write(temp_dir / "settings.yaml", content))

    def test_warning_above_overrun(self, temp_dir: Path) -> None:
        path = _write(
            temp_dir / "settings.yaml",
            "alerts:\n  budget_warning_pct: 120\n  budget_overrun_pct: 100\n",
        )

        with pytest.raises(ConfigLoadError):
            load_config(path)

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(_write(temp_dir / "settings.yaml", "ledger: [unclosed\n"))

    def test_top_level_must_be_mapping(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(_write(temp_dir / "settings.yaml", "- a\n- b\n"))


class TestSettings:
    """Settings 싱글턴 테스트"""

    def test_singleton(self, temp_dir: Path) -> None:
        path = _write(temp_dir / "settings.yaml", "ledger:\n  currency: EUR\n")

        first = get_settings(path)
        second = get_settings()

        assert first is second
        assert second.config.currency == "EUR"

    def test_reset(self, temp_dir: Path) -> None:
        get_settings(_write(temp_dir / "a.yaml", "ledger:\n  default_actor: alice\n"))
        Settings.reset()

        settings = get_settings(_write(temp_dir / "b.yaml", "ledger:\n  default_actor: bob\n"))

        assert settings.default_actor == "bob"
