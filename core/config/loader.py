"""
설정 로더

settings.yaml 로드 및 엔진 설정 생성
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, Heuristics, Paths, Thresholds


@dataclass(frozen=True)
class EngineConfig:
    """엔진 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지.
    파일이 없으면 모든 값이 기본값.
    """

    db_path: Path = Paths.DEFAULT_DB
    log_dir: Path = Paths.LOGS_DIR
    default_actor: str = Defaults.ACTOR
    currency: str = Defaults.CURRENCY

    compliance_horizon_days: int = Thresholds.COMPLIANCE_HORIZON_DAYS
    budget_warning_pct: Decimal = Thresholds.BUDGET_WARNING_PCT
    budget_overrun_pct: Decimal = Thresholds.BUDGET_OVERRUN_PCT
    unknown_party_alert_limit: int = Thresholds.UNKNOWN_PARTY_LIMIT
    burn_window_months: int = Thresholds.BURN_WINDOW_MONTHS

    financing_keywords: tuple[str, ...] = field(
        default=Heuristics.FINANCING_KEYWORDS
    )
    investing_tag: str = Heuristics.INVESTING_TAG

    web_host: str = Defaults.WEB_HOST
    web_port: int = Defaults.WEB_PORT


class ConfigLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


# settings.yaml 키 → 변환 함수
_INT_KEYS = (
    "compliance_horizon_days",
    "unknown_party_alert_limit",
    "burn_window_months",
    "web_port",
)
_DECIMAL_KEYS = ("budget_warning_pct", "budget_overrun_pct")
_PATH_KEYS = ("db_path", "log_dir")
_STR_KEYS = ("default_actor", "currency", "investing_tag", "web_host")


def _coerce(key: str, value: Any) -> Any:
    """YAML 값을 EngineConfig 필드 타입으로 변환

    Raises:
        ConfigLoadError: 변환 불가한 값
    """
    try:
        if key in _INT_KEYS:
            if isinstance(value, bool):
                raise ValueError(value)
            result = int(value)
            if result < 0:
                raise ValueError(value)
            return result
        if key in _DECIMAL_KEYS:
            return Decimal(str(value))
        if key in _PATH_KEYS:
            return Path(value)
        if key == "financing_keywords":
            if isinstance(value, str) or not isinstance(value, (list, tuple)):
                raise ValueError(value)
            return tuple(str(v).lower() for v in value)
        if key in _STR_KEYS:
            if not isinstance(value, str) or not value.strip():
                raise ValueError(value)
            return value
    except (TypeError, ValueError, InvalidOperation) as e:
        raise ConfigLoadError(f"settings.yaml의 '{key}' 값이 잘못되었습니다: {value!r}") from e

    raise ConfigLoadError(f"알 수 없는 설정 키입니다: '{key}'")


def load_config(path: Path | None = None) -> EngineConfig:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        EngineConfig 인스턴스 (파일이 없으면 기본값)

    Raises:
        ConfigLoadError: 형식이 잘못되었거나 값이 유효하지 않은 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        return EngineConfig()

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        return EngineConfig()

    if not isinstance(data, dict):
        raise ConfigLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    # ledger / alerts 섹션은 평탄화
    flat: dict[str, Any] = {}
    for key, value in data.items():
        if key in ("ledger", "alerts", "web") and isinstance(value, dict):
            for sub_key, sub_value in value.items():
                flat[f"{key}_{sub_key}" if key == "web" else sub_key] = sub_value
        else:
            flat[key] = value

    values = {key: _coerce(key, value) for key, value in flat.items()}

    config = EngineConfig(**values)
    if config.budget_warning_pct > config.budget_overrun_pct:
        raise ConfigLoadError(
            "budget_warning_pct는 budget_overrun_pct보다 클 수 없습니다"
        )
    return config


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: EngineConfig | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._config is None:
            self._config = load_config(settings_path)

    @property
    def config(self) -> EngineConfig:
        """로드된 엔진 설정"""
        assert self._config is not None
        return self._config

    @property
    def db_path(self) -> Path:
        """DB 경로"""
        return self.config.db_path

    @property
    def default_actor(self) -> str:
        """감사 로그 기본 actor"""
        return self.config.default_actor

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
