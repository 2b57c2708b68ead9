"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → ledgerbench/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    # 감사 로그 기본 actor (인증 계층이 actor를 넘기지 않은 경우)
    ACTOR: str = "system"
    CURRENCY: str = "INR"


class Thresholds:
    """집계/예외 탐지 임계값"""

    COMPLIANCE_HORIZON_DAYS: int = 5  # 마감 임박 판정 기간
    BUDGET_WARNING_PCT: Decimal = Decimal("80")  # 예산 경고 (이상)
    BUDGET_OVERRUN_PCT: Decimal = Decimal("100")  # 예산 초과 (초과)
    UNKNOWN_PARTY_LIMIT: int = 5  # 거래처 미지정 알림 최대 건수
    BURN_WINDOW_MONTHS: int = 3  # 월 평균 소진액 산정 기간
    STABILITY_WINDOW_MONTHS: int = 6  # 현금 안정성 지수 산정 기간
    BALANCE_TOLERANCE: Decimal = Decimal("0.01")  # 대차 검증 허용 오차


class Heuristics:
    """분류 휴리스틱 키워드"""

    FINANCING_KEYWORDS: tuple[str, ...] = ("loan", "debt")
    INVESTING_TAG: str = "investing"
    UNCATEGORIZED: str = "Uncategorized"
    UNKNOWN_PARTY: str = "unknown"
    ADJUSTMENT_CATEGORY: str = "adjustment"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    DEFAULT_DB: Path = DATA_DIR / "ledgerbench.db"
