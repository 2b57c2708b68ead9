"""
로깅 설정 유틸리티

Web과 관리 스크립트에서 사용하는 공통 로깅 설정.
- 콘솔: INFO 레벨
- 파일: INFO 레벨 (TimedRotatingFileHandler, daily)
- logger.info(..., extra={...})로 넘긴 컨텍스트는 메시지 뒤에 key=value로 붙음

사용법:
    from core.logging import setup_logging
    setup_logging("web", log_dir=config.log_dir)
    setup_logging("scripts")
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.constants import Paths


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 7  # 최대 7일치 파일 유지

# 레벨을 WARNING으로 낮출 로거
NOISY_LOGGERS = [
    "aiosqlite",      # 쿼리마다 executing/completed 로그
    "httpcore",
    "httpx",
    "asyncio",
    "uvicorn.access", # 요청별 접근 로그
]

# LogRecord 기본 속성 (extra 컨텍스트와 구분)
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName", "color_message"}


class ContextFormatter(logging.Formatter):
    """extra 컨텍스트를 붙이는 포맷터

    Example:
        logger.info("레코드 확정", extra={"record_id": "r1", "amount": "1000"})
        → ... | 레코드 확정 | record_id=r1 amount=1000
    """

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{line} | {pairs}"


def get_log_file_path(process_name: str, log_dir: Path | None = None) -> Path:
    """<log_dir>/<process_name>/<process_name>.log"""
    base_dir = log_dir if log_dir is not None else Paths.LOGS_DIR
    return base_dir / process_name / f"{process_name}.log"


def setup_logging(
    process_name: str,
    console_level: int = logging.INFO,
    file_level: int = logging.INFO,
    log_dir: Path | None = None,
) -> logging.Logger:
    """루트 로거에 콘솔/파일 핸들러 설치

    다시 호출하면 기존 핸들러를 닫고 교체.

    Args:
        process_name: 프로세스 이름 ("web", "scripts" 등), 로그 하위 디렉토리명
        console_level: 콘솔 로그 레벨
        file_level: 파일 로그 레벨
        log_dir: 로그 루트 디렉토리 (None이면 Paths.LOGS_DIR)

    Returns:
        설정된 루트 Logger
    """
    log_file = get_log_file_path(process_name, log_dir)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # 필터링은 핸들러에서

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = ContextFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.suffix = "%Y-%m-%d"  # web.log.2026-02-21
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.info(
        "로깅 초기화 완료",
        extra={"process_name": process_name, "log_file": str(log_file)},
    )
    return root_logger
