"""
워크벤치 초기화 스크립트

스키마 생성 후 워크벤치 1개와 기본 계정과목을 등록.

사용법:
    python -m scripts.init_workbench --name "Acme Traders"
    python -m scripts.init_workbench --name "Acme Traders" --db data/acme.db --currency INR
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import ConfigLoadError, load_config
from core.engine import LedgerEngine
from core.ledger.schema import init_ledger_schema
from core.logging import setup_logging

logger = logging.getLogger(__name__)


async def init_workbench(
    db_path: Path,
    name: str,
    currency: str | None,
    seed_accounts: bool,
    config_path: Path | None,
) -> str:
    """스키마 초기화 + 워크벤치 생성

    Returns:
        생성된 workbench_id
    """
    config = load_config(config_path)

    async with SQLiteAdapter(db_path) as db:
        await init_ledger_schema(db)
        engine = LedgerEngine(db, config=config)
        workbench = await engine.create_workbench(
            name, currency=currency, seed_accounts=seed_accounts
        )
        accounts = await engine.list_accounts(workbench.id)

    logger.info(
        "워크벤치 초기화 완료",
        extra={"workbench_id": workbench.id, "accounts": len(accounts)},
    )
    print(f"DB Path: {db_path}")
    print(f"Workbench: {workbench.name} ({workbench.id})")
    print(f"Currency: {workbench.currency}")
    print(f"Accounts ({len(accounts)}):")
    for account in accounts:
        marker = " [cash]" if account.cash_impact else ""
        print(f"  - {account.account_type.value:<9} {account.name}{marker}")
    return workbench.id


def main() -> None:
    parser = argparse.ArgumentParser(description="Ledgerbench 워크벤치 초기화")
    parser.add_argument("--name", required=True, help="워크벤치 이름")
    parser.add_argument("--db", type=Path, default=None, help="DB 경로 (기본: settings.yaml)")
    parser.add_argument("--currency", default=None, help="통화 (기본: settings.yaml)")
    parser.add_argument("--config", type=Path, default=None, help="settings.yaml 경로")
    parser.add_argument(
        "--no-seed", action="store_true", help="기본 계정과목 생성 생략"
    )
    args = parser.parse_args()

    setup_logging("scripts")

    try:
        db_path = args.db or load_config(args.config).db_path
        asyncio.run(
            init_workbench(db_path, args.name, args.currency, not args.no_seed, args.config)
        )
    except ConfigLoadError as e:
        logger.error(f"설정 로드 실패: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
