#!/usr/bin/env python3
"""원장 상태 확인 스크립트

레코드/분개/감사 로그 건수, 계정별 시산표 합계, 재무상태표 경고 출력.

사용법:
    python -m scripts.check_ledger --workbench <workbench_id>
    python -m scripts.check_ledger --workbench <workbench_id> --db data/acme.db
"""

import argparse
import asyncio
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import load_config
from core.engine import LedgerEngine
from core.ledger.store import LedgerStore
from core.storage import AccountRegistry, AuditLog, RecordStore
from core.utils.money import ZERO


async def main(db_path: Path, workbench_id: str) -> int:
    async with SQLiteAdapter(db_path, readonly=True) as db:
        engine = LedgerEngine(db, config=load_config())
        workbench = await engine.get_workbench(workbench_id)

        ledger = LedgerStore(db)
        print(f"DB Path: {db_path}")
        print(f"Workbench: {workbench.name} ({workbench.id})")
        print(f"Records: {await RecordStore(db).count(workbench_id)}")
        print(f"Ledger entries: {await ledger.count(workbench_id)}")
        print(f"Audit entries: {await AuditLog(db).count(workbench_id)}")

        accounts = {a.id: a for a in await AccountRegistry(db).list(workbench_id, include_inactive=True)}
        balances = await ledger.trial_balance(workbench_id)
        print(f"\nTrial balance ({len(balances)} accounts):")
        for account_id, balance in balances.items():
            account = accounts.get(account_id)
            name = account.name if account else account_id[:8]
            print(f"  {name:<24} {balance:>15}")
        total = sum(balances.values(), ZERO)
        print(f"  {'TOTAL':<24} {total:>15}")

        snapshot = await engine.get_financial_snapshot(workbench_id)
        warnings = snapshot["warnings"]
        print(f"\nWarnings ({len(warnings)}):")
        for warning in warnings:
            print(f"  - {warning['code']}: {warning['message']}")

    return 0 if total == ZERO and not warnings else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Ledgerbench 원장 상태 확인")
    parser.add_argument("--workbench", required=True, help="워크벤치 ID")
    parser.add_argument("--db", type=Path, default=None, help="DB 경로 (기본: settings.yaml)")
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.db or load_config().db_path, args.workbench)))
