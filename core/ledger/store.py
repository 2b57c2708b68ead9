"""
Ledger 저장소

append-only 분개 저장 및 조회.
잔액 캐시 테이블은 두지 않음: 잔액은 항상 분개 원본에서 계산.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal
from typing import TYPE_CHECKING

from core.domain.models import LedgerEntry
from core.errors import ValidationError
from core.ledger.entry_builder import Posting
from core.utils.money import ZERO

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


_SELECT = """
    SELECT id, workbench_id, posting_id, record_id, leg, account_id,
           counter_account_id, amount, entry_type, transaction_date,
           category, created_at
    FROM ledger_entry
"""


class LedgerStore:
    """Ledger 저장소

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def save_posting(self, posting: Posting) -> list[LedgerEntry]:
        """posting 저장

        호출자의 작업 단위(transaction) 안에서 실행되면 그 단위에 합류.
        같은 record_id/leg 조합은 UNIQUE 제약으로 두 번 저장될 수 없음.

        Args:
            posting: 저장할 posting

        Returns:
            저장된 분개 목록

        Raises:
            ValueError: 불균형 posting인 경우
            ValidationError: 음수 금액 분개가 포함된 경우
        """
        if not posting.is_balanced():
            raise ValueError(f"Unbalanced posting: {posting.posting_id}")
        if any(entry.amount < ZERO for entry in posting.entries):
            raise ValidationError("ledger entry amount must be >= 0", {"posting_id": posting.posting_id})

        async with self.db.transaction():
            await self.db.executemany(
                """
                INSERT INTO ledger_entry (
                    id, workbench_id, posting_id, record_id, leg,
                    account_id, counter_account_id, amount, entry_type,
                    transaction_date, category
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        entry.id,
                        entry.workbench_id,
                        entry.posting_id,
                        entry.record_id,
                        entry.leg.value,
                        entry.account_id,
                        entry.counter_account_id,
                        str(entry.amount),
                        entry.entry_type.value,
                        entry.transaction_date.isoformat() if entry.transaction_date else None,
                        entry.category,
                    )
                    for entry in posting.entries
                ],
            )

        logger.debug(
            f"Saved posting: {posting.posting_id}",
            extra={"record_id": posting.record_id, "entries": len(posting.entries)},
        )
        return list(posting.entries)

    async def list_by_workbench(self, workbench_id: str) -> list[LedgerEntry]:
        """워크벤치 전체 분개 (입력 순)"""
        rows = await self.db.fetchall_dict(
            _SELECT + " WHERE workbench_id = ? ORDER BY created_at, rowid",
            (workbench_id,),
        )
        return [LedgerEntry.from_row(row) for row in rows]

    async def list_by_record(self, record_id: str) -> list[LedgerEntry]:
        """레코드가 생성한 분개"""
        rows = await self.db.fetchall_dict(
            _SELECT + " WHERE record_id = ? ORDER BY rowid",
            (record_id,),
        )
        return [LedgerEntry.from_row(row) for row in rows]

    async def list_by_account(self, account_id: str) -> list[LedgerEntry]:
        """계정별 분개"""
        rows = await self.db.fetchall_dict(
            _SELECT + " WHERE account_id = ? ORDER BY rowid",
            (account_id,),
        )
        return [LedgerEntry.from_row(row) for row in rows]

    async def has_posting(self, record_id: str) -> bool:
        """레코드에 대한 posting 존재 여부"""
        row = await self.db.fetchone(
            "SELECT 1 FROM ledger_entry WHERE record_id = ? LIMIT 1",
            (record_id,),
        )
        return row is not None

    async def processed_record_ids(self, workbench_id: str) -> set[str]:
        """분개에 등장하는 record_id 집합"""
        rows = await self.db.fetchall(
            "SELECT DISTINCT record_id FROM ledger_entry WHERE workbench_id = ?",
            (workbench_id,),
        )
        return {row[0] for row in rows}

    async def count(self, workbench_id: str | None = None) -> int:
        """분개 수"""
        if workbench_id is None:
            return await self.db.count_rows("ledger_entry")
        return await self.db.count_rows("ledger_entry", "workbench_id = ?", (workbench_id,))

    async def trial_balance(self, workbench_id: str) -> dict[str, Decimal]:
        """계정별 잔액 (차변 +, 대변 -)

        합계는 항상 0 (모든 posting이 균형).
        """
        balances: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for entry in await self.list_by_workbench(workbench_id):
            balances[entry.account_id] += entry.signed_amount
        return dict(balances)
