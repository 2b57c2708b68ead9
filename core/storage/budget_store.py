"""
BudgetStore - 예산 저장소

예산과 카테고리별 배정액만 저장. 실제 지출은 집계 시점에 계산.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import Budget, BudgetItem
from core.errors import NotFound, ValidationError
from core.utils.money import ZERO

logger = logging.getLogger(__name__)


class BudgetStore:
    """예산 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create(
        self,
        workbench_id: str,
        name: str,
        total_amount: Decimal,
        items: list[BudgetItem] | None = None,
        category: str | None = None,
        record_id: str | None = None,
        budget_id: str | None = None,
    ) -> Budget:
        """예산 + 배정 항목 생성

        Raises:
            ValidationError: 이름 누락 또는 음수 금액
        """
        if not name or not name.strip():
            raise ValidationError("budget name is required", {"field": "budget_name"})
        if total_amount < ZERO or any(item.amount < ZERO for item in items or []):
            raise ValidationError("budget amounts must be non-negative", {"field": "amount"})

        budget_id = budget_id or str(uuid4())
        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT INTO budget (id, workbench_id, name, total_amount, category, record_id)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (budget_id, workbench_id, name.strip(), str(total_amount), category, record_id),
            )
            if items:
                await self.db.executemany(
                    "INSERT INTO budget_item (budget_id, category, amount) VALUES (?, ?, ?)",
                    [(budget_id, item.category, str(item.amount)) for item in items],
                )
            return await self.get(budget_id)

    async def get(self, budget_id: str) -> Budget:
        """예산 조회 (배정 항목 포함)

        Raises:
            NotFound: 존재하지 않는 예산
        """
        row = await self.db.fetchone_dict(
            """
            SELECT id, workbench_id, name, total_amount, category, record_id, created_at
            FROM budget WHERE id = ?
            """,
            (budget_id,),
        )
        if row is None:
            raise NotFound(f"budget not found: {budget_id}", {"budget_id": budget_id})
        item_rows = await self.db.fetchall_dict(
            "SELECT id, category, amount FROM budget_item WHERE budget_id = ? ORDER BY id",
            (budget_id,),
        )
        return self._to_budget(row, item_rows)

    async def list_with_items(self, workbench_id: str) -> list[Budget]:
        """워크벤치 예산 목록 (배정 항목 포함)"""
        rows = await self.db.fetchall_dict(
            """
            SELECT id, workbench_id, name, total_amount, category, record_id, created_at
            FROM budget WHERE workbench_id = ? ORDER BY rowid
            """,
            (workbench_id,),
        )
        item_rows = await self.db.fetchall_dict(
            """
            SELECT bi.id, bi.budget_id, bi.category, bi.amount
            FROM budget_item bi
            JOIN budget b ON b.id = bi.budget_id
            WHERE b.workbench_id = ?
            ORDER BY bi.id
            """,
            (workbench_id,),
        )
        items_by_budget: dict[str, list[dict]] = defaultdict(list)
        for item in item_rows:
            items_by_budget[item["budget_id"]].append(item)
        return [self._to_budget(row, items_by_budget.get(row["id"], [])) for row in rows]

    @staticmethod
    def _to_budget(row: dict, item_rows: list[dict]) -> Budget:
        return Budget(
            id=row["id"],
            workbench_id=row["workbench_id"],
            name=row["name"],
            total_amount=Decimal(row["total_amount"]),
            category=row.get("category"),
            record_id=row.get("record_id"),
            items=[
                BudgetItem(category=item["category"], amount=Decimal(item["amount"]), id=item["id"])
                for item in item_rows
            ],
            created_at=row.get("created_at"),
        )
