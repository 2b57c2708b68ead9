"""
AuditLog - 감사 로그 저장소

변경 작업 1건당 1행, append-only (트리거로 UPDATE/DELETE 금지).
항상 변경 작업과 같은 트랜잭션 안에서 기록.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import AuditLogEntry, to_json
from core.types import AuditAction

logger = logging.getLogger(__name__)

_SELECT = """
    SELECT id, workbench_id, actor, action, entity_type, entity_id,
           old_data_json, new_data_json, created_at
    FROM audit_log
"""


class AuditLog:
    """감사 로그 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def append(
        self,
        workbench_id: str,
        actor: str,
        action: AuditAction,
        entity_type: str,
        entity_id: str,
        old_data: dict[str, Any] | None = None,
        new_data: dict[str, Any] | None = None,
    ) -> AuditLogEntry:
        """감사 로그 1행 추가

        호출자의 작업 단위 안에서 실행되면 그 단위에 합류.
        """
        entry_id = str(uuid4())
        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT INTO audit_log (
                    id, workbench_id, actor, action, entity_type, entity_id,
                    old_data_json, new_data_json
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry_id,
                    workbench_id,
                    actor,
                    action.value,
                    entity_type,
                    entity_id,
                    to_json(old_data) if old_data is not None else None,
                    to_json(new_data) if new_data is not None else None,
                ),
            )
            row = await self.db.fetchone_dict(_SELECT + " WHERE id = ?", (entry_id,))
        return AuditLogEntry.from_row(row)

    async def list_by_workbench(
        self,
        workbench_id: str,
        limit: int | None = None,
        action: AuditAction | None = None,
    ) -> list[AuditLogEntry]:
        """워크벤치 감사 로그 (최신 순)"""
        sql = _SELECT + " WHERE workbench_id = ?"
        params: tuple[Any, ...] = (workbench_id,)
        if action is not None:
            sql += " AND action = ?"
            params += (action.value,)
        sql += " ORDER BY created_at DESC, rowid DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params += (limit,)
        rows = await self.db.fetchall_dict(sql, params)
        return [AuditLogEntry.from_row(row) for row in rows]

    async def list_by_entity(self, entity_type: str, entity_id: str) -> list[AuditLogEntry]:
        """엔티티별 감사 로그 (기록 순)"""
        rows = await self.db.fetchall_dict(
            _SELECT + " WHERE entity_type = ? AND entity_id = ? ORDER BY rowid",
            (entity_type, entity_id),
        )
        return [AuditLogEntry.from_row(row) for row in rows]

    async def count(self, workbench_id: str | None = None) -> int:
        """감사 로그 수"""
        if workbench_id is None:
            return await self.db.count_rows("audit_log")
        return await self.db.count_rows("audit_log", "workbench_id = ?", (workbench_id,))
