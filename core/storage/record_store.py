"""
RecordStore - 도메인 레코드 저장소

append-mostly: 생성 후에는 Posting/Adjustment 서비스만
party_id, net_amount, status, metadata를 변경할 수 있음.
삭제는 트리거로 금지 (취소는 status 전이).
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import (
    METADATA_TYPES,
    Record,
    RecordMetadata,
    parse_metadata,
    to_json,
)
from core.errors import NotFound, ValidationError
from core.types import RecordStatus, RecordType
from core.utils.dates import now_iso
from core.utils.money import ZERO, to_decimal

logger = logging.getLogger(__name__)

# update()가 변경을 허용하는 필드
UPDATABLE_FIELDS = frozenset({"party_id", "net_amount", "status", "metadata"})

_SELECT = """
    SELECT id, workbench_id, record_type, status, summary,
           gross_amount, net_amount, tax_amount, party_id,
           issue_date, due_date, metadata_json,
           created_by, created_at, updated_at
    FROM record
"""


def validate_record(record: Record) -> None:
    """생성 전 필수 필드 검증

    Raises:
        ValidationError: summary 누락, 거래 레코드의 direction 누락/음수 금액
    """
    if not record.summary or not record.summary.strip():
        raise ValidationError("summary is required", {"field": "summary"})

    expected = METADATA_TYPES[record.record_type]
    if not isinstance(record.metadata, expected):
        raise ValidationError(
            f"metadata type does not match record_type {record.record_type.value}",
            {"record_type": record.record_type.value},
        )

    if record.record_type is RecordType.TRANSACTION:
        if record.transaction_meta.direction is None:
            raise ValidationError("direction is required for transactions", {"field": "direction"})
        if record.gross_amount < ZERO:
            raise ValidationError(
                "gross_amount must be non-negative", {"field": "gross_amount"}
            )


class RecordStore:
    """도메인 레코드 저장소

    Args:
        db: SQLiteAdapter 인스턴스

    사용 예시:
    ```python
    store = RecordStore(db)
    record = await store.create(Record(...))
    moved = await store.transition_status(record.id, RecordStatus.DRAFT, RecordStatus.CONFIRMED)
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create(self, record: Record) -> Record:
        """레코드 생성

        Raises:
            ValidationError: 필수 필드 누락
        """
        validate_record(record)

        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT INTO record (
                    id, workbench_id, record_type, status, summary,
                    gross_amount, net_amount, tax_amount, party_id,
                    issue_date, due_date, metadata_json, created_by
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.workbench_id,
                    record.record_type.value,
                    record.status.value,
                    record.summary.strip(),
                    str(record.gross_amount),
                    str(record.net_amount),
                    str(record.tax_amount),
                    record.party_id,
                    record.issue_date.isoformat() if record.issue_date else None,
                    record.due_date.isoformat() if record.due_date else None,
                    to_json(record.metadata.to_dict()),
                    record.created_by,
                ),
            )
            created = await self.get(record.id)

        logger.debug(
            "레코드 생성",
            extra={"record_id": record.id, "record_type": record.record_type.value},
        )
        return created

    async def update(self, record_id: str, patch: dict[str, Any]) -> Record:
        """레코드 부분 변경 (허용 필드만)

        Args:
            record_id: 레코드 ID
            patch: {party_id, net_amount, status, metadata} 중 일부

        Raises:
            ValidationError: 허용되지 않은 필드 포함
            NotFound: 존재하지 않는 레코드
        """
        illegal = set(patch) - UPDATABLE_FIELDS
        if illegal:
            raise ValidationError(
                f"fields not updatable: {sorted(illegal)}",
                {"fields": sorted(illegal), "allowed": sorted(UPDATABLE_FIELDS)},
            )
        if not patch:
            return await self.get(record_id)

        current = await self.get(record_id)
        assignments: list[str] = []
        params: list[Any] = []

        if "party_id" in patch:
            assignments.append("party_id = ?")
            params.append(patch["party_id"])
        if "net_amount" in patch:
            assignments.append("net_amount = ?")
            params.append(str(to_decimal(patch["net_amount"], "net_amount")))
        if "status" in patch:
            try:
                status = RecordStatus(patch["status"])
            except ValueError as e:
                raise ValidationError(f"invalid status: {patch['status']}") from e
            assignments.append("status = ?")
            params.append(status.value)
        if "metadata" in patch:
            metadata = patch["metadata"]
            if not isinstance(metadata, RecordMetadata):
                metadata = parse_metadata(current.record_type, metadata)
            validate_record(replace(current, metadata=metadata))
            assignments.append("metadata_json = ?")
            params.append(to_json(metadata.to_dict()))

        assignments.append("updated_at = ?")
        params.append(now_iso())
        params.append(record_id)

        async with self.db.transaction():
            await self.db.execute(
                f"UPDATE record SET {', '.join(assignments)} WHERE id = ?",
                tuple(params),
            )
            return await self.get(record_id)

    async def transition_status(
        self,
        record_id: str,
        expected: RecordStatus,
        new_status: RecordStatus,
    ) -> bool:
        """compare-and-swap 상태 전이

        Returns:
            True: 전이 성공, False: 현재 상태가 expected가 아님
        """
        async with self.db.transaction():
            cursor = await self.db.execute(
                "UPDATE record SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
                (new_status.value, now_iso(), record_id, expected.value),
            )
            return cursor.rowcount == 1

    async def find(self, record_id: str) -> Record | None:
        """레코드 조회 (없으면 None)"""
        row = await self.db.fetchone_dict(_SELECT + " WHERE id = ?", (record_id,))
        return Record.from_row(row) if row else None

    async def get(self, record_id: str) -> Record:
        """레코드 조회

        Raises:
            NotFound: 존재하지 않는 레코드
        """
        record = await self.find(record_id)
        if record is None:
            raise NotFound(f"record not found: {record_id}", {"record_id": record_id})
        return record

    async def list_by_workbench(
        self,
        workbench_id: str,
        status: RecordStatus | None = None,
    ) -> list[Record]:
        """워크벤치 레코드 목록 (생성 순)"""
        sql = _SELECT + " WHERE workbench_id = ?"
        params: tuple[Any, ...] = (workbench_id,)
        if status is not None:
            sql += " AND status = ?"
            params += (status.value,)
        rows = await self.db.fetchall_dict(sql + " ORDER BY created_at, rowid", params)
        return [Record.from_row(row) for row in rows]

    async def list_by_type(self, workbench_id: str, record_type: RecordType) -> list[Record]:
        """유형별 레코드 목록 (생성 순)"""
        rows = await self.db.fetchall_dict(
            _SELECT + " WHERE workbench_id = ? AND record_type = ? ORDER BY created_at, rowid",
            (workbench_id, record_type.value),
        )
        return [Record.from_row(row) for row in rows]

    async def references_party(self, party_id: str) -> bool:
        """거래처를 참조하는 레코드 존재 여부"""
        row = await self.db.fetchone(
            "SELECT 1 FROM record WHERE party_id = ? LIMIT 1", (party_id,)
        )
        return row is not None

    async def count(self, workbench_id: str | None = None) -> int:
        """레코드 수"""
        if workbench_id is None:
            return await self.db.count_rows("record")
        return await self.db.count_rows("record", "workbench_id = ?", (workbench_id,))
