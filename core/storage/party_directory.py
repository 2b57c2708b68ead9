"""
PartyDirectory - 거래처 저장소

레코드가 참조하는 거래처는 삭제 불가 (is_active로 비활성화).
"""

from __future__ import annotations

import logging
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import Party
from core.errors import NotFound, ValidationError
from core.types import PartyType

logger = logging.getLogger(__name__)

_SELECT = """
    SELECT id, workbench_id, name, party_type, gstin, pan, is_active, created_at
    FROM party
"""


class PartyDirectory:
    """거래처 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create(
        self,
        workbench_id: str,
        name: str,
        party_type: PartyType | str = PartyType.BOTH,
        gstin: str | None = None,
        pan: str | None = None,
        party_id: str | None = None,
    ) -> Party:
        """거래처 생성

        Raises:
            ValidationError: 이름 누락 또는 잘못된 party_type
        """
        if not name or not name.strip():
            raise ValidationError("party name is required", {"field": "party_name"})
        try:
            party_type = PartyType(party_type)
        except ValueError as e:
            raise ValidationError(
                f"invalid party type: {party_type}",
                {"allowed": [t.value for t in PartyType]},
            ) from e

        party = Party(
            id=party_id or str(uuid4()),
            workbench_id=workbench_id,
            name=name.strip(),
            party_type=party_type,
            gstin=gstin,
            pan=pan,
        )
        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT INTO party (id, workbench_id, name, party_type, gstin, pan)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (party.id, party.workbench_id, party.name, party.party_type.value, party.gstin, party.pan),
            )
            return await self.get(party.id)

    async def find(self, party_id: str) -> Party | None:
        """거래처 조회 (없으면 None)"""
        row = await self.db.fetchone_dict(_SELECT + " WHERE id = ?", (party_id,))
        return Party.from_row(row) if row else None

    async def get(self, party_id: str) -> Party:
        """거래처 조회

        Raises:
            NotFound: 존재하지 않는 거래처
        """
        party = await self.find(party_id)
        if party is None:
            raise NotFound(f"party not found: {party_id}", {"party_id": party_id})
        return party

    async def list(self, workbench_id: str, include_inactive: bool = True) -> list[Party]:
        """워크벤치 거래처 목록"""
        sql = _SELECT + " WHERE workbench_id = ?"
        if not include_inactive:
            sql += " AND is_active = 1"
        rows = await self.db.fetchall_dict(sql + " ORDER BY rowid", (workbench_id,))
        return [Party.from_row(row) for row in rows]

    async def deactivate(self, party_id: str) -> Party:
        """거래처 비활성화 (soft delete)"""
        async with self.db.transaction():
            cursor = await self.db.execute(
                "UPDATE party SET is_active = 0 WHERE id = ?", (party_id,)
            )
            if cursor.rowcount == 0:
                raise NotFound(f"party not found: {party_id}", {"party_id": party_id})
            return await self.get(party_id)

    async def delete(self, party_id: str) -> None:
        """거래처 삭제 (참조하는 레코드가 없을 때만)

        Raises:
            NotFound: 존재하지 않는 거래처
            ValidationError: 레코드가 참조 중인 경우 (deactivate 사용)
        """
        async with self.db.transaction():
            await self.get(party_id)
            referenced = await self.db.fetchone(
                "SELECT 1 FROM record WHERE party_id = ? LIMIT 1", (party_id,)
            )
            if referenced is not None:
                raise ValidationError(
                    "party is referenced by records; deactivate it instead",
                    {"party_id": party_id},
                )
            await self.db.execute("DELETE FROM party WHERE id = ?", (party_id,))
        logger.info("거래처 삭제", extra={"party_id": party_id})
