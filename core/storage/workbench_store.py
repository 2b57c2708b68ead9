"""
WorkbenchStore - 워크벤치 저장소
"""

import logging
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults
from core.domain.models import Workbench
from core.errors import ValidationError, WorkbenchNotFound

logger = logging.getLogger(__name__)


class WorkbenchStore:
    """워크벤치 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create(
        self,
        name: str,
        currency: str = Defaults.CURRENCY,
        workbench_id: str | None = None,
    ) -> Workbench:
        """워크벤치 생성

        Raises:
            ValidationError: 이름이 비어 있는 경우
        """
        if not name or not name.strip():
            raise ValidationError("workbench name is required", {"field": "name"})

        workbench = Workbench(
            id=workbench_id or str(uuid4()),
            name=name.strip(),
            currency=currency,
        )
        async with self.db.transaction():
            await self.db.execute(
                "INSERT INTO workbench (id, name, currency) VALUES (?, ?, ?)",
                (workbench.id, workbench.name, workbench.currency),
            )

        logger.info("워크벤치 생성", extra={"workbench_id": workbench.id})
        return await self.require(workbench.id)

    async def get(self, workbench_id: str) -> Workbench | None:
        """워크벤치 조회 (없으면 None)"""
        row = await self.db.fetchone_dict(
            "SELECT id, name, currency, created_at FROM workbench WHERE id = ?",
            (workbench_id,),
        )
        if row is None:
            return None
        return Workbench(**row)

    async def require(self, workbench_id: str) -> Workbench:
        """워크벤치 조회

        Raises:
            WorkbenchNotFound: 존재하지 않는 경우
        """
        workbench = await self.get(workbench_id)
        if workbench is None:
            raise WorkbenchNotFound(
                f"workbench not found: {workbench_id}", {"workbench_id": workbench_id}
            )
        return workbench
