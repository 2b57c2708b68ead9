"""
AccountRegistry - 계정과목 저장소

읽기 위주. 쓰기는 워크벤치 셋업(seed_default_chart, create)에서만 발생.
"""

from __future__ import annotations

import logging
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import Account
from core.errors import NotFound, ValidationError
from core.ledger.types import DEFAULT_ACCOUNTS
from core.types import AccountType

logger = logging.getLogger(__name__)

_SELECT = """
    SELECT id, workbench_id, name, account_type, category, cash_impact, is_active
    FROM account
"""


class AccountRegistry:
    """계정과목 저장소

    Args:
        db: SQLiteAdapter 인스턴스

    사용 예시:
    ```python
    registry = AccountRegistry(db)
    await registry.seed_default_chart(workbench_id)
    accounts = await registry.list(workbench_id)
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def get(self, account_id: str) -> Account:
        """계정 조회

        Raises:
            NotFound: 존재하지 않는 계정
        """
        row = await self.db.fetchone_dict(_SELECT + " WHERE id = ?", (account_id,))
        if row is None:
            raise NotFound(f"account not found: {account_id}", {"account_id": account_id})
        return Account.from_row(row)

    async def list(self, workbench_id: str, include_inactive: bool = False) -> list[Account]:
        """워크벤치 계정 목록 (등록 순)"""
        sql = _SELECT + " WHERE workbench_id = ?"
        if not include_inactive:
            sql += " AND is_active = 1"
        rows = await self.db.fetchall_dict(sql + " ORDER BY rowid", (workbench_id,))
        return [Account.from_row(row) for row in rows]

    async def create(
        self,
        workbench_id: str,
        name: str,
        account_type: AccountType | str,
        category: str | None = None,
        cash_impact: bool = False,
        account_id: str | None = None,
    ) -> Account:
        """계정 생성

        Raises:
            ValidationError: 이름이 비었거나 cash_impact가 자산 계정이 아닌 경우
        """
        if not name or not name.strip():
            raise ValidationError("account name is required", {"field": "name"})
        try:
            account_type = AccountType(account_type)
        except ValueError as e:
            raise ValidationError(
                f"invalid account type: {account_type}",
                {"allowed": [t.value for t in AccountType]},
            ) from e
        if cash_impact and account_type is not AccountType.ASSET:
            raise ValidationError("only Asset accounts can be cash-impact", {"name": name})

        account = Account(
            id=account_id or str(uuid4()),
            workbench_id=workbench_id,
            name=name.strip(),
            account_type=account_type,
            category=category,
            cash_impact=cash_impact,
        )
        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT INTO account (id, workbench_id, name, account_type, category, cash_impact)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    account.id,
                    account.workbench_id,
                    account.name,
                    account.account_type.value,
                    account.category,
                    1 if account.cash_impact else 0,
                ),
            )
        return account

    async def deactivate(self, account_id: str) -> None:
        """계정 비활성화 (분개가 참조해도 허용, 핵심 필드는 불변)"""
        async with self.db.transaction():
            cursor = await self.db.execute(
                "UPDATE account SET is_active = 0 WHERE id = ?", (account_id,)
            )
            if cursor.rowcount == 0:
                raise NotFound(f"account not found: {account_id}", {"account_id": account_id})

    async def seed_default_chart(self, workbench_id: str) -> list[Account]:
        """기본 계정과목 생성 (이미 있는 이름은 건너뜀)

        Returns:
            워크벤치의 활성 계정 목록
        """
        existing = {a.name for a in await self.list(workbench_id, include_inactive=True)}
        async with self.db.transaction():
            for name, account_type, category, cash_impact in DEFAULT_ACCOUNTS:
                if name in existing:
                    continue
                await self.create(
                    workbench_id=workbench_id,
                    name=name,
                    account_type=account_type,
                    category=category,
                    cash_impact=cash_impact,
                )

        accounts = await self.list(workbench_id)
        logger.info(
            "기본 계정과목 생성 완료",
            extra={"workbench_id": workbench_id, "accounts": len(accounts)},
        )
        return accounts
