"""
복식부기 스키마 초기화

Web 시작 시/관리 스크립트에서 Ledger 테이블, 인덱스, 트리거 생성.
CREATE IF NOT EXISTS 패턴으로 여러 번 호출해도 안전하게 동작.

append-only 보장은 애플리케이션이 아니라 트리거로 강제:
- ledger_entry, audit_log: UPDATE/DELETE 금지
- record: DELETE 금지 (취소는 status 전이)
- account: 분개가 참조한 뒤에는 핵심 필드 변경 금지
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """Ledger 스키마 초기화 (테이블 + 인덱스 + 트리거)

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).

    Args:
        db: 연결된 SQLiteAdapter 인스턴스
    """
    async with db.transaction():
        await _create_tables(db)
        await _create_indexes(db)
        await _create_triggers(db)
    logger.info("Ledger 스키마 초기화 완료")


async def _create_tables(db: "SQLiteAdapter") -> None:
    """테이블 생성"""

    # workbench 테이블
    await db.execute("""
        CREATE TABLE IF NOT EXISTS workbench (
            id               TEXT PRIMARY KEY,
            name             TEXT NOT NULL,
            currency         TEXT NOT NULL DEFAULT 'INR',
            created_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # account 테이블 (계정과목)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS account (
            id               TEXT PRIMARY KEY,
            workbench_id     TEXT NOT NULL REFERENCES workbench(id),
            name             TEXT NOT NULL,
            account_type     TEXT NOT NULL CHECK (
                account_type IN ('Asset', 'Liability', 'Equity', 'Revenue', 'Expense')
            ),
            category         TEXT,
            cash_impact      INTEGER NOT NULL DEFAULT 0,
            is_active        INTEGER NOT NULL DEFAULT 1,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),

            UNIQUE(workbench_id, name)
        )
    """)

    # party 테이블 (거래처)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS party (
            id               TEXT PRIMARY KEY,
            workbench_id     TEXT NOT NULL REFERENCES workbench(id),
            name             TEXT NOT NULL,
            party_type       TEXT NOT NULL CHECK (party_type IN ('customer', 'vendor', 'both')),
            gstin            TEXT,
            pan              TEXT,
            is_active        INTEGER NOT NULL DEFAULT 1,
            created_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # record 테이블 (도메인 레코드)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS record (
            id               TEXT PRIMARY KEY,
            workbench_id     TEXT NOT NULL REFERENCES workbench(id),
            record_type      TEXT NOT NULL CHECK (
                record_type IN ('transaction', 'compliance', 'budget', 'party', 'adjustment')
            ),
            status           TEXT NOT NULL DEFAULT 'draft' CHECK (
                status IN ('draft', 'confirmed', 'cancelled')
            ),
            summary          TEXT NOT NULL,

            gross_amount     TEXT NOT NULL DEFAULT '0',
            net_amount       TEXT NOT NULL DEFAULT '0',
            tax_amount       TEXT NOT NULL DEFAULT '0',

            party_id         TEXT REFERENCES party(id),
            issue_date       TEXT,
            due_date         TEXT,
            metadata_json    TEXT NOT NULL DEFAULT '{}',

            created_by       TEXT NOT NULL,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # budget 테이블
    await db.execute("""
        CREATE TABLE IF NOT EXISTS budget (
            id               TEXT PRIMARY KEY,
            workbench_id     TEXT NOT NULL REFERENCES workbench(id),
            name             TEXT NOT NULL,
            total_amount     TEXT NOT NULL DEFAULT '0',
            category         TEXT,
            record_id        TEXT REFERENCES record(id),
            created_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # budget_item 테이블 (카테고리별 배정액)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS budget_item (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            budget_id        TEXT NOT NULL REFERENCES budget(id),
            category         TEXT NOT NULL,
            amount           TEXT NOT NULL DEFAULT '0'
        )
    """)

    # ledger_entry 테이블 (append-only 분개)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS ledger_entry (
            id                 TEXT PRIMARY KEY,
            workbench_id       TEXT NOT NULL REFERENCES workbench(id),
            posting_id         TEXT NOT NULL,
            record_id          TEXT NOT NULL REFERENCES record(id),
            leg                TEXT NOT NULL CHECK (leg IN ('primary', 'counter')),

            account_id         TEXT NOT NULL REFERENCES account(id),
            counter_account_id TEXT REFERENCES account(id),
            amount             TEXT NOT NULL,
            entry_type         TEXT NOT NULL CHECK (entry_type IN ('debit', 'credit')),

            transaction_date   TEXT,
            category           TEXT,
            created_at         TEXT NOT NULL DEFAULT (datetime('now')),

            UNIQUE(record_id, leg)
        )
    """)

    # audit_log 테이블 (append-only 감사 로그)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS audit_log (
            id               TEXT PRIMARY KEY,
            workbench_id     TEXT NOT NULL REFERENCES workbench(id),
            actor            TEXT NOT NULL,
            action           TEXT NOT NULL,
            entity_type      TEXT NOT NULL,
            entity_id        TEXT NOT NULL,
            old_data_json    TEXT,
            new_data_json    TEXT,
            created_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)


async def _create_indexes(db: "SQLiteAdapter") -> None:
    """인덱스 생성"""
    statements = [
        "CREATE INDEX IF NOT EXISTS ix_account_workbench ON account(workbench_id, account_type)",
        "CREATE INDEX IF NOT EXISTS ix_party_workbench ON party(workbench_id)",
        "CREATE INDEX IF NOT EXISTS ix_record_workbench ON record(workbench_id, record_type, status)",
        "CREATE INDEX IF NOT EXISTS ix_record_party ON record(party_id)",
        "CREATE INDEX IF NOT EXISTS ix_budget_workbench ON budget(workbench_id)",
        "CREATE INDEX IF NOT EXISTS ix_budget_item_budget ON budget_item(budget_id)",
        "CREATE INDEX IF NOT EXISTS ix_ledger_entry_workbench ON ledger_entry(workbench_id, transaction_date)",
        "CREATE INDEX IF NOT EXISTS ix_ledger_entry_account ON ledger_entry(account_id)",
        "CREATE INDEX IF NOT EXISTS ix_ledger_entry_posting ON ledger_entry(posting_id)",
        "CREATE INDEX IF NOT EXISTS ix_audit_log_workbench ON audit_log(workbench_id, created_at)",
        "CREATE INDEX IF NOT EXISTS ix_audit_log_entity ON audit_log(entity_type, entity_id)",
    ]
    for sql in statements:
        await db.execute(sql)


async def _create_triggers(db: "SQLiteAdapter") -> None:
    """append-only / 불변 트리거 생성"""

    for table in ("ledger_entry", "audit_log"):
        await db.execute(f"""
            CREATE TRIGGER IF NOT EXISTS trg_{table}_no_update
            BEFORE UPDATE ON {table}
            BEGIN
                SELECT RAISE(ABORT, '{table} is append-only');
            END
        """)
        await db.execute(f"""
            CREATE TRIGGER IF NOT EXISTS trg_{table}_no_delete
            BEFORE DELETE ON {table}
            BEGIN
                SELECT RAISE(ABORT, '{table} is append-only');
            END
        """)

    await db.execute("""
        CREATE TRIGGER IF NOT EXISTS trg_record_no_delete
        BEFORE DELETE ON record
        BEGIN
            SELECT RAISE(ABORT, 'record cannot be deleted; cancel it instead');
        END
    """)

    await db.execute("""
        CREATE TRIGGER IF NOT EXISTS trg_account_immutable_when_posted
        BEFORE UPDATE OF name, account_type, category, cash_impact ON account
        WHEN EXISTS (
            SELECT 1 FROM ledger_entry
            WHERE account_id = OLD.id OR counter_account_id = OLD.id
        )
        BEGIN
            SELECT RAISE(ABORT, 'account is referenced by ledger entries');
        END
    """)
