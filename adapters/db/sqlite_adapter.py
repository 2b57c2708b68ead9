"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
쓰기는 BEGIN IMMEDIATE 단위 작업, 집계 읽기는 단일 스냅샷 트랜잭션.

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.errors import PersistenceError

logger = logging.getLogger(__name__)


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    isolation_level=None (autocommit)으로 열고 트랜잭션 경계는
    SQLiteAdapter가 명시적으로 관리.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    if readonly:
        conn = await aiosqlite.connect(
            f"file:{db_path_str}?mode=ro", uri=True, isolation_level=None
        )
    else:
        # 디렉토리가 없으면 생성
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(db_path_str, isolation_level=None)
        await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기

    # 외래 키 제약 활성화
    await conn.execute("PRAGMA foreign_keys=ON")

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    트랜잭션/스냅샷 컨텍스트 매니저 제공.

    하나의 연결을 공유하는 작업 단위는 asyncio.Lock으로 직렬화.
    같은 task 안에서 중첩된 transaction()은 바깥 작업 단위에 합류.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부 (집계 조회용)

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction():
        await adapter.execute("INSERT INTO ...")

    await adapter.close()
    ```
    """

    def __init__(self, db_path: Path | str, readonly: bool = False):
        self.db_path = Path(db_path)
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._owner: asyncio.Task[Any] | None = None

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """현재 task가 작업 단위 안에 있는지 여부"""
        return self._owner is not None and self._owner is asyncio.current_task()

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path, self.readonly)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        return self._conn

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        conn = self._require_conn()

        if parameters:
            return await conn.execute(sql, parameters)
        return await conn.execute(sql)

    async def executemany(
        self,
        sql: str,
        parameters: list[tuple[Any, ...]],
    ) -> aiosqlite.Cursor:
        """SQL 다중 실행"""
        conn = self._require_conn()
        return await conn.executemany(sql, parameters)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def fetchall_dict(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[dict[str, Any]]:
        """전체 행 조회 (컬럼명 → 값 dict)"""
        cursor = await self.execute(sql, parameters)
        rows = await cursor.fetchall()
        columns = [col[0] for col in cursor.description]
        return [dict(zip(columns, row)) for row in rows]

    async def fetchone_dict(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> dict[str, Any] | None:
        """단일 행 조회 (컬럼명 → 값 dict)"""
        cursor = await self.execute(sql, parameters)
        row = await cursor.fetchone()
        if row is None:
            return None
        columns = [col[0] for col in cursor.description]
        return dict(zip(columns, row))

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SQLiteAdapter"]:
        """쓰기 트랜잭션 컨텍스트 매니저

        BEGIN IMMEDIATE로 쓰기 잠금을 먼저 확보.
        성공 시 커밋, 예외 시 롤백.
        SQLite 오류는 롤백 후 PersistenceError로 변환,
        도메인 오류는 롤백 후 그대로 전달.

        사용 예시:
        ```python
        async with adapter.transaction():
            await adapter.execute("INSERT INTO ...")
            # 성공 시 자동 커밋
        ```
        """
        if self.in_transaction:
            # 바깥 작업 단위에 합류
            yield self
            return

        conn = self._require_conn()
        async with self._lock:
            self._owner = asyncio.current_task()
            try:
                try:
                    await conn.execute("BEGIN IMMEDIATE")
                except aiosqlite.Error as e:
                    raise PersistenceError(f"트랜잭션 시작 실패: {e}") from e

                try:
                    yield self
                    await conn.execute("COMMIT")
                except aiosqlite.Error as e:
                    await self._safe_rollback(conn)
                    logger.error("트랜잭션 롤백 (저장소 오류)", extra={"error": str(e)})
                    raise PersistenceError(f"저장소 오류로 롤백되었습니다: {e}") from e
                except BaseException:
                    await self._safe_rollback(conn)
                    raise
            finally:
                self._owner = None

    @asynccontextmanager
    async def snapshot(self) -> AsyncIterator["SQLiteAdapter"]:
        """읽기 스냅샷 컨텍스트 매니저

        하나의 deferred 트랜잭션 안에서 조회하여
        집계 한 번에 사용하는 모든 행이 같은 시점을 보도록 보장.
        """
        if self.in_transaction:
            yield self
            return

        conn = self._require_conn()
        async with self._lock:
            self._owner = asyncio.current_task()
            try:
                await conn.execute("BEGIN")
                try:
                    yield self
                finally:
                    await conn.execute("COMMIT")
            except aiosqlite.Error as e:
                raise PersistenceError(f"스냅샷 조회 실패: {e}") from e
            finally:
                self._owner = None

    async def _safe_rollback(self, conn: aiosqlite.Connection) -> None:
        """롤백 (이미 종료된 트랜잭션이면 무시)"""
        if conn.in_transaction:
            await conn.execute("ROLLBACK")

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    async def count_rows(self, table_name: str, where: str = "", parameters: tuple[Any, ...] | None = None) -> int:
        """테이블 행 수 조회 (테스트/진단용)"""
        sql = f"SELECT COUNT(*) FROM {table_name}"
        if where:
            sql += f" WHERE {where}"
        row = await self.fetchone(sql, parameters)
        return int(row[0]) if row else 0

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
