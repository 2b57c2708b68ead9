"""
pytest 공통 fixture 정의

임시 SQLite 파일 위에 스키마를 만들고 기본 계정과목이 있는 워크벤치를 준비.
"""

import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import EngineConfig, Settings
from core.domain.models import Workbench
from core.engine import LedgerEngine
from core.ledger.schema import init_ledger_schema


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def reset_settings() -> None:
    """Settings 싱글턴 초기화"""
    Settings.reset()
    yield
    Settings.reset()


@pytest.fixture
def engine_config(tmp_path: Path) -> EngineConfig:
    """테스트용 엔진 설정"""
    return EngineConfig(db_path=tmp_path / "ledger.db", log_dir=tmp_path / "logs")


@pytest_asyncio.fixture
async def db(engine_config: EngineConfig) -> SQLiteAdapter:
    """스키마가 초기화된 임시 DB"""
    adapter = SQLiteAdapter(engine_config.db_path)
    await adapter.connect()
    await init_ledger_schema(adapter)
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture
async def engine(db: SQLiteAdapter, engine_config: EngineConfig) -> LedgerEngine:
    """쓰기/집계가 같은 연결을 공유하는 엔진"""
    return LedgerEngine(db, config=engine_config)


@pytest_asyncio.fixture
async def workbench(engine: LedgerEngine) -> Workbench:
    """기본 계정과목이 있는 워크벤치"""
    return await engine.create_workbench("Test Traders")

