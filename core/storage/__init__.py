"""
스토리지 모듈

Record, Account, Party, Budget, Workbench, AuditLog 저장소 제공
"""

from core.storage.account_registry import AccountRegistry
from core.storage.audit_log import AuditLog
from core.storage.budget_store import BudgetStore
from core.storage.party_directory import PartyDirectory
from core.storage.record_store import RecordStore
from core.storage.workbench_store import WorkbenchStore

__all__ = [
    "AccountRegistry",
    "AuditLog",
    "BudgetStore",
    "PartyDirectory",
    "RecordStore",
    "WorkbenchStore",
]
