"""
워크벤치 스냅샷

집계 1회에 필요한 모든 행(계정, 거래처, 레코드, 분개, 예산)을
하나의 읽기 트랜잭션에서 로드.

집계는 스냅샷을 "라인" 목록으로 펼친 뒤 계산:
- 분개가 있는 레코드 → LedgerEntry 그대로 (posted)
- 분개가 없는 미취소 거래 → 같은 posting 규칙으로 합성한 두 라인 (unposted)
한 record_id는 둘 중 한 경로로만 등장.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import (
    Account,
    AdjustmentMetadata,
    Budget,
    LedgerEntry,
    Party,
    Record,
    TransactionMetadata,
    Workbench,
)
from core.ledger.store import LedgerStore
from core.ledger.types import POSTING_RULES
from core.storage import AccountRegistry, BudgetStore, PartyDirectory, RecordStore, WorkbenchStore
from core.types import AccountType, EntryLeg, EntryType, RecordStatus
from core.utils.dates import parse_date
from core.utils.money import ZERO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Line:
    """집계 단위 라인

    posted 라인은 LedgerEntry 1건, unposted 라인은 레코드에서 합성.
    unposted의 결제 다리는 가상 현금 계정(account_id=None).
    """

    record_id: str  # 라인을 만든 레코드 (보정 분개는 adjustment 레코드)
    root_record_id: str  # 결제 조건/거래처/태그를 따르는 원 레코드
    leg: EntryLeg
    account_id: str | None
    account_type: AccountType
    cash_impact: bool
    counter_account_type: AccountType | None
    amount: Decimal
    entry_type: EntryType
    category: str | None
    transaction_date: date | None
    posted: bool

    @property
    def signed_amount(self) -> Decimal:
        """차변 +, 대변 -"""
        return self.amount if self.entry_type is EntryType.DEBIT else -self.amount


@dataclass
class WorkbenchSnapshot:
    """한 시점의 워크벤치 데이터"""

    workbench: Workbench
    accounts: list[Account] = field(default_factory=list)
    parties: list[Party] = field(default_factory=list)
    records: list[Record] = field(default_factory=list)
    entries: list[LedgerEntry] = field(default_factory=list)
    budgets: list[Budget] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.accounts_by_id = {a.id: a for a in self.accounts}
        self.parties_by_id = {p.id: p for p in self.parties}
        self.records_by_id = {r.id: r for r in self.records}
        self.processed_record_ids = {e.record_id for e in self.entries}

    @property
    def workbench_id(self) -> str:
        return self.workbench.id

    def root_record(self, record_id: str) -> Record | None:
        """adjustment 레코드면 원 레코드, 아니면 자신"""
        record = self.records_by_id.get(record_id)
        if record is None:
            return None
        meta = record.metadata
        if isinstance(meta, AdjustmentMetadata) and meta.original_record_id:
            return self.records_by_id.get(meta.original_record_id, record)
        return record

    def transactions(self, include_cancelled: bool = False) -> list[Record]:
        """거래 레코드 (생성 순)"""
        return [
            r
            for r in self.records
            if r.is_transaction
            and (include_cancelled or r.status is not RecordStatus.CANCELLED)
        ]

    def unposted_transactions(self) -> list[Record]:
        """분개가 없는 미취소 거래"""
        return [r for r in self.transactions() if r.id not in self.processed_record_ids]

    def party_name(self, party_id: str | None) -> str | None:
        party = self.parties_by_id.get(party_id) if party_id else None
        return party.name if party else None

    # -------------------------------------------------------------------------
    # 라인 전개
    # -------------------------------------------------------------------------

    def lines(self) -> list[Line]:
        """posted 분개 + unposted 거래 합성 라인"""
        result = [self._entry_line(entry) for entry in self.entries]
        for record in self.unposted_transactions():
            result.extend(self._record_lines(record))
        return result

    def _entry_line(self, entry: LedgerEntry) -> Line:
        account = self.accounts_by_id[entry.account_id]
        counter = self.accounts_by_id.get(entry.counter_account_id or "")
        root = self.root_record(entry.record_id)
        txn_date = entry.transaction_date
        if txn_date is None and root is not None:
            txn_date = root.issue_date or parse_date(root.created_at)
        return Line(
            record_id=entry.record_id,
            root_record_id=root.id if root else entry.record_id,
            leg=entry.leg,
            account_id=account.id,
            account_type=account.account_type,
            cash_impact=account.cash_impact,
            counter_account_type=counter.account_type if counter else None,
            amount=entry.amount,
            entry_type=entry.entry_type,
            category=entry.category,
            transaction_date=txn_date,
            posted=True,
        )

    def _record_lines(self, record: Record) -> list[Line]:
        meta = record.metadata
        if not isinstance(meta, TransactionMetadata) or meta.direction is None:
            return []
        if record.carrying_amount <= ZERO:
            return []

        rule = POSTING_RULES[meta.direction]
        primary = self.accounts_by_id.get(meta.account_id or "")
        primary_type = primary.account_type if primary else rule.primary_account_type
        category = meta.category or (primary.category if primary else None)
        txn_date = record.issue_date or parse_date(record.created_at)

        common = {
            "record_id": record.id,
            "root_record_id": record.id,
            "amount": record.carrying_amount,
            "category": category,
            "transaction_date": txn_date,
            "posted": False,
        }
        return [
            Line(
                leg=EntryLeg.PRIMARY,
                account_id=primary.id if primary else None,
                account_type=primary_type,
                cash_impact=False,
                counter_account_type=AccountType.ASSET,
                entry_type=rule.primary_entry,
                **common,
            ),
            Line(
                leg=EntryLeg.COUNTER,
                account_id=None,
                account_type=AccountType.ASSET,
                cash_impact=True,
                counter_account_type=primary_type,
                entry_type=rule.counter_entry,
                **common,
            ),
        ]


async def load_snapshot(db: SQLiteAdapter, workbench_id: str) -> WorkbenchSnapshot:
    """워크벤치 스냅샷 로드 (단일 읽기 트랜잭션)

    Raises:
        WorkbenchNotFound: 존재하지 않는 워크벤치
    """
    async with db.snapshot():
        workbench = await WorkbenchStore(db).require(workbench_id)
        snapshot = WorkbenchSnapshot(
            workbench=workbench,
            accounts=await AccountRegistry(db).list(workbench_id, include_inactive=True),
            parties=await PartyDirectory(db).list(workbench_id, include_inactive=True),
            records=await RecordStore(db).list_by_workbench(workbench_id),
            entries=await LedgerStore(db).list_by_workbench(workbench_id),
            budgets=await BudgetStore(db).list_with_items(workbench_id),
        )

    logger.debug(
        "스냅샷 로드",
        extra={
            "workbench_id": workbench_id,
            "records": len(snapshot.records),
            "entries": len(snapshot.entries),
        },
    )
    return snapshot
