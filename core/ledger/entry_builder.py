"""
분개 생성기

레코드를 복식부기 posting(primary + counter 두 다리)으로 변환.
방향은 core.ledger.types의 고정 매핑 테이블에서만 결정.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import uuid4

from core.constants import Heuristics
from core.domain.models import Account, LedgerEntry, Record
from core.errors import NotFound, ValidationError
from core.ledger.types import (
    COMPENSATION_RULES,
    POSTING_RULES,
    SETTLEMENT_BANK_CATEGORY,
    SETTLEMENT_CASH_CATEGORY,
)
from core.types import AccountType, EntryLeg, EntryType, PaymentType
from core.utils.money import ZERO

logger = logging.getLogger(__name__)


@dataclass
class Posting:
    """하나의 posting 이벤트

    같은 posting_id를 가진 분개 묶음.
    차변 합계 = 대변 합계 (균형)
    """

    posting_id: str
    record_id: str
    entries: list[LedgerEntry] = field(default_factory=list)

    @property
    def total_debit(self) -> Decimal:
        return sum(
            (e.amount for e in self.entries if e.entry_type is EntryType.DEBIT), ZERO
        )

    @property
    def total_credit(self) -> Decimal:
        return sum(
            (e.amount for e in self.entries if e.entry_type is EntryType.CREDIT), ZERO
        )

    def is_balanced(self) -> bool:
        """차변/대변 합계 일치 여부"""
        return self.total_debit == self.total_credit


def _norm(text: str | None) -> str:
    return (text or "").strip().lower()


class PostingBuilder:
    """레코드를 posting으로 변환

    계정 해석 순서 (primary):
    1. metadata.account_id
    2. 규칙 계정 유형 중 category/name이 metadata.category와 일치하는 계정
    3. 규칙 계정 유형의 첫 번째 활성 계정

    결제 계정 해석 순서 (counter):
    1. metadata.settlement_account_id (cash_impact 계정이어야 함)
    2. payment_type=cash → Cash 카테고리, 그 외 → Bank 카테고리
    3. 첫 번째 cash_impact 활성 계정

    Args:
        accounts: 워크벤치 계정 목록 (등록 순서 유지)

    사용 예시:
    ```python
    builder = PostingBuilder(await registry.list(workbench_id))
    posting = builder.build_confirmation(record)
    assert posting.is_balanced()
    ```
    """

    def __init__(self, accounts: list[Account]):
        self._accounts = accounts
        self._by_id = {a.id: a for a in accounts}

    # -------------------------------------------------------------------------
    # 계정 해석
    # -------------------------------------------------------------------------

    def _active(self, account_type: AccountType) -> list[Account]:
        return [a for a in self._accounts if a.is_active and a.account_type is account_type]

    def _require(self, account_id: str) -> Account:
        account = self._by_id.get(account_id)
        if account is None or not account.is_active:
            raise NotFound(f"account not found: {account_id}", {"account_id": account_id})
        return account

    def resolve_primary(self, record: Record) -> Account:
        """주 계정 해석

        Raises:
            NotFound: 지정 계정이 없거나 규칙 유형의 활성 계정이 없는 경우
        """
        meta = record.transaction_meta
        if meta.account_id:
            return self._require(meta.account_id)

        rule = POSTING_RULES[meta.direction]
        candidates = self._active(rule.primary_account_type)
        wanted = _norm(meta.category)
        if wanted:
            for account in candidates:
                if wanted in (_norm(account.category), _norm(account.name)):
                    return account
        if not candidates:
            raise NotFound(
                f"no active {rule.primary_account_type.value} account",
                {"account_type": rule.primary_account_type.value},
            )
        return candidates[0]

    def resolve_settlement(self, record: Record) -> Account:
        """결제(현금성) 계정 해석

        Raises:
            ValidationError: 지정 계정이 cash_impact 계정이 아닌 경우
            NotFound: cash_impact 계정이 없는 경우
        """
        meta = record.transaction_meta
        if meta.settlement_account_id:
            account = self._require(meta.settlement_account_id)
            if not account.cash_impact:
                raise ValidationError(
                    "settlement account must be a cash-impact account",
                    {"account_id": account.id},
                )
            return account

        cash_accounts = [
            a for a in self._active(AccountType.ASSET) if a.cash_impact
        ]
        if not cash_accounts:
            raise NotFound("no active cash-impact account", {"workbench_id": record.workbench_id})

        wanted = _norm(
            SETTLEMENT_CASH_CATEGORY
            if meta.payment_type is PaymentType.CASH
            else SETTLEMENT_BANK_CATEGORY
        )
        for account in cash_accounts:
            if wanted in (_norm(account.category), _norm(account.name)):
                return account
        return cash_accounts[0]

    # -------------------------------------------------------------------------
    # posting 생성
    # -------------------------------------------------------------------------

    def build_confirmation(
        self,
        record: Record,
        transaction_date: date | None = None,
    ) -> Posting:
        """확정 posting 생성 (primary + counter)

        Args:
            record: 확정 대상 거래 레코드 (net_amount가 posting 금액)
            transaction_date: 거래일 (None이면 record.issue_date)

        Returns:
            균형 잡힌 Posting
        """
        meta = record.transaction_meta
        if meta.direction is None:
            raise ValidationError("transaction direction is required", {"record_id": record.id})

        rule = POSTING_RULES[meta.direction]
        primary = self.resolve_primary(record)
        settlement = self.resolve_settlement(record)
        category = meta.category or primary.category
        txn_date = transaction_date or record.issue_date

        posting = Posting(posting_id=str(uuid4()), record_id=record.id)
        posting.entries = [
            self._entry(posting, record, EntryLeg.PRIMARY, primary, settlement,
                        record.net_amount, rule.primary_entry, txn_date, category),
            self._entry(posting, record, EntryLeg.COUNTER, settlement, primary,
                        record.net_amount, rule.counter_entry, txn_date, category),
        ]

        logger.debug(
            "확정 posting 생성",
            extra={"record_id": record.id, "posting_id": posting.posting_id},
        )
        return posting

    def build_compensation(
        self,
        original: Record,
        original_entries: list[LedgerEntry],
        adjustment: Record,
        delta: Decimal,
        transaction_date: date | None = None,
    ) -> Posting:
        """보정 posting 생성

        원 posting과 같은 계정 쌍을 사용하고 조정 레코드를 참조.
        카테고리는 "adjustment" (집계 시 원 레코드 카테고리로 귀속).
        결제 계정 다리의 방향은 COMPENSATION_RULES, 주 계정 다리는 그 반대.

        Args:
            original: 원 거래 레코드 (확정 상태)
            original_entries: 원 레코드의 확정 posting 분개
            adjustment: 조정 레코드
            delta: 부호 있는 조정 금액 (0 불가)
            transaction_date: 보정 거래일

        Raises:
            ValidationError: delta가 0이거나 원 posting을 찾을 수 없는 경우
        """
        if delta == ZERO:
            raise ValidationError("compensation requires a nonzero delta")

        meta = original.transaction_meta
        legs = {e.leg: e for e in original_entries if e.record_id == original.id}
        if EntryLeg.PRIMARY not in legs or EntryLeg.COUNTER not in legs:
            raise ValidationError(
                "original posting not found", {"record_id": original.id}
            )

        primary = self._by_id.get(legs[EntryLeg.PRIMARY].account_id)
        settlement = self._by_id.get(legs[EntryLeg.COUNTER].account_id)
        if primary is None or settlement is None:
            raise NotFound("posted account not found", {"record_id": original.id})

        sign = 1 if delta > ZERO else -1
        settlement_entry = COMPENSATION_RULES[(meta.direction, sign)]
        amount = abs(delta)
        txn_date = transaction_date or adjustment.issue_date

        posting = Posting(posting_id=str(uuid4()), record_id=adjustment.id)
        posting.entries = [
            self._entry(posting, adjustment, EntryLeg.PRIMARY, primary, settlement,
                        amount, settlement_entry.opposite, txn_date,
                        Heuristics.ADJUSTMENT_CATEGORY),
            self._entry(posting, adjustment, EntryLeg.COUNTER, settlement, primary,
                        amount, settlement_entry, txn_date,
                        Heuristics.ADJUSTMENT_CATEGORY),
        ]
        return posting

    @staticmethod
    def _entry(
        posting: Posting,
        record: Record,
        leg: EntryLeg,
        account: Account,
        counter: Account,
        amount: Decimal,
        entry_type: EntryType,
        transaction_date: date | None,
        category: str | None,
    ) -> LedgerEntry:
        return LedgerEntry(
            id=str(uuid4()),
            workbench_id=record.workbench_id,
            posting_id=posting.posting_id,
            record_id=record.id,
            leg=leg,
            account_id=account.id,
            counter_account_id=counter.id,
            amount=amount,
            entry_type=entry_type,
            transaction_date=transaction_date,
            category=category,
        )
