"""
복식부기 규칙 정의

확정(posting)과 보정(compensation) 분개 방향은 고정 매핑 테이블로만 결정.
서비스 코드에서 방향을 if/else로 분기하지 않음 (감사 가능성 유지).
"""

from dataclasses import dataclass

from core.types import AccountType, Direction, EntryType


@dataclass(frozen=True)
class PostingRule:
    """레코드 방향별 분개 규칙

    primary: 수익/비용 등 주 계정 다리
    counter: 현금/은행 등 결제 계정 다리 (cash_impact Asset)
    """

    direction: Direction
    primary_account_type: AccountType
    primary_entry: EntryType
    counter_entry: EntryType


# 확정 분개 규칙
# credit (money in)  → 수익 계정 대변 / 현금 계정 차변
# debit  (money out) → 비용 계정 차변 / 현금 계정 대변
POSTING_RULES: dict[Direction, PostingRule] = {
    Direction.CREDIT: PostingRule(
        direction=Direction.CREDIT,
        primary_account_type=AccountType.REVENUE,
        primary_entry=EntryType.CREDIT,
        counter_entry=EntryType.DEBIT,
    ),
    Direction.DEBIT: PostingRule(
        direction=Direction.DEBIT,
        primary_account_type=AccountType.EXPENSE,
        primary_entry=EntryType.DEBIT,
        counter_entry=EntryType.CREDIT,
    ),
}


# 보정 분개 규칙: (원 레코드 방향, delta 부호) → 결제 계정 다리의 entry_type
# delta > 0 → 원 방향의 반대, delta < 0 → 원 방향과 동일
# 주 계정 다리는 항상 그 반대 방향.
COMPENSATION_RULES: dict[tuple[Direction, int], EntryType] = {
    (Direction.CREDIT, 1): EntryType.DEBIT,
    (Direction.CREDIT, -1): EntryType.CREDIT,
    (Direction.DEBIT, 1): EntryType.CREDIT,
    (Direction.DEBIT, -1): EntryType.DEBIT,
}


# 결제 계정 카테고리
SETTLEMENT_CASH_CATEGORY = "Cash"
SETTLEMENT_BANK_CATEGORY = "Bank"


# 워크벤치 기본 계정과목 (seed_default_chart에서 사용)
DEFAULT_ACCOUNTS: list[tuple[str, AccountType, str, bool]] = [
    # (name, account_type, category, cash_impact)

    # ASSET - 현금성 (cash_impact)
    ("Cash", AccountType.ASSET, SETTLEMENT_CASH_CATEGORY, True),
    ("Bank", AccountType.ASSET, SETTLEMENT_BANK_CATEGORY, True),

    # ASSET - 비현금
    ("Accounts Receivable", AccountType.ASSET, "Receivables", False),
    ("Equipment", AccountType.ASSET, "Fixed Assets", False),

    # LIABILITY
    ("Accounts Payable", AccountType.LIABILITY, "Payables", False),
    ("Loans Payable", AccountType.LIABILITY, "Loans", False),

    # EQUITY
    ("Owner's Capital", AccountType.EQUITY, "Capital", False),

    # REVENUE (첫 항목이 기본 수익 계정)
    ("Sales Revenue", AccountType.REVENUE, "Sales", False),
    ("Service Revenue", AccountType.REVENUE, "Services", False),

    # EXPENSE (첫 항목이 기본 비용 계정)
    ("General Expenses", AccountType.EXPENSE, "General", False),
    ("Marketing", AccountType.EXPENSE, "Marketing", False),
    ("Salaries", AccountType.EXPENSE, "Salaries", False),
    ("Rent", AccountType.EXPENSE, "Rent", False),
    ("Cost of Goods Sold", AccountType.EXPENSE, "COGS", False),
]
