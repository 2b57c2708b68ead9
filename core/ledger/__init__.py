"""
복식부기 (Double-Entry Bookkeeping) 시스템

확정된 레코드를 append-only posting으로 기록.

사용 예시:
```python
from core.ledger import LedgerStore, PostingBuilder

builder = PostingBuilder(accounts)
posting = builder.build_confirmation(record)

ledger_store = LedgerStore(db)
async with db.transaction():
    await ledger_store.save_posting(posting)

# 시산표 (계정별 잔액)
trial_balance = await ledger_store.trial_balance(workbench_id)
```
"""

from core.ledger.entry_builder import Posting, PostingBuilder
from core.ledger.store import LedgerStore
from core.ledger.types import (
    COMPENSATION_RULES,
    DEFAULT_ACCOUNTS,
    POSTING_RULES,
    PostingRule,
)

__all__ = [
    # 핵심 클래스
    "LedgerStore",
    "PostingBuilder",
    "Posting",
    "PostingRule",
    # 규칙 테이블
    "POSTING_RULES",
    "COMPENSATION_RULES",
    "DEFAULT_ACCOUNTS",
]
