"""
결제 실현 규칙

거래 금액 중 실제로 현금이 오간 부분(realized)과
아직 받을/줄 부분(outstanding)을 나눔.

| payment_status | realized            | outstanding              |
|----------------|---------------------|--------------------------|
| completed      | amount              | 0                        |
| partial        | min(paid, amount)   | max(amount - paid, 0)    |
| pending        | 0                   | amount                   |

payment_status가 없으면 completed로 취급.
"""

from decimal import Decimal
from typing import NamedTuple

from core.domain.models import Record, TransactionMetadata
from core.types import PaymentStatus
from core.utils.money import ZERO


class Realization(NamedTuple):
    """실현/미실현 금액 쌍"""

    realized: Decimal
    outstanding: Decimal


def realize(
    amount: Decimal,
    payment_status: PaymentStatus | None,
    paid_amount: Decimal | None = None,
) -> Realization:
    """금액을 실현/미실현으로 분리

    Args:
        amount: 0 이상의 금액
        payment_status: 결제 상태 (None이면 completed)
        paid_amount: partial일 때 지급된 금액 (None이면 0)

    Returns:
        Realization(realized, outstanding)
    """
    if payment_status is None or payment_status is PaymentStatus.COMPLETED:
        return Realization(amount, ZERO)
    if payment_status is PaymentStatus.PENDING:
        return Realization(ZERO, amount)

    paid = paid_amount if paid_amount is not None else ZERO
    paid = max(paid, ZERO)
    return Realization(min(paid, amount), max(amount - paid, ZERO))


def realize_record(record: Record, amount: Decimal | None = None) -> Realization:
    """거래 레코드의 결제 조건으로 금액 분리

    Args:
        record: 결제 조건을 가진 레코드 (거래가 아니면 completed로 취급)
        amount: 분리할 금액 (None이면 carrying amount)
    """
    value = record.carrying_amount if amount is None else amount
    meta = record.metadata
    if not isinstance(meta, TransactionMetadata):
        return Realization(value, ZERO)
    return realize(value, meta.payment_status, meta.paid_amount)
