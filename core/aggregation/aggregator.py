"""
Reconciling Aggregator

posted 분개와 unposted 레코드를 합쳐 재무 지표를 계산.
캐시된 잔액을 읽지 않고 매 요청마다 스냅샷에서 다시 계산.

핵심 규칙:
- record_id는 posted(분개) 또는 unposted(레코드 자체 금액) 중 한 경로로만 집계
- 현금은 결제 실현분만 (partial → paid_amount, pending → 0)
- 미실현분은 매출채권/매입채무
- 보정 분개는 원 레코드의 결제 조건/거래처/태그/카테고리를 따름
- 누락 필드는 "Uncategorized"/"unknown"으로 대체하고 계속 진행

사용 예시:
```python
aggregator = ReconcilingAggregator(db, config)
snapshot = await aggregator.get_financial_snapshot(workbench_id)
snapshot["cash_balance"]      # Decimal
snapshot["warnings"]          # [{"code": "balance_sheet_divergence", ...}]
```
"""

import logging
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.aggregation.realization import realize_record
from core.aggregation.snapshot import Line, WorkbenchSnapshot, load_snapshot
from core.config.loader import EngineConfig
from core.constants import Heuristics, Thresholds
from core.domain.models import Budget, ComplianceMetadata, Record, TransactionMetadata
from core.errors import ConsistencyWarning
from core.types import (
    AccountType,
    CashFlowActivity,
    Direction,
    EntryType,
    RecordStatus,
    RecordType,
    TimeRange,
)
from core.utils.dates import month_key, months_before, parse_date, recent_month_keys, shift_month, utc_now
from core.utils.money import ZERO, percent, quantize

logger = logging.getLogger(__name__)

ONE = Decimal("1")
TENTH = Decimal("0.1")


def _norm(text: str | None) -> str:
    return (text or "").strip().lower()


def category_matches(a: str | None, b: str | None) -> bool:
    """대소문자 무시 양방향 부분 문자열 매칭

    Example:
        >>> category_matches("Marketing", "digital marketing")
        True
    """
    left, right = _norm(a), _norm(b)
    if not left or not right:
        return False
    return left in right or right in left


def health_band(score: int) -> str:
    """재무 건전성 등급"""
    if score >= 70:
        return "Excellent"
    if score >= 50:
        return "Good"
    if score >= 30:
        return "Fair"
    return "Concerning"


def financial_health_score(
    profit_margin: Decimal,
    runway_months: Decimal | None,
    dependency_risk: Decimal,
    revenue_growth: Decimal | None,
    cash_balance: Decimal,
) -> int:
    """재무 건전성 점수 (0~100)

    기본 50점에서 항목별 가감:
    - 이익률: >10 → +10, >0 → +5, 그 외 → -10
    - 런웨이: ≥12 → +10, ≥6 → +5, 그 외 → -10 (소진 없음 + 현금 양수는 ≥12)
    - 고객 의존도: <30 → +10, <60 → +5, 그 외 → -10
    - 매출 성장률: >0 → +10, <0 → -10
    """
    score = 50

    if profit_margin > 10:
        score += 10
    elif profit_margin > 0:
        score += 5
    else:
        score -= 10

    if runway_months is None:
        effective_runway = Decimal("12") if cash_balance > ZERO else ZERO
    else:
        effective_runway = runway_months
    if effective_runway >= 12:
        score += 10
    elif effective_runway >= 6:
        score += 5
    else:
        score -= 10

    if dependency_risk < 30:
        score += 10
    elif dependency_risk < 60:
        score += 5
    else:
        score -= 10

    if revenue_growth is not None:
        if revenue_growth > 0:
            score += 10
        elif revenue_growth < 0:
            score -= 10

    return max(0, min(100, score))


class WorkbenchReport:
    """스냅샷 1개에 대한 지표 계산 (부수 효과 없음)

    Args:
        snapshot: 워크벤치 스냅샷
        config: 엔진 설정 (임계값/휴리스틱)
        as_of: 기준일 (None이면 오늘 UTC)
    """

    def __init__(
        self,
        snapshot: WorkbenchSnapshot,
        config: EngineConfig | None = None,
        as_of: date | None = None,
    ):
        self.snapshot = snapshot
        self.config = config or EngineConfig()
        self.as_of = as_of or utc_now().date()
        self.lines = snapshot.lines()
        self._factors = self._realization_factors()

    # -------------------------------------------------------------------------
    # 기본 구성 요소
    # -------------------------------------------------------------------------

    def _root(self, line: Line) -> Record | None:
        return self.snapshot.records_by_id.get(line.root_record_id)

    def _root_meta(self, line: Line) -> TransactionMetadata | None:
        root = self._root(line)
        if root is None or not isinstance(root.metadata, TransactionMetadata):
            return None
        return root.metadata

    def _party_key(self, line: Line) -> str:
        root = self._root(line)
        return (root.party_id if root else None) or Heuristics.UNKNOWN_PARTY

    def _realization_factors(self) -> dict[str, Decimal]:
        """원 레코드별 현금 실현 비율

        원 레코드의 현금성 라인 순액에 결제 조건을 적용한 뒤
        실현액 / 순액 비율을 같은 원 레코드의 모든 라인에 적용.
        """
        net_by_root: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for line in self.lines:
            if line.cash_impact:
                net_by_root[line.root_record_id] += line.signed_amount

        factors: dict[str, Decimal] = {}
        for root_id, net in net_by_root.items():
            record = self.snapshot.records_by_id.get(root_id)
            if record is None or net == ZERO:
                factors[root_id] = ONE
                continue
            realized = realize_record(record, abs(net)).realized
            factors[root_id] = realized / abs(net)
        return factors

    def realized(self, line: Line) -> Decimal:
        """라인의 실현 금액 (부호 포함, 차변 +)"""
        return line.signed_amount * self._factors.get(line.root_record_id, ONE)

    def line_category(self, line: Line) -> str:
        """라인 카테고리: 분개 > 원 레코드 metadata > 계정 > Uncategorized"""
        if line.category and _norm(line.category) != Heuristics.ADJUSTMENT_CATEGORY:
            return line.category
        meta = self._root_meta(line)
        if meta is not None and meta.category:
            return meta.category
        account = self.snapshot.accounts_by_id.get(line.account_id or "")
        if account is not None and account.category:
            return account.category
        return Heuristics.UNCATEGORIZED

    def _lines_of(self, account_type: AccountType) -> list[Line]:
        return [
            line for line in self.lines
            if line.account_type is account_type and not line.cash_impact
        ]

    def _in_range(self, line: Line, start: date | None, end: date | None) -> bool:
        if start is None and end is None:
            return True
        if line.transaction_date is None:
            return False
        if start is not None and line.transaction_date < start:
            return False
        if end is not None and line.transaction_date > end:
            return False
        return True

    # -------------------------------------------------------------------------
    # 잔액 / 현금 / 채권채무
    # -------------------------------------------------------------------------

    def balances_by_type(self) -> dict[AccountType, Decimal]:
        """계정 유형별 잔액 (현금성 계정 제외, 차변 +)"""
        balances = {account_type: ZERO for account_type in AccountType}
        for line in self.lines:
            if not line.cash_impact:
                balances[line.account_type] += line.signed_amount
        return balances

    def cash_balance(self) -> Decimal:
        """현금 잔액 (실현분만)"""
        return sum((self.realized(line) for line in self.lines if line.cash_impact), ZERO)

    def receivables_payables(self) -> tuple[Decimal, Decimal]:
        """미취소 거래의 미실현분 (credit → 채권, debit → 채무)"""
        receivables = payables = ZERO
        for record in self.snapshot.transactions():
            direction = record.transaction_meta.direction
            if direction is None:
                continue
            outstanding = realize_record(record).outstanding
            if direction is Direction.CREDIT:
                receivables += outstanding
            else:
                payables += outstanding
        return receivables, payables

    # -------------------------------------------------------------------------
    # 손익 / 재무상태 / 현금흐름
    # -------------------------------------------------------------------------

    def profit_and_loss(self) -> dict[str, Decimal]:
        """손익 (수익 = -잔액, 비용 = +잔액)"""
        balances = self.balances_by_type()
        revenue = -balances[AccountType.REVENUE]
        expenses = balances[AccountType.EXPENSE]
        realized_revenue = -sum(
            (self.realized(line) for line in self._lines_of(AccountType.REVENUE)), ZERO
        )
        net_profit = revenue - expenses
        return {
            "revenue": revenue,
            "expenses": expenses,
            "net_profit": net_profit,
            "profit_margin": percent(net_profit, revenue) if revenue > ZERO else ZERO,
            "realized_revenue": realized_revenue,
        }

    def balance_sheet(self) -> tuple[dict[str, Decimal], list[ConsistencyWarning]]:
        """재무상태 (자산 = 부채 + 자본 검증 포함)"""
        balances = self.balances_by_type()
        pnl = self.profit_and_loss()
        receivables, payables = self.receivables_payables()
        cash = self.cash_balance()

        assets = balances[AccountType.ASSET] + cash + receivables
        liabilities = -balances[AccountType.LIABILITY] + payables
        equity = -balances[AccountType.EQUITY] + pnl["revenue"] - pnl["expenses"]
        divergence = assets - (liabilities + equity)

        warnings: list[ConsistencyWarning] = []
        if abs(divergence) > Thresholds.BALANCE_TOLERANCE:
            warnings.append(
                ConsistencyWarning(
                    code="balance_sheet_divergence",
                    message="assets do not equal liabilities plus equity",
                    details={
                        "assets": str(quantize(assets)),
                        "liabilities": str(quantize(liabilities)),
                        "equity": str(quantize(equity)),
                        "divergence": str(quantize(divergence)),
                    },
                )
            )
            logger.warning(
                "대차 불일치",
                extra={
                    "workbench_id": self.snapshot.workbench_id,
                    "divergence": str(divergence),
                },
            )

        sheet = {
            "assets": assets,
            "liabilities": liabilities,
            "equity": equity,
            "divergence": divergence,
        }
        return sheet, warnings

    def cash_activity(self, line: Line) -> CashFlowActivity:
        """현금 라인의 활동 구분 (라인 자체의 차대 기준)

        - investing: 원 레코드에 investing 태그 + 현금 유출 (대변)
        - financing: 현금 유입 (차변) + 거래처 이름에 차입 키워드
        태그와 거래처는 원 레코드 기준. unposted 라인은 항상 operating.
        """
        meta = self._root_meta(line)
        if not line.posted or meta is None:
            return CashFlowActivity.OPERATING

        tags = {_norm(tag) for tag in meta.tags}
        if _norm(self.config.investing_tag) in tags and line.entry_type is EntryType.CREDIT:
            return CashFlowActivity.INVESTING

        root = self._root(line)
        party = _norm(self.snapshot.party_name(root.party_id if root else None))
        if line.entry_type is EntryType.DEBIT and any(
            _norm(keyword) in party for keyword in self.config.financing_keywords
        ):
            return CashFlowActivity.FINANCING
        return CashFlowActivity.OPERATING

    def cash_flow(
        self,
        start: date | None = None,
        end: date | None = None,
    ) -> dict[CashFlowActivity, Decimal]:
        """활동별 현금흐름 (실현분, 유입 +)"""
        flows = {activity: ZERO for activity in CashFlowActivity}
        for line in self.lines:
            if line.cash_impact and self._in_range(line, start, end):
                flows[self.cash_activity(line)] += self.realized(line)
        return flows

    def monthly_net_cash(self) -> dict[str, Decimal]:
        """월별 순현금흐름"""
        months: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for line in self.lines:
            if line.cash_impact and line.transaction_date is not None:
                months[month_key(line.transaction_date)] += self.realized(line)
        return dict(months)

    def financial_snapshot(self) -> dict[str, Any]:
        """재무 스냅샷 (현금, 채권채무, 손익, 재무상태, 현금흐름)"""
        pnl = self.profit_and_loss()
        receivables, payables = self.receivables_payables()
        sheet, warnings = self.balance_sheet()
        flows = self.cash_flow()
        balances = self.balances_by_type()
        unposted = self.snapshot.unposted_transactions()

        return {
            "workbench_id": self.snapshot.workbench_id,
            "currency": self.snapshot.workbench.currency,
            "as_of": self.as_of,
            "cash_balance": quantize(self.cash_balance()),
            "receivables": quantize(receivables),
            "payables": quantize(payables),
            "revenue": quantize(pnl["revenue"]),
            "expenses": quantize(pnl["expenses"]),
            "net_profit": quantize(pnl["net_profit"]),
            "profit_margin": quantize(pnl["profit_margin"]),
            "realized_revenue": quantize(pnl["realized_revenue"]),
            "balance_sheet": {key: quantize(value) for key, value in sheet.items()},
            "cash_flow": {
                **{activity.value: quantize(value) for activity, value in flows.items()},
                "net": quantize(sum(flows.values(), ZERO)),
            },
            "account_balances": {
                account_type.value: quantize(value) for account_type, value in balances.items()
            },
            "record_counts": {
                "posted": len(
                    [r for r in self.snapshot.transactions() if r.id in self.snapshot.processed_record_ids]
                ),
                "unposted": len(unposted),
            },
            "warnings": [w.to_dict() for w in warnings],
        }

    # -------------------------------------------------------------------------
    # 투자자 지표
    # -------------------------------------------------------------------------

    def revenue_by_party(self) -> dict[str, Decimal]:
        """거래처별 수익 (거래처 없음 → unknown)"""
        result: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for line in self._lines_of(AccountType.REVENUE):
            result[self._party_key(line)] -= line.signed_amount
        return dict(result)

    def spend_by_party(self) -> dict[str, Decimal]:
        """거래처별 비용"""
        result: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for line in self._lines_of(AccountType.EXPENSE):
            result[self._party_key(line)] += line.signed_amount
        return dict(result)

    def dependency_risk(self) -> Decimal:
        """최대 고객 수익 비중 (%)"""
        by_party = self.revenue_by_party()
        total = sum(by_party.values(), ZERO)
        if total <= ZERO:
            return ZERO
        return percent(max(by_party.values()), total)

    def monthly_revenue(self) -> dict[str, Decimal]:
        """월별 수익"""
        months: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for line in self._lines_of(AccountType.REVENUE):
            if line.transaction_date is not None:
                months[month_key(line.transaction_date)] -= line.signed_amount
        return dict(months)

    def revenue_growth(self) -> Decimal | None:
        """전월 대비 수익 성장률 (%) (전월 수익이 없으면 None)"""
        months = self.monthly_revenue()
        current = months.get(month_key(self.as_of), ZERO)
        previous = months.get(month_key(shift_month(self.as_of, -1)), ZERO)
        if previous <= ZERO:
            return None
        return (current - previous) / previous * 100

    def monthly_burn(self) -> Decimal:
        """최근 N개월 실현 비용의 월 평균"""
        window = self.config.burn_window_months
        if window <= 0:
            return ZERO
        start = months_before(self.as_of, window)
        total = sum(
            (
                self.realized(line)
                for line in self._lines_of(AccountType.EXPENSE)
                if self._in_range(line, start, self.as_of)
            ),
            ZERO,
        )
        return total / window

    def cash_stability_index(self) -> Decimal:
        """최근 6개월 중 순현금흐름이 음수가 아닌 달의 비율 × 10"""
        months = recent_month_keys(self.as_of, Thresholds.STABILITY_WINDOW_MONTHS)
        net = self.monthly_net_cash()
        stable = sum(1 for key in months if net.get(key, ZERO) >= ZERO)
        index = Decimal(10 * stable) / Decimal(len(months))
        return index.quantize(TENTH)

    def investor_metrics(self) -> dict[str, Any]:
        """투자자 지표"""
        pnl = self.profit_and_loss()
        cash = self.cash_balance()
        burn = self.monthly_burn()
        runway = cash / burn if burn > ZERO else None
        dependency = self.dependency_risk()
        growth = self.revenue_growth()
        score = financial_health_score(pnl["profit_margin"], runway, dependency, growth, cash)

        return {
            "workbench_id": self.snapshot.workbench_id,
            "as_of": self.as_of,
            "revenue": quantize(pnl["revenue"]),
            "expenses": quantize(pnl["expenses"]),
            "net_profit": quantize(pnl["net_profit"]),
            "profit_margin": quantize(pnl["profit_margin"]),
            "monthly_burn": quantize(burn),
            "runway_months": quantize(runway) if runway is not None else None,
            "cash_balance": quantize(cash),
            "dependency_risk": quantize(dependency),
            "revenue_growth": quantize(growth) if growth is not None else None,
            "health_score": score,
            "health_band": health_band(score),
            "cash_stability_index": self.cash_stability_index(),
        }

    # -------------------------------------------------------------------------
    # 예산
    # -------------------------------------------------------------------------

    def _spend_lines(self) -> list[tuple[Line, Decimal]]:
        """posted 지출 라인과 지출 금액

        - 비용 계정: 차변 +, 대변 -
        - 현금성 자산 계정 (상대 계정이 비용이 아닌 경우): 대변 +, 차변 -
        지출(debit) 방향 원 레코드만 대상.
        """
        result: list[tuple[Line, Decimal]] = []
        for line in self.lines:
            if not line.posted:
                continue
            meta = self._root_meta(line)
            if meta is None or meta.direction is not Direction.DEBIT:
                continue
            if line.account_type is AccountType.EXPENSE:
                result.append((line, line.signed_amount))
            elif (
                line.account_type is AccountType.ASSET
                and line.cash_impact
                and line.counter_account_type is not AccountType.EXPENSE
            ):
                result.append((line, -line.signed_amount))
        return result

    def _unposted_spend(self) -> list[Record]:
        return [
            record
            for record in self.snapshot.unposted_transactions()
            if record.transaction_meta.direction is Direction.DEBIT
            and record.carrying_amount > ZERO
        ]

    def _budget_targets(self, budget: Budget) -> list[tuple[str, Decimal]]:
        """예산의 (카테고리, 배정액) 목록

        연결된 예산 레코드의 carrying amount가 바뀌었으면 배정액을 비례 조정.
        항목이 없으면 예산 카테고리 또는 이름 하나로 대체.
        """
        record = self.snapshot.records_by_id.get(budget.record_id or "")
        carrying = record.carrying_amount if record is not None else budget.total_amount
        if budget.items:
            scale = carrying / budget.total_amount if budget.total_amount > ZERO else ONE
            return [(item.category, item.amount * scale) for item in budget.items]
        return [(budget.category or budget.name, carrying)]

    @staticmethod
    def _draft_matches(record: Record, budget: Budget, category: str) -> bool:
        """예산 이름은 요약에서만, 카테고리는 요약과 metadata.category에서 찾음"""
        summary = _norm(record.summary)
        name = _norm(budget.name)
        target = _norm(category)
        meta_category = _norm(record.transaction_meta.category)
        return bool(
            (name and name in summary)
            or (target and target in summary)
            or (target and target in meta_category)
        )

    def _utilization(self, budget_amount: Decimal, actual: Decimal) -> dict[str, Any]:
        utilization = percent(actual, budget_amount)
        if utilization > self.config.budget_overrun_pct:
            status = "overrun"
        elif utilization >= self.config.budget_warning_pct:
            status = "warning"
        else:
            status = "on_track"
        return {
            "budget_amount": quantize(budget_amount),
            "actual": quantize(actual),
            "variance": quantize(budget_amount - actual),
            "utilization": quantize(utilization),
            "status": status,
        }

    def budget_metrics(self) -> dict[str, Any]:
        """예산 대비 실적

        카테고리 매칭은 대소문자 무시 양방향 부분 문자열.
        어느 예산에도 매칭되지 않은 지출은 unmatched_budget_category 경고.
        """
        spend = self._spend_lines()
        drafts = self._unposted_spend()
        matched_lines: set[int] = set()
        matched_records: set[str] = set()

        budgets_out: list[dict[str, Any]] = []
        for budget in self.snapshot.budgets:
            items_out: list[dict[str, Any]] = []
            for category, amount in self._budget_targets(budget):
                actual = ZERO
                for index, (line, value) in enumerate(spend):
                    if category_matches(self.line_category(line), category):
                        actual += value
                        matched_lines.add(index)
                for record in drafts:
                    if self._draft_matches(record, budget, category):
                        actual += record.carrying_amount
                        matched_records.add(record.id)
                items_out.append({"category": category, **self._utilization(amount, actual)})

            budget_amount = sum((item["budget_amount"] for item in items_out), ZERO)
            actual_total = sum((item["actual"] for item in items_out), ZERO)
            budgets_out.append({
                "budget_id": budget.id,
                "name": budget.name,
                **self._utilization(budget_amount, actual_total),
                "items": items_out,
            })

        warnings = self._unmatched_warnings(spend, matched_lines, drafts, matched_records)

        total_budget = sum((b["budget_amount"] for b in budgets_out), ZERO)
        total_actual = sum((b["actual"] for b in budgets_out), ZERO)
        return {
            "workbench_id": self.snapshot.workbench_id,
            "budgets": budgets_out,
            "total_budget": quantize(total_budget),
            "total_actual": quantize(total_actual),
            "total_variance": quantize(total_budget - total_actual),
            "overall_utilization": quantize(percent(total_actual, total_budget)),
            "warnings": [w.to_dict() for w in warnings],
        }

    def _unmatched_warnings(
        self,
        spend: list[tuple[Line, Decimal]],
        matched_lines: set[int],
        drafts: list[Record],
        matched_records: set[str],
    ) -> list[ConsistencyWarning]:
        if not self.snapshot.budgets:
            return []

        unmatched: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for index, (line, value) in enumerate(spend):
            if index not in matched_lines:
                unmatched[self.line_category(line)] += value
        for record in drafts:
            if record.id not in matched_records:
                category = record.transaction_meta.category or Heuristics.UNCATEGORIZED
                unmatched[category] += record.carrying_amount

        return [
            ConsistencyWarning(
                code="unmatched_budget_category",
                message=f"spend in '{category}' matches no budget",
                details={"category": category, "amount": str(quantize(amount))},
            )
            for category, amount in unmatched.items()
            if amount != ZERO
        ]

    # -------------------------------------------------------------------------
    # 거래처 / 컴플라이언스 / 비용 분류 / 운영
    # -------------------------------------------------------------------------

    def party_metrics(self) -> dict[str, Any]:
        """거래처 지표"""
        revenue = self.revenue_by_party()
        spend = self.spend_by_party()

        payment_methods: dict[str, dict[str, Any]] = {}
        outstanding: dict[str, dict[str, Decimal]] = defaultdict(
            lambda: {"receivable": ZERO, "payable": ZERO}
        )
        counts: dict[str, int] = defaultdict(int)
        for record in self.snapshot.transactions():
            meta = record.transaction_meta
            bucket = payment_methods.setdefault(
                meta.payment_type.value, {"count": 0, "amount": ZERO}
            )
            bucket["count"] += 1
            bucket["amount"] += record.carrying_amount

            party_key = record.party_id or Heuristics.UNKNOWN_PARTY
            counts[party_key] += 1
            due = realize_record(record).outstanding
            if meta.direction is Direction.CREDIT:
                outstanding[party_key]["receivable"] += due
            elif meta.direction is Direction.DEBIT:
                outstanding[party_key]["payable"] += due

        top_customer = None
        if revenue:
            party_id, amount = max(revenue.items(), key=lambda item: item[1])
            if amount > ZERO:
                top_customer = {
                    "party_id": party_id,
                    "name": self.snapshot.party_name(party_id) or Heuristics.UNKNOWN_PARTY,
                    "revenue": quantize(amount),
                }

        parties = []
        for party in self.snapshot.parties:
            parties.append({
                "party_id": party.id,
                "name": party.name,
                "party_type": party.party_type.value,
                "is_active": party.is_active,
                "revenue": quantize(revenue.get(party.id, ZERO)),
                "spend": quantize(spend.get(party.id, ZERO)),
                "receivable": quantize(outstanding[party.id]["receivable"]),
                "payable": quantize(outstanding[party.id]["payable"]),
                "transaction_count": counts.get(party.id, 0),
            })

        return {
            "workbench_id": self.snapshot.workbench_id,
            "vendor_spend": {key: quantize(value) for key, value in spend.items()},
            "customer_revenue": {key: quantize(value) for key, value in revenue.items()},
            "payment_methods": {
                key: {"count": value["count"], "amount": quantize(value["amount"])}
                for key, value in payment_methods.items()
            },
            "top_customer": top_customer,
            "dependency_risk": quantize(self.dependency_risk()),
            "parties": parties,
        }

    def compliance_items(self) -> list[dict[str, Any]]:
        """미취소 신고 레코드 (마감일/상태 포함)"""
        horizon = self.as_of + timedelta(days=self.config.compliance_horizon_days)
        items = []
        for record in self.snapshot.records:
            if record.record_type is not RecordType.COMPLIANCE:
                continue
            if record.status is RecordStatus.CANCELLED:
                continue
            meta = record.metadata
            assert isinstance(meta, ComplianceMetadata)
            deadline = meta.deadline or record.due_date
            pending = not meta.is_filed
            items.append({
                "record_id": record.id,
                "name": meta.name or record.summary,
                "deadline": deadline,
                "status": meta.status.value,
                "days_left": (deadline - self.as_of).days if deadline else None,
                "filed": not pending,
                "overdue": pending and deadline is not None and deadline < self.as_of,
                "at_risk": pending and deadline is not None and self.as_of <= deadline <= horizon,
            })
        return items

    def compliance_metrics(self) -> dict[str, Any]:
        """컴플라이언스 지표 (조회 시점 기준으로 판정)"""
        items = self.compliance_items()
        total = len(items)
        filed = sum(1 for item in items if item["filed"])
        overdue = [item for item in items if item["overdue"]]
        at_risk = [item for item in items if item["at_risk"]]
        return {
            "workbench_id": self.snapshot.workbench_id,
            "as_of": self.as_of,
            "total": total,
            "filed": filed,
            "pending": total - filed - len(overdue),
            "overdue": len(overdue),
            "at_risk": len(at_risk),
            "completion_rate": quantize(percent(Decimal(filed), Decimal(total))),
            "upcoming": sorted(at_risk, key=lambda item: item["deadline"]),
            "overdue_items": sorted(overdue, key=lambda item: item["deadline"]),
        }

    def expense_categorization(self) -> dict[str, Any]:
        """카테고리별 비용"""
        totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for line in self._lines_of(AccountType.EXPENSE):
            totals[self.line_category(line)] += line.signed_amount
        grand_total = sum(totals.values(), ZERO)
        categories = [
            {
                "category": category,
                "amount": quantize(amount),
                "share": quantize(percent(amount, grand_total)),
            }
            for category, amount in sorted(totals.items(), key=lambda item: item[1], reverse=True)
        ]
        return {
            "workbench_id": self.snapshot.workbench_id,
            "total_expenses": quantize(grand_total),
            "categories": categories,
        }

    def range_start(self, time_range: TimeRange) -> date | None:
        """기간 시작일 (all이면 None)"""
        if time_range is TimeRange.DAILY:
            return self.as_of
        if time_range is TimeRange.WEEKLY:
            return self.as_of - timedelta(days=6)
        if time_range is TimeRange.MONTHLY:
            return self.as_of.replace(day=1)
        if time_range is TimeRange.QUARTERLY:
            return date(self.as_of.year, 3 * ((self.as_of.month - 1) // 3) + 1, 1)
        if time_range is TimeRange.YEARLY:
            return date(self.as_of.year, 1, 1)
        return None

    def operations_metrics(self, time_range: TimeRange = TimeRange.MONTHLY) -> dict[str, Any]:
        """기간별 운영 지표"""
        start = self.range_start(time_range)
        end = self.as_of if start is not None else None

        def in_range(record: Record) -> bool:
            if start is None:
                return True
            when = record.issue_date or parse_date(record.created_at)
            return when is not None and start <= when <= end

        transactions = [
            r for r in self.snapshot.transactions(include_cancelled=True) if in_range(r)
        ]
        active = [r for r in transactions if r.status is not RecordStatus.CANCELLED]
        adjustments = [
            r for r in self.snapshot.records
            if r.record_type is RecordType.ADJUSTMENT and in_range(r)
        ]
        revenue = -sum(
            (l.signed_amount for l in self._lines_of(AccountType.REVENUE) if self._in_range(l, start, end)),
            ZERO,
        )
        expenses = sum(
            (l.signed_amount for l in self._lines_of(AccountType.EXPENSE) if self._in_range(l, start, end)),
            ZERO,
        )
        total_value = sum((r.carrying_amount for r in active), ZERO)

        by_status = {status.value: 0 for status in RecordStatus}
        for record in transactions:
            by_status[record.status.value] += 1

        return {
            "workbench_id": self.snapshot.workbench_id,
            "time_range": time_range.value,
            "start": start,
            "end": end,
            "transaction_count": len(transactions),
            "by_status": by_status,
            "adjustment_count": len(adjustments),
            "revenue": quantize(revenue),
            "expenses": quantize(expenses),
            "average_transaction_value": quantize(total_value / len(active)) if active else ZERO,
            "outstanding_count": sum(
                1 for r in active if realize_record(r).outstanding > ZERO
            ),
        }


class ReconcilingAggregator:
    """워크벤치 지표 조회

    요청마다 스냅샷을 새로 로드 (캐시 없음, 부수 효과 없음).

    Args:
        db: SQLiteAdapter 인스턴스 (읽기 전용 연결 권장)
        config: 엔진 설정
    """

    def __init__(self, db: SQLiteAdapter, config: EngineConfig | None = None):
        self.db = db
        self.config = config or EngineConfig()

    async def report(self, workbench_id: str, as_of: date | None = None) -> WorkbenchReport:
        """스냅샷 로드 후 계산기 생성

        Raises:
            WorkbenchNotFound: 존재하지 않는 워크벤치
        """
        snapshot = await load_snapshot(self.db, workbench_id)
        return WorkbenchReport(snapshot, self.config, as_of)

    async def get_financial_snapshot(
        self, workbench_id: str, as_of: date | None = None
    ) -> dict[str, Any]:
        return (await self.report(workbench_id, as_of)).financial_snapshot()

    async def get_investor_metrics(
        self, workbench_id: str, as_of: date | None = None
    ) -> dict[str, Any]:
        return (await self.report(workbench_id, as_of)).investor_metrics()

    async def get_budget_metrics(
        self, workbench_id: str, as_of: date | None = None
    ) -> dict[str, Any]:
        return (await self.report(workbench_id, as_of)).budget_metrics()

    async def get_party_metrics(
        self, workbench_id: str, as_of: date | None = None
    ) -> dict[str, Any]:
        return (await self.report(workbench_id, as_of)).party_metrics()

    async def get_compliance_metrics(
        self, workbench_id: str, as_of: date | None = None
    ) -> dict[str, Any]:
        return (await self.report(workbench_id, as_of)).compliance_metrics()

    async def get_expense_categorization(
        self, workbench_id: str, as_of: date | None = None
    ) -> dict[str, Any]:
        return (await self.report(workbench_id, as_of)).expense_categorization()

    async def get_operations_metrics(
        self,
        workbench_id: str,
        time_range: TimeRange | str = TimeRange.MONTHLY,
        as_of: date | None = None,
    ) -> dict[str, Any]:
        return (await self.report(workbench_id, as_of)).operations_metrics(TimeRange(time_range))
