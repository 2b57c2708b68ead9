"""
예외 탐지

스냅샷 지표에서 사람이 확인해야 할 항목을 알림으로 변환.

| type                | severity | 조건                                      |
|---------------------|----------|-------------------------------------------|
| unknown_party       | medium   | 거래처 없는 미취소 거래 (최신 N건)        |
| compliance_deadline | high     | 미신고, 마감까지 horizon일 이내           |
| compliance_overdue  | critical | 미신고, 마감일 경과                       |
| budget_warning      | medium   | 사용률 ≥ warning_pct 이고 ≤ overrun_pct   |
| budget_overrun      | critical | 사용률 > overrun_pct                      |
"""

from dataclasses import dataclass, field
from typing import Any

from core.aggregation.aggregator import WorkbenchReport
from core.types import ExceptionType, Severity


@dataclass(frozen=True)
class ExceptionAlert:
    """예외 알림 1건"""

    exception_type: ExceptionType
    severity: Severity
    title: str
    message: str
    entity_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.exception_type.value,
            "severity": self.severity.value,
            "title": self.title,
            "message": self.message,
            "entity_id": self.entity_id,
            "details": self.details,
        }


class ExceptionDetector:
    """예외 탐지기

    사용 예시:
    ```python
    report = await aggregator.report(workbench_id)
    alerts = ExceptionDetector().detect(report)
    ```
    """

    def detect(self, report: WorkbenchReport) -> list[ExceptionAlert]:
        """모든 규칙 적용 (심각도 높은 순)"""
        alerts = [
            *self._unknown_parties(report),
            *self._compliance(report),
            *self._budgets(report),
        ]
        order = list(Severity)
        return sorted(alerts, key=lambda alert: -order.index(alert.severity))

    def _unknown_parties(self, report: WorkbenchReport) -> list[ExceptionAlert]:
        limit = report.config.unknown_party_alert_limit
        missing = [r for r in report.snapshot.transactions() if not r.party_id]
        if limit <= 0:
            return []
        latest = list(reversed(missing))[:limit]
        return [
            ExceptionAlert(
                exception_type=ExceptionType.UNKNOWN_PARTY,
                severity=Severity.MEDIUM,
                title="Unknown party",
                message=f"'{record.summary}' has no party assigned",
                entity_id=record.id,
                details={"amount": str(record.carrying_amount)},
            )
            for record in latest
        ]

    def _compliance(self, report: WorkbenchReport) -> list[ExceptionAlert]:
        alerts = []
        for item in report.compliance_items():
            if item["overdue"]:
                alerts.append(
                    ExceptionAlert(
                        exception_type=ExceptionType.COMPLIANCE_OVERDUE,
                        severity=Severity.CRITICAL,
                        title="Compliance overdue",
                        message=f"'{item['name']}' was due on {item['deadline'].isoformat()}",
                        entity_id=item["record_id"],
                        details={"days_overdue": -item["days_left"]},
                    )
                )
            elif item["at_risk"]:
                alerts.append(
                    ExceptionAlert(
                        exception_type=ExceptionType.COMPLIANCE_DEADLINE,
                        severity=Severity.HIGH,
                        title="Compliance deadline approaching",
                        message=f"'{item['name']}' is due in {item['days_left']} day(s)",
                        entity_id=item["record_id"],
                        details={"days_left": item["days_left"]},
                    )
                )
        return alerts

    def _budgets(self, report: WorkbenchReport) -> list[ExceptionAlert]:
        alerts = []
        for budget in report.budget_metrics()["budgets"]:
            if budget["status"] == "overrun":
                exception_type, severity = ExceptionType.BUDGET_OVERRUN, Severity.CRITICAL
                title = "Budget overrun"
            elif budget["status"] == "warning":
                exception_type, severity = ExceptionType.BUDGET_WARNING, Severity.MEDIUM
                title = "Budget warning"
            else:
                continue
            alerts.append(
                ExceptionAlert(
                    exception_type=exception_type,
                    severity=severity,
                    title=title,
                    message=(
                        f"'{budget['name']}' is at {budget['utilization']}% "
                        f"({budget['actual']} of {budget['budget_amount']})"
                    ),
                    entity_id=budget["budget_id"],
                    details={
                        "utilization": str(budget["utilization"]),
                        "variance": str(budget["variance"]),
                    },
                )
            )
        return alerts
