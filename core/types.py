"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class AccountType(str, Enum):
    """계정 유형 (복식부기 5대 계정)"""

    ASSET = "Asset"  # 자산 (현금, 은행, 매출채권, 설비)
    LIABILITY = "Liability"  # 부채 (매입채무, 차입금)
    EQUITY = "Equity"  # 자본
    REVENUE = "Revenue"  # 수익
    EXPENSE = "Expense"  # 비용


class RecordType(str, Enum):
    """레코드 유형"""

    TRANSACTION = "transaction"
    COMPLIANCE = "compliance"
    BUDGET = "budget"
    PARTY = "party"
    ADJUSTMENT = "adjustment"


class RecordStatus(str, Enum):
    """레코드 상태

    삭제 대신 cancelled 전이로 취소.
    """

    DRAFT = "draft"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Direction(str, Enum):
    """자금 방향"""

    DEBIT = "debit"  # 지출 (money out)
    CREDIT = "credit"  # 수입 (money in)

    @property
    def opposite(self) -> "Direction":
        """반대 방향"""
        return Direction.CREDIT if self is Direction.DEBIT else Direction.DEBIT


class EntryType(str, Enum):
    """분개 방향 (차변/대변)"""

    DEBIT = "debit"  # 차변 (자산/비용 증가)
    CREDIT = "credit"  # 대변 (부채/자본/수익 증가)

    @property
    def opposite(self) -> "EntryType":
        """반대 방향"""
        return EntryType.CREDIT if self is EntryType.DEBIT else EntryType.DEBIT


class EntryLeg(str, Enum):
    """하나의 posting 내 분개 다리"""

    PRIMARY = "primary"  # 수익/비용 등 주 계정
    COUNTER = "counter"  # 현금/은행 등 결제 계정


class PaymentStatus(str, Enum):
    """결제 실현 상태 (미지정 시 completed)"""

    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETED = "completed"


class PaymentType(str, Enum):
    """결제 수단"""

    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    CHEQUE = "cheque"
    CARD = "card"


class AdjustmentType(str, Enum):
    """조정 유형"""

    REVERSE = "reverse"  # 전액 취소
    RECLASSIFY = "reclassify"  # 재분류
    CORRECT_BUDGET = "correct_budget"  # 예산 정정
    PARTY_CORRECTION = "party_correction"  # 거래처 정정
    STATUS_CORRECTION = "status_correction"  # 신고 상태 정정 (compliance 전용)


class PartyType(str, Enum):
    """거래처 유형"""

    CUSTOMER = "customer"
    VENDOR = "vendor"
    BOTH = "both"


class ComplianceStatus(str, Enum):
    """신고 상태

    at-risk / overdue는 저장하지 않고 조회 시점에 계산.
    """

    PENDING = "pending"
    FILED = "filed"
    COMPLETED = "completed"


class AuditAction(str, Enum):
    """감사 로그 액션"""

    CREATE_RECORD = "CREATE_RECORD"
    CONFIRM_RECORD = "CONFIRM_RECORD"
    PUSH_ADJUSTMENT = "PUSH_ADJUSTMENT"
    CANCEL_RECORD = "CANCEL_RECORD"
    DEACTIVATE_PARTY = "DEACTIVATE_PARTY"


class Severity(str, Enum):
    """예외 알림 심각도"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ExceptionType(str, Enum):
    """예외 알림 유형"""

    UNKNOWN_PARTY = "unknown_party"
    COMPLIANCE_DEADLINE = "compliance_deadline"
    COMPLIANCE_OVERDUE = "compliance_overdue"
    BUDGET_WARNING = "budget_warning"
    BUDGET_OVERRUN = "budget_overrun"


class CashFlowActivity(str, Enum):
    """현금흐름 활동 구분"""

    OPERATING = "operating"
    INVESTING = "investing"
    FINANCING = "financing"


class TimeRange(str, Enum):
    """운영 지표 조회 기간"""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    ALL = "all"
