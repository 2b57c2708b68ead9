"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화.
금액은 정밀도 보존을 위해 문자열로 전달.
"""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str
    version: str
    database: str


class WorkbenchResponse(BaseModel):
    """워크벤치"""

    id: str
    name: str
    currency: str
    created_at: str | None = None


class AccountResponse(BaseModel):
    """계정과목"""

    id: str
    workbench_id: str
    name: str
    account_type: str
    category: str | None = None
    cash_impact: bool
    is_active: bool


class AccountListResponse(BaseModel):
    """계정과목 목록"""

    accounts: list[AccountResponse]
    total: int


class PartyResponse(BaseModel):
    """거래처"""

    id: str
    workbench_id: str
    name: str
    party_type: str
    gstin: str | None = None
    pan: str | None = None
    is_active: bool


class PartyListResponse(BaseModel):
    """거래처 목록"""

    parties: list[PartyResponse]
    total: int


class RecordResponse(BaseModel):
    """레코드"""

    id: str
    workbench_id: str
    record_type: str
    status: str
    summary: str
    gross_amount: str
    net_amount: str
    tax_amount: str
    party_id: str | None = None
    issue_date: str | None = None
    due_date: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_by: str
    created_at: str | None = None
    updated_at: str | None = None


class RecordListResponse(BaseModel):
    """레코드 목록"""

    records: list[RecordResponse]
    total: int


class LedgerEntryResponse(BaseModel):
    """분개 라인"""

    id: str
    posting_id: str
    record_id: str
    workbench_id: str
    account_id: str
    counter_account_id: str | None = None
    leg: str
    amount: str
    entry_type: str
    category: str | None = None
    transaction_date: str | None = None
    created_at: str | None = None


class ConfirmResponse(BaseModel):
    """확정 결과"""

    record: RecordResponse
    ledger_entries: list[LedgerEntryResponse]


class AuditLogResponse(BaseModel):
    """감사 로그 1건"""

    id: str
    workbench_id: str
    actor: str
    action: str
    entity_type: str
    entity_id: str
    old_data: dict[str, Any] | None = None
    new_data: dict[str, Any] | None = None
    created_at: str | None = None


class AuditLogListResponse(BaseModel):
    """감사 로그 목록"""

    entries: list[AuditLogResponse]
    total: int


class ExceptionAlertResponse(BaseModel):
    """예외 알림"""

    type: str
    severity: str
    title: str
    message: str
    entity_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class ExceptionListResponse(BaseModel):
    """예외 알림 목록"""

    alerts: list[ExceptionAlertResponse]
    total: int
