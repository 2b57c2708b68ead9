"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    AdjustmentCreateRequest,
    ConfirmRequest,
    RecordCreateRequest,
    WorkbenchCreateRequest,
)
from web.models.responses import (
    AccountListResponse,
    AccountResponse,
    AuditLogListResponse,
    AuditLogResponse,
    ConfirmResponse,
    ExceptionAlertResponse,
    ExceptionListResponse,
    HealthResponse,
    LedgerEntryResponse,
    PartyListResponse,
    PartyResponse,
    RecordListResponse,
    RecordResponse,
    WorkbenchResponse,
)

__all__ = [
    # Requests
    "AdjustmentCreateRequest",
    "ConfirmRequest",
    "RecordCreateRequest",
    "WorkbenchCreateRequest",
    # Responses
    "AccountListResponse",
    "AccountResponse",
    "AuditLogListResponse",
    "AuditLogResponse",
    "ConfirmResponse",
    "ExceptionAlertResponse",
    "ExceptionListResponse",
    "HealthResponse",
    "LedgerEntryResponse",
    "PartyListResponse",
    "PartyResponse",
    "RecordListResponse",
    "RecordResponse",
    "WorkbenchResponse",
]
