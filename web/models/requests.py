"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증.
금액은 문자열/숫자 모두 허용하고 Decimal 변환은 엔진에서 처리.
"""

from typing import Any

from pydantic import BaseModel, Field


class WorkbenchCreateRequest(BaseModel):
    """워크벤치 생성 요청"""

    name: str = Field(..., min_length=1, description="워크벤치 이름")
    currency: str | None = Field(default=None, description="통화 (표시용, 기본: 설정값)")
    seed_accounts: bool = Field(default=True, description="기본 계정과목 생성 여부")


class RecordCreateRequest(BaseModel):
    """레코드 생성 요청

    metadata에 유형별 입력을 담음 (amount, direction, deadline 등).
    """

    record_type: str = Field(..., description="transaction / compliance / budget / party")
    summary: str = Field(..., description="요약")
    metadata: dict[str, Any] = Field(default_factory=dict, description="유형별 입력")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "record_type": "transaction",
                    "summary": "Invoice #12 - Acme",
                    "metadata": {
                        "amount": "5000",
                        "direction": "credit",
                        "payment_status": "partial",
                        "paid_amount": "2000",
                        "category": "Sales",
                        "transaction_date": "2026-10-01",
                    },
                },
                {
                    "record_type": "compliance",
                    "summary": "GST return",
                    "metadata": {"name": "GSTR-3B", "deadline": "2026-10-20"},
                },
            ]
        }
    }


class ConfirmRequest(BaseModel):
    """레코드 확정 요청

    payment는 확정 시점의 결제 정보 덮어쓰기 (payment_type, external_reference 등).
    """

    payment: dict[str, Any] | None = Field(default=None, description="결제 정보")


class AdjustmentCreateRequest(BaseModel):
    """조정 요청"""

    original_record_id: str = Field(..., description="원 레코드 ID")
    adjustment_type: str = Field(
        ...,
        description="reverse / reclassify / correct_budget / party_correction / status_correction",
    )
    reason: str = Field(..., description="조정 사유 (필수)")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="adjustment_amount, corrected_party_id, new_status 등",
    )
