"""
Workbench 라우트

워크벤치 생성, 계정과목/거래처 조회, 거래처 비활성화
"""

from fastapi import APIRouter, Depends, Query

from core.engine import LedgerEngine
from web.dependencies import get_actor, get_engine
from web.models.requests import WorkbenchCreateRequest
from web.models.responses import (
    AccountListResponse,
    AccountResponse,
    PartyListResponse,
    PartyResponse,
    WorkbenchResponse,
)

router = APIRouter(prefix="/api", tags=["Workbenches"])


@router.post("/workbenches", response_model=WorkbenchResponse, status_code=201)
async def create_workbench(
    request: WorkbenchCreateRequest,
    engine: LedgerEngine = Depends(get_engine),
) -> WorkbenchResponse:
    """워크벤치 생성

    seed_accounts=true면 기본 계정과목(Cash, Bank, Sales Revenue 등)을 함께 생성.
    """
    workbench = await engine.create_workbench(
        request.name, currency=request.currency, seed_accounts=request.seed_accounts
    )
    return WorkbenchResponse(**workbench.to_dict())


@router.get("/workbenches/{workbench_id}", response_model=WorkbenchResponse)
async def get_workbench(
    workbench_id: str,
    engine: LedgerEngine = Depends(get_engine),
) -> WorkbenchResponse:
    """워크벤치 조회"""
    workbench = await engine.get_workbench(workbench_id)
    return WorkbenchResponse(**workbench.to_dict())


@router.get("/workbenches/{workbench_id}/accounts", response_model=AccountListResponse)
async def list_accounts(
    workbench_id: str,
    include_inactive: bool = Query(default=False, description="비활성 계정 포함"),
    engine: LedgerEngine = Depends(get_engine),
) -> AccountListResponse:
    """계정과목 목록"""
    accounts = await engine.list_accounts(workbench_id, include_inactive=include_inactive)
    return AccountListResponse(
        accounts=[AccountResponse(**a.to_dict()) for a in accounts],
        total=len(accounts),
    )


@router.get("/workbenches/{workbench_id}/parties", response_model=PartyListResponse)
async def list_parties(
    workbench_id: str,
    engine: LedgerEngine = Depends(get_engine),
) -> PartyListResponse:
    """거래처 목록 (비활성 포함)"""
    parties = await engine.list_parties(workbench_id)
    return PartyListResponse(
        parties=[PartyResponse(**p.to_dict()) for p in parties],
        total=len(parties),
    )


@router.post("/parties/{party_id}/deactivate", response_model=PartyResponse)
async def deactivate_party(
    party_id: str,
    engine: LedgerEngine = Depends(get_engine),
    actor: str = Depends(get_actor),
) -> PartyResponse:
    """거래처 비활성화 (레코드가 참조 중이어도 가능, 삭제는 불가)"""
    party = await engine.deactivate_party(party_id, actor=actor)
    return PartyResponse(**party.to_dict())
