"""
Case API Routes

Create and list the caller's case records.
"""

import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.api.dependencies import get_case_service, get_current_account
from src.services.case_service import CaseService
from src.tools.account_store import Account

logger = logging.getLogger(__name__)

cases_router = APIRouter(prefix="/api/v1/cases", tags=["Cases"])


class StageHistoryEntry(BaseModel):
    stage_id: int = Field(..., ge=0)
    completed_date: Optional[date] = None
    actual_duration: Optional[int] = Field(None, ge=0, description="Days spent in the stage")


class CaseCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    client: Optional[str] = None
    opposing_party: Optional[str] = None
    lawyer: Optional[str] = None
    court: Optional[str] = None
    judge: Optional[str] = None
    jurisdiction: Optional[str] = None
    filing_date: Optional[date] = None
    next_hearing_date: Optional[date] = None
    current_stage: int = Field(0, ge=0)
    completed_stages: List[int] = []
    stage_history: List[StageHistoryEntry] = []


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


@cases_router.post("", status_code=201)
async def create_case(
    data: CaseCreate,
    account: Account = Depends(get_current_account),
    case_service: CaseService = Depends(get_case_service)
):
    case = await case_service.create_case(
        account,
        title=data.title,
        current_stage=data.current_stage,
        completed_stages=data.completed_stages,
        stage_history=[
            {
                "stageId": entry.stage_id,
                "completedDate": _iso(entry.completed_date),
                "actualDuration": entry.actual_duration,
            }
            for entry in data.stage_history
        ],
        client=data.client,
        opposing_party=data.opposing_party,
        lawyer=data.lawyer,
        court=data.court,
        judge=data.judge,
        jurisdiction=data.jurisdiction,
        filing_date=_iso(data.filing_date),
        next_hearing_date=_iso(data.next_hearing_date),
    )
    return {"success": True, "data": case.to_dict()}


@cases_router.get("")
async def list_cases(
    account: Account = Depends(get_current_account),
    case_service: CaseService = Depends(get_case_service)
):
    cases = await case_service.list_cases(account)
    return {
        "success": True,
        "data": [case.to_dict() for case in cases],
        "count": len(cases),
    }
