"""
Lawyer directory routes

Public listing of active lawyers, optionally filtered by specialization, and a
paginated search over lawyers whose profile is complete.
"""

import logging
import math
from typing import Optional
from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_auth_service
from src.services.auth_service import AuthService, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

logger = logging.getLogger(__name__)

lawyers_router = APIRouter(prefix="/api/v1/lawyers", tags=["Lawyers"])


@lawyers_router.get("")
async def list_lawyers(
    specialization: Optional[str] = Query(None, description="Exact specialization match"),
    auth_service: AuthService = Depends(get_auth_service)
):
    lawyers = await auth_service.list_lawyers(specialization=specialization or None)
    return {
        "success": True,
        "data": [lawyer.to_public_dict() for lawyer in lawyers],
        "count": len(lawyers),
    }


@lawyers_router.get("/search")
async def search_lawyers(
    query: Optional[str] = Query(None, description="Free text over name, specialization and bio"),
    practice_area: Optional[str] = Query(None, alias="practiceArea"),
    city: Optional[str] = Query(None, description="Case-insensitive city match"),
    min_experience: Optional[int] = Query(None, alias="minExperience", ge=0),
    max_rate: Optional[float] = Query(None, alias="maxRate", ge=0),
    is_available: bool = Query(False, alias="isAvailable"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Search lawyers with a complete profile, newest first.

    Declared before /{account_id} so "search" is not taken for an id.
    """
    lawyers, total = await auth_service.search_lawyers(
        query=query,
        practice_area=practice_area,
        city=city,
        min_experience=min_experience,
        max_rate=max_rate,
        available_only=is_available,
        page=page,
        limit=limit,
    )
    return {
        "success": True,
        "data": [lawyer.to_public_dict() for lawyer in lawyers],
        "pagination": {
            "current_page": page,
            "total_pages": math.ceil(total / limit),
            "total_results": total,
            "has_next": page * limit < total,
        },
    }


@lawyers_router.get("/{account_id}")
async def get_lawyer(
    account_id: str,
    auth_service: AuthService = Depends(get_auth_service)
):
    lawyer = await auth_service.get_lawyer(account_id)
    return {"success": True, "data": lawyer.to_public_dict()}
