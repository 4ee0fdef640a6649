from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...services.nurse_service import NurseService
from ...schemas.common import ApiResponse, Page
from ...schemas.provider import NurseSummary, NurseDetail

router = APIRouter(prefix="/patients/nurses", tags=["Nurses"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

@router.get("", response_model=ApiResponse[Page[NurseSummary]])
async def list_nurses(
    response: Response,
    search: Optional[str] = None,
    specialization: Optional[str] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    rating: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Approved nurses patients can book, best rated first."""
    response.headers.update(NO_CACHE_HEADERS)

    result = NurseService(db).list_nurses(
        search=search,
        specialization=specialization,
        city=city,
        state=state,
        min_rating=rating,
        page=page,
        limit=limit,
    )
    return ApiResponse(data=result)

@router.get("/{nurse_id}", response_model=ApiResponse[NurseDetail])
async def get_nurse(
    nurse_id: int,
    db: Session = Depends(get_db)
):
    return ApiResponse(data=NurseService(db).get_nurse(nurse_id))
