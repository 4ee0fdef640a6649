from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...api.deps import get_admin_user
from ...services.hospital_service import HospitalService
from ...schemas.common import ApiResponse
from ...schemas.provider import HospitalCreate, HospitalDetail, HospitalSummary
from ...models.user import User

router = APIRouter(prefix="/hospitals", tags=["Hospitals"])

@router.get("", response_model=ApiResponse[List[HospitalSummary]])
async def list_hospitals(
    city: Optional[str] = None,
    state: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Active hospitals, highest rated first."""
    return ApiResponse(data=HospitalService(db).list_hospitals(city=city, state=state))

@router.get("/{hospital_id}", response_model=ApiResponse[HospitalDetail])
async def get_hospital(
    hospital_id: int,
    db: Session = Depends(get_db)
):
    return ApiResponse(data=HospitalService(db).get_hospital(hospital_id))

@router.post("", response_model=ApiResponse[HospitalDetail], status_code=status.HTTP_201_CREATED)
async def create_hospital(
    hospital_data: HospitalCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user)
):
    """Register a hospital (admin only)."""
    hospital = HospitalService(db).create_hospital(hospital_data)
    return ApiResponse(message="Hospital created successfully", data=hospital)
