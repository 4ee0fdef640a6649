from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...services.discovery_service import DiscoveryService
from ...schemas.common import ApiResponse
from ...schemas.provider import NearbyResult

router = APIRouter(prefix="/discovery", tags=["Discovery"])

# Coordinates arrive as raw strings so bad input is reported with a
# discovery-specific message rather than a generic validation error.

@router.get("/doctors", response_model=ApiResponse[NearbyResult])
async def nearby_doctors(
    lat: Optional[str] = None,
    lng: Optional[str] = None,
    radius_km: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return ApiResponse(data=DiscoveryService(db).nearby("doctors", lat, lng, radius_km))

@router.get("/laboratories", response_model=ApiResponse[NearbyResult])
async def nearby_laboratories(
    lat: Optional[str] = None,
    lng: Optional[str] = None,
    radius_km: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return ApiResponse(data=DiscoveryService(db).nearby("laboratories", lat, lng, radius_km))

@router.get("/pharmacies", response_model=ApiResponse[NearbyResult])
async def nearby_pharmacies(
    lat: Optional[str] = None,
    lng: Optional[str] = None,
    radius_km: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return ApiResponse(data=DiscoveryService(db).nearby("pharmacies", lat, lng, radius_km))
