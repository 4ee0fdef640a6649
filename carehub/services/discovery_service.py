"""
Nearby provider discovery.

Candidates are narrowed with a latitude/longitude bounding box in SQL and then
ranked by great-circle distance.
"""
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import Optional
import math

from ..core.config import settings
from ..models import Doctor, Laboratory, Pharmacy
from ..models.provider import ApprovalStatus
from ..schemas.provider import NearbyDoctor, NearbyLaboratory, NearbyPharmacy

EARTH_RADIUS_KM = 6371.0088

def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))

def parse_coordinates(lat, lng):
    try:
        lat, lng = float(lat), float(lng)
    except (TypeError, ValueError):
        lat = lng = float("nan")

    if not (math.isfinite(lat) and math.isfinite(lng)) or abs(lat) > 90 or abs(lng) > 180:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="lat and lng query parameters are required and must be numeric"
        )
    return lat, lng

def resolve_radius(radius_km) -> float:
    if radius_km is None or radius_km == "":
        return settings.NEARBY_RADIUS_KM
    try:
        radius = float(radius_km)
    except (TypeError, ValueError):
        radius = float("nan")

    if not math.isfinite(radius) or radius <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="radius_km must be a positive number"
        )
    return radius

class DiscoveryService:
    PROVIDERS = {
        "doctors": (Doctor, NearbyDoctor),
        "laboratories": (Laboratory, NearbyLaboratory),
        "pharmacies": (Pharmacy, NearbyPharmacy),
    }

    def __init__(self, db: Session):
        self.db = db

    def nearby(self, kind: str, lat, lng, radius_km=None, limit: Optional[int] = None) -> dict:
        model, schema = self.PROVIDERS[kind]
        lat, lng = parse_coordinates(lat, lng)
        radius = resolve_radius(radius_km)
        limit = limit or settings.NEARBY_RESULT_LIMIT

        # Bounding box first; longitude degrees shrink towards the poles
        lat_delta = math.degrees(radius / EARTH_RADIUS_KM)
        cos_lat = math.cos(math.radians(lat))
        lng_delta = 180.0 if cos_lat < 1e-6 else min(180.0, lat_delta / cos_lat)

        query = self.db.query(model).filter(
            model.status == ApprovalStatus.APPROVED,
            model.latitude.isnot(None),
            model.longitude.isnot(None),
            model.latitude.between(lat - lat_delta, lat + lat_delta),
        )
        # boxes crossing the antimeridian are left to the distance check
        if -180.0 <= lng - lng_delta and lng + lng_delta <= 180.0:
            query = query.filter(model.longitude.between(lng - lng_delta, lng + lng_delta))
        if hasattr(model, "is_active"):
            query = query.filter(model.is_active == True)  # noqa: E712

        ranked = []
        for provider in query.all():
            distance = haversine_km(lat, lng, provider.latitude, provider.longitude)
            if distance <= radius:
                ranked.append((distance, provider))

        ranked.sort(key=lambda item: (item[0], item[1].id))
        items = [self._to_schema(schema, provider, distance) for distance, provider in ranked[:limit]]

        return {"radius_km": radius, "count": len(items), "items": items}

    @staticmethod
    def _to_schema(schema, provider, distance: float):
        fields = {
            name: getattr(provider, name)
            for name in schema.model_fields
            if name != "distance_km" and hasattr(provider, name)
        }
        return schema(**fields, distance_km=round(distance, 2))
