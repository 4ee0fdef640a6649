from sqlalchemy.orm import Session, selectinload
from fastapi import HTTPException, status
from typing import List, Optional
import logging

from ..core.cache import get_cache, set_cache, generate_cache_key, delete_cache_by_pattern
from ..models import Doctor, Hospital
from ..schemas.provider import HospitalCreate, HospitalDetail, HospitalSummary

logger = logging.getLogger(__name__)

HOSPITAL_LIST_CACHE_PREFIX = "hospitals:list"
HOSPITAL_LIST_CACHE_TTL = 300

class HospitalService:
    def __init__(self, db: Session):
        self.db = db

    def list_hospitals(self, city: Optional[str] = None, state: Optional[str] = None) -> List[dict]:
        """Active hospitals, best rated first; served from cache when possible."""
        cache_key = generate_cache_key(
            HOSPITAL_LIST_CACHE_PREFIX,
            {"city": (city or "").strip().lower(), "state": (state or "").strip().lower()},
        )
        cached = get_cache(cache_key)
        if cached is not None:
            return cached

        query = self.db.query(Hospital).filter(Hospital.is_active == True)  # noqa: E712
        if city and city.strip():
            query = query.filter(Hospital.city.ilike(city.strip()))
        if state and state.strip():
            query = query.filter(Hospital.state.ilike(state.strip()))

        hospitals = query.order_by(Hospital.rating.desc(), Hospital.name.asc()).all()
        payload = [
            HospitalSummary.model_validate(hospital).model_dump(mode="json")
            for hospital in hospitals
        ]

        set_cache(cache_key, payload, HOSPITAL_LIST_CACHE_TTL)
        return payload

    def get_hospital(self, hospital_id: int) -> HospitalDetail:
        hospital = self.db.query(Hospital).options(
            selectinload(Hospital.doctors)
        ).filter(Hospital.id == hospital_id).first()

        if not hospital or not hospital.is_active:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Hospital not found"
            )

        return HospitalDetail.model_validate(hospital)

    def create_hospital(self, hospital_data: HospitalCreate) -> HospitalDetail:
        values = hospital_data.model_dump(exclude={"doctor_ids"})
        hospital = Hospital(**values)

        if hospital_data.doctor_ids:
            doctors = self.db.query(Doctor).filter(Doctor.id.in_(hospital_data.doctor_ids)).all()
            missing = set(hospital_data.doctor_ids) - {doctor.id for doctor in doctors}
            if missing:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Unknown doctor ids: {sorted(missing)}"
                )
            hospital.doctors = doctors

        self.db.add(hospital)
        self.db.commit()
        self.db.refresh(hospital)

        removed = delete_cache_by_pattern(f"{HOSPITAL_LIST_CACHE_PREFIX}:*")
        logger.info(f"Hospital {hospital.id} created; {removed} cached lists invalidated")
        return HospitalDetail.model_validate(hospital)
