from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from ..models.provider import ApprovalStatus

class Address(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None

# Nurses

class NurseSummary(Address):
    id: int
    first_name: str
    last_name: str
    specialization: Optional[str] = None
    qualification: Optional[str] = None
    experience_years: Optional[int] = None
    fees: Optional[float] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    availability: List[Dict[str, Any]] = []
    rating: float = 0
    created_at: Optional[datetime] = None

class NurseDetail(NurseSummary):
    gender: Optional[str] = None
    phone_number: Optional[str] = None
    status: ApprovalStatus

# Doctors, laboratories and pharmacies

class DoctorSummary(Address):
    id: int
    first_name: str
    last_name: str
    specialization: str
    experience_years: Optional[int] = None
    consultation_fee: Optional[float] = None
    clinic_name: Optional[str] = None
    profile_image: Optional[str] = None
    rating: float = 0
    latitude: Optional[float] = None
    longitude: Optional[float] = None

class LaboratorySummary(Address):
    id: int
    lab_name: str
    owner_name: Optional[str] = None
    services_offered: List[str] = []
    timings: List[str] = []
    profile_image: Optional[str] = None
    rating: float = 0
    latitude: Optional[float] = None
    longitude: Optional[float] = None

class PharmacySummary(Address):
    id: int
    pharmacy_name: str
    owner_name: Optional[str] = None
    delivery_options: List[str] = []
    service_radius_km: Optional[float] = None
    timings: List[str] = []
    profile_image: Optional[str] = None
    rating: float = 0
    latitude: Optional[float] = None
    longitude: Optional[float] = None

class NearbyDoctor(DoctorSummary):
    distance_km: float

class NearbyLaboratory(LaboratorySummary):
    distance_km: float

class NearbyPharmacy(PharmacySummary):
    distance_km: float

class NearbyResult(BaseModel):
    radius_km: float
    count: int
    items: List[Any]

# Hospitals

class HospitalDoctor(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    specialization: str

class HospitalSummary(Address):
    id: int
    name: str
    image: Optional[str] = None
    rating: float = 0
    review_count: int = 0

class HospitalDetail(HospitalSummary):
    specialties: List[str] = []
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    website: Optional[str] = None
    doctors: List[HospitalDoctor] = []
    created_at: Optional[datetime] = None

class HospitalCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    image: Optional[str] = None
    rating: float = Field(default=0, ge=0, le=5)
    review_count: int = Field(default=0, ge=0)
    specialties: List[str] = []
    contact_phone: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    website: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    doctor_ids: List[int] = []

# Admin approvals

class ProviderRecord(BaseModel):
    id: int
    user_id: int
    role: str
    name: str
    email: Optional[str] = None
    license_number: Optional[str] = None
    status: ApprovalStatus
    rejection_reason: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_profile(cls, role: str, profile) -> "ProviderRecord":
        return cls(
            id=profile.id,
            user_id=profile.user_id,
            role=role,
            name=profile.display_name,
            email=profile.user.email if profile.user else None,
            license_number=getattr(profile, "license_number", None),
            status=profile.status,
            rejection_reason=profile.rejection_reason,
            approved_at=profile.approved_at,
            approved_by=profile.approved_by,
            created_at=profile.created_at,
        )

class RejectRequest(BaseModel):
    reason: Optional[str] = None
