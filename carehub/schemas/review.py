from pydantic import BaseModel, Field, field_validator
from typing import Dict, Optional
from datetime import datetime

from ..core.security import UserRole, REVIEW_TARGET_ROLES

def normalize_target_role(value) -> UserRole:
    """Lower-case a role name and check it can receive reviews."""
    role = str(value or "").strip().lower()
    if role not in {r.value for r in REVIEW_TARGET_ROLES}:
        raise ValueError("target_role must be one of doctor, laboratory, pharmacy")
    return UserRole(role)

class ReviewCreate(BaseModel):
    target_role: UserRole
    target_id: int
    rating: int = Field(..., ge=1, le=5, description="Rating between 1 and 5")
    comment: Optional[str] = None

    @field_validator("target_role", mode="before")
    @classmethod
    def validate_target_role(cls, value):
        return normalize_target_role(value)

    @field_validator("comment")
    @classmethod
    def strip_comment(cls, value):
        if value is None:
            return None
        return value.strip() or None

class ReplyRequest(BaseModel):
    message: str

    @field_validator("message")
    @classmethod
    def validate_message(cls, value):
        value = (value or "").strip()
        if not value:
            raise ValueError("message is required")
        return value

class PatientSummary(BaseModel):
    id: int
    first_name: str
    last_name: str
    gender: Optional[str] = None
    profile_image: Optional[str] = None

class ReplyResponse(BaseModel):
    message: str
    replied_at: Optional[datetime] = None
    replied_by_role: Optional[UserRole] = None

class ReviewResponse(BaseModel):
    id: int
    patient: Optional[PatientSummary] = None
    target_id: int
    target_role: UserRole
    rating: int
    comment: Optional[str] = None
    reply: Optional[ReplyResponse] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_review(cls, review, include_patient: bool = True) -> "ReviewResponse":
        patient = review.patient if include_patient else None
        return cls(
            id=review.id,
            patient=PatientSummary(
                id=patient.id,
                first_name=patient.first_name,
                last_name=patient.last_name,
                gender=patient.gender,
                profile_image=patient.profile_image,
            ) if patient else None,
            target_id=review.target_id,
            target_role=review.target_role,
            rating=review.rating,
            comment=review.comment or None,
            reply=ReplyResponse(
                message=review.reply_message,
                replied_at=review.replied_at,
                replied_by_role=review.replied_by_role,
            ) if review.has_reply else None,
            created_at=review.created_at,
            updated_at=review.updated_at,
        )

class ReviewStatistics(BaseModel):
    total_reviews: int
    average_rating: float
    # keys "5" down to "1"
    rating_distribution: Dict[str, int]
    reviews_with_comments: int
    reviews_with_replies: int
