from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional

from ...core.database import get_db
from ...core.security import UserRole, REVIEW_TARGET_ROLES
from ...api.deps import protect, get_patient_user
from ...services.review_service import ReviewService
from ...schemas.common import ApiResponse, Page
from ...schemas.review import ReviewCreate, ReplyRequest, ReviewResponse, ReviewStatistics
from ...models.user import User

router = APIRouter(prefix="/reviews", tags=["Reviews"])

get_review_target_user = protect(*REVIEW_TARGET_ROLES)

@router.post("", response_model=ApiResponse[ReviewResponse], status_code=status.HTTP_201_CREATED)
async def create_review(
    review_data: ReviewCreate,
    db: Session = Depends(get_db),
    patient: User = Depends(get_patient_user)
):
    """Submit a review for a doctor, laboratory or pharmacy."""
    review = ReviewService(db).create_review(patient, review_data)
    return ApiResponse(
        message="Review submitted successfully",
        data=ReviewResponse.from_review(review, include_patient=False)
    )

@router.get("", response_model=ApiResponse[List[ReviewResponse]])
async def get_reviews(
    db: Session = Depends(get_db),
    current_user: User = Depends(protect(UserRole.PATIENT, *REVIEW_TARGET_ROLES))
):
    """Reviews written by a patient, or left on the caller's provider profile."""
    service = ReviewService(db)
    if current_user.role == UserRole.PATIENT:
        reviews = service.list_patient_reviews(current_user)
        return ApiResponse(data=[ReviewResponse.from_review(review, include_patient=False) for review in reviews])

    reviews = service.list_target_reviews(current_user.role.value, current_user.profile.id)
    return ApiResponse(data=[ReviewResponse.from_review(review) for review in reviews])

@router.get("/patient/me", response_model=ApiResponse[List[ReviewResponse]])
async def get_my_reviews(
    db: Session = Depends(get_db),
    patient: User = Depends(get_patient_user)
):
    reviews = ReviewService(db).list_patient_reviews(patient)
    return ApiResponse(data=[ReviewResponse.from_review(review, include_patient=False) for review in reviews])

@router.get("/target/{role}/{target_id}", response_model=ApiResponse[List[ReviewResponse]])
async def get_target_reviews(
    role: str,
    target_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(protect())
):
    """Reviews left on one provider profile, newest first."""
    reviews = ReviewService(db).list_target_reviews(role, target_id)
    return ApiResponse(data=[ReviewResponse.from_review(review) for review in reviews])

@router.get("/provider/me", response_model=ApiResponse[Page[ReviewResponse]])
async def get_provider_reviews(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    rating: Optional[str] = None,
    has_reply: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db: Session = Depends(get_db),
    provider: User = Depends(get_review_target_user)
):
    """Reviews of the signed-in provider, with optional filters."""
    result = ReviewService(db).list_provider_reviews(
        provider,
        page=page,
        limit=limit,
        rating=rating,
        has_reply=has_reply,
        date_from=date_from,
        date_to=date_to,
    )
    return ApiResponse(data=result)

@router.get("/provider/statistics", response_model=ApiResponse[ReviewStatistics])
async def get_review_statistics(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db: Session = Depends(get_db),
    provider: User = Depends(get_review_target_user)
):
    statistics = ReviewService(db).get_statistics(provider, date_from, date_to)
    return ApiResponse(data=statistics)

@router.get("/{review_id}", response_model=ApiResponse[ReviewResponse])
async def get_review(
    review_id: int,
    db: Session = Depends(get_db),
    provider: User = Depends(get_review_target_user)
):
    return ApiResponse(data=ReviewService(db).get_provider_review(provider, review_id))

# Replies

@router.patch("/{review_id}/reply", response_model=ApiResponse[ReviewResponse])
async def set_reply(
    review_id: int,
    reply: ReplyRequest,
    db: Session = Depends(get_db),
    provider: User = Depends(get_review_target_user)
):
    """Create the reply, or overwrite an existing one."""
    review = ReviewService(db).set_reply(provider, review_id, reply.message)
    return ApiResponse(message="Reply saved", data=ReviewResponse.from_review(review))

@router.post("/{review_id}/reply", response_model=ApiResponse[ReviewResponse])
async def add_reply(
    review_id: int,
    reply: ReplyRequest,
    db: Session = Depends(get_db),
    provider: User = Depends(get_review_target_user)
):
    review = ReviewService(db).add_reply(provider, review_id, reply.message)
    return ApiResponse(message="Reply added successfully", data=ReviewResponse.from_review(review))

@router.put("/{review_id}/reply", response_model=ApiResponse[ReviewResponse])
async def update_reply(
    review_id: int,
    reply: ReplyRequest,
    db: Session = Depends(get_db),
    provider: User = Depends(get_review_target_user)
):
    review = ReviewService(db).update_reply(provider, review_id, reply.message)
    return ApiResponse(message="Reply updated successfully", data=ReviewResponse.from_review(review))

@router.delete("/{review_id}/reply", response_model=ApiResponse[ReviewResponse])
async def delete_reply(
    review_id: int,
    db: Session = Depends(get_db),
    provider: User = Depends(get_review_target_user)
):
    review = ReviewService(db).delete_reply(provider, review_id)
    return ApiResponse(message="Reply deleted successfully", data=ReviewResponse.from_review(review))
