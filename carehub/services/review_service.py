"""
Patient reviews of doctors, laboratories and pharmacies, and the providers'
replies to them.

A review targets a provider profile through ``(target_role, target_id)``.
Only the provider a review is about may reply to it.
"""
from sqlalchemy import func, and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from fastapi import HTTPException, status
from datetime import date, datetime, time
from typing import Optional
import logging

from ..core.cache import (
    get_cache, set_cache, generate_cache_key, delete_cache, delete_cache_by_pattern
)
from ..core.pagination import get_pagination_params, get_pagination_meta
from ..core.query import parse_int, parse_bool
from ..core.security import UserRole, REVIEW_TARGET_ROLES
from ..models import Review, User, get_model_for_role
from ..schemas.review import ReviewCreate, ReviewResponse, ReviewStatistics, normalize_target_role

logger = logging.getLogger(__name__)

REVIEW_CACHE_TTL = 300
STATISTICS_CACHE_TTL = 600

def review_cache_key(role, provider_id: int, review_id: int) -> str:
    return generate_cache_key(
        f"{UserRole(role).value}:review",
        {"provider_id": provider_id, "review_id": review_id},
    )

def statistics_cache_key(role, provider_id: int, date_from=None, date_to=None) -> str:
    return generate_cache_key(
        f"{UserRole(role).value}:reviews:statistics:{provider_id}",
        {"from": date_from or "", "to": date_to or ""},
    )

class ReviewService:
    def __init__(self, db: Session):
        self.db = db

    # Patient side

    def create_review(self, patient_user: User, review_data: ReviewCreate) -> Review:
        """Submit a review; a patient may review each target only once."""
        patient = patient_user.patient
        target_model = get_model_for_role(review_data.target_role)

        target = self.db.get(target_model, review_data.target_id)
        if not target:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{review_data.target_role.value} not found"
            )

        existing = self.db.query(Review).filter(
            Review.patient_id == patient.id,
            Review.target_role == review_data.target_role,
            Review.target_id == review_data.target_id,
        ).first()

        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You have already submitted a review for this profile"
            )

        review = Review(
            patient_id=patient.id,
            target_id=review_data.target_id,
            target_role=review_data.target_role,
            rating=review_data.rating,
            comment=review_data.comment,
        )
        self.db.add(review)

        try:
            self.db.commit()
        except IntegrityError:
            # a concurrent submission won the unique constraint
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You have already submitted a review for this profile"
            )

        self.db.refresh(review)
        self._invalidate_statistics(review.target_role, review.target_id)
        logger.info(f"Review {review.id} created for {review.target_role.value}:{review.target_id}")
        return review

    def list_patient_reviews(self, patient_user: User):
        return self.db.query(Review).filter(
            Review.patient_id == patient_user.patient.id
        ).order_by(Review.created_at.desc(), Review.id.desc()).all()

    def list_target_reviews(self, role: str, target_id: int):
        try:
            target_role = normalize_target_role(role)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="role must be one of doctor, laboratory, pharmacy"
            )

        return self.db.query(Review).options(
            joinedload(Review.patient)
        ).filter(
            Review.target_role == target_role,
            Review.target_id == target_id,
        ).order_by(Review.created_at.desc(), Review.id.desc()).all()

    # Provider side

    def _provider_identity(self, provider_user: User):
        if provider_user.role not in REVIEW_TARGET_ROLES or provider_user.profile is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only doctors, laboratories, and pharmacies can access their reviews"
            )
        return provider_user.role, provider_user.profile.id

    def list_provider_reviews(
        self,
        provider_user: User,
        page=None,
        limit=None,
        rating=None,
        has_reply=None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ):
        """Paginated reviews left on the caller's own profile."""
        role, provider_id = self._provider_identity(provider_user)
        page, limit, skip = get_pagination_params(page, limit)
        rating = parse_int(rating)
        has_reply = parse_bool(has_reply)

        query = self.db.query(Review).filter(
            Review.target_role == role,
            Review.target_id == provider_id,
        )

        if rating is not None and 1 <= rating <= 5:
            query = query.filter(Review.rating == rating)

        if has_reply is True:
            query = query.filter(and_(Review.reply_message.isnot(None), Review.reply_message != ""))
        elif has_reply is False:
            query = query.filter(or_(Review.reply_message.is_(None), Review.reply_message == ""))

        query = self._apply_date_range(query, date_from, date_to)

        total = query.count()
        reviews = query.options(joinedload(Review.patient)).order_by(
            Review.created_at.desc(), Review.id.desc()
        ).offset(skip).limit(limit).all()

        return {
            "items": [ReviewResponse.from_review(review) for review in reviews],
            "pagination": get_pagination_meta(total, page, limit),
        }

    def get_provider_review(self, provider_user: User, review_id: int) -> dict:
        role, provider_id = self._provider_identity(provider_user)
        cache_key = review_cache_key(role, provider_id, review_id)

        cached = get_cache(cache_key)
        if cached:
            return cached

        review = self._find_owned_review(role, provider_id, review_id)
        payload = ReviewResponse.from_review(review).model_dump(mode="json")
        set_cache(cache_key, payload, REVIEW_CACHE_TTL)
        return payload

    def get_statistics(
        self,
        provider_user: User,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> dict:
        """Rating aggregates for the caller's profile, cached per date range."""
        role, provider_id = self._provider_identity(provider_user)
        cache_key = statistics_cache_key(
            role, provider_id,
            date_from.isoformat() if date_from else None,
            date_to.isoformat() if date_to else None,
        )

        cached = get_cache(cache_key)
        if cached:
            return cached

        base_filters = [Review.target_role == role, Review.target_id == provider_id]
        query = self._apply_date_range(self.db.query(Review), date_from, date_to).filter(*base_filters)

        total_reviews = query.count()
        average = self._apply_date_range(
            self.db.query(func.avg(Review.rating)), date_from, date_to
        ).filter(*base_filters).scalar() or 0

        distribution = {str(score): 0 for score in range(5, 0, -1)}
        grouped = self._apply_date_range(
            self.db.query(Review.rating, func.count(Review.id)), date_from, date_to
        ).filter(*base_filters).group_by(Review.rating).all()
        for score, count in grouped:
            distribution[str(score)] = count

        with_comments = query.filter(
            and_(Review.comment.isnot(None), Review.comment != "")
        ).count()
        with_replies = query.filter(
            and_(Review.reply_message.isnot(None), Review.reply_message != "")
        ).count()

        statistics = ReviewStatistics(
            total_reviews=total_reviews,
            average_rating=round(float(average), 1),
            rating_distribution=distribution,
            reviews_with_comments=with_comments,
            reviews_with_replies=with_replies,
        ).model_dump()

        # keep the stored provider rating in line with the full history
        if not date_from and not date_to and total_reviews:
            provider_user.profile.rating = round(float(average), 2)
            self.db.commit()

        set_cache(cache_key, statistics, STATISTICS_CACHE_TTL)
        return statistics

    # Replies

    def set_reply(self, provider_user: User, review_id: int, message: str) -> Review:
        """Create or overwrite the reply on a review."""
        review = self._authorize_reply(provider_user, review_id)
        self._write_reply(review, provider_user, message)
        return self._save_reply(review)

    def add_reply(self, provider_user: User, review_id: int, message: str) -> Review:
        review = self._authorize_reply(provider_user, review_id)
        if review.has_reply:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Reply already exists. Use PUT to update the reply."
            )
        self._write_reply(review, provider_user, message)
        return self._save_reply(review)

    def update_reply(self, provider_user: User, review_id: int, message: str) -> Review:
        review = self._authorize_reply(provider_user, review_id)
        if not review.has_reply:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No reply exists to update. Use POST to create a reply."
            )
        review.reply_message = message
        review.replied_at = datetime.utcnow()
        return self._save_reply(review)

    def delete_reply(self, provider_user: User, review_id: int) -> Review:
        review = self._authorize_reply(provider_user, review_id)
        if not review.has_reply:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No reply exists to delete."
            )
        review.clear_reply()
        return self._save_reply(review)

    def _authorize_reply(self, provider_user: User, review_id: int) -> Review:
        review = self.db.get(Review, review_id)
        if not review:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Review not found"
            )

        if provider_user.role != review.target_role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You are not allowed to reply to this review"
            )

        profile = provider_user.profile
        if profile is None or profile.id != review.target_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only reply to reviews left on your profile"
            )

        return review

    def _write_reply(self, review: Review, provider_user: User, message: str):
        review.reply_message = message
        review.replied_by = provider_user.profile.id
        review.replied_by_role = provider_user.role
        review.replied_at = datetime.utcnow()

    def _save_reply(self, review: Review) -> Review:
        self.db.commit()
        self.db.refresh(review)

        delete_cache(review_cache_key(review.target_role, review.target_id, review.id))
        self._invalidate_statistics(review.target_role, review.target_id)
        return review

    # Helpers

    def _find_owned_review(self, role, provider_id: int, review_id: int) -> Review:
        review = self.db.query(Review).options(joinedload(Review.patient)).filter(
            Review.id == review_id,
            Review.target_role == role,
            Review.target_id == provider_id,
        ).first()

        if not review:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Review not found or you do not have access to this review"
            )
        return review

    def _invalidate_statistics(self, role, provider_id: int):
        delete_cache_by_pattern(f"{UserRole(role).value}:reviews:statistics:{provider_id}:*")

    @staticmethod
    def _apply_date_range(query, date_from: Optional[date], date_to: Optional[date]):
        if date_from:
            query = query.filter(Review.created_at >= datetime.combine(date_from, time.min))
        if date_to:
            # inclusive of the whole end day
            query = query.filter(Review.created_at <= datetime.combine(date_to, time.max))
        return query
