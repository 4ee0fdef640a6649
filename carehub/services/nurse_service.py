from sqlalchemy import or_
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import Optional

from ..core.pagination import get_pagination_params, get_pagination_meta
from ..core.query import parse_float
from ..models import Nurse
from ..models.provider import ApprovalStatus
from ..schemas.provider import NurseSummary, NurseDetail

SEARCH_FIELDS = (
    Nurse.first_name,
    Nurse.last_name,
    Nurse.specialization,
    Nurse.qualification,
    Nurse.city,
    Nurse.state,
)

def _clean(value: Optional[str]) -> Optional[str]:
    """Drop blank values and the literal "undefined" some clients send."""
    if value is None:
        return None
    value = value.strip()
    if not value or value == "undefined":
        return None
    return value

def _contains(column, value: str):
    # LIKE wildcards in user input are matched literally
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")

class NurseService:
    def __init__(self, db: Session):
        self.db = db

    def list_nurses(
        self,
        search: Optional[str] = None,
        specialization: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        min_rating=None,
        page=None,
        limit=None,
    ) -> dict:
        """Approved, active nurses matching the discovery filters."""
        page, limit, skip = get_pagination_params(page, limit)
        min_rating = parse_float(min_rating)

        query = self.db.query(Nurse).filter(
            Nurse.status == ApprovalStatus.APPROVED,
            Nurse.is_active == True,  # noqa: E712
        )

        specialization = _clean(specialization)
        if specialization:
            query = query.filter(_contains(Nurse.specialization, specialization))

        city = _clean(city)
        if city:
            query = query.filter(_contains(Nurse.city, city))

        state = _clean(state)
        if state:
            query = query.filter(_contains(Nurse.state, state))

        if min_rating is not None:
            query = query.filter(Nurse.rating >= min_rating)

        search = _clean(search)
        if search:
            query = query.filter(or_(*(_contains(field, search) for field in SEARCH_FIELDS)))

        total = query.count()
        nurses = query.order_by(
            Nurse.rating.desc(), Nurse.created_at.desc(), Nurse.id.desc()
        ).offset(skip).limit(limit).all()

        return {
            "items": [NurseSummary.model_validate(nurse, from_attributes=True) for nurse in nurses],
            "pagination": get_pagination_meta(total, page, limit),
        }

    def get_nurse(self, nurse_id: int) -> NurseDetail:
        nurse = self.db.get(Nurse, nurse_id)

        if not nurse or nurse.status != ApprovalStatus.APPROVED:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Nurse not found"
            )

        return NurseDetail.model_validate(nurse, from_attributes=True)
