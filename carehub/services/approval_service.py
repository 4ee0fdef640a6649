from sqlalchemy.orm import Session, joinedload
from fastapi import HTTPException, status
from datetime import datetime
from typing import Dict, List, Optional
import logging

from ..core.security import UserRole, PROVIDER_ROLES
from ..models import User, get_model_for_role
from ..models.provider import ApprovalStatus
from ..schemas.provider import ProviderRecord

logger = logging.getLogger(__name__)

def _approvable_role(role: str) -> UserRole:
    try:
        parsed = UserRole(str(role).lower())
    except ValueError:
        parsed = None
    if parsed not in PROVIDER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported role for approval workflow"
        )
    return parsed

def _approval_status(value: str) -> ApprovalStatus:
    try:
        return ApprovalStatus(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="status must be one of pending, approved, rejected"
        )

class ApprovalService:
    """Admin review of provider registrations."""

    def __init__(self, db: Session):
        self.db = db

    def list_requests(self, role: Optional[str] = None, status_value: str = "pending") -> Dict[str, List[ProviderRecord]]:
        approval_status = _approval_status(status_value)
        roles = [_approvable_role(role)] if role else list(PROVIDER_ROLES)

        results = {}
        for item_role in roles:
            model = get_model_for_role(item_role)
            records = self.db.query(model).options(joinedload(model.user)).filter(
                model.status == approval_status
            ).order_by(model.created_at.desc(), model.id.desc()).all()
            results[item_role.value] = [
                ProviderRecord.from_profile(item_role.value, record) for record in records
            ]
        return results

    def approve(self, admin: User, role: str, record_id: int):
        provider_role = _approvable_role(role)
        record = self._get_record(provider_role, record_id)

        if record.is_approved:
            return ProviderRecord.from_profile(provider_role.value, record), "Request already approved."

        record.status = ApprovalStatus.APPROVED
        record.rejection_reason = None
        record.approved_at = datetime.utcnow()
        record.approved_by = admin.id
        self.db.commit()
        self.db.refresh(record)

        logger.info(f"Admin {admin.id} approved {provider_role.value} {record.id}")
        return (
            ProviderRecord.from_profile(provider_role.value, record),
            f"{provider_role.value} registration approved successfully.",
        )

    def reject(self, admin: User, role: str, record_id: int, reason: Optional[str] = None):
        provider_role = _approvable_role(role)
        record = self._get_record(provider_role, record_id)
        reason = (reason or "").strip() or "Not specified"

        if record.status == ApprovalStatus.REJECTED and record.rejection_reason == reason:
            return (
                ProviderRecord.from_profile(provider_role.value, record),
                "Request already rejected with same reason.",
            )

        record.status = ApprovalStatus.REJECTED
        record.rejection_reason = reason
        record.approved_at = None
        record.approved_by = admin.id
        self.db.commit()
        self.db.refresh(record)

        logger.info(f"Admin {admin.id} rejected {provider_role.value} {record.id}: {reason}")
        return (
            ProviderRecord.from_profile(provider_role.value, record),
            f"{provider_role.value} registration rejected successfully.",
        )

    def _get_record(self, role: UserRole, record_id: int):
        record = self.db.get(get_model_for_role(role), record_id)
        if not record:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{role.value} registration not found"
            )
        return record
