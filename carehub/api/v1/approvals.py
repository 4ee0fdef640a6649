from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
from typing import Dict, List, Optional

from ...core.database import get_db
from ...api.deps import get_admin_user
from ...services.approval_service import ApprovalService
from ...schemas.common import ApiResponse
from ...schemas.provider import ProviderRecord, RejectRequest
from ...models.user import User

router = APIRouter(prefix="/admin/approvals", tags=["Admin approvals"])

@router.get("", response_model=ApiResponse[Dict[str, List[ProviderRecord]]])
async def list_approval_requests(
    role: Optional[str] = None,
    status: str = "pending",
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user)
):
    """Provider registrations grouped by role."""
    return ApiResponse(data=ApprovalService(db).list_requests(role, status))

@router.patch("/{role}/{record_id}/approve", response_model=ApiResponse[ProviderRecord])
async def approve_request(
    role: str,
    record_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user)
):
    record, message = ApprovalService(db).approve(admin, role, record_id)
    return ApiResponse(message=message, data=record)

@router.patch("/{role}/{record_id}/reject", response_model=ApiResponse[ProviderRecord])
async def reject_request(
    role: str,
    record_id: int,
    rejection: Optional[RejectRequest] = Body(default=None),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user)
):
    reason = rejection.reason if rejection else None
    record, message = ApprovalService(db).reject(admin, role, record_id, reason)
    return ApiResponse(message=message, data=record)
