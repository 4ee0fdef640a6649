"""
Laboratory test bookings.

Bookings move forward through the sample workflow one step at a time and may
be cancelled at any point before they complete.
"""
from sqlalchemy import func
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import datetime
from typing import Optional
import logging

from ..core.pagination import get_pagination_params, get_pagination_meta
from ..models import Laboratory, TestBooking, TestBookingStatus, User
from ..models.provider import ApprovalStatus
from ..schemas.test_booking import TestBookingCreate, TestBookingResponse

logger = logging.getLogger(__name__)

S = TestBookingStatus

ALLOWED_TRANSITIONS = {
    S.ORDERED: {S.SAMPLE_PENDING, S.CANCELLED},
    S.PENDING: {S.SAMPLE_PENDING, S.CANCELLED},
    S.SAMPLE_PENDING: {S.SAMPLE_COLLECTED, S.CANCELLED},
    S.SAMPLE_COLLECTED: {S.IN_PROGRESS, S.CANCELLED},
    S.IN_PROGRESS: {S.COMPLETED, S.CANCELLED},
    S.COMPLETED: set(),
    S.CANCELLED: set(),
}

def can_transition(current: TestBookingStatus, new: TestBookingStatus) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, set())

class TestBookingService:
    __test__ = False

    def __init__(self, db: Session):
        self.db = db

    def create_booking(self, patient_user: User, booking_data: TestBookingCreate) -> TestBooking:
        laboratory = self.db.get(Laboratory, booking_data.laboratory_id)
        if (
            not laboratory
            or laboratory.status != ApprovalStatus.APPROVED
            or not laboratory.is_active
        ):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Laboratory not found"
            )

        tests = [test.model_dump() for test in booking_data.tests]
        booking = TestBooking(
            patient_id=patient_user.patient.id,
            laboratory_id=laboratory.id,
            tests=tests,
            status=TestBookingStatus.ORDERED,
            sample_collection_mode=booking_data.sample_collection_mode,
            scheduled_at=booking_data.scheduled_at,
            total_amount=round(sum(test["price"] for test in tests), 2),
            notes=booking_data.notes,
        )
        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"Test booking {booking.id} created at laboratory {laboratory.id}")
        return booking

    def list_patient_bookings(self, patient_user: User):
        return self.db.query(TestBooking).filter(
            TestBooking.patient_id == patient_user.patient.id
        ).order_by(TestBooking.created_at.desc(), TestBooking.id.desc()).all()

    def list_laboratory_bookings(
        self,
        lab_user: User,
        status_filter: Optional[TestBookingStatus] = None,
        page=None,
        limit=None,
    ) -> dict:
        page, limit, skip = get_pagination_params(page, limit)

        query = self.db.query(TestBooking).filter(
            TestBooking.laboratory_id == lab_user.laboratory.id
        )
        if status_filter:
            query = query.filter(TestBooking.status == status_filter)

        total = query.count()
        bookings = query.order_by(
            TestBooking.created_at.desc(), TestBooking.id.desc()
        ).offset(skip).limit(limit).all()

        return {
            "items": [TestBookingResponse.model_validate(booking) for booking in bookings],
            "pagination": get_pagination_meta(total, page, limit),
        }

    def update_status(
        self,
        lab_user: User,
        booking_id: int,
        new_status: TestBookingStatus,
        results_summary: Optional[str] = None,
    ) -> TestBooking:
        booking = self.db.get(TestBooking, booking_id)
        if not booking or booking.laboratory_id != lab_user.laboratory.id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Test booking not found"
            )

        if not can_transition(booking.status, new_status):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot change status from {booking.status.value} to {new_status.value}"
            )

        booking.status = new_status
        if new_status == TestBookingStatus.SAMPLE_COLLECTED:
            booking.collected_at = datetime.utcnow()
        elif new_status == TestBookingStatus.COMPLETED:
            booking.reported_at = datetime.utcnow()
            if results_summary:
                booking.results_summary = results_summary.strip()

        self.db.commit()
        self.db.refresh(booking)
        return booking

    def cancel_booking(self, patient_user: User, booking_id: int) -> TestBooking:
        booking = self.db.get(TestBooking, booking_id)
        if not booking or booking.patient_id != patient_user.patient.id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Test booking not found"
            )

        if not can_transition(booking.status, TestBookingStatus.CANCELLED):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"A {booking.status.value} booking cannot be cancelled"
            )

        booking.status = TestBookingStatus.CANCELLED
        self.db.commit()
        self.db.refresh(booking)
        return booking

    def status_summary(self, lab_user: User) -> dict:
        """Count the laboratory's bookings by status."""
        rows = self.db.query(TestBooking.status, func.count(TestBooking.id)).filter(
            TestBooking.laboratory_id == lab_user.laboratory.id
        ).group_by(TestBooking.status).all()

        by_status = {booking_status.value: 0 for booking_status in TestBookingStatus}
        for booking_status, count in rows:
            by_status[TestBookingStatus(booking_status).value] = count

        return {"total": sum(by_status.values()), "by_status": by_status}
