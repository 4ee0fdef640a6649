from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, Boolean, Text, JSON, Enum as SQLEnum, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class TestBookingStatus(str, enum.Enum):
    __test__ = False

    ORDERED = "ordered"
    PENDING = "pending"
    SAMPLE_PENDING = "sample_pending"
    SAMPLE_COLLECTED = "sample_collected"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class SampleCollectionMode(str, enum.Enum):
    HOME_VISIT = "home_visit"
    IN_LAB = "in_lab"

class TestBooking(Base):
    __test__ = False

    __tablename__ = "test_bookings"
    __table_args__ = (
        Index("ix_test_bookings_lab_status_created", "laboratory_id", "status", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    laboratory_id = Column(Integer, ForeignKey("laboratories.id"), nullable=False, index=True)

    # [{"name": ..., "code": ..., "price": ...}]
    tests = Column(JSON, nullable=False, default=list)
    status = Column(SQLEnum(TestBookingStatus), default=TestBookingStatus.ORDERED, nullable=False, index=True)

    sample_collection_mode = Column(SQLEnum(SampleCollectionMode), default=SampleCollectionMode.IN_LAB)
    scheduled_at = Column(DateTime, nullable=True)
    collected_at = Column(DateTime, nullable=True)

    results_summary = Column(Text, nullable=True)
    reported_at = Column(DateTime, nullable=True)

    total_amount = Column(Float, default=0)
    currency = Column(String(3), default="INR")
    paid = Column(Boolean, default=False)
    notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    patient = relationship("Patient", back_populates="test_bookings")
    laboratory = relationship("Laboratory", back_populates="test_bookings")

    def __repr__(self):
        return f"<TestBooking(id={self.id}, laboratory_id={self.laboratory_id}, status='{self.status}')>"
