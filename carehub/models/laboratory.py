from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, Boolean, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base
from .provider import AddressMixin, ApprovalMixin, LocationMixin

class Laboratory(ApprovalMixin, AddressMixin, LocationMixin, Base):
    __tablename__ = "laboratories"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    lab_name = Column(String(255), nullable=False)
    owner_name = Column(String(255), nullable=True)
    license_number = Column(String(50), nullable=False, unique=True)
    phone_number = Column(String(20), nullable=True)

    services_offered = Column(JSON, default=list)
    # [{"test_name": ..., "price": ..., "description": ...}]
    tests_offered = Column(JSON, default=list)
    timings = Column(JSON, default=list)
    profile_image = Column(String(255), nullable=True)

    rating = Column(Float, default=0)
    is_active = Column(Boolean, default=True, index=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="laboratory")
    test_bookings = relationship("TestBooking", back_populates="laboratory")

    @property
    def display_name(self):
        return self.lab_name

    def __repr__(self):
        return f"<Laboratory(id={self.id}, name='{self.lab_name}')>"
