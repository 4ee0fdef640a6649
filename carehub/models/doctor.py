from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, Text, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base
from .provider import AddressMixin, ApprovalMixin, LocationMixin

class Doctor(ApprovalMixin, AddressMixin, LocationMixin, Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # Personal information
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    gender = Column(String(20), nullable=True)
    specialization = Column(String(100), nullable=False, index=True)
    license_number = Column(String(50), nullable=False, unique=True)

    # Professional information
    experience_years = Column(Integer, nullable=True)
    qualification = Column(String(255), nullable=True)
    languages = Column(JSON, default=list)
    bio = Column(Text, nullable=True)
    consultation_fee = Column(Float, nullable=True)
    profile_image = Column(String(255), nullable=True)

    # Clinic; address and coordinates come from the mixins
    clinic_name = Column(String(255), nullable=True)
    phone_number = Column(String(20), nullable=True)

    rating = Column(Float, default=0)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="doctor")
    hospitals = relationship("Hospital", secondary="hospital_doctors", back_populates="doctors")

    @property
    def display_name(self):
        return f"Dr. {self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<Doctor(id={self.id}, name='{self.first_name} {self.last_name}', specialization='{self.specialization}')>"
