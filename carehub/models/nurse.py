from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, Boolean, Text, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base
from .provider import AddressMixin, ApprovalMixin

class Nurse(ApprovalMixin, AddressMixin, Base):
    __tablename__ = "nurses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    gender = Column(String(20), nullable=True)
    phone_number = Column(String(20), nullable=True)
    specialization = Column(String(100), nullable=True, index=True)
    qualification = Column(String(255), nullable=True)
    experience_years = Column(Integer, nullable=True)
    fees = Column(Float, nullable=True)
    bio = Column(Text, nullable=True)
    profile_image = Column(String(255), nullable=True)
    # [{"day": "monday", "start_time": "09:00", "end_time": "17:00"}]
    availability = Column(JSON, default=list)

    rating = Column(Float, default=0)
    is_active = Column(Boolean, default=True, index=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="nurse")

    @property
    def display_name(self):
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<Nurse(id={self.id}, name='{self.first_name} {self.last_name}')>"
