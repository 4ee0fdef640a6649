from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, Boolean, JSON, Table
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base
from .provider import AddressMixin

hospital_doctors = Table(
    "hospital_doctors",
    Base.metadata,
    Column("hospital_id", Integer, ForeignKey("hospitals.id", ondelete="CASCADE"), primary_key=True),
    Column("doctor_id", Integer, ForeignKey("doctors.id", ondelete="CASCADE"), primary_key=True),
)

class Hospital(AddressMixin, Base):
    __tablename__ = "hospitals"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    image = Column(String(255), nullable=True)
    rating = Column(Float, default=0)
    review_count = Column(Integer, default=0)
    specialties = Column(JSON, default=list)

    contact_phone = Column(String(20), nullable=True)
    contact_email = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)

    is_active = Column(Boolean, default=True, index=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    doctors = relationship("Doctor", secondary=hospital_doctors, back_populates="hospitals")

    def __repr__(self):
        return f"<Hospital(id={self.id}, name='{self.name}')>"
