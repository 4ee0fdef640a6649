from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, Boolean, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base
from .provider import AddressMixin, ApprovalMixin, LocationMixin

class Pharmacy(ApprovalMixin, AddressMixin, LocationMixin, Base):
    __tablename__ = "pharmacies"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    pharmacy_name = Column(String(255), nullable=False)
    owner_name = Column(String(255), nullable=True)
    license_number = Column(String(50), nullable=False, unique=True)
    gst_number = Column(String(50), nullable=True)
    phone_number = Column(String(20), nullable=True)

    delivery_options = Column(JSON, default=list)  # pickup / delivery
    service_radius_km = Column(Float, default=0)
    timings = Column(JSON, default=list)
    profile_image = Column(String(255), nullable=True)

    rating = Column(Float, default=0)
    is_active = Column(Boolean, default=True, index=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="pharmacy")

    @property
    def display_name(self):
        return self.pharmacy_name

    def __repr__(self):
        return f"<Pharmacy(id={self.id}, name='{self.pharmacy_name}')>"
