"""
Columns shared by the provider profiles (doctors, laboratories, pharmacies
and nurses): admin approval state and a postal address.
"""
from sqlalchemy import Column, Integer, String, DateTime, Float, Enum as SQLEnum
import enum


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalMixin:
    status = Column(SQLEnum(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False, index=True)
    rejection_reason = Column(String(255), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    approved_by = Column(Integer, nullable=True)  # admin user id

    @property
    def is_approved(self) -> bool:
        return self.status == ApprovalStatus.APPROVED


class AddressMixin:
    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True, index=True)
    state = Column(String(100), nullable=True, index=True)
    postal_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)


class LocationMixin:
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
