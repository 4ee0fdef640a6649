from ..core.security import UserRole
from .user import User, RefreshToken
from .provider import ApprovalStatus
from .patient import Patient
from .doctor import Doctor
from .laboratory import Laboratory
from .pharmacy import Pharmacy
from .nurse import Nurse
from .hospital import Hospital, hospital_doctors
from .review import Review
from .test_booking import TestBooking, TestBookingStatus, SampleCollectionMode

ROLE_MODELS = {
    UserRole.PATIENT: Patient,
    UserRole.DOCTOR: Doctor,
    UserRole.LABORATORY: Laboratory,
    UserRole.PHARMACY: Pharmacy,
    UserRole.NURSE: Nurse,
}

def get_model_for_role(role):
    """Return the profile model for a role name or UserRole."""
    try:
        return ROLE_MODELS[UserRole(role)]
    except (KeyError, ValueError):
        raise ValueError(f"No profile model for role: {role}")

__all__ = [
    "User", "RefreshToken", "ApprovalStatus", "Patient", "Doctor", "Laboratory",
    "Pharmacy", "Nurse", "Hospital", "hospital_doctors", "Review", "TestBooking",
    "TestBookingStatus", "SampleCollectionMode", "ROLE_MODELS", "get_model_for_role",
]
