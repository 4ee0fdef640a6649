from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime
import re

from ..core.security import UserRole
from ..models.provider import ApprovalStatus

# Fields each role must supply to build its profile at registration
REQUIRED_PROFILE_FIELDS = {
    UserRole.PATIENT: ("first_name", "last_name"),
    UserRole.NURSE: ("first_name", "last_name"),
    UserRole.DOCTOR: ("first_name", "last_name", "specialization", "license_number"),
    UserRole.LABORATORY: ("lab_name", "license_number"),
    UserRole.PHARMACY: ("pharmacy_name", "license_number"),
}

def _check_password_strength(password: str) -> str:
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain an uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain a lowercase letter")
    if not re.search(r"\d", password):
        raise ValueError("Password must contain a digit")
    return password

class UserRegister(BaseModel):
    email: EmailStr
    password: str
    role: UserRole = UserRole.PATIENT

    # Person profiles (patient, doctor, nurse)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[str] = None
    specialization: Optional[str] = None
    qualification: Optional[str] = None
    experience_years: Optional[int] = Field(default=None, ge=0)

    # Organisation profiles (laboratory, pharmacy)
    lab_name: Optional[str] = None
    pharmacy_name: Optional[str] = None
    owner_name: Optional[str] = None

    license_number: Optional[str] = None
    phone_number: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value):
        return _check_password_strength(value)

    @model_validator(mode="after")
    def validate_profile_fields(self):
        if self.role == UserRole.ADMIN:
            raise ValueError("Admin accounts cannot be self-registered")
        missing = [
            name for name in REQUIRED_PROFILE_FIELDS[self.role]
            if not (getattr(self, name) or "").strip()
        ]
        if missing:
            raise ValueError(f"Missing required fields for {self.role.value}: {', '.join(missing)}")
        return self

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: EmailStr
    role: UserRole
    is_active: bool
    is_verified: bool
    approval_status: Optional[ApprovalStatus] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse

class RefreshTokenRequest(BaseModel):
    refresh_token: str

class PasswordReset(BaseModel):
    email: EmailStr

class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, value):
        return _check_password_strength(value)

class ChangePassword(BaseModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, value):
        return _check_password_strength(value)

class TokenInfo(BaseModel):
    valid: bool
    user_id: Optional[int] = None
    email: Optional[str] = None
    role: Optional[str] = None
    expires: Optional[int] = None
