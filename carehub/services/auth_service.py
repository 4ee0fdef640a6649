from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import datetime, timedelta
import hashlib
import logging

from ..core.config import settings
from ..models import User, RefreshToken, Patient, Doctor, Laboratory, Pharmacy, Nurse
from ..models.provider import ApprovalStatus
from ..core.security import (
    verify_password, get_password_hash, create_token_pair,
    verify_token, UserRole, PROVIDER_ROLES, REFRESH_TOKEN, generate_password_reset_token
)
from ..schemas.auth import (
    UserLogin, UserRegister, TokenResponse, UserResponse, PasswordResetConfirm
)

logger = logging.getLogger(__name__)

def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()

class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def register_user(self, user_data: UserRegister) -> User:
        """Register a new user together with the profile for its role."""
        existing_user = self.db.query(User).filter(
            User.email == user_data.email
        ).first()

        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        if user_data.license_number:
            self._ensure_license_available(user_data.role, user_data.license_number)

        new_user = User(
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            role=user_data.role,
            is_active=True,
            is_verified=False  # Require email verification
        )
        self.db.add(new_user)
        self.db.flush()

        self.db.add(self._build_profile(new_user, user_data))
        self.db.commit()
        self.db.refresh(new_user)

        if new_user.role in PROVIDER_ROLES:
            logger.info(f"New {new_user.role.value} registration awaiting approval: {new_user.email}")

        return new_user

    def _ensure_license_available(self, role: UserRole, license_number: str):
        model = {
            UserRole.DOCTOR: Doctor,
            UserRole.LABORATORY: Laboratory,
            UserRole.PHARMACY: Pharmacy,
        }.get(role)
        if model is None:
            return
        if self.db.query(model).filter(model.license_number == license_number).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="License number already registered"
            )

    def _build_profile(self, user: User, data: UserRegister):
        address = {"city": data.city, "state": data.state}
        location = {"latitude": data.latitude, "longitude": data.longitude}

        if user.role == UserRole.PATIENT:
            return Patient(
                user_id=user.id,
                first_name=data.first_name,
                last_name=data.last_name,
                gender=data.gender,
                phone_number=data.phone_number,
                **address,
            )
        if user.role == UserRole.DOCTOR:
            return Doctor(
                user_id=user.id,
                first_name=data.first_name,
                last_name=data.last_name,
                gender=data.gender,
                specialization=data.specialization,
                license_number=data.license_number,
                qualification=data.qualification,
                experience_years=data.experience_years,
                phone_number=data.phone_number,
                status=ApprovalStatus.PENDING,
                **address,
                **location,
            )
        if user.role == UserRole.LABORATORY:
            return Laboratory(
                user_id=user.id,
                lab_name=data.lab_name,
                owner_name=data.owner_name,
                license_number=data.license_number,
                phone_number=data.phone_number,
                status=ApprovalStatus.PENDING,
                **address,
                **location,
            )
        if user.role == UserRole.PHARMACY:
            return Pharmacy(
                user_id=user.id,
                pharmacy_name=data.pharmacy_name,
                owner_name=data.owner_name,
                license_number=data.license_number,
                phone_number=data.phone_number,
                status=ApprovalStatus.PENDING,
                **address,
                **location,
            )
        return Nurse(
            user_id=user.id,
            first_name=data.first_name,
            last_name=data.last_name,
            gender=data.gender,
            specialization=data.specialization,
            qualification=data.qualification,
            experience_years=data.experience_years,
            phone_number=data.phone_number,
            status=ApprovalStatus.PENDING,
            **address,
        )

    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        """Authenticate user and return tokens."""
        user = self.db.query(User).filter(
            User.email == login_data.email
        ).first()

        if not user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )

        # Check account lockout
        if user.locked_until and user.locked_until > datetime.utcnow():
            raise HTTPException(
                status_code=status.HTTP_423_LOCKED,
                detail="Account is temporarily locked"
            )

        if not verify_password(login_data.password, user.password_hash):
            self._handle_failed_login(user)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is inactive"
            )

        # Providers may only sign in once an admin approved them
        if user.role in PROVIDER_ROLES and user.approval_status != ApprovalStatus.APPROVED:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is not approved yet"
            )

        # Reset failed login attempts
        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_login = datetime.utcnow()

        tokens = create_token_pair(user.id, user.email, user.role)
        self._store_refresh_token(user.id, tokens.refresh_token)

        self.db.commit()
        self.db.refresh(user)

        return TokenResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
            expires_in=tokens.expires_in,
            user=UserResponse.model_validate(user)
        )

    def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """Refresh access token using refresh token."""
        token_payload = verify_token(refresh_token)
        if not token_payload or token_payload.token_type != REFRESH_TOKEN:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid refresh token"
            )

        stored_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == _hash_token(refresh_token),
            RefreshToken.is_revoked == False,  # noqa: E712
            RefreshToken.expires_at > datetime.utcnow()
        ).first()

        if not stored_token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired refresh token"
            )

        user = self.db.query(User).filter(
            User.id == token_payload.sub
        ).first()

        if not user or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found or inactive"
            )

        new_tokens = create_token_pair(user.id, user.email, user.role)

        # Revoke old refresh token and store new one
        stored_token.is_revoked = True
        self._store_refresh_token(user.id, new_tokens.refresh_token)

        self.db.commit()

        return TokenResponse(
            access_token=new_tokens.access_token,
            refresh_token=new_tokens.refresh_token,
            token_type=new_tokens.token_type,
            expires_in=new_tokens.expires_in,
            user=UserResponse.model_validate(user)
        )

    def logout_user(self, refresh_token: str) -> bool:
        """Logout user by revoking refresh token. Returns False for unknown tokens."""
        stored_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == _hash_token(refresh_token)
        ).first()

        if not stored_token:
            return False

        stored_token.is_revoked = True
        self.db.commit()
        return True

    def change_password(self, user: User, current_password: str, new_password: str):
        if not verify_password(current_password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Current password is incorrect"
            )

        user.password_hash = get_password_hash(new_password)
        self.db.commit()

    def request_password_reset(self, email: str) -> bool:
        """Generate password reset token."""
        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            # Don't reveal if email exists
            return True

        user.password_reset_token = generate_password_reset_token()
        user.password_reset_expires = datetime.utcnow() + timedelta(
            minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES
        )

        self.db.commit()

        # TODO: deliver the reset token by email once SMTP settings are wired in
        logger.info(f"Password reset requested for user {user.id}")
        return True

    def reset_password(self, reset_data: PasswordResetConfirm) -> bool:
        """Reset password using reset token."""
        user = self.db.query(User).filter(
            User.password_reset_token == reset_data.token,
            User.password_reset_expires > datetime.utcnow()
        ).first()

        if not user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid or expired reset token"
            )

        user.password_hash = get_password_hash(reset_data.new_password)
        user.password_reset_token = None
        user.password_reset_expires = None
        user.failed_login_attempts = 0
        user.locked_until = None

        # Revoke all refresh tokens
        self.db.query(RefreshToken).filter(
            RefreshToken.user_id == user.id
        ).update({"is_revoked": True})

        self.db.commit()
        return True

    def set_user_active(self, user_id: int, is_active: bool) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )

        user.is_active = is_active
        self.db.commit()
        self.db.refresh(user)
        return user

    def _handle_failed_login(self, user: User):
        """Count a failed attempt and lock the account past the threshold."""
        user.failed_login_attempts = (user.failed_login_attempts or 0) + 1

        if user.failed_login_attempts >= settings.MAX_FAILED_LOGIN_ATTEMPTS:
            user.locked_until = datetime.utcnow() + timedelta(
                minutes=settings.ACCOUNT_LOCKOUT_MINUTES
            )
            logger.warning(f"Account {user.id} locked after {user.failed_login_attempts} failed logins")

        self.db.commit()

    def _store_refresh_token(self, user_id: int, refresh_token: str):
        """Store refresh token in database."""
        token_payload = verify_token(refresh_token)
        expires_at = datetime.utcfromtimestamp(token_payload.exp) if token_payload and token_payload.exp else datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

        # One live refresh token per user
        self.db.query(RefreshToken).filter(
            RefreshToken.user_id == user_id
        ).update({"is_revoked": True})

        self.db.add(RefreshToken(
            user_id=user_id,
            token_hash=_hash_token(refresh_token),
            expires_at=expires_at
        ))
