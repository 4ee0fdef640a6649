from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from pydantic import BaseModel
import secrets
from enum import Enum

from .config import settings

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# JWT Security; missing credentials are reported by protect() itself
security = HTTPBearer(auto_error=False)

class UserRole(str, Enum):
    ADMIN = "admin"
    PATIENT = "patient"
    DOCTOR = "doctor"
    LABORATORY = "laboratory"
    PHARMACY = "pharmacy"
    NURSE = "nurse"

# Roles whose accounts must be approved by an admin before they may sign in
PROVIDER_ROLES = (UserRole.DOCTOR, UserRole.LABORATORY, UserRole.PHARMACY, UserRole.NURSE)

# Roles a patient may leave a review for
REVIEW_TARGET_ROLES = (UserRole.DOCTOR, UserRole.LABORATORY, UserRole.PHARMACY)

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

class TokenPayload(BaseModel):
    sub: Optional[int] = None
    email: Optional[str] = None
    role: Optional[str] = None
    exp: Optional[int] = None
    token_type: Optional[str] = None

# Passwords
def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def generate_password_reset_token() -> str:
    """Random URL-safe token mailed to users who forgot their password."""
    return secrets.token_urlsafe(32)

# Tokens
def _encode(claims: dict, token_type: str, lifetime: timedelta) -> str:
    payload = dict(claims)
    payload["exp"] = datetime.utcnow() + lifetime
    payload["token_type"] = token_type
    # two tokens issued within the same second must still differ
    payload["jti"] = secrets.token_hex(8)
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def create_access_token(claims: dict, expires_delta: Optional[timedelta] = None) -> str:
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(claims, ACCESS_TOKEN, lifetime)

def create_refresh_token(claims: dict) -> str:
    return _encode(claims, REFRESH_TOKEN, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))

def verify_token(token: str) -> Optional[TokenPayload]:
    """Decode a token; None when the signature or expiry check fails."""
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    return TokenPayload(**claims)

def create_token_pair(user_id: int, email: str, role: UserRole) -> Token:
    """Issue the access/refresh pair handed out at login and refresh."""
    claims = {
        # JWT requires the subject claim to be a string
        "sub": str(user_id),
        "email": email,
        "role": UserRole(role).value,
    }

    return Token(
        access_token=create_access_token(claims),
        refresh_token=create_refresh_token(claims),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    )

# Security exceptions
class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "You do not have access to this resource"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )
