from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.security import (
    security, verify_token, AuthenticationError,
    AuthorizationError, UserRole, TokenPayload, PROVIDER_ROLES, ACCESS_TOKEN
)
from ..models.user import User

async def get_current_user_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication token missing")

    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    if token_payload.token_type != ACCESS_TOKEN:
        raise AuthenticationError("Invalid token type")

    return token_payload

async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from database."""
    if not token_payload.sub:
        raise AuthenticationError("Invalid token payload")

    user = db.query(User).filter(User.id == token_payload.sub).first()
    if not user:
        raise AuthenticationError("Account not found")

    if not user.is_active:
        raise AuthorizationError("Account is inactive")

    return user

def ensure_account_usable(user: User) -> None:
    """Reject providers an admin has not approved and accounts missing a profile."""
    profile = user.profile
    if user.role in PROVIDER_ROLES:
        if profile is None or not profile.is_approved:
            raise AuthorizationError("Account is not approved yet")
    elif user.role == UserRole.PATIENT and profile is None:
        raise AuthorizationError("Patient profile not found")

    if profile is not None and getattr(profile, "is_active", True) is False:
        raise AuthorizationError("Account is inactive")

# Role-based access control
def protect(*allowed_roles: UserRole):
    """
    Create a dependency that authenticates the bearer token and, when roles
    are given, requires the caller to hold one of them.
    """
    async def role_checker(
        current_user: User = Depends(get_current_user)
    ) -> User:
        if allowed_roles and current_user.role not in allowed_roles:
            raise AuthorizationError("You do not have access to this resource")

        ensure_account_usable(current_user)
        return current_user

    return role_checker

get_admin_user = protect(UserRole.ADMIN)
get_patient_user = protect(UserRole.PATIENT)

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Basic rate limiting for authentication endpoints."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{request.url.path}:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, settings.RATE_LIMIT_WINDOW_SECONDS, 1)
        return

    if int(current_requests) >= settings.RATE_LIMIT_MAX_REQUESTS:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please try again later."
        )
    redis_client.incr(key)
