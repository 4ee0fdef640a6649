from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...core.pagination import get_pagination_params
from ...api.deps import (
    get_current_user_token, get_admin_user, rate_limit_check, protect
)
from ...services.auth_service import AuthService
from ...schemas.auth import (
    UserLogin, UserRegister, TokenResponse, UserResponse,
    RefreshTokenRequest, PasswordReset, PasswordResetConfirm,
    ChangePassword, TokenInfo
)
from ...schemas.common import ApiResponse, MessageResponse
from ...models.user import User

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/register", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new account. Providers wait for admin approval before they can sign in."""
    auth_service = AuthService(db)
    user = auth_service.register_user(user_data)

    message = "Registration successful"
    if user.approval_status is not None:
        message = "Registration submitted and awaiting admin approval"

    return ApiResponse(message=message, data=UserResponse.model_validate(user))

@router.post("/login", response_model=ApiResponse[TokenResponse])
async def login(
    login_data: UserLogin,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Authenticate user and return access tokens."""
    auth_service = AuthService(db)
    return ApiResponse(data=auth_service.authenticate_user(login_data))

@router.post("/refresh", response_model=ApiResponse[TokenResponse])
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    db: Session = Depends(get_db)
):
    """Refresh access token using refresh token."""
    auth_service = AuthService(db)
    return ApiResponse(data=auth_service.refresh_access_token(refresh_data.refresh_token))

@router.post("/logout", response_model=MessageResponse)
async def logout(
    refresh_data: RefreshTokenRequest,
    db: Session = Depends(get_db)
):
    """Logout user by revoking refresh token."""
    auth_service = AuthService(db)
    success = auth_service.logout_user(refresh_data.refresh_token)

    return MessageResponse(message="Successfully logged out" if success else "Logout completed")

@router.get("/me", response_model=ApiResponse[UserResponse])
async def get_current_user_info(
    current_user: User = Depends(protect())
):
    """Get current user information."""
    return ApiResponse(data=UserResponse.model_validate(current_user))

@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    password_data: ChangePassword,
    current_user: User = Depends(protect()),
    db: Session = Depends(get_db)
):
    AuthService(db).change_password(
        current_user, password_data.current_password, password_data.new_password
    )
    return MessageResponse(message="Password changed successfully")

@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    reset_data: PasswordReset,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Request password reset."""
    auth_service = AuthService(db)
    auth_service.request_password_reset(reset_data.email)

    return MessageResponse(message="If the email exists, a password reset link has been sent")

@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    reset_data: PasswordResetConfirm,
    db: Session = Depends(get_db)
):
    """Reset password using reset token."""
    auth_service = AuthService(db)
    auth_service.reset_password(reset_data)

    return MessageResponse(message="Password reset successfully")

@router.post("/verify-token", response_model=ApiResponse[TokenInfo])
async def verify_token_endpoint(
    token_payload = Depends(get_current_user_token)
):
    """Verify if token is valid."""
    return ApiResponse(data=TokenInfo(
        valid=True,
        user_id=token_payload.sub,
        email=token_payload.email,
        role=token_payload.role,
        expires=token_payload.exp
    ))

# Admin routes
@router.get("/users", response_model=ApiResponse[List[UserResponse]])
async def list_users(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user)
):
    """List all users (admin only)."""
    page, limit, skip = get_pagination_params(page, limit)
    users = db.query(User).order_by(User.id).offset(skip).limit(limit).all()
    return ApiResponse(data=[UserResponse.model_validate(user) for user in users])

@router.patch("/users/{user_id}/status", response_model=ApiResponse[UserResponse])
async def update_user_status(
    user_id: int,
    is_active: bool,
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user)
):
    """Update user active status (admin only)."""
    user = AuthService(db).set_user_active(user_id, is_active)

    return ApiResponse(
        message=f"User {'activated' if is_active else 'deactivated'} successfully",
        data=UserResponse.model_validate(user)
    )
