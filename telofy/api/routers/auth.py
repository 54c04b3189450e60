# =====================================================================
# ROUTER - telofy/api/routers/auth.py
# =====================================================================

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from telofy.core.config import get_db
from telofy.core.security import get_current_user
from telofy.services.user_auth import user_auth_service
from telofy.models.user import User
from telofy.schemas.user import (
    LoginRequest,
    TokenResponse,
    RefreshTokenRequest,
    PasswordResetRequest,
    PasswordResetConfirm,
    UserCreate,
    UserOut,
    UserUpdate,
    UserUpdatePassword,
    SuccessResponse,
)

router = APIRouter(prefix="/auth", tags=["User Authentication"])


# =====================================================================
# PUBLIC ENDPOINTS - No authentication required
# =====================================================================

@router.post(
    "/register",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user account"
)
def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    Register a new user account.

    - **name**: Display name
    - **email**: Valid email address
    - **password**: Min 8 characters with upper, lower and a digit
    - **timezone**: IANA zone, used to bucket ritual periods (optional)
    """
    return user_auth_service.register_user(db=db, user_data=user_data)


@router.post("/login", response_model=TokenResponse, summary="Login to get access token")
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate and receive access and refresh tokens."""
    user = user_auth_service.authenticate_user(db, login_data)
    return user_auth_service.issue_tokens(user)


@router.post("/refresh", response_model=TokenResponse, summary="Refresh access token")
def refresh_token(refresh_data: RefreshTokenRequest, db: Session = Depends(get_db)):
    return user_auth_service.refresh(db, refresh_data.refresh_token)


@router.post(
    "/password-reset/request",
    response_model=SuccessResponse,
    summary="Request a password reset link"
)
def request_password_reset(reset_data: PasswordResetRequest, db: Session = Depends(get_db)):
    """
    Always answers with success, whether or not the email is registered.
    """
    user_auth_service.request_password_reset(db, email=reset_data.email)
    return SuccessResponse(message="If the email is registered, a reset link has been sent")


@router.post(
    "/password-reset/confirm",
    response_model=SuccessResponse,
    summary="Set a new password with a reset token"
)
def confirm_password_reset(reset_data: PasswordResetConfirm, db: Session = Depends(get_db)):
    user_auth_service.confirm_password_reset(db, reset_data)
    return SuccessResponse(message="Password reset successfully")


# =====================================================================
# USER ENDPOINTS - Authentication required
# =====================================================================

@router.get("/me", response_model=UserOut, summary="Get current user profile")
def get_current_user_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/me", response_model=UserOut, summary="Update current user profile")
def update_current_user_profile(
    update_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update profile fields. All fields are optional.

    - **timezone**: Must be a valid IANA zone name
    """
    return user_auth_service.update_user(
        db=db, update_data=update_data, requesting_user=current_user
    )


@router.put("/me/password", response_model=SuccessResponse, summary="Change current user password")
def change_password(
    password_data: UserUpdatePassword,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    user_auth_service.update_password(
        db=db, password_data=password_data, requesting_user=current_user
    )
    return SuccessResponse(message="Password updated successfully")


@router.delete("/me", response_model=SuccessResponse, summary="Delete current user account")
def delete_current_user_account(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Permanently delete the account together with every objective under it.
    """
    user_auth_service.delete_user(db=db, requesting_user=current_user)
    return SuccessResponse(message="Account deleted successfully")
