# services/user_auth.py
import logging
from typing import Optional, Protocol
from uuid import UUID
from sqlalchemy.orm import Session

from telofy.core.config import settings
from telofy.core.exceptions import ConflictError, NotFoundError, UnauthorizedError
from telofy.core.security import (
    create_access_token,
    create_password_reset_token,
    create_refresh_token,
    unverified_subject,
    verify_password_reset_token,
    verify_refresh_token,
)
from telofy.crud.user import crud_user
from telofy.models.user import User
from telofy.schemas.user import (
    LoginRequest,
    PasswordResetConfirm,
    TokenResponse,
    UserCreate,
    UserOut,
    UserUpdate,
    UserUpdatePassword,
)

logger = logging.getLogger(__name__)


# =====================================================================
# PASSWORD RESET DELIVERY
# =====================================================================


class PasswordResetSender(Protocol):
    def send(self, user: User, reset_link: str) -> None:
        ...


class LoggingPasswordResetSender:
    """Default sender: no mail transport configured, so only log the request."""

    def send(self, user: User, reset_link: str) -> None:
        logger.info("Password reset requested for user %s", user.id)
        logger.debug("Password reset link for %s: %s", user.email, reset_link)


# =====================================================================
# SERVICE CLASS
# =====================================================================


class UserAuthService:
    """Service layer for user registration, login and account management."""

    def __init__(self, reset_sender: Optional[PasswordResetSender] = None):
        self.crud = crud_user
        self.reset_sender = reset_sender or LoggingPasswordResetSender()

    def issue_tokens(self, user: User) -> TokenResponse:
        claims = {"sub": str(user.id)}
        return TokenResponse(
            access_token=create_access_token(data=claims),
            refresh_token=create_refresh_token(data=claims),
            user=UserOut.model_validate(user),
        )

    # =====================================================================
    # REGISTRATION & LOGIN
    # =====================================================================

    def register_user(self, db: Session, user_data: UserCreate) -> User:
        """
        Public user registration.

        Raises:
            ConflictError: If email already exists
        """
        if self.crud.get_by_email(db, email=user_data.email):
            raise ConflictError("Email already registered")

        user = self.crud.create(db, obj_in=user_data, default_timezone=settings.DEFAULT_TIMEZONE)
        db.commit()
        db.refresh(user)
        logger.info("User %s registered", user.id)
        return user

    def authenticate_user(self, db: Session, login_data: LoginRequest) -> User:
        """
        Authenticate user with email and password.

        Raises:
            UnauthorizedError: If credentials are invalid
        """
        user = self.crud.get_by_email(db, email=login_data.email)
        if not user or not self.crud.verify_password(login_data.password, user.password_hash):
            raise UnauthorizedError("Invalid email or password")
        return user

    def refresh(self, db: Session, refresh_token: str) -> TokenResponse:
        user = self.crud.get(db, id=UUID(verify_refresh_token(refresh_token)))
        if user is None:
            raise UnauthorizedError("User not found")
        return self.issue_tokens(user)

    # =====================================================================
    # ACCOUNT MANAGEMENT
    # =====================================================================

    def update_user(self, db: Session, update_data: UserUpdate, requesting_user: User) -> User:
        user = self.crud.update(db, db_obj=requesting_user, obj_in=update_data)
        db.commit()
        db.refresh(user)
        return user

    def update_password(
        self, db: Session, password_data: UserUpdatePassword, requesting_user: User
    ) -> User:
        """
        Change the password (requires the old one).

        Raises:
            UnauthorizedError: If old password is incorrect
        """
        if not self.crud.verify_password(password_data.old_password, requesting_user.password_hash):
            raise UnauthorizedError("Old password is incorrect")

        user = self.crud.set_password(db, db_obj=requesting_user, new_password=password_data.new_password)
        db.commit()
        db.refresh(user)
        return user

    def delete_user(self, db: Session, requesting_user: User) -> None:
        """Hard delete; objectives and everything under them go with the user."""
        user_id = requesting_user.id
        self.crud.delete(db, db_obj=requesting_user)
        db.commit()
        logger.info("User %s deleted", user_id)

    # =====================================================================
    # PASSWORD RESET
    # =====================================================================

    def request_password_reset(self, db: Session, email: str) -> None:
        """Always succeeds from the caller's view so emails cannot be probed."""
        user = self.crud.get_by_email(db, email=email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        token = create_password_reset_token(user)
        self.reset_sender.send(user, f"{settings.PASSWORD_RESET_URL}?token={token}")

    def confirm_password_reset(self, db: Session, reset_data: PasswordResetConfirm) -> User:
        user = self.crud.get(db, id=unverified_subject(reset_data.token))
        if user is None:
            raise NotFoundError("User not found")

        verify_password_reset_token(reset_data.token, user)
        user = self.crud.set_password(db, db_obj=user, new_password=reset_data.new_password)
        db.commit()
        db.refresh(user)
        logger.info("Password reset completed for user %s", user.id)
        return user


# =====================================================================
# SINGLETON INSTANCE
# =====================================================================

user_auth_service = UserAuthService()
