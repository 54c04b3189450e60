# telofy/core/security.py
from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from telofy.core.config import settings, get_db
from telofy.crud.user import crud_user
from telofy.models.user import User


# =====================================================================
# JWT TOKEN CONFIGURATION
# =====================================================================

security = HTTPBearer()


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# =====================================================================
# TOKEN CREATION
# =====================================================================

def _encode(data: dict, secret_key: str, expires: timedelta, token_type: str) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires
    to_encode.update({"exp": expire, "type": token_type})
    return jwt.encode(to_encode, secret_key, algorithm=settings.ALGORITHM)


def create_access_token(data: dict) -> str:
    """
    Create JWT access token.

    Args:
        data: Dictionary containing user data (typically {"sub": user_id})

    Returns:
        Encoded JWT access token
    """
    return _encode(
        data,
        settings.SECRET_KEY,
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        "access",
    )


def create_refresh_token(data: dict) -> str:
    """Create JWT refresh token, signed with the refresh secret."""
    return _encode(
        data,
        settings.REFRESH_SECRET_KEY,
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        "refresh",
    )


def _reset_key(user: User) -> str:
    # the current hash is part of the key, so a used token dies with the old password
    return f"{settings.RESET_SECRET_KEY}{user.password_hash}"


def create_password_reset_token(user: User) -> str:
    return _encode(
        {"sub": str(user.id)},
        _reset_key(user),
        timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
        "reset",
    )


# =====================================================================
# TOKEN VERIFICATION
# =====================================================================

def verify_token(token: str, secret_key: str, token_type: str = "access") -> str:
    """
    Verify JWT token and return user_id.

    Args:
        token: JWT token string
        secret_key: Secret key for decoding
        token_type: Type of token ("access", "refresh" or "reset")

    Returns:
        User ID from token

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        payload = jwt.decode(token, secret_key, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise _credentials_exception()

    user_id = payload.get("sub")
    if user_id is None:
        raise _credentials_exception()

    if payload.get("type") != token_type:
        raise _credentials_exception(f"Invalid token type. Expected {token_type}")

    return user_id


def verify_access_token(token: str) -> str:
    return verify_token(token, settings.SECRET_KEY, "access")


def verify_refresh_token(token: str) -> str:
    return verify_token(token, settings.REFRESH_SECRET_KEY, "refresh")


def unverified_subject(token: str) -> UUID:
    """Read ``sub`` without checking the signature, to find whose key to verify with."""
    try:
        return UUID(jwt.get_unverified_claims(token).get("sub"))
    except (JWTError, TypeError, ValueError):
        raise _credentials_exception("Invalid reset token")


def verify_password_reset_token(token: str, user: User) -> None:
    verify_token(token, _reset_key(user), "reset")


# =====================================================================
# USER AUTHENTICATION DEPENDENCIES
# =====================================================================

async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user from JWT token.

    Raises:
        HTTPException: If token is invalid or user not found
    """
    user_id = verify_access_token(credentials.credentials)

    try:
        user = crud_user.get(db, id=UUID(user_id))
    except ValueError:
        raise _credentials_exception()

    if user is None:
        raise _credentials_exception("User not found")
    return user
