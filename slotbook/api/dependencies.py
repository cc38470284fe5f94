# ============================================================================
# FILE: slotbook/api/dependencies.py
# JWT authentication and business-scope dependencies
# ============================================================================
from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from uuid import UUID

from slotbook.config.database import get_db
from slotbook.config.settings import get_settings
from slotbook.core.exceptions import ForbiddenError
from slotbook.models.user import User, UserRole

# ============================================================================
# Security Schemes
# ============================================================================

jwt_security = HTTPBearer(
    scheme_name="JWT Bearer Token",
    description="Enter your JWT access token"
)


# ============================================================================
# JWT Token Functions
# ============================================================================

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Dictionary with claims (should include 'sub' with user_id)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    settings = get_settings()
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode.update({
        "exp": expire,
        "iat": now,
        "type": "access"
    })

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_access_token(token: str) -> dict:
    """
    Verify and decode a JWT access token.

    Raises:
        HTTPException: If token is invalid or expired
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Could not validate credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload


# ============================================================================
# JWT Authentication Dependencies
# ============================================================================

async def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(jwt_security),
        db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get the current authenticated user from JWT access token.

    Raises:
        HTTPException 401: If token is invalid or user not found
    """
    payload = verify_access_token(credentials.credentials)

    try:
        user_id = UUID(payload.get("sub") or "")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID in token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


async def get_current_active_user(
        current_user: User = Depends(get_current_user)
) -> User:
    """Dependency to ensure the current user is active."""
    if not current_user.is_active:
        raise ForbiddenError("Inactive user account")
    return current_user


# ============================================================================
# Role Dependencies
# ============================================================================

async def require_vendor_or_admin(
        current_user: User = Depends(get_current_active_user)
) -> User:
    """Dashboard routes: vendors manage their own business, admins any business."""
    if current_user.role not in (UserRole.VENDOR, UserRole.ADMIN):
        raise ForbiddenError("Vendor or admin access required")
    return current_user


async def require_customer(
        current_user: User = Depends(get_current_active_user)
) -> User:
    if current_user.role != UserRole.CUSTOMER:
        raise ForbiddenError("Customer account required")
    return current_user


def ensure_business_access(user: User, business_profile_id: UUID) -> None:
    """Admins may act on any business; vendors only on their own."""
    if user.role == UserRole.ADMIN:
        return
    if user.business_profile_id is None or user.business_profile_id != business_profile_id:
        raise ForbiddenError("You do not have access to this business")


async def get_business_scope(
        business_profile_id: Optional[UUID] = Query(
            None, description="Target business (admins only; vendors default to their own)"
        ),
        current_user: User = Depends(require_vendor_or_admin)
) -> UUID:
    """
    Resolve the business a dashboard request acts on.
    Vendors: their own business. Admins: the business_profile_id query parameter.
    """
    if business_profile_id is None:
        if current_user.business_profile_id is None:
            raise ForbiddenError("User not associated with a business; pass business_profile_id")
        business_profile_id = current_user.business_profile_id

    ensure_business_access(current_user, business_profile_id)
    return business_profile_id
