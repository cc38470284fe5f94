# ============================================================================
# FILE: slotbook/api/v1/public/auth.py
# Public authentication endpoints - login and current user
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr
from typing import Optional
import logging

from slotbook.api.dependencies import get_db, get_current_active_user, create_access_token
from slotbook.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


# ============================================================================
# Pydantic Schemas
# ============================================================================

class LoginRequest(BaseModel):
    """Request body for login."""
    email: EmailStr
    password: str

    class Config:
        json_schema_extra = {
            "example": {
                "email": "vendor@example.com",
                "password": "SecurePass123!"
            }
        }


class TokenResponse(BaseModel):
    """Response with an access token."""
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str
    role: str
    business_profile_id: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    role: str
    business_profile_id: Optional[str] = None
    is_active: bool


# ============================================================================
# Endpoints
# ============================================================================

@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for a bearer token."""
    user = db.query(User).filter(User.email == request.email.lower()).first()

    if not user or not user.verify_password(request.password):
        logger.warning(f"Failed login attempt for {request.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")

    access_token = create_access_token({"sub": str(user.id), "role": user.role.value})

    return TokenResponse(
        access_token=access_token,
        user_id=str(user.id),
        email=user.email,
        role=user.role.value,
        business_profile_id=str(user.business_profile_id) if user.business_profile_id else None,
    )


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_active_user)):
    """The authenticated user's profile."""
    return UserResponse(
        id=str(current_user.id),
        email=current_user.email,
        full_name=current_user.full_name,
        role=current_user.role.value,
        business_profile_id=str(current_user.business_profile_id) if current_user.business_profile_id else None,
        is_active=current_user.is_active,
    )
