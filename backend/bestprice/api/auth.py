"""
Authentication API endpoints

- POST /api/auth/login - Email + password, returns a bearer token
- GET  /api/auth/me    - Current user from the token
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr
from passlib.context import CryptContext

from bestprice.core.auth import TokenUser, get_current_user, create_access_token
from bestprice.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["Authentication"])

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

user_repository = UserRepository()


# =============================================================================
# Pydantic Models
# =============================================================================

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    company_slug: Optional[str] = None


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest):
    user = user_repository.find_by_email(payload.email)

    if not user or not user.get("password_hash") or not pwd_context.verify(payload.password, user["password_hash"]):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    if not user.get("is_active", True):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled"
        )

    user_repository.touch_login(user["id"])
    logger.info(f"User {user['id']} logged in")

    return LoginResponse(
        access_token=create_access_token(user),
        role=user.get("role", "user"),
        company_slug=user.get("company_slug"),
    )


@router.get("/me")
async def get_me(user: TokenUser = Depends(get_current_user)):
    return {
        "status": "success",
        "data": {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "role": user.role,
            "company_id": user.company_id,
            "company_slug": user.company_slug,
        }
    }
