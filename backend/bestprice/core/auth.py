"""
Authentication dependencies for the BestPrice backend
Issues and validates HS256 JWTs and provides user / organization context
"""
from typing import Optional
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel

from bestprice.core.config import settings


# Security scheme for bearer tokens
security = HTTPBearer(auto_error=False)

# Role hierarchy: platform admin > org admin > user > viewer
ROLE_HIERARCHY = {
    "admin": 4,
    "org_admin": 3,
    "user": 2,
    "viewer": 1
}

TOKEN_TTL_HOURS = 12


class TokenUser(BaseModel):
    """User data extracted from JWT token"""
    id: str
    email: str
    name: Optional[str] = None
    role: str = "user"
    company_id: Optional[int] = None
    company_slug: Optional[str] = None

    @property
    def is_platform_admin(self) -> bool:
        return self.role == "admin"


class AuthConfig:
    """Authentication configuration"""

    @staticmethod
    def get_auth_secret() -> str:
        """Get the AUTH_SECRET from settings"""
        secret = settings.AUTH_SECRET
        if not secret:
            raise ValueError("AUTH_SECRET environment variable is not set")
        return secret

    @staticmethod
    def get_jwt_algorithm() -> str:
        return "HS256"


def create_access_token(user: dict, expires_in: timedelta = None) -> str:
    """
    Issue a JWT for a user row.

    Payload:
    {
        "sub": "12",
        "email": "owner@example.com",
        "name": "Store Owner",
        "role": "org_admin",
        "company_id": 3,
        "company_slug": "demo-gun-shop",
        "iat": 1234567890,
        "exp": 1234567890
    }
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user["id"]),
        "email": user["email"],
        "name": user.get("name"),
        "role": user.get("role", "user"),
        "company_id": user.get("company_id"),
        "company_slug": user.get("company_slug"),
        "iat": int(now.timestamp()),
        "exp": int((now + (expires_in or timedelta(hours=TOKEN_TTL_HOURS))).timestamp()),
    }
    return jwt.encode(payload, AuthConfig.get_auth_secret(), algorithm=AuthConfig.get_jwt_algorithm())


def decode_access_token(token: str) -> dict:
    """Decode and validate a JWT, raising 401 on any failure."""
    try:
        return jwt.decode(
            token,
            AuthConfig.get_auth_secret(),
            algorithms=[AuthConfig.get_jwt_algorithm()],
            options={"verify_aud": False}
        )
    except JWTError as e:
        if "expired" in str(e).lower():
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"}
            )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"}
        )


def _user_from_payload(payload: dict) -> Optional[TokenUser]:
    user_id = payload.get("id") or payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        return None

    return TokenUser(
        id=str(user_id),
        email=email,
        name=payload.get("name"),
        role=payload.get("role", "user"),
        company_id=payload.get("company_id"),
        company_slug=payload.get("company_slug")
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenUser:
    """
    Dependency that extracts and validates the current user from JWT.

    Usage:
        @router.get("/protected")
        async def protected_route(user: TokenUser = Depends(get_current_user)):
            return {"message": f"Hello {user.email}"}
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"}
        )

    user = _user_from_payload(decode_access_token(credentials.credentials))
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload: missing user id or email",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return user


def require_role(required_role: str):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.delete("/stores/{store_id}")
        async def delete_store(user: TokenUser = Depends(require_role("org_admin"))):
            ...
    """
    async def role_checker(
        user: TokenUser = Depends(get_current_user)
    ) -> TokenUser:
        user_level = ROLE_HIERARCHY.get(user.role, 0)
        required_level = ROLE_HIERARCHY.get(required_role, 0)

        if user_level < required_level:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {required_role}, your role: {user.role}"
            )

        return user

    return role_checker


# Convenience dependencies for common role requirements
require_admin = require_role("admin")
require_org_admin = require_role("org_admin")


async def require_org_member(
    slug: str,
    user: TokenUser = Depends(get_current_user)
) -> TokenUser:
    """
    Org routes (/org/{slug}/api/...) are limited to members of that
    organization. Platform admins can act on any organization.
    """
    if user.is_platform_admin:
        return user

    if not user.company_slug or user.company_slug != slug:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this organization"
        )
    return user


async def require_org_manager(
    user: TokenUser = Depends(require_org_member)
) -> TokenUser:
    """Org member with org_admin role (or platform admin)."""
    if ROLE_HIERARCHY.get(user.role, 0) < ROLE_HIERARCHY["org_admin"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied. Required role: org_admin, your role: {user.role}"
        )
    return user
