"""
Security Module - Authentication & Authorization
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, List
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session, joinedload

from woodflow.core.config import settings
from woodflow.core.database import get_db
from woodflow.models import Membership, User
from woodflow.services.access_service import (
    TenantContext, resolve_context, check_permission, check_any_permission, require_owner_or_admin
)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token scheme
bearer_scheme = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password"""
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT token"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get the current authenticated user from JWT token.
    Supports both Authorization header and cookies.
    """
    token = credentials.credentials if credentials else request.cookies.get("access_token")
    if not token:
        raise _unauthorized("Not authenticated")

    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized("Invalid or expired token")

    subject = payload.get("sub")
    if subject is None:
        raise _unauthorized("Invalid token payload")

    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token payload")

    user = db.query(User).options(
        joinedload(User.memberships).joinedload(Membership.company)
    ).filter(User.id == user_id).first()

    if user is None:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is disabled")

    return user


async def get_tenant_context(current_user: User = Depends(get_current_user)) -> TenantContext:
    """Resolve the caller's active company, role and permissions"""
    return resolve_context(current_user)


class PermissionChecker:
    """Dependency for checking a staff member's module permissions"""

    def __init__(self, required_permissions: List[str]):
        self.required_permissions = list(required_permissions)

    def __call__(self, ctx: TenantContext = Depends(get_tenant_context)):
        for module in self.required_permissions:
            check_permission(ctx, module)
        return ctx


class AnyPermissionChecker:
    """Grants access when at least one of the listed modules is permitted"""

    def __init__(self, permissions: List[str]):
        self.permissions = list(permissions)

    def __call__(self, ctx: TenantContext = Depends(get_tenant_context)):
        check_any_permission(ctx, self.permissions)
        return ctx


class OwnerOrAdmin:
    def __call__(self, ctx: TenantContext = Depends(get_tenant_context)):
        require_owner_or_admin(ctx)
        return ctx
