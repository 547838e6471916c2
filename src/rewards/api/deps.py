"""Shared FastAPI dependencies: authentication, role checks, the assessment registry."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..assessment import AssessmentRegistry
from ..core.database import get_db
from ..core.security import decode_access_token
from ..models import User, UserRole

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active account."""

    if credentials is None:
        raise _unauthorized("Not authenticated")
    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise _unauthorized("Invalid or expired token")
    try:
        user_id = UUID(payload["sub"])
    except ValueError as exc:
        raise _unauthorized("Invalid or expired token") from exc

    user = db.get(User, user_id)
    if user is None or user.status != "Active":
        raise _unauthorized("Account not found or disabled")
    return user


def require_roles(*roles: UserRole):
    """Dependency factory that ensures the caller holds one of ``roles``."""

    def role_checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
        return user

    return role_checker


def get_registry(request: Request) -> AssessmentRegistry:
    return request.app.state.assessment_registry
