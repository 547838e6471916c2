"""Sign-in and account credential endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...models import User
from ...schemas import PasswordChange, SignInRequest, TokenResponse, UserRead, serialize_user
from ...services import auth_service
from ...services.auth_service import AuthRuleViolation
from ..deps import get_current_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/sign-in",
    response_model=TokenResponse,
    summary="Sign in with an institutional account",
    responses={
        401: {"description": "Invalid email or password"},
        403: {"description": "Email outside the institutional domain, or account disabled"},
    },
)
def sign_in(payload: SignInRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """Exchange email and password for a bearer token.

    Example request body::

        {
            "email": "fatima.k@actvet.gov.ae",
            "password": "correct horse battery"
        }
    """

    try:
        user, token = auth_service.sign_in(db, email=payload.email, password=payload.password)
    except AuthRuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return TokenResponse(access_token=token, role=user.role.value)


@router.get("/me", response_model=UserRead, summary="Current account")
def read_me(user: User = Depends(get_current_user)):
    return serialize_user(user)


@router.post(
    "/password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change my password",
    responses={
        400: {"description": "Passwords do not match, or the current password is wrong"},
        422: {"description": "New password too short"},
    },
)
def change_password(
    payload: PasswordChange,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Response:
    """Replace the caller's password.

    Example request body::

        {
            "current_password": "correct horse battery",
            "new_password": "solar-panel-2025",
            "confirm_password": "solar-panel-2025"
        }
    """

    try:
        auth_service.change_password(
            db,
            user,
            current_password=payload.current_password,
            new_password=payload.new_password,
            confirm_password=payload.confirm_password,
        )
        db.commit()
    except AuthRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
