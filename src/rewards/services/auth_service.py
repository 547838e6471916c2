"""Sign-in and password changes against the institutional directory."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.errors import RuleViolation
from ..core.security import create_access_token, hash_password, verify_password
from ..models import User
from .directory_service import email_allowed

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class AuthRuleViolation(RuleViolation):
    """Raised when sign-in or a credential change is refused."""


def sign_in(session: Session, *, email: str, password: str) -> tuple[User, str]:
    """Check credentials and return the user with a fresh access token."""

    normalised = email.strip().lower()
    if not email_allowed(normalised):
        raise AuthRuleViolation("Access restricted to validated institutional accounts only.", status_code=403)

    user = session.execute(select(User).where(func.lower(User.email) == normalised)).scalar_one_or_none()
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("failed sign-in for %s", normalised)
        raise AuthRuleViolation("Invalid email or password.", status_code=401)
    if user.status != "Active":
        raise AuthRuleViolation("This account is disabled.", status_code=403)

    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return user, token


def change_password(
    session: Session,
    user: User,
    *,
    current_password: str,
    new_password: str,
    confirm_password: str,
) -> User:
    """Replace the account password after checking the current one."""

    if new_password != confirm_password:
        raise AuthRuleViolation("Passwords do not match.")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise AuthRuleViolation(
            f"Passwords need at least {MIN_PASSWORD_LENGTH} characters.", status_code=422
        )
    if not verify_password(current_password, user.password_hash):
        logger.warning("password change refused for %s: wrong current password", user.email)
        raise AuthRuleViolation("Current password is incorrect.")

    user.password_hash = hash_password(new_password)
    session.flush()
    logger.info("password changed for %s", user.email)
    return user
