"""
Authentication and identity related use cases.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from linkpage.core.config import Settings
from linkpage.core.security import hash_password, needs_rehash, verify_password
from linkpage.db.models import User
from linkpage.repositories.sql_repository import SQLRepository, UniqueViolationError
from linkpage.services.errors import (
    AccountExistsError,
    AuthenticationError,
    InternalError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from linkpage.services.session_service import RequesterIdentity, issue_session

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")
PASSWORD_MIN_LENGTH = 6
NAME_MAX_LENGTH = 100


@dataclass
class AuthResult:
    user: User
    session_token: str

    def as_dict(self) -> dict:
        return {**user_to_dict(self.user), "token": self.session_token}


def user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "is_admin": bool(user.is_admin),
    }


class AuthService:
    """Handles registration, login and the current-user lookup."""

    def __init__(self, repository: SQLRepository, settings: Settings) -> None:
        self.repository = repository
        self.settings = settings

    def register(self, name: str, email: str, password: str) -> AuthResult:
        name_value = (name or "").strip()[:NAME_MAX_LENGTH]
        email_value = (email or "").strip().lower()
        password = password or ""
        if not name_value or not email_value or not password:
            raise ValidationError("Fill in all the fields.")
        if not EMAIL_PATTERN.fullmatch(email_value):
            raise ValidationError("Invalid email.")
        if len(password) < PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must have at least {PASSWORD_MIN_LENGTH} characters.")
        try:
            if self.repository.get_user_by_email(email_value):
                raise AccountExistsError()
            user = self.repository.create_user(name_value, email_value, hash_password(password))
        except UniqueViolationError as exc:
            # lost a race against a concurrent registration of the same email
            raise AccountExistsError() from exc
        except SQLAlchemyError as exc:
            logger.exception("[auth] register failed for %s", email_value)
            raise InternalError() from exc
        logger.info("[auth] registered user %s", user.id)
        token = issue_session(self.settings, user_id=user.id, email=user.email, is_admin=user.is_admin)
        return AuthResult(user=user, session_token=token)

    def login(self, email: str, password: str) -> AuthResult:
        email_value = (email or "").strip().lower()
        password = password or ""
        if not email_value or not password:
            raise ValidationError("Fill in all the fields.")
        try:
            user = self.repository.get_user_by_email(email_value)
            if not user or not verify_password(password, user.password_hash):
                raise InvalidCredentialsError()
            if needs_rehash(user.password_hash):
                self.repository.update_user_password(user.id, hash_password(password))
        except SQLAlchemyError as exc:
            logger.exception("[auth] login lookup failed for %s", email_value)
            raise InternalError() from exc
        token = issue_session(self.settings, user_id=user.id, email=user.email, is_admin=user.is_admin)
        return AuthResult(user=user, session_token=token)

    def current_user(self, identity: RequesterIdentity | None) -> User:
        if identity is None:
            raise AuthenticationError()
        try:
            user = self.repository.get_user(identity.user_id)
        except SQLAlchemyError as exc:
            logger.exception("[auth] user lookup failed for %s", identity.user_id)
            raise InternalError() from exc
        if not user:
            raise NotFoundError("User not found.")
        return user
