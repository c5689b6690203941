"""Session helpers (issue tokens, cookies, identity resolution)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Request, Response

from linkpage.core.config import Settings, get_settings
from linkpage.core.tokens import extract_bearer_token, sign_token, verify_token

SESSION_COOKIE_NAME = "token"


@dataclass(frozen=True)
class RequesterIdentity:
    """Authenticated caller as seen by the use cases."""

    user_id: int
    email: Optional[str] = None
    is_admin: bool = False


def _settings(request: Request) -> Settings:
    return getattr(getattr(request.app, "state", None), "settings", None) or get_settings()


def issue_session(settings: Settings, *, user_id: int, email: str, is_admin: bool = False) -> str:
    """Create a signed identity token for the given account."""
    payload = {"sub": user_id, "email": email, "is_admin": bool(is_admin)}
    return sign_token(payload, settings.jwt_secret, expires_in=settings.jwt_ttl_seconds)


def identity_from_token(token: str | None, settings: Settings) -> Optional[RequesterIdentity]:
    claims = verify_token(token or "", settings.jwt_secret)
    if not claims:
        return None
    try:
        user_id = int(claims.get("sub") or 0)
    except (TypeError, ValueError):
        return None
    if user_id <= 0:
        return None
    email = claims.get("email")
    return RequesterIdentity(
        user_id=user_id,
        email=str(email) if email else None,
        is_admin=bool(claims.get("is_admin")),
    )


def token_from_request(request: Request) -> Optional[str]:
    """Cookie first, then an Authorization: Bearer header."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        return token
    return extract_bearer_token(request.headers.get("authorization"))


def current_identity(request: Request) -> Optional[RequesterIdentity]:
    """Return the identity carried by the current request, if any."""
    return identity_from_token(token_from_request(request), _settings(request))


def should_use_secure_cookie(request: Request, settings: Settings) -> bool:
    if settings.cookie_secure == "true":
        return True
    if settings.cookie_secure == "false":
        return False
    forwarded_proto = (request.headers.get("x-forwarded-proto") or "").split(",")[0].strip().lower()
    if forwarded_proto:
        return forwarded_proto == "https"
    return request.url.scheme == "https"


def set_session_cookie(response: Response, request: Request, token: str) -> None:
    settings = _settings(request)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        httponly=True,
        secure=should_use_secure_cookie(request, settings),
        samesite="lax",
        max_age=settings.jwt_ttl_seconds,
        path="/",
    )


def clear_session_cookie(response: Response, request: Request) -> None:
    settings = _settings(request)
    response.delete_cookie(
        SESSION_COOKIE_NAME,
        path="/",
        secure=should_use_secure_cookie(request, settings),
        httponly=True,
        samesite="lax",
    )
