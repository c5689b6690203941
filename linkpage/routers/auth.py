from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from linkpage.core.rate_limiter import rate_limit_ip
from linkpage.services.auth_service import AuthService, user_to_dict
from linkpage.services.errors import ServiceError
from linkpage.services.session_service import clear_session_cookie, current_identity, set_session_cookie

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterPayload(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginPayload(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


def _get_auth_service(request: Request) -> AuthService:
    svc = getattr(getattr(request.app, "state", None), "auth_service", None)
    if not svc:
        raise RuntimeError("AuthService not configured")
    return svc


def _error(exc: ServiceError) -> JSONResponse:
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


@router.post("/register")
def register(request: Request, payload: RegisterPayload):
    rate_limit_ip(request, "auth:register", limit=5, window_seconds=300)
    svc = _get_auth_service(request)
    try:
        result = svc.register(payload.name or "", payload.email or "", payload.password or "")
    except ServiceError as exc:
        return _error(exc)
    resp = JSONResponse(result.as_dict(), status_code=201)
    set_session_cookie(resp, request, result.session_token)
    return resp


@router.post("/login")
def login(request: Request, payload: LoginPayload):
    rate_limit_ip(request, "auth:login", limit=10, window_seconds=60)
    svc = _get_auth_service(request)
    try:
        result = svc.login(payload.email or "", payload.password or "")
    except ServiceError as exc:
        return _error(exc)
    resp = JSONResponse(result.as_dict())
    set_session_cookie(resp, request, result.session_token)
    return resp


@router.post("/logout")
def logout(request: Request):
    resp = JSONResponse({"ok": True})
    clear_session_cookie(resp, request)
    return resp


@router.get("/me")
def me(request: Request):
    svc = _get_auth_service(request)
    try:
        user = svc.current_user(current_identity(request))
    except ServiceError as exc:
        return _error(exc)
    return user_to_dict(user)
