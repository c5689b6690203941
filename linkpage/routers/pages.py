from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from linkpage.services.errors import ServiceError
from linkpage.services.page_service import PageService, page_to_dict
from linkpage.services.session_service import current_identity

router = APIRouter(prefix="/api/pages", tags=["pages"])


class PagePayload(BaseModel):
    id: Optional[int] = None
    slug: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    instagram_url: Optional[str] = None


def _get_page_service(request: Request) -> PageService:
    svc = getattr(getattr(request.app, "state", None), "page_service", None)
    if not svc:
        raise RuntimeError("PageService not configured")
    return svc


def _error(exc: ServiceError) -> JSONResponse:
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


def _parse_page_id(raw: str | None) -> Optional[int]:
    try:
        return int((raw or "").strip())
    except ValueError:
        return None


@router.get("/availability")
def slug_availability(request: Request, slug: str = "", page_id: str = Query("", alias="pageId")):
    """Advisory verdict; bad slug shapes still answer 200 with available=false."""
    svc = _get_page_service(request)
    try:
        verdict = svc.check_availability(slug, current_identity(request), _parse_page_id(page_id))
    except ServiceError as exc:
        return _error(exc)
    return verdict.as_dict()


@router.post("")
def save_page(request: Request, payload: PagePayload):
    svc = _get_page_service(request)
    try:
        page, created = svc.save_page(
            current_identity(request),
            page_id=payload.id or None,
            slug=payload.slug,
            title=payload.title,
            description=payload.description,
            instagram_url=payload.instagram_url,
        )
    except ServiceError as exc:
        return _error(exc)
    return JSONResponse(page_to_dict(page), status_code=201 if created else 200)


@router.get("")
def public_page(request: Request, slug: str = ""):
    svc = _get_page_service(request)
    try:
        page = svc.get_public_page(slug)
    except ServiceError as exc:
        return _error(exc)
    return page_to_dict(page, include_id=False)


@router.get("/me")
def my_pages(request: Request, slug: str = ""):
    svc = _get_page_service(request)
    identity = current_identity(request)
    try:
        if slug:
            page = svc.get_owned_page(identity, slug)
            return page_to_dict(page) if page else None
        pages = svc.list_pages(identity)
    except ServiceError as exc:
        return _error(exc)
    return [page_to_dict(page, include_updated_at=True) for page in pages]
