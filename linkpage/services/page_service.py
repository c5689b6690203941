"""
Page use cases: slug availability probe and page upsert.

The probe is advisory. It reads the current owner of a slug without any
locking, so its verdict can be stale by the time the client submits. The
upsert repeats every check right before writing, and the unique constraint
on profile_pages.slug is the final authority: a violation at write time is
reported as the same conflict the pre-check would have raised.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

from linkpage.db.models import ProfilePage
from linkpage.domain.pages import INSTAGRAM_MAX_LENGTH, normalize_page_fields
from linkpage.domain.slugs import SLUG_IN_USE_MESSAGE, check_slug, sanitize_slug
from linkpage.repositories.sql_repository import SQLRepository, UniqueViolationError
from linkpage.services.errors import (
    AuthenticationError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from linkpage.services.session_service import RequesterIdentity

logger = logging.getLogger(__name__)

PAGE_NOT_FOUND_MESSAGE = "Page not found."


@dataclass(frozen=True)
class Availability:
    """Verdict of a probe. Only true at the instant it was computed."""

    available: bool
    message: Optional[str] = None

    def as_dict(self) -> dict:
        body: dict = {"available": self.available}
        if self.message:
            body["message"] = self.message
        return body


def page_to_dict(page: ProfilePage, *, include_id: bool = True, include_updated_at: bool = False) -> dict:
    data = {
        "slug": page.slug,
        "title": page.title,
        "description": page.description,
        "instagram_url": page.instagram_url,
    }
    if include_id:
        data = {"id": page.id, **data}
    if include_updated_at:
        data["updated_at"] = page.updated_at.isoformat() if page.updated_at else None
    return data


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("[pages] %s failed", action)
        raise InternalError() from exc


class PageService:
    """Slug availability checks and page create/update for authenticated owners."""

    def __init__(self, repository: SQLRepository) -> None:
        self.repository = repository

    # ------------------------------- probe -------------------------------
    def check_availability(
        self,
        slug_input: str | None,
        identity: RequesterIdentity | None,
        page_id: int | None = None,
    ) -> Availability:
        if identity is None:
            raise AuthenticationError()
        candidate = check_slug(slug_input)
        if not candidate.eligible:
            return Availability(False, candidate.error)

        with _storage_errors("availability probe"):
            owner = self.repository.find_slug_owner(candidate.slug)
        if owner is None:
            return Availability(True)
        if owner.user_id == identity.user_id:
            return Availability(True)
        if page_id is not None and owner.page_id == page_id:
            # the id names a page the requester does not own; it proves nothing
            logger.warning(
                "[pages] probe for %r by user %s cited foreign page %s",
                candidate.slug,
                identity.user_id,
                page_id,
            )
        return Availability(False, SLUG_IN_USE_MESSAGE)

    # ------------------------------- upsert -------------------------------
    def save_page(
        self,
        identity: RequesterIdentity | None,
        *,
        page_id: int | None = None,
        slug: str | None = None,
        title: str | None = None,
        description: str | None = None,
        instagram_url: str | None = None,
    ) -> tuple[ProfilePage, bool]:
        """
        Create (no page_id) or update (page_id) a page owned by identity.

        Returns (page, created). Every rejection happens before the write.
        """
        if identity is None:
            raise AuthenticationError()
        candidate = check_slug(slug)
        if not candidate.eligible:
            raise ValidationError(candidate.error)
        fields = normalize_page_fields(title, description, instagram_url)
        if fields.instagram_url and len(fields.instagram_url) > INSTAGRAM_MAX_LENGTH:
            raise ValidationError("The Instagram link is too long.")

        with _storage_errors("page upsert"):
            if page_id is not None and not self.repository.get_page_for_owner(page_id, identity.user_id):
                raise NotFoundError(PAGE_NOT_FOUND_MESSAGE)

            owner = self.repository.find_slug_owner(candidate.slug)
            taken_by_other = (
                owner is not None
                and owner.user_id != identity.user_id
                and owner.page_id != page_id
            )
            if taken_by_other:
                raise ConflictError(SLUG_IN_USE_MESSAGE)

            try:
                if page_id is not None:
                    page = self.repository.update_page(
                        page_id,
                        identity.user_id,
                        candidate.slug,
                        title=fields.title,
                        description=fields.description,
                        instagram_url=fields.instagram_url,
                    )
                    if page is None:
                        raise NotFoundError(PAGE_NOT_FOUND_MESSAGE)
                else:
                    page = self.repository.insert_page(
                        identity.user_id,
                        candidate.slug,
                        title=fields.title,
                        description=fields.description,
                        instagram_url=fields.instagram_url,
                    )
            except UniqueViolationError as exc:
                logger.info("[pages] slug %r claimed concurrently; rejecting write", candidate.slug)
                raise ConflictError(SLUG_IN_USE_MESSAGE) from exc

        created = page_id is None
        logger.info(
            "[pages] %s page %s slug=%r by user %s",
            "created" if created else "updated",
            page.id,
            page.slug,
            identity.user_id,
        )
        return page, created

    # ------------------------------- reads -------------------------------
    def get_public_page(self, slug: str | None) -> ProfilePage:
        slug_value = sanitize_slug(slug)
        if not slug_value:
            raise ValidationError("Provide the page slug.")
        with _storage_errors("public page lookup"):
            page = self.repository.get_page_by_slug(slug_value)
        if not page:
            raise NotFoundError(PAGE_NOT_FOUND_MESSAGE)
        return page

    def list_pages(self, identity: RequesterIdentity | None) -> list[ProfilePage]:
        if identity is None:
            raise AuthenticationError()
        with _storage_errors("page listing"):
            return self.repository.list_pages_by_owner(identity.user_id)

    def get_owned_page(self, identity: RequesterIdentity | None, slug: str | None) -> Optional[ProfilePage]:
        if identity is None:
            raise AuthenticationError()
        slug_value = sanitize_slug(slug)
        if not slug_value:
            return None
        with _storage_errors("owned page lookup"):
            return self.repository.get_owned_page_by_slug(identity.user_id, slug_value)
