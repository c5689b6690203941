"""
Page editor state for clients of the API.

Slug verdicts are trusted only for the exact input they were computed for:
each probe remembers the slug it asked about, and a result that comes back
after the input changed is discarded as stale. Submission still goes through
the server's own checks; a probe only saves the user a failed round trip.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from linkpage.client.http import ApiResponse, LinkPageClient
from linkpage.domain.pages import DESCRIPTION_MAX_LENGTH, INSTAGRAM_MAX_LENGTH, TITLE_MAX_LENGTH
from linkpage.domain.slugs import sanitize_slug_input

logger = logging.getLogger(__name__)

DEFAULT_UNAVAILABLE_MESSAGE = "This address is not available. Choose another one."
CHECK_FAILED_MESSAGE = "Could not check the address availability."
WAIT_MESSAGE = "We are still checking the address availability. Wait a moment and try again."
STALE_MESSAGE = "Could not confirm the address availability. Try again."
EMPTY_SLUG_MESSAGE = "Choose an address for your page."
SAVED_MESSAGE = "Page saved."


class SlugCheckStatus(str, Enum):
    IDLE = "idle"
    CHECKING = "checking"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


@dataclass(frozen=True)
class SlugCheck:
    status: SlugCheckStatus = SlugCheckStatus.IDLE
    slug: str = ""
    message: Optional[str] = None


@dataclass(frozen=True)
class AvailabilityOutcome:
    available: bool
    message: Optional[str] = None
    stale: bool = False


@dataclass
class PageForm:
    slug: str = ""
    title: str = ""
    description: str = ""
    instagram_url: str = ""

    @classmethod
    def from_page(cls, page: dict) -> "PageForm":
        return cls(
            slug=page.get("slug") or "",
            title=page.get("title") or "",
            description=page.get("description") or "",
            instagram_url=page.get("instagram_url") or "",
        )


@dataclass(frozen=True)
class SubmitResult:
    ok: bool
    message: Optional[str] = None
    page: Optional[dict] = None
    needs_login: bool = False


@dataclass
class PageBuilder:
    """Form for creating (page_id None) or editing one page."""

    client: LinkPageClient
    form: PageForm = field(default_factory=PageForm)
    page_id: Optional[int] = None
    slug_check: SlugCheck = field(default_factory=SlugCheck)
    saving: bool = False

    async def load(self, slug: str) -> ApiResponse:
        """Fill the form from one of the caller's pages."""
        res = await self.client.get_my_page(slug)
        if res.ok and res.data:
            self.form = PageForm.from_page(res.data)
            self.page_id = res.data.get("id")
            if self.form.slug:
                self.slug_check = SlugCheck(SlugCheckStatus.AVAILABLE, self.form.slug)
        return res

    # ------------------------------- input -------------------------------
    def set_slug(self, value: str) -> None:
        self.form.slug = sanitize_slug_input(value)
        self.slug_check = SlugCheck()

    def set_title(self, value: str) -> None:
        self.form.title = (value or "")[:TITLE_MAX_LENGTH]

    def set_description(self, value: str) -> None:
        self.form.description = (value or "")[:DESCRIPTION_MAX_LENGTH]

    def set_instagram_url(self, value: str) -> None:
        self.form.instagram_url = (value or "")[:INSTAGRAM_MAX_LENGTH]

    async def on_slug_blur(self) -> AvailabilityOutcome:
        return await self.check_slug_availability()

    # ------------------------------- probe -------------------------------
    async def check_slug_availability(self) -> AvailabilityOutcome:
        """Probe the slug currently in the form. The verdict is dropped if the input changes meanwhile."""
        target = self.form.slug.strip()
        if not target:
            self.slug_check = SlugCheck()
            return AvailabilityOutcome(False)

        self.slug_check = SlugCheck(SlugCheckStatus.CHECKING, target)
        res = await self.client.check_slug_availability(target, self.page_id)

        if self.form.slug != target:
            logger.debug("[client] discarding verdict for %r; input is now %r", target, self.form.slug)
            return AvailabilityOutcome(False, stale=True)

        if not res.ok:
            message = res.error or CHECK_FAILED_MESSAGE
            self.slug_check = SlugCheck(SlugCheckStatus.ERROR, target, message)
            return AvailabilityOutcome(False, message)

        verdict = res.data if isinstance(res.data, dict) else {}
        if verdict.get("available"):
            self.slug_check = SlugCheck(SlugCheckStatus.AVAILABLE, target)
            return AvailabilityOutcome(True)

        message = verdict.get("message") or DEFAULT_UNAVAILABLE_MESSAGE
        self.slug_check = SlugCheck(SlugCheckStatus.UNAVAILABLE, target, message)
        return AvailabilityOutcome(False, message)

    # ------------------------------- submit -------------------------------
    async def submit(self) -> SubmitResult:
        if not self.form.slug:
            return SubmitResult(False, EMPTY_SLUG_MESSAGE)

        if self.slug_check.status is SlugCheckStatus.CHECKING:
            return SubmitResult(False, WAIT_MESSAGE)

        if self.slug_check.status is SlugCheckStatus.AVAILABLE and self.slug_check.slug == self.form.slug:
            availability = AvailabilityOutcome(True)
        else:
            availability = await self.check_slug_availability()

        if availability.stale:
            availability = await self.check_slug_availability()
            if availability.stale:
                return SubmitResult(False, STALE_MESSAGE)

        if not availability.available:
            return SubmitResult(False, availability.message or DEFAULT_UNAVAILABLE_MESSAGE)

        payload = {
            "id": self.page_id,
            "slug": self.form.slug,
            "title": self.form.title.strip() or None,
            "description": self.form.description.strip() or None,
            "instagram_url": self.form.instagram_url.strip() or None,
        }
        payload = {key: value for key, value in payload.items() if value is not None}

        self.saving = True
        try:
            res = await self.client.save_page(payload)
        finally:
            self.saving = False

        if not res.ok:
            if res.status_code == 409:
                self.slug_check = SlugCheck(SlugCheckStatus.UNAVAILABLE, payload["slug"], res.error)
            return SubmitResult(False, res.error, needs_login=res.status_code == 401)

        page = res.data
        self.page_id = page.get("id")
        self.form = PageForm.from_page(page)
        self.slug_check = SlugCheck(SlugCheckStatus.AVAILABLE, self.form.slug)
        return SubmitResult(True, SAVED_MESSAGE, page=page)
