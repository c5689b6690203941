"""Normalization of the free-form fields stored alongside a page slug."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

TITLE_MAX_LENGTH = 120
DESCRIPTION_MAX_LENGTH = 600
INSTAGRAM_MAX_LENGTH = 255
INSTAGRAM_BASE_URL = "https://instagram.com/"

_HAS_SCHEME = re.compile(r"^https?://", re.IGNORECASE)


@dataclass(frozen=True)
class PageFields:
    title: Optional[str]
    description: Optional[str]
    instagram_url: Optional[str]


def clip_text(value: str | None, max_length: int) -> Optional[str]:
    text = (value or "").strip()[:max_length]
    return text or None


def normalize_instagram(value: str | None) -> Optional[str]:
    """
    Bare handles ("@ana", "ana") become profile URLs; values that already
    carry an http(s) scheme are kept as typed.
    """
    text = (value or "").strip()
    if not text:
        return None
    if _HAS_SCHEME.match(text):
        return text
    handle = text[1:] if text.startswith("@") else text
    return f"{INSTAGRAM_BASE_URL}{handle}"


def normalize_page_fields(
    title: str | None,
    description: str | None,
    instagram_url: str | None,
) -> PageFields:
    return PageFields(
        title=clip_text(title, TITLE_MAX_LENGTH),
        description=clip_text(description, DESCRIPTION_MAX_LENGTH),
        instagram_url=normalize_instagram(instagram_url),
    )
