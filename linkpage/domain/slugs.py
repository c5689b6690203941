"""Domain helpers for slug canonicalization and validation."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 40
SLUG_PATTERN = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)*")
RESERVED_SLUGS = frozenset(
    {
        "login",
        "register",
        "app",
        "api",
        "auth",
    }
)

SLUG_REQUIRED_MESSAGE = "Provide a valid address."
SLUG_LENGTH_MESSAGE = f"The address must be between {SLUG_MIN_LENGTH} and {SLUG_MAX_LENGTH} characters."
SLUG_RESERVED_MESSAGE = "This address is reserved. Choose another one."
SLUG_IN_USE_MESSAGE = "This address is already in use. Choose another one."

_INVALID_RUN = re.compile(r"[^a-z0-9-]+")
_HYPHEN_RUN = re.compile(r"-{2,}")


def sanitize_slug(value: str | None) -> str:
    """
    Canonical form of arbitrary user input: lower-case ASCII letters, digits
    and single inner hyphens. Returns "" when nothing usable is left.
    """
    text = (value or "").lower().strip()
    text = _INVALID_RUN.sub("-", text)
    text = _HYPHEN_RUN.sub("-", text)
    return text.strip("-")


def sanitize_slug_input(value: str | None) -> str:
    """Shape a slug while it is being typed. Not authoritative."""
    return sanitize_slug(value)[:SLUG_MAX_LENGTH].rstrip("-")


def classify_slug(slug: str) -> Optional[str]:
    """Return the rejection message for a canonical slug, or None if eligible."""
    if not slug:
        return SLUG_REQUIRED_MESSAGE
    if len(slug) < SLUG_MIN_LENGTH or len(slug) > SLUG_MAX_LENGTH:
        return SLUG_LENGTH_MESSAGE
    if slug in RESERVED_SLUGS:
        return SLUG_RESERVED_MESSAGE
    return None


@dataclass(frozen=True)
class SlugCheck:
    slug: str
    error: Optional[str] = None

    @property
    def eligible(self) -> bool:
        return self.error is None


def check_slug(value: str | None) -> SlugCheck:
    slug = sanitize_slug(value)
    return SlugCheck(slug=slug, error=classify_slug(slug))


def is_valid_slug(value: str | None) -> bool:
    """Return True when value is already canonical and not reserved."""
    if not value:
        return False
    return bool(SLUG_PATTERN.fullmatch(value)) and classify_slug(value) is None
