"""Python client for the LinkPage API (HTTP wrapper + page editor state)."""

from .http import ApiResponse, LinkPageClient
from .page_builder import PageBuilder, SlugCheckStatus

__all__ = ["ApiResponse", "LinkPageClient", "PageBuilder", "SlugCheckStatus"]
