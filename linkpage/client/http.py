"""Async HTTP client for the LinkPage API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import httpx

DEFAULT_TIMEOUT = 8.0


@dataclass(frozen=True)
class ApiResponse:
    """Outcome of one call: data on success, a displayable error otherwise."""

    ok: bool
    data: Any = None
    error: Optional[str] = None
    status_code: Optional[int] = None


class LinkPageClient:
    """
    Thin wrapper over httpx.AsyncClient.

    Never raises for HTTP or transport failures: a timeout or connection
    problem comes back as ApiResponse(ok=False) with status_code None, so
    callers cannot mistake it for a conflict. Nothing is retried.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token = token
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "LinkPageClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, *, json: Any = None, params: dict | None = None) -> ApiResponse:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            res = await self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.TimeoutException:
            return ApiResponse(ok=False, error="The server took too long to answer. Try again.")
        except httpx.HTTPError as exc:
            return ApiResponse(ok=False, error=f"Network error: {exc}")
        try:
            body = res.json()
        except ValueError:
            body = None
        if res.is_error:
            error = body.get("error") if isinstance(body, dict) else None
            return ApiResponse(ok=False, error=error or f"HTTP {res.status_code}", status_code=res.status_code)
        return ApiResponse(ok=True, data=body, status_code=res.status_code)

    # ------------------------------- auth -------------------------------
    async def register(self, name: str, email: str, password: str) -> ApiResponse:
        res = await self._request("POST", "/api/auth/register", json={"name": name, "email": email, "password": password})
        if res.ok and isinstance(res.data, dict):
            self.token = res.data.get("token") or self.token
        return res

    async def login(self, email: str, password: str) -> ApiResponse:
        res = await self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        if res.ok and isinstance(res.data, dict):
            self.token = res.data.get("token") or self.token
        return res

    async def logout(self) -> ApiResponse:
        res = await self._request("POST", "/api/auth/logout")
        self.token = None
        return res

    async def me(self) -> ApiResponse:
        return await self._request("GET", "/api/auth/me")

    # ------------------------------- pages -------------------------------
    async def check_slug_availability(self, slug: str, page_id: int | None = None) -> ApiResponse:
        params: dict = {"slug": slug}
        if page_id is not None:
            params["pageId"] = page_id
        return await self._request("GET", "/api/pages/availability", params=params)

    async def save_page(self, payload: dict) -> ApiResponse:
        return await self._request("POST", "/api/pages", json=payload)

    async def get_my_pages(self) -> ApiResponse:
        return await self._request("GET", "/api/pages/me")

    async def get_my_page(self, slug: str) -> ApiResponse:
        return await self._request("GET", "/api/pages/me", params={"slug": slug})

    async def get_public_page(self, slug: str) -> ApiResponse:
        return await self._request("GET", "/api/pages", params={"slug": slug})
