"""
REST HTTP client for the Firebase Auth and Realtime Database endpoints.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx

from bearboo.errors import BearBooError

USER_AGENT = "bearboo/0.1.0"


class HttpClient:
    """Thin wrapper over httpx.AsyncClient.

    ``token`` is sent as the ``auth`` query parameter (Realtime Database
    convention); ``params`` are added to every request (e.g. the Auth API key).
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        params: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._params = dict(params or {})
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    def _query(self, authenticated: bool, extra: Optional[dict[str, str]] = None) -> dict[str, str]:
        query = dict(self._params)
        if authenticated and self._token:
            query["auth"] = self._token
        if extra:
            query.update(extra)
        return query

    @staticmethod
    def _raise_for_status(resp: httpx.Response) -> None:
        if resp.status_code < 400:
            return
        try:
            body: Any = resp.json()
        except ValueError:
            body = resp.text[:200]
        raise BearBooError(
            "http_error",
            f"HTTP {resp.status_code}: {resp.text[:200]}",
            details={"status": resp.status_code, "body": body},
        )

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[dict[str, str]] = None,
        authenticated: bool = True,
    ) -> Any:
        resp = await self._client.request(
            method, path,
            json=body,
            params=self._query(authenticated, params),
        )
        self._raise_for_status(resp)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            raise BearBooError(
                "http_error",
                f"HTTP {resp.status_code}: response is not JSON: {resp.text[:200]}",
                details={"status": resp.status_code, "body": resp.text[:200]},
            )

    async def get(self, path: str, params: Optional[dict[str, str]] = None, authenticated: bool = True) -> Any:
        return await self.request("GET", path, params=params, authenticated=authenticated)

    async def post(self, path: str, body: Any = None, authenticated: bool = True) -> Any:
        return await self.request("POST", path, body, authenticated=authenticated)

    async def put(self, path: str, body: Any = None, authenticated: bool = True) -> Any:
        return await self.request("PUT", path, body, authenticated=authenticated)

    async def patch(self, path: str, body: Any = None, authenticated: bool = True) -> Any:
        return await self.request("PATCH", path, body, authenticated=authenticated)

    async def delete(self, path: str, authenticated: bool = True) -> Any:
        return await self.request("DELETE", path, authenticated=authenticated)

    @asynccontextmanager
    async def stream_lines(self, path: str, authenticated: bool = True) -> AsyncIterator[AsyncIterator[str]]:
        """Open a server-sent-events stream and yield its line iterator."""
        async with self._client.stream(
            "GET", path,
            params=self._query(authenticated),
            headers={"Accept": "text/event-stream"},
            timeout=httpx.Timeout(30.0, read=None),
        ) as resp:
            if resp.status_code >= 400:
                await resp.aread()
                self._raise_for_status(resp)
            yield resp.aiter_lines()

    async def close(self) -> None:
        await self._client.aclose()
