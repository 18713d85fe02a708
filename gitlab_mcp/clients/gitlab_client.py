# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""HTTP client for the GitLab REST API (v4).

One ``httpx.AsyncClient`` is shared by every tool handler. Paths are
relative to ``<GITLAB_API_URL>/api/v4/`` and must already carry
percent-encoded identifiers. Non-2xx answers raise ``UpstreamApiError``;
requests that never got an answer raise ``UpstreamUnavailableError``.
There is no retry.
"""

import time
from typing import Any, Literal

import httpx
import structlog

from ..config.settings import Settings
from ..errors import UpstreamApiError, UpstreamUnavailableError
from ..middleware.metrics import record_upstream_request

logger = structlog.get_logger(__name__)

ContentType = Literal["json", "form"]
QueryParams = dict[str, str | list[str]]


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _error_detail(response: httpx.Response) -> str | None:
    """Extract GitLab's error explanation from a failed response.

    GitLab reports errors as ``message`` (a string or a field -> messages
    mapping), ``error`` or ``errors``.
    """
    try:
        payload = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:500] or None

    if not isinstance(payload, dict):
        return None

    parts: list[str] = []
    message = payload.get("message")
    if isinstance(message, str):
        parts.append(message)
    elif isinstance(message, dict):
        for key, value in message.items():
            if isinstance(value, list):
                parts.append(f"{key}: {', '.join(str(v) for v in value)}")
            else:
                parts.append(f"{key}: {value}")
    if isinstance(payload.get("error"), str):
        parts.append(payload["error"])
    if isinstance(payload.get("errors"), list):
        parts.append(", ".join(str(e) for e in payload["errors"]))
    return "; ".join(parts) or None


class GitLabClient:
    """Async client for GitLab API v4.

    Example usage:
        client = GitLabClient("https://gitlab.com/api/v4", token="glpat-...")
        project = await client.get("projects/42")
        await client.aclose()
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 30.0,
        verify: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            base_url: API base URL, including /api/v4
            token: Personal or OAuth access token (sent as a Bearer token)
            timeout: Request timeout in seconds
            verify: Verify TLS certificates
            transport: Custom transport (tests use httpx.MockTransport)
        """
        if not base_url:
            raise ValueError("base_url must be configured")

        self.base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/",
            headers=headers,
            timeout=httpx.Timeout(timeout),
            verify=verify,
            transport=transport,
            follow_redirects=True,
        )
        logger.info("GitLab client initialized", base_url=self.base_url, authenticated=bool(token))

    @classmethod
    def from_settings(cls, settings: Settings) -> "GitLabClient":
        """Build a client from application settings."""
        return cls(
            base_url=settings.gitlab_api_base,
            token=settings.gitlab_token,
            timeout=settings.gitlab_timeout_seconds,
            verify=not settings.skip_tls_verify,
        )

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    # =========================================================================
    # Transport
    # =========================================================================

    async def _send(
        self,
        method: str,
        path: str,
        query: QueryParams | None = None,
        body: dict[str, Any] | None = None,
        content_type: ContentType = "json",
    ) -> httpx.Response:
        """Send one request and record its outcome.

        Raises:
            UpstreamUnavailableError: no response was received
        """
        kwargs: dict[str, Any] = {}
        if query:
            kwargs["params"] = query
        if body is not None:
            if content_type == "form":
                kwargs["data"] = {key: _form_value(value) for key, value in body.items()}
            else:
                kwargs["json"] = body

        start_time = time.time()
        try:
            response = await self._client.request(method, path.lstrip("/"), **kwargs)
        except httpx.RequestError as e:
            record_upstream_request(method, "error", time.time() - start_time)
            logger.error("GitLab request failed", method=method, path=path, error=str(e))
            raise UpstreamUnavailableError(str(e) or type(e).__name__, method=method, path=path) from e

        duration = time.time() - start_time
        record_upstream_request(method, response.status_code, duration)
        logger.debug(
            "GitLab request",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_ms=int(duration * 1000),
        )
        return response

    def _raise_for_status(self, response: httpx.Response, method: str, path: str) -> None:
        if response.is_success:
            return
        detail = _error_detail(response)
        logger.warning(
            "GitLab API error",
            method=method,
            path=path,
            status_code=response.status_code,
            detail=detail,
        )
        raise UpstreamApiError(
            status=response.status_code,
            status_text=response.reason_phrase,
            detail=detail,
            method=method,
            path=path,
        )

    @staticmethod
    def _parse(response: httpx.Response) -> Any:
        """Decode a successful response. Empty bodies decode to None."""
        if response.status_code == 204 or not response.content:
            return None
        if "json" in response.headers.get("content-type", ""):
            return response.json()
        return response.text

    async def request(
        self,
        method: str,
        path: str,
        query: QueryParams | None = None,
        body: dict[str, Any] | None = None,
        content_type: ContentType = "json",
    ) -> Any:
        """Send a request and return the decoded body.

        Raises:
            UpstreamApiError: non-2xx response
            UpstreamUnavailableError: no response was received
        """
        response = await self._send(method, path, query=query, body=body, content_type=content_type)
        self._raise_for_status(response, method, path)
        return self._parse(response)

    # =========================================================================
    # Verbs
    # =========================================================================

    async def get(self, path: str, query: QueryParams | None = None) -> Any:
        return await self.request("GET", path, query=query)

    async def post(
        self,
        path: str,
        query: QueryParams | None = None,
        body: dict[str, Any] | None = None,
        content_type: ContentType = "json",
    ) -> Any:
        return await self.request("POST", path, query=query, body=body, content_type=content_type)

    async def put(
        self,
        path: str,
        query: QueryParams | None = None,
        body: dict[str, Any] | None = None,
        content_type: ContentType = "json",
    ) -> Any:
        return await self.request("PUT", path, query=query, body=body, content_type=content_type)

    async def delete(self, path: str, query: QueryParams | None = None) -> Any:
        return await self.request("DELETE", path, query=query)

    async def get_text(self, path: str, query: QueryParams | None = None) -> str:
        """GET a plain-text resource such as a job trace."""
        response = await self._send("GET", path, query=query)
        self._raise_for_status(response, "GET", path)
        return response.text

    async def probe(self, path: str) -> tuple[int, Any]:
        """GET a resource without raising on HTTP errors.

        Returns:
            (status_code, decoded body or None when the status is not 2xx)

        Raises:
            UpstreamUnavailableError: no response was received
        """
        response = await self._send("GET", path)
        if not response.is_success:
            return response.status_code, None
        return response.status_code, self._parse(response)
