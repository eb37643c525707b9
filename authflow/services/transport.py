"""
HTTP Transport.

``httpx``-backed implementation of the ``Transport`` protocol.  One POST
per call; the JSON response body is returned on 2xx, every other outcome
raises ``TransportError``:

- HTTP error status  -> ``TransportError`` with ``response`` (status + body)
- network / timeout  -> ``TransportError`` with ``response=None``

Timeouts belong to this layer (``REQUEST_TIMEOUT_S``); the controller
core never retries.
"""

from __future__ import annotations

from typing import Mapping, Optional

import httpx

from authflow.errors import TransportError, TransportResponse
from authflow.logger import StructuredLogger


def _decode_body(response: httpx.Response) -> dict[str, object]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {"data": body}


class HttpTransport:
    """Async JSON POST client for the identity service.

    Parameters
    ----------
    base_url:
        Origin of the identity service (``https://cms.example.com``).
    logger:
        Structured logger for request failures.
    timeout:
        Per-request timeout in seconds.
    headers:
        Extra headers sent with every request.
    client:
        Pre-built ``httpx.AsyncClient`` (tests inject one backed by
        ``httpx.MockTransport``).  When omitted, a client is created
        lazily and closed by :meth:`aclose`.
    """

    def __init__(
        self,
        base_url: str,
        logger: StructuredLogger,
        timeout: float = 30.0,
        headers: Optional[Mapping[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._headers: dict[str, str] = dict(headers or {})
        self._logger: StructuredLogger = logger
        self._client: Optional[httpx.AsyncClient] = client
        self._owns_client: bool = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-initialize HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers,
                timeout=self.timeout,
            )
        return self._client

    async def post(self, url: str, json: Mapping[str, object]) -> Mapping[str, object]:
        try:
            response = await self.client.post(url, json=dict(json))
        except httpx.HTTPError as exc:
            self._logger.warning(
                "No response from %s: %s", url, exc,
                extra={"event": "TRANSPORT_NO_RESPONSE"},
            )
            raise TransportError(f"No response from {url}: {exc}") from exc

        if response.is_error:
            self._logger.info(
                "POST %s failed with HTTP %d", url, response.status_code,
                extra={"event": "TRANSPORT_HTTP_ERROR", "status": response.status_code},
            )
            raise TransportError(
                f"POST {url} failed with HTTP {response.status_code}",
                response=TransportResponse(response.status_code, _decode_body(response)),
            )

        return _decode_body(response)

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
