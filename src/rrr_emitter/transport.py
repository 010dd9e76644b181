"""
HTTP transport for bulk NDJSON posts.

``BulkTransport`` is the seam the emitter depends on; ``HttpxBulkTransport``
is the default implementation on top of ``httpx.AsyncClient``. Transport-level
failures surface as :class:`TransportFailure`; any HTTP response, whatever its
status, is returned as a :class:`BulkResponse`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

import httpx
from loguru import logger

from .errors import TransportFailure, map_transport_error
from .models import NDJSON_CONTENT_TYPE

Auth = Optional[Tuple[str, str]]


@dataclass(frozen=True)
class BulkResponse:
    status_code: int
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class BulkTransport(Protocol):
    """Anything that can POST an NDJSON body."""

    async def post_bulk(self, url: str, body: str, auth: Auth = None) -> BulkResponse:
        """Send ``body``; raise TransportFailure when no response was obtained."""
        ...

    async def aclose(self) -> None: ...


class HttpxBulkTransport:
    """
    httpx-backed transport.

    The client is created lazily on first send so construction never touches
    the network or requires a running loop. Pass ``client`` to reuse an
    existing ``httpx.AsyncClient`` (it is then not closed by ``aclose``).
    """

    def __init__(
        self,
        timeout: float | None = 10.0,
        *,
        client: Optional[httpx.AsyncClient] = None,
        verify: bool = True,
    ) -> None:
        self._timeout = timeout
        self._verify = verify
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, verify=self._verify)
            logger.debug(f"Created httpx client (timeout={self._timeout})")
        return self._client

    async def post_bulk(self, url: str, body: str, auth: Auth = None) -> BulkResponse:
        client = self._get_client()
        try:
            resp = await client.post(
                url,
                content=body.encode("utf-8"),
                headers={"Content-Type": NDJSON_CONTENT_TYPE},
                auth=auth,
            )
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
            raise map_transport_error(exc) from exc
        return BulkResponse(status_code=resp.status_code, text=resp.text)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


__all__ = ["Auth", "BulkResponse", "BulkTransport", "HttpxBulkTransport", "TransportFailure"]
