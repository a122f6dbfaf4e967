from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol

import httpx

from claude_cmd import __version__
from claude_cmd.constants import DEFAULT_HTTP_TIMEOUT_SECONDS
from claude_cmd.core.exceptions import HTTPNetworkError, HTTPStatusError, HTTPTimeoutError
from claude_cmd.core.logging.logger import get_logger

logger = get_logger(__name__)

USER_AGENT = f"claude-cmd/{__version__}"


@dataclass(frozen=True)
class HTTPResponse:
    status: int
    status_text: str
    body: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)


class HTTPClient(Protocol):
    """GET capability consumed by the remote repository."""

    async def get(
        self,
        url: str,
        *,
        timeout: float | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> HTTPResponse: ...

    async def aclose(self) -> None: ...


class HttpxClient:
    """
    ``HTTPClient`` backed by a shared :class:`httpx.AsyncClient`.

    Transport failures surface as ``HTTPTimeoutError``/``HTTPNetworkError`` and
    non-2xx responses as ``HTTPStatusError``; httpx exceptions never escape.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        headers: Mapping[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        default_headers = {"User-Agent": USER_AGENT, "Accept": "application/json, text/plain, */*"}
        if headers:
            default_headers.update(headers)
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers=default_headers,
            follow_redirects=True,
            transport=transport,
        )

    @property
    def timeout(self) -> float:
        return self._timeout

    async def get(
        self,
        url: str,
        *,
        timeout: float | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> HTTPResponse:
        effective_timeout = timeout if timeout is not None else self._timeout
        logger.debug("HTTP GET", data={"url": url, "timeout": effective_timeout})
        try:
            response = await self._client.get(
                url, timeout=effective_timeout, headers=dict(headers) if headers else None
            )
        except httpx.TimeoutException as exc:
            raise HTTPTimeoutError(url, effective_timeout) from exc
        except httpx.RequestError as exc:
            raise HTTPNetworkError(url, str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            raise HTTPStatusError(url, response.status_code, response.reason_phrase)

        return HTTPResponse(
            status=response.status_code,
            status_text=response.reason_phrase,
            body=response.text,
            url=str(response.url),
            headers=dict(response.headers),
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpxClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
