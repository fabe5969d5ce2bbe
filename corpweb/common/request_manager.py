"""Request managers for fetching corporation summary pages.

This module provides SyncRequestManager and AsyncRequestManager classes that
encapsulate the HTTP client and turn httpx responses into Response objects.

The request manager is responsible for:
- Maintaining the HTTP client (httpx.Client or httpx.AsyncClient)
- Rejecting non-success responses
- Wrapping every transport failure in a TransportError that names the id

Drivers only see Response objects or TransportError.
"""

from __future__ import annotations

import logging
import ssl
from typing import Any

import httpx

from corpweb.common.exceptions import (
    RequestTimeoutError,
    TransportError,
    UnexpectedStatusError,
)
from corpweb.data_types import CorporationRequest, Response

logger = logging.getLogger(__name__)


def _fetch_failed(request: CorporationRequest) -> TransportError:
    return TransportError(
        f"Could not fetch corporation #{request.corp_id:09d}",
        request.url,
        corp_id=request.corp_id,
    )


def _check_status(http_response: httpx.Response, url: str) -> None:
    if not http_response.is_success:
        raise UnexpectedStatusError(
            status_code=http_response.status_code,
            expected_codes=[200],
            url=url,
        )


def _to_response(
    http_response: httpx.Response, request: CorporationRequest
) -> Response:
    return Response(
        status_code=http_response.status_code,
        headers=dict(http_response.headers),
        content=http_response.content,
        text=http_response.text,
        url=str(http_response.url),
        request=request,
    )


class SyncRequestManager:
    """Manages HTTP requests for the synchronous driver.

    Example::

        with SyncRequestManager(timeout=30.0) as manager:
            response = manager.resolve_request(CorporationRequest.for_id(7))
    """

    def __init__(
        self,
        ssl_context: ssl.SSLContext | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the request manager.

        Args:
            ssl_context: Optional SSL context for HTTPS connections.
            timeout: Request timeout in seconds; None disables it.
            transport: Optional httpx transport, e.g. httpx.MockTransport.
        """
        self.timeout = timeout

        client_kwargs: dict[str, Any] = {
            "timeout": timeout,
            "follow_redirects": True,
        }
        if ssl_context:
            client_kwargs["verify"] = ssl_context
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.Client(**client_kwargs)

    def close(self) -> None:
        """Close the HTTP client and release resources."""
        self._client.close()

    def __enter__(self) -> SyncRequestManager:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def resolve_request(self, request: CorporationRequest) -> Response:
        """Fetch a corporation page and return the Response.

        Raises:
            TransportError: On network failure, timeout or non-2xx status.
                The underlying failure is attached as the cause.
        """
        logger.debug(f"GET {request.url}")
        try:
            http_response = self._client.get(request.url)
            _check_status(http_response, request.url)
        except httpx.TimeoutException as e:
            timeout_error = RequestTimeoutError(request.url, self.timeout)
            timeout_error.__cause__ = e
            raise _fetch_failed(request) from timeout_error
        except (httpx.HTTPError, UnexpectedStatusError) as e:
            raise _fetch_failed(request) from e

        return _to_response(http_response, request)


class AsyncRequestManager:
    """Manages HTTP requests for the asynchronous driver.

    Example::

        async with AsyncRequestManager(timeout=30.0) as manager:
            response = await manager.resolve_request(
                CorporationRequest.for_id(7)
            )
    """

    def __init__(
        self,
        ssl_context: ssl.SSLContext | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the request manager.

        Args:
            ssl_context: Optional SSL context for HTTPS connections.
            timeout: Request timeout in seconds; None disables it.
            transport: Optional httpx async transport.
        """
        self.timeout = timeout

        client_kwargs: dict[str, Any] = {
            "timeout": timeout,
            "follow_redirects": True,
        }
        if ssl_context:
            client_kwargs["verify"] = ssl_context
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncRequestManager:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def resolve_request(self, request: CorporationRequest) -> Response:
        """Fetch a corporation page and return the Response.

        Raises:
            TransportError: On network failure, timeout or non-2xx status.
        """
        logger.debug(f"GET {request.url}")
        try:
            http_response = await self._client.get(request.url)
            _check_status(http_response, request.url)
        except httpx.TimeoutException as e:
            timeout_error = RequestTimeoutError(request.url, self.timeout)
            timeout_error.__cause__ = e
            raise _fetch_failed(request) from timeout_error
        except (httpx.HTTPError, UnexpectedStatusError) as e:
            raise _fetch_failed(request) from e

        return _to_response(http_response, request)
