"""HTTP request issuer for apidiff.

Issues the two requests of a comparison and decodes their JSON bodies.
Failures never propagate: they are logged and returned as a FetchResult
with ``ok=False`` so the caller can still show whatever it has.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Optional

import httpx

from .log import get_logger
from .models import FetchResult, RequestConfig

_log = get_logger("client")


class RequestIssuer:
    """Performs requests described by RequestConfig objects.

    Args:
        timeout:   HTTP request timeout in seconds. Defaults to 30.
        transport: Optional httpx transport (e.g. ``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def fetch(
        self,
        request: RequestConfig,
        client: Optional[httpx.AsyncClient] = None,
    ) -> FetchResult:
        """Issue *request* and decode its JSON body."""
        if client is None:
            async with self._client() as own_client:
                return await self._send(own_client, request)
        return await self._send(client, request)

    async def fetch_pair(
        self,
        left: RequestConfig,
        right: RequestConfig,
    ) -> tuple[FetchResult, FetchResult]:
        """Issue both requests concurrently over one client."""
        async with self._client() as client:
            left_result, right_result = await asyncio.gather(
                self._send(client, left),
                self._send(client, right),
            )
        return left_result, right_result

    def fetch_pair_sync(
        self,
        left: RequestConfig,
        right: RequestConfig,
    ) -> tuple[FetchResult, FetchResult]:
        """Blocking wrapper around :meth:`fetch_pair`."""
        return asyncio.run(self.fetch_pair(left, right))

    async def _send(self, client: httpx.AsyncClient, request: RequestConfig) -> FetchResult:
        # Body is only sent for methods other than GET
        content = request.body if request.method != "GET" and request.body else None
        started = time.monotonic()

        try:
            response = await client.request(
                request.method,
                request.url,
                headers=request.headers,
                content=content,
            )
        except httpx.TimeoutException:
            _log.warning("request_timeout", url=request.url, timeout=self._timeout)
            return FetchResult(
                ok=False,
                error=f"Request timed out after {self._timeout}s",
                elapsed_ms=_elapsed_ms(started),
            )
        except httpx.HTTPError as exc:
            _log.warning("request_failed", url=request.url, error=str(exc))
            return FetchResult(ok=False, error=str(exc), elapsed_ms=_elapsed_ms(started))

        elapsed = _elapsed_ms(started)
        try:
            value = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            _log.warning(
                "response_not_json",
                url=request.url,
                status_code=response.status_code,
                body=response.text[:200],
            )
            return FetchResult(
                ok=False,
                status_code=response.status_code,
                error=f"Response is not valid JSON: {exc}",
                elapsed_ms=elapsed,
            )

        # Non-2xx bodies are still compared, as a browser fetch would
        if not response.is_success:
            _log.info("request_non_2xx_response", url=request.url, status_code=response.status_code)

        _log.debug(
            "request_complete",
            method=request.method,
            url=request.url,
            status_code=response.status_code,
            elapsed_ms=elapsed,
        )
        return FetchResult(ok=True, value=value, status_code=response.status_code, elapsed_ms=elapsed)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
