"""Teams incoming-webhook delivery adapter.

One hardened httpx client is built per process and shared by reference:
TLS 1.3 floor, pooled connections and no automatic redirects. Redirects are
followed here so every hop goes through the same destination policy as the
configured webhook URL.
"""

from __future__ import annotations

import asyncio
import json
import logging
import ssl
from typing import Any, Awaitable, Optional

import httpx

from adapters.url_policy import describe_host, is_allowed_host
from core.ports import SerializableMessage

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
MAX_REDIRECTS = 3


class DeliveryError(RuntimeError):
    """Raised when a message could not be delivered to Teams."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def build_http_client(timeout: float = DEFAULT_TIMEOUT_SECONDS) -> httpx.AsyncClient:
    """Create the shared, pooled client used for webhook delivery."""

    ssl_context = ssl.create_default_context()
    ssl_context.minimum_version = ssl.TLSVersion.TLSv1_3
    return httpx.AsyncClient(
        verify=ssl_context,
        timeout=httpx.Timeout(timeout),
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
            keepalive_expiry=90.0,
        ),
        follow_redirects=False,
    )


def check_redirect(url: httpx.URL, hops: int) -> None:
    """Raise DeliveryError if following a redirect to url is not allowed."""

    if hops >= MAX_REDIRECTS:
        raise DeliveryError("too many redirects")
    if url.scheme != "https":
        raise DeliveryError("redirect to non-HTTPS URL not allowed")
    if not is_allowed_host(url.host):
        raise DeliveryError("redirect away from Microsoft domains not allowed")


class TeamsWebhookClient:
    """Delivers Teams messages over a shared httpx.AsyncClient."""

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or build_http_client(timeout)
        self._timeout = timeout

    async def __aenter__(self) -> "TeamsWebhookClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def send(
        self,
        webhook_url: str,
        message: SerializableMessage,
        cancel: Optional[asyncio.Event] = None,
    ) -> None:
        """POST the message to webhook_url; Teams answers 200 on success."""

        if cancel is not None and cancel.is_set():
            raise DeliveryError("request cancelled")

        payload = json.dumps(message.to_dict()).encode("utf-8")
        try:
            request = self._client.build_request(
                "POST",
                webhook_url,
                content=payload,
                headers={"Content-Type": "application/json"},
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise DeliveryError(f"failed to create request: {exc}") from exc

        response = await self._bounded(self._post(request), cancel)
        if response.status_code != 200:
            LOGGER.warning(
                "Teams webhook on %s returned status %s",
                describe_host(webhook_url),
                response.status_code,
            )
            raise DeliveryError(
                f"teams returned status {response.status_code}",
                status_code=response.status_code,
            )
        LOGGER.info("Delivered Teams message to %s", describe_host(webhook_url))

    async def _post(self, request: httpx.Request) -> httpx.Response:
        hops = 0
        try:
            response = await self._client.send(request)
            while response.is_redirect and response.next_request is not None:
                hops += 1
                next_request = response.next_request
                check_redirect(next_request.url, hops)
                LOGGER.debug("Following redirect %s to %s", hops, next_request.url.host)
                response = await self._client.send(next_request)
        except httpx.RequestError as exc:
            raise DeliveryError(f"failed to send request: {exc}") from exc
        return response

    async def _bounded(
        self,
        operation: Awaitable[httpx.Response],
        cancel: Optional[asyncio.Event],
    ) -> httpx.Response:
        """Await operation, aborting on timeout or when cancel is set."""

        request_task = asyncio.ensure_future(operation)
        cancel_task = asyncio.ensure_future(cancel.wait()) if cancel is not None else None
        waiters = {request_task} if cancel_task is None else {request_task, cancel_task}
        try:
            done, _ = await asyncio.wait(
                waiters,
                timeout=self._timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            if cancel_task is not None:
                cancel_task.cancel()
            if not request_task.done():
                request_task.cancel()
                await asyncio.gather(request_task, return_exceptions=True)

        if request_task in done:
            return request_task.result()
        if cancel is not None and cancel.is_set():
            raise DeliveryError("request cancelled")
        raise DeliveryError(f"request timed out after {self._timeout:g}s")
