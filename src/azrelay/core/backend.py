"""HTTP client for the Azure chat-completions backend.

Every call opens its own httpx client. Errors surface as httpx exceptions:
``httpx.HTTPStatusError`` when the backend answered with a non-2xx status
(the response body is always read before raising) and ``httpx.RequestError``
when no response was received.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from azrelay.config import Settings

logger = logging.getLogger(__name__)

# Smallest request that exercises the credential and the deployment
PROBE_PAYLOAD: dict[str, Any] = {
    "messages": [{"role": "user", "content": "test"}],
    "max_tokens": 5,
    "stream": False,
}


class BackendStream:
    """An open streamed backend response.

    Owns both the response and the client that produced it; ``aclose``
    releases the connection.
    """

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response):
        self._client = client
        self.response = response
        self._closed = False

    @property
    def status_code(self) -> int:
        return self.response.status_code

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """Yield body chunks in the order the backend sends them."""
        async for chunk in self.response.aiter_bytes():
            yield chunk

    async def aclose(self) -> None:
        """Close the response and the underlying client. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        try:
            await self.response.aclose()
        finally:
            await self._client.aclose()


class BackendClient:
    """Sends chat-completion requests to the configured backend.

    Args:
        settings: Application settings with the backend endpoint and key.
        transport: Optional httpx transport override, used by tests.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self._transport = transport

    @property
    def url(self) -> str:
        return self.settings.chat_completions_url

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.azure_api_key}",
            "Content-Type": "application/json",
        }

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.backend.timeout_seconds,
            transport=self._transport,
            follow_redirects=True,
        )

    async def post_chat_completion(self, payload: Any) -> httpx.Response:
        """Send a non-streaming chat completion and return the full response.

        Raises:
            httpx.HTTPStatusError: If the backend returned a non-2xx status.
            httpx.RequestError: If no response was received.
        """
        async with self._new_client() as client:
            response = await client.post(self.url, json=payload, headers=self._headers())

        logger.debug(f"Backend responded with status {response.status_code}")
        response.raise_for_status()
        return response

    async def probe(self) -> httpx.Response:
        """Validate connectivity and credentials with a minimal completion."""
        return await self.post_chat_completion(PROBE_PAYLOAD)

    async def open_stream(self, payload: Any) -> BackendStream:
        """Send a chat completion and return the response body unread.

        The caller must ``aclose`` the returned stream.

        Raises:
            httpx.HTTPStatusError: If the backend returned a non-2xx status.
            httpx.RequestError: If no response was received.
        """
        client = self._new_client()
        try:
            request = client.build_request(
                "POST", self.url, json=payload, headers=self._headers()
            )
            response = await client.send(request, stream=True)
        except BaseException:
            await client.aclose()
            raise

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError:
            # Read the error body so it can be relayed after the connection closes
            try:
                await response.aread()
            finally:
                await response.aclose()
                await client.aclose()
            raise

        logger.debug(f"Backend stream opened with status {response.status_code}")
        return BackendStream(client, response)
