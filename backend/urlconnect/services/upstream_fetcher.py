"""
Upstream fetcher - one outbound GET per frame request
"""
from typing import AsyncIterator, Optional
import logging

import httpx

from urlconnect.models.proxy import HeaderSet, ProxyRequest, UpstreamResponse
from urlconnect.services.errors import UpstreamFetchFailure

logger = logging.getLogger(__name__)


class UpstreamStream:
    """
    An open upstream response whose body has not been read yet.

    Owns the httpx client it came from; aclose() releases both.
    """

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response, target: str):
        self._client = client
        self._response = response
        self.target = target
        self.upstream = UpstreamResponse(
            status_code=response.status_code,
            headers=HeaderSet(
                (name.decode("latin-1"), value.decode("latin-1"))
                for name, value in response.headers.raw
            ),
        )
        self._closed = False

    async def read(self) -> bytes:
        """Read the whole (decoded) body"""
        try:
            return await self._response.aread()
        except httpx.HTTPError as e:
            logger.error(f"Failed reading upstream body from {self.target}: {e!r}")
            raise UpstreamFetchFailure(str(e)) from e

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """Yield the body chunk by chunk, closing upstream when done or cancelled"""
        try:
            async for chunk in self._response.aiter_bytes():
                yield chunk
        except httpx.HTTPError as e:
            # Status and headers are already on the wire; all we can do is stop
            logger.error(f"Upstream stream from {self.target} broke off: {e!r}")
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._response.aclose()
        finally:
            await self._client.aclose()


class UpstreamFetcher:
    """
    Issues the single outbound GET for a ProxyRequest.

    Redirects are never followed: a 3xx comes back to the caller as is so
    the browser performs the redirect inside the frame.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=False,
            transport=self.transport,
        )

    async def open(self, proxy_request: ProxyRequest) -> UpstreamStream:
        """
        Send the request and return once status and headers have arrived.

        Raises UpstreamFetchFailure on any network, DNS or timeout error.
        The caller must aclose() the returned stream (iter_bytes does it
        on its own).
        """
        url = proxy_request.target.href
        client = self._client()
        try:
            request = client.build_request(
                "GET",
                url,
                headers=proxy_request.upstream_headers(),
            )
            response = await client.send(request, stream=True)
        except httpx.HTTPError as e:
            await client.aclose()
            logger.error(f"Upstream fetch failed for {url}: {e!r}")
            raise UpstreamFetchFailure(str(e)) from e
        except BaseException:
            await client.aclose()
            raise

        logger.debug(f"Upstream {url} answered {response.status_code}")
        return UpstreamStream(client, response, url)
