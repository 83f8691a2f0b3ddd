"""
Embedding gateway - Validator -> Fetcher -> Filter -> Rewriter -> Streamer

Each call handles exactly one frame request and keeps no state between
requests.
"""
from typing import Awaitable, Callable, Iterable, Mapping, Optional, TypeVar
import asyncio
import logging

from fastapi.responses import Response

from urlconnect.core.config import Settings
from urlconnect.models.proxy import BodyKind, ProxyRequest, Target
from urlconnect.services.content_rewriter import passthrough, rewrite_html
from urlconnect.services.errors import ClientDisconnected
from urlconnect.services.response_streamer import to_response
from urlconnect.services.target_validator import validate_target
from urlconnect.services.upstream_fetcher import UpstreamFetcher

logger = logging.getLogger(__name__)

T = TypeVar("T")

# How often a slow upstream fetch checks whether the browser is still there
DISCONNECT_POLL_SECONDS = 0.5

DisconnectCheck = Callable[[], Awaitable[bool]]


async def run_until_disconnected(
    awaitable: Awaitable[T],
    is_disconnected: Optional[DisconnectCheck] = None,
    poll_seconds: float = DISCONNECT_POLL_SECONDS,
) -> T:
    """
    Await awaitable, cancelling it if the inbound client disconnects first.

    Raises ClientDisconnected in that case.
    """
    if is_disconnected is None:
        return await awaitable

    task = asyncio.ensure_future(awaitable)
    handed_over = False
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_seconds)
            if done:
                handed_over = True
                return task.result()
            if await is_disconnected():
                raise ClientDisconnected("Client disconnected during upstream fetch")
    finally:
        if not task.done():
            task.cancel()
        elif not handed_over:
            await _discard_result(task)


async def _discard_result(task: "asyncio.Future") -> None:
    """Release whatever a fetch produced after nobody is left to use it"""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"Discarding upstream fetch error after disconnect: {error!r}")
        return
    aclose = getattr(task.result(), "aclose", None)
    if aclose is not None:
        await aclose()


class EmbeddingGateway:
    """Proxies one target URL so it can be rendered inside a frame"""

    def __init__(
        self,
        fetcher: UpstreamFetcher,
        default_user_agent: str = "Mozilla/5.0",
        default_accept: str = "*/*",
        default_accept_language: str = "en",
        allowed_domains: Optional[Iterable[str]] = None,
        enforce_allowlist: bool = False,
    ):
        self.fetcher = fetcher
        self.default_user_agent = default_user_agent
        self.default_accept = default_accept
        self.default_accept_language = default_accept_language
        self.allowed_domains = list(allowed_domains or [])
        self.enforce_allowlist = enforce_allowlist

    @classmethod
    def from_settings(cls, settings: Settings, fetcher: UpstreamFetcher) -> "EmbeddingGateway":
        return cls(
            fetcher=fetcher,
            default_user_agent=settings.PROXY_DEFAULT_USER_AGENT,
            default_accept=settings.PROXY_DEFAULT_ACCEPT,
            default_accept_language=settings.PROXY_DEFAULT_ACCEPT_LANGUAGE,
            allowed_domains=settings.ALLOWED_PROXY_DOMAINS,
            enforce_allowlist=settings.ENFORCE_PROXY_ALLOWLIST,
        )

    def validate(self, raw_url: Optional[str]) -> Target:
        return validate_target(
            raw_url,
            allowed_domains=self.allowed_domains,
            enforce_allowlist=self.enforce_allowlist,
        )

    def build_request(self, target: Target, inbound_headers: Mapping[str, str]) -> ProxyRequest:
        """Forward only user-agent, accept and accept-language, defaulting each"""
        return ProxyRequest(
            target=target,
            user_agent=inbound_headers.get("user-agent") or self.default_user_agent,
            accept=inbound_headers.get("accept") or self.default_accept,
            accept_language=inbound_headers.get("accept-language") or self.default_accept_language,
        )

    async def proxy(
        self,
        raw_url: Optional[str],
        inbound_headers: Mapping[str, str],
        is_disconnected: Optional[DisconnectCheck] = None,
    ) -> Response:
        """
        Run the whole pipeline for one frame request.

        Raises BadTargetURL / HostNotAllowed before any network I/O,
        UpstreamFetchFailure when the target cannot be reached, and
        ClientDisconnected when the browser leaves mid-fetch. Any upstream
        status, 3xx included, is returned as is.
        """
        target = self.validate(raw_url)
        proxy_request = self.build_request(target, inbound_headers)

        stream = await run_until_disconnected(self.fetcher.open(proxy_request), is_disconnected)
        upstream = stream.upstream

        if not upstream.has_body:
            await stream.aclose()
            filtered = passthrough(upstream, b"")
            logger.info(f"Proxied {target.href} -> {filtered.status_code} (no body)")
            return to_response(filtered)

        if upstream.body_kind is BodyKind.HTML:
            try:
                body = await run_until_disconnected(stream.read(), is_disconnected)
            finally:
                await stream.aclose()
            filtered = rewrite_html(upstream, body, target)
            logger.info(
                f"Proxied {target.href} -> {filtered.status_code} "
                f"(html, {len(filtered.body or b'')} bytes, rewritten={filtered.rewritten})"
            )
            return to_response(filtered)

        filtered = passthrough(upstream)
        logger.info(f"Proxied {target.href} -> {filtered.status_code} (streamed {upstream.content_type or 'no content-type'})")
        return to_response(filtered, stream.iter_bytes())
