"""
Gateway API - embed configuration and the framed proxy endpoint
"""
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import ORJSONResponse, PlainTextResponse, Response

from urlconnect.core.config import settings
from urlconnect.models.embed import EmbedConfig, EmbedConfigMissing
from urlconnect.services.errors import (
    BadTargetURL,
    ClientDisconnected,
    HostNotAllowed,
    UpstreamFetchFailure,
    UrlStoreError,
)
from urlconnect.services.gateway import EmbeddingGateway
from urlconnect.services.upstream_fetcher import UpstreamFetcher
from urlconnect.services.url_store import UrlStore, get_url_store

logger = logging.getLogger(__name__)
router = APIRouter()

# Non-standard "client closed request"; never actually reaches the client
CLIENT_CLOSED_REQUEST = 499


def get_upstream_fetcher() -> UpstreamFetcher:
    """FastAPI dependency: fetcher for outbound requests"""
    return UpstreamFetcher(timeout=settings.PROXY_TIMEOUT_SECONDS)


def get_gateway(fetcher: UpstreamFetcher = Depends(get_upstream_fetcher)) -> EmbeddingGateway:
    """FastAPI dependency: gateway configured from settings"""
    return EmbeddingGateway.from_settings(settings, fetcher)


@router.get("/proxy")
async def get_embed_config(store: UrlStore = Depends(get_url_store)):
    """
    Configuration for the embed view: the configured URL, or a
    url_not_configured signal (404) when there is none.
    """
    try:
        url = await store.get_url()
        updated_at = await store.get_updated_at() if url else None
    except UrlStoreError as e:
        logger.error(f"Proxy: Error fetching URL: {e}")
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to fetch URL"},
        )

    if not url:
        return ORJSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=EmbedConfigMissing().model_dump(),
        )

    config = EmbedConfig(url=url, timestamp=updated_at or datetime.now(timezone.utc))
    return config.model_dump(mode="json")


@router.get("/proxy/frame")
async def proxy_frame(
    request: Request,
    url: str = Query("", description="Absolute http(s) URL to render in the frame"),
    gateway: EmbeddingGateway = Depends(get_gateway),
) -> Response:
    """
    Fetch url and re-serve it so it can be framed.

    Framing-blocking and hop-by-hop headers are stripped, HTML gets a
    <base href> pointing at the target, everything else passes through
    byte for byte. Upstream redirects are returned, not followed.
    """
    try:
        return await gateway.proxy(url, request.headers, request.is_disconnected)
    except BadTargetURL as e:
        logger.info(f"Rejected frame target {url!r}: {e}")
        return PlainTextResponse("Bad url", status_code=status.HTTP_400_BAD_REQUEST)
    except HostNotAllowed as e:
        logger.info(f"Rejected frame target {url!r}: {e}")
        return PlainTextResponse("Host not allowed", status_code=status.HTTP_403_FORBIDDEN)
    except UpstreamFetchFailure:
        # Detail was logged by the fetcher and is not echoed to the client
        return PlainTextResponse("Upstream fetch failed", status_code=status.HTTP_502_BAD_GATEWAY)
    except ClientDisconnected:
        logger.info(f"Client went away while fetching {url!r}")
        return Response(status_code=CLIENT_CLOSED_REQUEST)
