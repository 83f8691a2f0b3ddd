"""
Admin API for the configured URL
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from urlconnect.models.embed import UrlResponse, UrlUpdateRequest, UrlUpdateResponse
from urlconnect.services.errors import BadTargetURL, UrlStoreError
from urlconnect.services.target_validator import parse_target
from urlconnect.services.url_store import UrlStore, get_url_store

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=UrlResponse)
async def get_url(store: UrlStore = Depends(get_url_store)):
    """Get the stored URL (empty string when none)"""
    try:
        url = await store.get_url()
    except UrlStoreError as e:
        logger.error(f"Error fetching URL: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch URL",
        )
    return UrlResponse(url=url or "")


@router.post("", response_model=UrlUpdateResponse)
async def set_url(
    payload: UrlUpdateRequest,
    store: UrlStore = Depends(get_url_store),
):
    """Store or replace the single configured URL"""
    if not payload.url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="URL is required",
        )

    try:
        parse_target(payload.url)
    except BadTargetURL:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid URL format",
        )

    url = payload.url.strip()
    try:
        await store.set_url(url)
    except UrlStoreError as e:
        logger.error(f"Error updating URL: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update URL",
        )

    logger.info(f"Configured URL set to {url}")
    return UrlUpdateResponse(message="URL updated successfully", url=url)


@router.delete("", response_model=UrlUpdateResponse)
async def clear_url(store: UrlStore = Depends(get_url_store)):
    """Remove the configured URL"""
    try:
        await store.clear_url()
    except UrlStoreError as e:
        logger.error(f"Error clearing URL: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to clear URL",
        )

    logger.info("Configured URL cleared")
    return UrlUpdateResponse(message="URL cleared")
