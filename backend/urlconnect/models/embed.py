"""
Embed models - configuration payloads and the embed view state
"""
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel


URL_NOT_CONFIGURED = "url_not_configured"


class EmbedConfig(BaseModel):
    """Configuration returned by GET /proxy"""
    url: Optional[str] = ""  # null and "" both mean nothing is configured
    timestamp: Optional[datetime] = None


class EmbedConfigMissing(BaseModel):
    """GET /proxy body when no URL is configured"""
    error: str = "No URL configured"
    code: str = URL_NOT_CONFIGURED


class UrlUpdateRequest(BaseModel):
    """Admin request to set the configured URL"""
    url: Optional[str] = None


class UrlResponse(BaseModel):
    url: str = ""


class UrlUpdateResponse(BaseModel):
    success: bool = True
    message: str
    url: Optional[str] = None


class EmbedPhase(str, Enum):
    """Embed session phases"""
    IDLE = "idle"                                # Created, not mounted
    FETCHING = "fetching"                        # Configuration request in flight
    NO_URL = "no_url"                            # Terminal: nothing configured
    CONFIG_ERROR = "config_error"                # Terminal: configuration fetch failed
    READY = "ready"                              # URL known, frame about to render
    WAITING_FOR_FRAME = "waiting_for_frame"      # Frame rendered, watchdog armed
    LOADED = "loaded"                            # Terminal: frame reported load
    BLOCKED = "blocked"                          # Terminal: frame error or watchdog expiry


TERMINAL_PHASES = frozenset({
    EmbedPhase.NO_URL,
    EmbedPhase.CONFIG_ERROR,
    EmbedPhase.LOADED,
    EmbedPhase.BLOCKED,
})


class EmbedViewKind(str, Enum):
    """What the embedding surface shows"""
    LOADING = "loading"
    ERROR = "error"
    NO_URL = "no_url"
    FRAME = "frame"
    BLOCKED = "blocked"


class EmbedView(BaseModel):
    """Render model for one embed session"""
    kind: EmbedViewKind
    title: str = ""
    message: str = ""
    frame_src: Optional[str] = None
    show_loading_overlay: bool = False
    link_url: Optional[str] = None
    link_label: Optional[str] = None
    can_retry: bool = False
