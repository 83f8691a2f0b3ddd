"""
Embed-load watchdog - client-side state machine for one mounted embed view

    IDLE -> FETCHING -> NO_URL | CONFIG_ERROR | READY
    READY -> WAITING_FOR_FRAME -> LOADED | BLOCKED

One EmbedSession exists per mount. It fetches the configuration once,
points the frame at the gateway, and arms a single watchdog timer. The first
of {frame load, frame error, timer expiry} decides the outcome. unmount() is
a hard cancellation boundary: nothing observable happens afterwards.
"""
from typing import Awaitable, Callable, Optional
from urllib.parse import quote, urlsplit
import asyncio
import logging

import httpx

from urlconnect.core.config import Settings
from urlconnect.models.embed import (
    EmbedConfig,
    EmbedPhase,
    EmbedView,
    EmbedViewKind,
    TERMINAL_PHASES,
    URL_NOT_CONFIGURED,
)
from urlconnect.services.errors import EmbedConfigError

logger = logging.getLogger(__name__)

ConfigLoader = Callable[[], Awaitable[EmbedConfig]]
ChangeListener = Callable[["EmbedSession"], None]


class HttpConfigLoader:
    """Fetches the embed configuration from the gateway's config endpoint"""

    def __init__(self, client: httpx.AsyncClient, path: str = "/proxy"):
        self.client = client
        self.path = path

    async def __call__(self) -> EmbedConfig:
        try:
            response = await self.client.get(self.path, headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            raise EmbedConfigError(f"Failed to fetch stored URL: {e}") from e

        content_type = response.headers.get("content-type", "")
        is_json = "application/json" in content_type

        if response.status_code == 404 and is_json and self._is_not_configured(response):
            return EmbedConfig(url="")

        if not response.is_success:
            raise EmbedConfigError(f"HTTP error! status: {response.status_code}")

        if not is_json:
            logger.info(f"Non-JSON config response snippet: {response.text[:200]!r}")
            raise EmbedConfigError("Proxy returned HTML instead of JSON - proxy not configured correctly")

        try:
            return EmbedConfig.model_validate(response.json())
        except ValueError as e:
            raise EmbedConfigError(f"Malformed configuration response: {e}") from e

    @staticmethod
    def _is_not_configured(response: httpx.Response) -> bool:
        try:
            body = response.json()
        except ValueError:
            return False
        return isinstance(body, dict) and body.get("code") == URL_NOT_CONFIGURED


class EmbedSession:
    """
    State for one mount of the embedding view.

    Mutated only by the configuration fetch, frame_loaded(), frame_errored()
    and the watchdog timer. At most one timer is pending at any time, and
    every transition out of WAITING_FOR_FRAME cancels it.
    """

    def __init__(
        self,
        load_config: ConfigLoader,
        frame_endpoint: str = "/proxy/frame",
        watchdog_seconds: float = 15.0,
        on_change: Optional[ChangeListener] = None,
    ):
        self.load_config = load_config
        self.frame_endpoint = frame_endpoint
        self.watchdog_seconds = watchdog_seconds
        self.on_change = on_change

        self.url = ""
        self.phase = EmbedPhase.IDLE
        self.error: Optional[str] = None
        self.blocked_reason: Optional[str] = None
        self.cancelled = False

        self._timer: Optional[asyncio.TimerHandle] = None
        self._fetch_task: Optional[asyncio.Task] = None
        self._settled = asyncio.Event()

    @classmethod
    def from_settings(
        cls,
        load_config: ConfigLoader,
        settings: Settings,
        on_change: Optional[ChangeListener] = None,
    ) -> "EmbedSession":
        return cls(
            load_config,
            frame_endpoint=settings.EMBED_FRAME_PATH,
            watchdog_seconds=settings.EMBED_WATCHDOG_SECONDS,
            on_change=on_change,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def mount(self) -> "EmbedSession":
        """Start the one configuration fetch for this mount"""
        if self.phase is not EmbedPhase.IDLE or self.cancelled:
            raise RuntimeError("EmbedSession can only be mounted once")
        self._set_phase(EmbedPhase.FETCHING)
        self._fetch_task = asyncio.get_running_loop().create_task(self._fetch_config())
        return self

    def unmount(self) -> None:
        """Cancel the timer and any in-flight fetch; no state writes after this"""
        if self.cancelled:
            return
        self.cancelled = True
        self._cancel_timer()
        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()
        logger.debug(f"Embed session unmounted in phase {self.phase.value}")
        self._settled.set()

    def reload(self) -> "EmbedSession":
        """Retry action: tear this view down and mount a fresh session"""
        self.unmount()
        session = EmbedSession(
            self.load_config,
            frame_endpoint=self.frame_endpoint,
            watchdog_seconds=self.watchdog_seconds,
            on_change=self.on_change,
        )
        return session.mount()

    async def wait_settled(self) -> EmbedPhase:
        """Wait until the session reaches a terminal phase or is unmounted"""
        await self._settled.wait()
        return self.phase

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------

    async def _fetch_config(self) -> None:
        try:
            config = await self.load_config()
        except EmbedConfigError as e:
            if self.cancelled:
                return
            self.error = str(e) or "Failed to fetch stored URL"
            self._set_phase(EmbedPhase.CONFIG_ERROR)
            return
        except Exception as e:
            logger.exception("Embed configuration loader failed")
            if self.cancelled:
                return
            self.error = str(e) or "Failed to fetch stored URL"
            self._set_phase(EmbedPhase.CONFIG_ERROR)
            return

        if self.cancelled:
            return

        if not config.url:
            self._set_phase(EmbedPhase.NO_URL)
            return

        self.url = config.url
        self._set_phase(EmbedPhase.READY)
        if self.cancelled:
            return
        self._arm_watchdog()
        self._set_phase(EmbedPhase.WAITING_FOR_FRAME)

    def frame_loaded(self) -> None:
        """The frame reported a successful load"""
        if self.cancelled or self.phase is not EmbedPhase.WAITING_FOR_FRAME:
            return
        self._cancel_timer()
        self._set_phase(EmbedPhase.LOADED)

    def frame_errored(self) -> None:
        """The frame reported a load error"""
        if self.cancelled or self.phase is not EmbedPhase.WAITING_FOR_FRAME:
            return
        self._cancel_timer()
        self.blocked_reason = "error"
        self._set_phase(EmbedPhase.BLOCKED)

    def _on_watchdog_expired(self) -> None:
        self._timer = None
        # Read the live phase: a load that landed first already moved us on
        if self.cancelled or self.phase is not EmbedPhase.WAITING_FOR_FRAME:
            return
        logger.info(f"Embed watchdog expired after {self.watchdog_seconds}s for {self.url}")
        self.blocked_reason = "timeout"
        self._set_phase(EmbedPhase.BLOCKED)

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def _arm_watchdog(self) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.watchdog_seconds, self._on_watchdog_expired)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    @property
    def timer_pending(self) -> bool:
        return self._timer is not None

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _set_phase(self, phase: EmbedPhase) -> None:
        previous = self.phase
        self.phase = phase
        logger.debug(f"Embed session {previous.value} -> {phase.value}")
        if phase in TERMINAL_PHASES:
            self._settled.set()
        if self.on_change is not None:
            self.on_change(self)

    @property
    def frame_src(self) -> Optional[str]:
        if not self.url:
            return None
        return f"{self.frame_endpoint}?url={quote(self.url, safe='')}"

    @property
    def hostname(self) -> str:
        try:
            return urlsplit(self.url).hostname or "Website"
        except ValueError:
            return "Website"

    def view(self) -> EmbedView:
        """What the embedding surface should show right now"""
        if self.phase in (EmbedPhase.IDLE, EmbedPhase.FETCHING):
            return EmbedView(kind=EmbedViewKind.LOADING, message="Loading...")

        if self.phase is EmbedPhase.CONFIG_ERROR:
            return EmbedView(
                kind=EmbedViewKind.ERROR,
                title="Error Loading Content",
                message=self.error or "Failed to fetch stored URL",
                can_retry=True,
            )

        if self.phase is EmbedPhase.NO_URL:
            return EmbedView(
                kind=EmbedViewKind.NO_URL,
                title="No URL Configured",
                message="Please configure a URL through the URLConnect extension.",
            )

        if self.phase is EmbedPhase.BLOCKED:
            return EmbedView(
                kind=EmbedViewKind.BLOCKED,
                title="Preview Not Available",
                message="This website cannot be embedded. Open it directly:",
                link_url=self.url,
                link_label=f"Open {self.hostname}",
            )

        loading = self.phase is not EmbedPhase.LOADED
        return EmbedView(
            kind=EmbedViewKind.FRAME,
            title="URLConnect Preview",
            message="Loading preview..." if loading else "",
            frame_src=self.frame_src,
            show_loading_overlay=loading,
        )
