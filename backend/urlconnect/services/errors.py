"""
Gateway and embed error taxonomy
"""


class GatewayError(Exception):
    """Base class for errors raised while proxying a frame request"""


class BadTargetURL(GatewayError):
    """Target is not an absolute http(s) URL. No network I/O has happened."""


class HostNotAllowed(GatewayError):
    """Target host is outside the configured allowlist"""

    def __init__(self, host: str):
        super().__init__(f"Host not allowed: {host}")
        self.host = host


class UpstreamFetchFailure(GatewayError):
    """Network, DNS or timeout failure talking to the target"""


class ClientDisconnected(GatewayError):
    """The inbound connection went away before the upstream fetch finished"""


class UrlStoreError(Exception):
    """The configured URL store could not be read or written"""


class EmbedConfigError(Exception):
    """The embed configuration could not be fetched or understood"""
