"""
Target validation for proxied frame requests
"""
from typing import Iterable, Optional
from urllib.parse import urlsplit, urlunsplit
import logging

import httpx

from urlconnect.models.proxy import Target
from urlconnect.services.errors import BadTargetURL, HostNotAllowed

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")


def parse_target(raw: Optional[str]) -> Target:
    """
    Parse a candidate URL into a Target.

    Raises BadTargetURL for anything that is not an absolute http(s) URL
    with a host.
    """
    candidate = (raw or "").strip()
    if not candidate:
        raise BadTargetURL("URL is empty")

    try:
        parts = urlsplit(candidate)
        port = parts.port  # Raises ValueError on a malformed port
    except ValueError as e:
        raise BadTargetURL(f"Unparseable URL: {e}") from e

    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise BadTargetURL(f"Unsupported scheme: {parts.scheme or '(none)'}")

    host = (parts.hostname or "").lower()
    if not host:
        raise BadTargetURL("URL has no host")

    if any(ch.isspace() for ch in candidate):
        raise BadTargetURL("URL contains whitespace")

    netloc = f"[{host}]" if ":" in host else host
    if port is not None:
        netloc = f"{netloc}:{port}"
    if parts.username or parts.password:
        userinfo = parts.username or ""
        if parts.password is not None:
            userinfo = f"{userinfo}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"

    path = parts.path or "/"
    href = urlunsplit((scheme, netloc, path, parts.query, parts.fragment))

    try:
        httpx.URL(href)
    except (httpx.InvalidURL, UnicodeError) as e:
        raise BadTargetURL(f"Unusable URL: {e}") from e

    return Target(
        scheme=scheme,
        host=host,
        port=port,
        path=path,
        query=parts.query,
        href=href,
    )


def is_host_allowed(host: str, allowed_domains: Iterable[str]) -> bool:
    """Exact, case-insensitive host match against the allowlist"""
    return host.lower() in {d.strip().lower() for d in allowed_domains}


def validate_target(
    raw: Optional[str],
    allowed_domains: Optional[Iterable[str]] = None,
    enforce_allowlist: bool = False,
) -> Target:
    """
    Validate a frame target before any network activity.

    The host allowlist only applies when enforce_allowlist is set.
    """
    target = parse_target(raw)

    if enforce_allowlist and not is_host_allowed(target.host, allowed_domains or []):
        logger.warning(f"Rejected proxy target outside allowlist: {target.host}")
        raise HostNotAllowed(target.host)

    return target
