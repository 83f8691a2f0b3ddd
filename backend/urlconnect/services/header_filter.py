"""
Response header filtering for proxied content
"""
from urlconnect.models.proxy import HeaderSet

# Framing blockers, transport encodings the gateway re-does itself,
# and connection-scoped headers.
DENIED_HEADERS = frozenset({
    "x-frame-options",
    "content-security-policy",
    "content-security-policy-report-only",
    "set-cookie",
    "content-length",
    "transfer-encoding",
    "content-encoding",
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "upgrade",
})


def is_denied(name: str) -> bool:
    return name.lower() in DENIED_HEADERS


def filter_headers(headers: HeaderSet) -> HeaderSet:
    """Copy of headers without any deny-listed name, order preserved"""
    return HeaderSet((k, v) for k, v in headers if not is_denied(k))
