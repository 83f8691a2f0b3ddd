"""
Content rewriting for proxied responses

HTML gets a <base href> so page-relative URLs resolve against the target
site instead of the gateway. Everything else passes through untouched.
"""
from typing import Optional
from html import escape
import logging
import re

from urlconnect.models.proxy import FilteredResponse, HeaderSet, Target, UpstreamResponse
from urlconnect.services.header_filter import filter_headers

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPE = "text/html; charset=utf-8"
NOSNIFF = "nosniff"

# <head> or <head ...>, but not <header>
HEAD_TAG_RE = re.compile(r"<head(?:\s[^>]*)?>", re.IGNORECASE)
HTML_TAG_RE = re.compile(r"<html(?:\s[^>]*)?>", re.IGNORECASE)
BASE_HREF_RE = re.compile(r"<base\s[^>]*\bhref\s*=", re.IGNORECASE)
CHARSET_RE = re.compile(r"charset\s*=\s*[\"']?([\w.:-]+)", re.IGNORECASE)
# <meta charset="x"> and <meta http-equiv="Content-Type" content="...; charset=x">
META_CHARSET_RE = re.compile(r"<meta\s[^>]*?charset\s*=\s*[\"']?\s*([\w.:-]+)", re.IGNORECASE)

# Browsers look for a <meta> charset in the first 1024 bytes only
META_SNIFF_BYTES = 1024


def declared_charset(content_type: str) -> Optional[str]:
    match = CHARSET_RE.search(content_type or "")
    return match.group(1) if match else None


def meta_charset(body: bytes) -> Optional[str]:
    """Charset named by a <meta> tag near the start of the document"""
    head = body[:META_SNIFF_BYTES].decode("latin-1")
    match = META_CHARSET_RE.search(head)
    return match.group(1) if match else None


def decode_html(body: bytes, content_type: str) -> str:
    """
    Decode an HTML body with its charset: the Content-Type parameter first,
    then a <meta> declaration, then UTF-8.

    Raises UnicodeDecodeError / LookupError when the bytes cannot be decoded.
    """
    charset = declared_charset(content_type) or meta_charset(body) or "utf-8"
    return body.decode(charset)


def inject_base_tag(html: str, base_href: str) -> str:
    """
    Ensure the document has a <head> and a <base href>.

    A document that already carries a <base href> is returned as is, so
    running this twice changes nothing the second time.
    """
    if BASE_HREF_RE.search(html):
        return html

    if not HEAD_TAG_RE.search(html):
        html_tag = HTML_TAG_RE.search(html)
        if html_tag:
            pos = html_tag.end()
            html = f"{html[:pos]}<head></head>{html[pos:]}"
        else:
            html = f"<head></head>{html}"

    head_tag = HEAD_TAG_RE.search(html)
    pos = head_tag.end()
    base_tag = f'<base href="{escape(base_href, quote=True)}">'
    return f"{html[:pos]}{base_tag}{html[pos:]}"


def passthrough(upstream: UpstreamResponse, body: Optional[bytes] = None) -> FilteredResponse:
    """Filtered headers plus gateway headers; body bytes unchanged"""
    headers = filter_headers(upstream.headers)
    content_type = upstream.headers.get("content-type")
    if content_type:
        headers.set("Content-Type", content_type)
    headers.set("X-Content-Type-Options", NOSNIFF)
    return FilteredResponse(
        status_code=upstream.status_code,
        headers=headers,
        body=body,
    )


def rewrite_html(upstream: UpstreamResponse, body: bytes, target: Target) -> FilteredResponse:
    """
    Rewrite an HTML response for framing.

    Empty bodies stay empty. Falls back to byte passthrough if the body
    cannot be decoded.
    """
    if not body:
        return passthrough(upstream, body)

    try:
        html = decode_html(body, upstream.content_type)
    except (UnicodeDecodeError, LookupError) as e:
        logger.warning(f"Serving undecodable HTML from {target.href} unmodified: {e}")
        return passthrough(upstream, body)

    rewritten = inject_base_tag(html, target.href)

    headers: HeaderSet = filter_headers(upstream.headers)
    headers.set("X-Content-Type-Options", NOSNIFF)
    headers.set("Content-Type", HTML_CONTENT_TYPE)
    return FilteredResponse(
        status_code=upstream.status_code,
        headers=headers,
        body=rewritten.encode("utf-8"),
        rewritten=True,
    )
