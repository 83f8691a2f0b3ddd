from urlconnect.models.proxy import HeaderSet
from urlconnect.services.header_filter import DENIED_HEADERS, filter_headers


def test_deny_list_has_the_fourteen_names():
    assert DENIED_HEADERS == {
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
    }


def test_strips_denied_names_in_any_case():
    headers = HeaderSet([(name.upper(), "x") for name in DENIED_HEADERS])
    headers.add("X-Frame-Options", "SAMEORIGIN")
    headers.add("Set-Cookie", "session=abc")
    assert len(filter_headers(headers)) == 0


def test_keeps_everything_else_in_order_with_original_spelling():
    headers = HeaderSet([
        ("Cache-Control", "max-age=60"),
        ("X-Frame-Options", "DENY"),
        ("Link", "</a.css>; rel=preload"),
        ("link", "</b.js>; rel=preload"),
        ("ETag", '"abc"'),
    ])
    assert filter_headers(headers).items() == [
        ("Cache-Control", "max-age=60"),
        ("Link", "</a.css>; rel=preload"),
        ("link", "</b.js>; rel=preload"),
        ("ETag", '"abc"'),
    ]


def test_filter_does_not_touch_its_input():
    headers = HeaderSet([("Connection", "close"), ("Vary", "Accept")])
    filter_headers(headers)
    assert headers.names() == ["Connection", "Vary"]


def test_header_set_lookups_ignore_case():
    headers = HeaderSet([("Content-Type", "text/html")])
    assert "content-type" in headers
    assert headers.get("CONTENT-TYPE") == "text/html"
    headers.set("content-type", "text/plain")
    assert headers.items() == [("content-type", "text/plain")]
    headers.remove("Content-Type")
    assert "content-type" not in headers
