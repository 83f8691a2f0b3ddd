import pytest

from urlconnect.services.errors import BadTargetURL, HostNotAllowed
from urlconnect.services.target_validator import is_host_allowed, parse_target, validate_target


@pytest.mark.parametrize("raw", [
    None,
    "",
    "   ",
    "not a url",
    "/relative/path",
    "example.com/page",
    "ftp://example.com/file.txt",
    "javascript:alert(1)",
    "data:text/html,<p>hi</p>",
    "http://",
    "https:///path-only",
    "http://example.com:99999/",
    "http://exa mple.com/",
])
def test_rejects_non_absolute_http_urls(raw):
    with pytest.raises(BadTargetURL):
        parse_target(raw)


def test_bare_origin_gets_root_path():
    target = parse_target("https://example.com")
    assert target.href == "https://example.com/"
    assert target.path == "/"
    assert target.origin == "https://example.com"


def test_scheme_and_host_are_lowercased_path_kept():
    target = parse_target("  HTTPS://Example.COM:8443/Docs/Page.html?q=A  ")
    assert target.scheme == "https"
    assert target.host == "example.com"
    assert target.port == 8443
    assert target.query == "q=A"
    assert target.href == "https://example.com:8443/Docs/Page.html?q=A"


def test_ipv6_host_keeps_brackets():
    target = parse_target("http://[::1]:8080/x")
    assert target.host == "::1"
    assert target.href == "http://[::1]:8080/x"


def test_allowlist_is_off_by_default():
    target = validate_target("https://anything.example.org/", allowed_domains=["example.com"])
    assert target.host == "anything.example.org"


def test_allowlist_rejects_other_hosts_when_enforced():
    with pytest.raises(HostNotAllowed) as exc:
        validate_target("https://evil.test/", allowed_domains=["example.com"], enforce_allowlist=True)
    assert exc.value.host == "evil.test"


def test_allowlist_match_is_case_insensitive():
    target = validate_target(
        "https://WWW.Example.com/",
        allowed_domains=["www.EXAMPLE.com"],
        enforce_allowlist=True,
    )
    assert target.host == "www.example.com"
    assert is_host_allowed("a.b", [" A.B "])


def test_enforced_empty_allowlist_rejects_everything():
    with pytest.raises(HostNotAllowed):
        validate_target("https://example.com/", allowed_domains=[], enforce_allowlist=True)
