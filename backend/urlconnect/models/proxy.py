"""
Gateway models - proxied request/response shapes
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Mapping, Optional, Tuple


class HeaderSet:
    """
    Ordered collection of HTTP header (name, value) pairs.

    Names keep their original spelling; every lookup compares names
    case-insensitively. Repeated names are kept in arrival order.
    """

    def __init__(self, items: Optional[Iterable[Tuple[str, str]]] = None):
        self._items: List[Tuple[str, str]] = [(k, v) for k, v in (items or [])]

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str]) -> "HeaderSet":
        return cls(headers.items())

    @staticmethod
    def _key(name: str) -> str:
        return name.lower()

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value for name, or default"""
        key = self._key(name)
        for k, v in self._items:
            if self._key(k) == key:
                return v
        return default

    def get_all(self, name: str) -> List[str]:
        key = self._key(name)
        return [v for k, v in self._items if self._key(k) == key]

    def add(self, name: str, value: str) -> None:
        self._items.append((name, value))

    def set(self, name: str, value: str) -> None:
        """Replace every value for name with a single value"""
        self.remove(name)
        self._items.append((name, value))

    def remove(self, name: str) -> None:
        key = self._key(name)
        self._items = [(k, v) for k, v in self._items if self._key(k) != key]

    def names(self) -> List[str]:
        return [k for k, _ in self._items]

    def items(self) -> List[Tuple[str, str]]:
        return list(self._items)

    def copy(self) -> "HeaderSet":
        return HeaderSet(self._items)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        key = self._key(name)
        return any(self._key(k) == key for k, _ in self._items)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"HeaderSet({self._items!r})"


@dataclass(frozen=True)
class Target:
    """A validated absolute http(s) URL"""
    scheme: str
    host: str
    port: Optional[int]
    path: str
    query: str
    href: str  # Normalized absolute URL, used for fetching and <base href>

    @property
    def origin(self) -> str:
        if self.port is None:
            return f"{self.scheme}://{self.host}"
        return f"{self.scheme}://{self.host}:{self.port}"


@dataclass(frozen=True)
class ProxyRequest:
    """One outbound fetch on behalf of one inbound frame request"""
    target: Target
    user_agent: str
    accept: str
    accept_language: str

    def upstream_headers(self) -> List[Tuple[str, str]]:
        return [
            ("user-agent", self.user_agent),
            ("accept", self.accept),
            ("accept-language", self.accept_language),
            ("accept-encoding", "identity"),
        ]


class BodyKind(str, Enum):
    """How the upstream body is handled"""
    HTML = "html"       # Decoded, rewritten, sent whole
    BINARY = "binary"   # Raw bytes, streamed unmodified


@dataclass
class UpstreamResponse:
    """Status and headers of an upstream response, before filtering"""
    status_code: int
    headers: HeaderSet

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "") or ""

    @property
    def has_body(self) -> bool:
        """False for statuses that never carry a body (1xx, 204, 304)"""
        return not (self.status_code < 200 or self.status_code in (204, 304))

    @property
    def body_kind(self) -> BodyKind:
        if "text/html" in self.content_type.lower():
            return BodyKind.HTML
        return BodyKind.BINARY


@dataclass
class FilteredResponse:
    """What the gateway sends back: status, final headers and (for whole bodies) content"""
    status_code: int
    headers: HeaderSet
    body: Optional[bytes] = None  # None when the body is streamed from upstream
    rewritten: bool = False
