"""
In-memory request cache with TTL expiry and in-flight de-duplication.

What this module does
---------------------
Dashboard screens re-request the same read endpoints constantly (switching tabs,
paging back and forth, re-rendering). `RequestCache` sits in front of any
fetch-like transport and:

- serves a stored response while it is fresh (`now < expires_at`)
- collapses concurrent identical requests into ONE transport call; every caller
  waiting on that call gets the same response (or the same exception)
- stores only successful (2xx) responses; errors and failures are returned or
  raised but never cached
- lets writers invalidate entries (`clear_cache`) so the next read is fresh

Keys are the method, URL and body signature on separate lines. Text bodies (and
bytes that are valid UTF-8) are keyed by their text, other bytes by their hex
form, mappings and lists by compact sorted JSON. Expired entries are treated as missing and are
replaced on the next fetch; there is no background sweep. Memory is bounded by
`max_entries` (least recently used entry is evicted first).

Concurrency
-----------
One lock guards the two tables (entries + in-flight). Transport calls always
run outside the lock, so a slow request for one key never blocks another key.
The in-flight marker for a key is removed exactly once, by the caller that
issued the transport call, whether that call succeeded or raised.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Mapping
from concurrent.futures import Future
from dataclasses import dataclass, field, replace
from typing import Any

import httpx

logger = logging.getLogger("evalboard.cache")

# Response headers worth keeping on a cached envelope.
CAPTURED_HEADERS = ("content-type", "cache-control", "etag", "last-modified", "x-correlation-id")

Body = Mapping[str, Any] | list[Any] | str | bytes | None
Transport = Callable[..., Any]


@dataclass(frozen=True)
class CachedResponse:
    """
    Captured response envelope.

    Exposes the small fetch-like surface the dashboard needs:
    `status_code`, `ok`, `headers`, `content`, `text`, `json()`, plus `from_cache`.
    """

    url: str
    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)
    from_cache: bool = False

    @classmethod
    def capture(cls, url: str, response: Any) -> CachedResponse:
        """Copy status/body/header subset out of a transport response."""

        headers: dict[str, str] = {}
        for name in CAPTURED_HEADERS:
            value = response.headers.get(name)
            if value is not None:
                headers[name] = value
        return cls(
            url=url,
            status_code=response.status_code,
            content=bytes(response.content),
            headers=headers,
        )

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def charset(self) -> str:
        content_type = self.headers.get("content-type", "")
        for param in content_type.split(";")[1:]:
            name, _, value = param.strip().partition("=")
            if name.lower() == "charset" and value:
                return value.strip("\"'")
        return "utf-8"

    @property
    def text(self) -> str:
        try:
            return self.content.decode(self.charset, errors="replace")
        except LookupError:
            # Unknown charset label.
            return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.content)


@dataclass
class CacheEntry:
    key: str
    url: str
    response: CachedResponse
    expires_at: float


@dataclass
class _InFlight:
    url: str
    future: Future = field(default_factory=Future)


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    deduplicated: int
    size: int


def _json_body(body: Mapping[str, Any] | list[Any]) -> str:
    return json.dumps(body, sort_keys=True, separators=(",", ":"))


def _body_signature(body: Body) -> str:
    if body is None:
        return ""
    if isinstance(body, bytes):
        try:
            return "text:" + body.decode("utf-8")
        except UnicodeDecodeError:
            return "hex:" + body.hex()
    if isinstance(body, str):
        return "text:" + body
    return "json:" + _json_body(body)


def cache_key(url: str, method: str = "GET", body: Body = None) -> str:
    """Canonical request signature: upper-cased method, URL and body signature, one per line."""

    return "\n".join((method.upper(), url, _body_signature(body)))


def _url_path(url: str) -> str:
    return url.split("?", 1)[0]


class RequestCache:
    """
    TTL cache + in-flight de-duplication around a fetch-like transport.

    `transport(method, url, content=..., headers=...)` must return an object with
    `status_code`, `headers` (mapping with `.get`) and `content` (bytes).
    Without a transport the cache builds its own `httpx.Client` and owns it;
    `close()` (or the context manager) releases it.
    """

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")

        self._client: httpx.Client | None = None
        if transport is None:
            self._client = httpx.Client(timeout=10.0)
            transport = self._client.request
        self._transport = transport
        self._max_entries = max_entries
        self._clock = clock

        self._lock = threading.Lock()
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._inflight: dict[str, _InFlight] = {}

        self._hits = 0
        self._misses = 0
        self._deduplicated = 0

    def close(self) -> None:
        """Close the httpx client this cache created (injected transports are left alone)."""

        if self._client is not None:
            self._client.close()

    def __enter__(self) -> RequestCache:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                deduplicated=self._deduplicated,
                size=len(self._entries),
            )

    def cached_fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        body: Body = None,
        headers: Mapping[str, str] | None = None,
        ttl: float = 10.0,
    ) -> CachedResponse:
        """
        Return a response for the request, from cache when possible.

        - fresh entry: returned with `from_cache=True`, no transport call
        - request already in flight for this key: wait for it and share its result
        - otherwise: call the transport; store 2xx responses for `ttl` seconds

        `ttl <= 0` means "never cache": the transport is always called and the
        stored entry for the key (if any) is neither read nor written.
        """

        key = cache_key(url, method, body)

        if ttl <= 0:
            with self._lock:
                self._misses += 1
            return self._send(method, url, body, headers)

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                if self._clock() < entry.expires_at:
                    self._entries.move_to_end(key)
                    self._hits += 1
                    logger.debug("cache hit key=%s", key)
                    return replace(entry.response, from_cache=True)
                # Expired: treat as absent.
                del self._entries[key]

            inflight = self._inflight.get(key)
            owner = inflight is None
            if owner:
                inflight = _InFlight(url=url)
                self._inflight[key] = inflight
                self._misses += 1
            else:
                self._deduplicated += 1

        if not owner:
            logger.debug("joining in-flight request key=%s", key)
            return inflight.future.result()

        try:
            response = self._send(method, url, body, headers)
        except BaseException as exc:
            self._settle(key, inflight)
            inflight.future.set_exception(exc)
            raise

        self._settle(key, inflight, response=response, ttl=ttl)
        inflight.future.set_result(response)
        return response

    def clear_cache(self, key_or_url: str | None = None) -> int:
        """
        Drop entries matching an exact key, an exact URL, or a URL path.

        `clear_cache("/api/config")` drops every cached read of /api/config
        (any method, body or query string). With no argument, drops everything.
        Matching in-flight requests are detached so their results are not stored.
        Returns the number of stored entries removed.
        """

        def matches(key: str, url: str) -> bool:
            if key_or_url is None:
                return True
            return key_or_url in (key, url, _url_path(url))

        with self._lock:
            stale = [k for k, e in self._entries.items() if matches(k, e.url)]
            for key in stale:
                del self._entries[key]
            for key in [k for k, f in self._inflight.items() if matches(k, f.url)]:
                del self._inflight[key]

        logger.debug("cache cleared target=%s removed=%d", key_or_url, len(stale))
        return len(stale)

    def _send(
        self, method: str, url: str, body: Body, headers: Mapping[str, str] | None
    ) -> CachedResponse:
        request_headers = dict(headers or {})
        content: bytes | None = None
        if body is not None:
            if isinstance(body, bytes):
                content = body
            elif isinstance(body, str):
                content = body.encode("utf-8")
            else:
                request_headers.setdefault("Content-Type", "application/json")
                content = _json_body(body).encode("utf-8")

        raw = self._transport(method.upper(), url, content=content, headers=request_headers)
        return CachedResponse.capture(url, raw)

    def _settle(
        self,
        key: str,
        inflight: _InFlight,
        *,
        response: CachedResponse | None = None,
        ttl: float = 0.0,
    ) -> None:
        with self._lock:
            # A clear_cache() during the call detaches the marker; its result is then
            # delivered to waiters but not stored.
            if self._inflight.get(key) is not inflight:
                return
            del self._inflight[key]

            if response is None or not response.ok:
                return

            self._entries.pop(key, None)
            if len(self._entries) >= self._max_entries:
                self._evict()
            self._entries[key] = CacheEntry(
                key=key, url=inflight.url, response=response, expires_at=self._clock() + ttl
            )

    def _evict(self) -> None:
        # Expired entries go first; then the least recently used one.
        now = self._clock()
        for key in [k for k, e in self._entries.items() if e.expires_at <= now]:
            del self._entries[key]
        while len(self._entries) >= self._max_entries:
            self._entries.popitem(last=False)
