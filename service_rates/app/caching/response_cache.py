"""
Read-through response cache for route handlers.

A wrapped handler is only invoked on a cache miss. Its response is captured
instead of being sent, written to the cache store when the status is 2xx,
and then relayed to the client exactly once. Store failures raise
``CacheUnavailable`` and reach the application's exception handlers; they
are never treated as a miss.

Concurrent misses for the same key are not collapsed: each one invokes the
handler and writes the store, and the last write wins.
"""

from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional, Tuple, Type

from fastapi.routing import APIRoute
from pydantic import BaseModel, ConfigDict, PositiveInt
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import Message, Receive, Scope, Send

from shared.errors import CacheUnavailable
from shared.logging import get_logger
from .keys import derive_cache_key
from .payload import CachedPayload
from .stores import CacheStore

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


CACHE_STATUS_HEADER = "X-Cache"
DEFAULT_EXPIRE_SECONDS = 300


class CacheOptions(BaseModel):
    """Options for a ``ResponseCache``.

    ``on_hit`` may rewrite a payload read from the store before it is served.
    """

    model_config = ConfigDict(frozen=True)

    expire_seconds: PositiveInt = DEFAULT_EXPIRE_SECONDS
    on_hit: Optional[Callable[[CachedPayload], CachedPayload]] = None


class CapturedResponse:
    """ASGI ``send`` replacement that records a response instead of sending it."""

    def __init__(self):
        self.status_code: Optional[int] = None
        self.headers: List[Tuple[bytes, bytes]] = []
        self._chunks: List[bytes] = []
        self._complete = False
        self._closed = False
        self._relayed = False

    async def __call__(self, message: Message) -> None:
        if self._closed:
            raise RuntimeError("Response capture is closed")

        message_type = message["type"]
        if message_type == "http.response.start":
            if self.status_code is not None:
                raise RuntimeError("Response already started")
            self.status_code = message["status"]
            self.headers = list(message.get("headers", []))
        elif message_type == "http.response.body":
            if self.status_code is None:
                raise RuntimeError("Response body sent before response start")
            if self._complete:
                raise RuntimeError("Response already completed")
            self._chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                self._complete = True
        else:
            raise RuntimeError(f"Unsupported response message type: {message_type}")

    @property
    def complete(self) -> bool:
        return self._complete

    @property
    def body(self) -> bytes:
        return b"".join(self._chunks)

    @property
    def is_success(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code <= 299

    @property
    def media_type(self) -> Optional[str]:
        for name, value in self.headers:
            if name.lower() == b"content-type":
                return value.decode("latin-1")
        return None

    def close(self) -> None:
        """Stop accepting messages; a complete response must have been captured."""
        self._closed = True
        if not self._complete:
            raise RuntimeError("Handler returned without emitting a complete response")

    async def relay(self, send: Send, extra_headers: Optional[List[Tuple[bytes, bytes]]] = None) -> None:
        """Send the captured response to the real client. Allowed once."""
        if self._relayed:
            raise RuntimeError("Captured response already relayed")
        self._relayed = True
        self._closed = True

        await send({
            "type": "http.response.start",
            "status": self.status_code,
            "headers": self.headers + list(extra_headers or []),
        })
        await send({"type": "http.response.body", "body": self.body, "more_body": False})


class RelayedResponse(Response):
    """Response that replays a ``CapturedResponse`` to the client."""

    def __init__(self, captured: CapturedResponse, extra_headers: List[Tuple[bytes, bytes]]):
        self.captured = captured
        self.extra_headers = extra_headers
        self.status_code = captured.status_code
        self.background = None
        self.raw_headers = captured.headers + extra_headers

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.captured.relay(send, self.extra_headers)


RouteHandler = Callable[[Request], Awaitable[Response]]


class ResponseCache:
    """Read-through cache in front of route handlers, keyed by request URL."""

    def __init__(
        self,
        store: CacheStore,
        options: Optional[CacheOptions] = None,
        *,
        name: str = "response",
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.options = options or CacheOptions()
        self.name = name
        self.metrics = metrics
        self.logger = get_logger("rates.cache.response")

    def wrap(self, handler: RouteHandler) -> RouteHandler:
        """Return ``handler`` wrapped with this cache."""

        async def cached_handler(request: Request) -> Response:
            return await self.respond(request, handler)

        return cached_handler

    async def respond(self, request: Request, handler: RouteHandler) -> Response:
        if request.method != "GET":
            return await handler(request)

        key = derive_cache_key(request.scope)

        payload = await self._lookup(key)
        if payload is not None:
            self.logger.info("Cache hit", cache=self.name, key=key)
            self._count("cache_hits_total")
            return Response(
                content=payload.body,
                status_code=200,
                media_type=payload.media_type,
                headers={CACHE_STATUS_HEADER: "HIT"},
            )

        self.logger.info("Cache miss", cache=self.name, key=key)
        self._count("cache_misses_total")

        response = await handler(request)
        captured = CapturedResponse()
        await response(request.scope, request.receive, captured)
        captured.close()

        if captured.is_success:
            await self._store(key, captured)
        else:
            self.logger.debug(
                "Response not cached",
                cache=self.name,
                key=key,
                status_code=captured.status_code
            )

        return RelayedResponse(captured, [(CACHE_STATUS_HEADER.lower().encode("latin-1"), b"MISS")])

    async def _lookup(self, key: str) -> Optional[CachedPayload]:
        raw = await self.store.get(key)
        if raw is None:
            return None

        try:
            payload = CachedPayload.loads(raw)
        except ValueError as exc:
            raise CacheUnavailable(
                "Cached payload could not be deserialized",
                details={"key": key, "error": str(exc)}
            ) from exc

        if self.options.on_hit is not None:
            payload = self.options.on_hit(payload)
        return payload

    async def _store(self, key: str, captured: CapturedResponse) -> None:
        try:
            payload = CachedPayload.from_body(captured.body, captured.media_type)
        except ValueError as exc:
            raise CacheUnavailable(
                "Response could not be serialized for caching",
                details={"key": key, "error": str(exc)}
            ) from exc

        await self.store.set(key, payload.dumps(), self.options.expire_seconds)
        self._count("cache_stores_total")
        self.logger.debug(
            "Response cached",
            cache=self.name,
            key=key,
            ttl_seconds=self.options.expire_seconds
        )

    def _count(self, metric_name: str) -> None:
        if self.metrics is not None:
            self.metrics.increment_counter(metric_name, cache_type=self.name)


def cached_route_class(cache: ResponseCache) -> Type[APIRoute]:
    """Route class whose handlers are wrapped by ``cache``.

    Use it as ``APIRouter(route_class=cached_route_class(cache))`` so only the
    routes declared on that router are cached.
    """

    class CachedRoute(APIRoute):
        def get_route_handler(self) -> RouteHandler:
            return cache.wrap(super().get_route_handler())

    return CachedRoute
