"""
HTTP cache headers and optimistic concurrency.

GET responses get a strong ETag computed from the body plus Cache-Control
and Vary headers; a matching If-None-Match gets a bodiless 304. The last
ETag served for each resource path is remembered so that unsafe requests
carrying a stale If-Match can be refused with 412.
"""

import hashlib
from collections import OrderedDict
from typing import Iterable, List, Optional

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from library_api.models import ErrorResponse

logger = structlog.get_logger(__name__)

SAFE_METHODS = {"GET", "HEAD"}
UNSAFE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}

# Marks a path whose remembered ETag is no longer current
MODIFIED = object()


def compute_etag(body: bytes) -> str:
    return '"' + hashlib.sha256(body).hexdigest() + '"'


def parse_etags(header: Optional[str]) -> List[str]:
    """Entity tags listed in an If-Match / If-None-Match header; weak prefixes dropped."""
    if not header:
        return []
    tags = []
    for part in header.split(","):
        tag = part.strip()
        if tag.startswith("W/"):
            tag = tag[2:]
        if tag:
            tags.append(tag)
    return tags


class ValidatorStore:
    """Bounded map of resource path to the last ETag served for it."""

    def __init__(self, max_size: int = 1000):
        self.max_size = max_size
        self._validators: "OrderedDict[str, object]" = OrderedDict()

    def remember(self, path: str, etag: str) -> None:
        self._validators[path] = etag
        self._validators.move_to_end(path)
        while len(self._validators) > self.max_size:
            self._validators.popitem(last=False)

    def mark_modified(self, path: str) -> None:
        """Invalidate the ETag of ``path`` and of every remembered path below it."""
        prefix = path.rstrip("/") + "/"
        for known in [p for p in self._validators if p == path or p.startswith(prefix)]:
            self._validators[known] = MODIFIED
        if path not in self._validators:
            self._validators[path] = MODIFIED
            while len(self._validators) > self.max_size:
                self._validators.popitem(last=False)

    def is_known(self, path: str) -> bool:
        return path in self._validators

    def matches(self, path: str, etags: Iterable[str]) -> bool:
        """
        Check If-Match tags against the remembered ETag of ``path``.

        "*" matches any current representation; a modified path matches
        nothing else.
        """
        etags = list(etags)
        current = self._validators.get(path)
        if "*" in etags:
            return True
        if current is None or current is MODIFIED:
            return False
        return current in etags

    def clear(self) -> None:
        self._validators.clear()

    def __len__(self) -> int:
        return len(self._validators)


def build_cache_control(max_age: int, must_revalidate: bool) -> str:
    directives = ["public", f"max-age={max_age}"]
    if must_revalidate:
        directives.append("must-revalidate")
    return ", ".join(directives)


class HttpCacheHeadersMiddleware(BaseHTTPMiddleware):
    """Expiration and validation headers for everything under ``path_prefix``."""

    def __init__(
        self,
        app,
        store: ValidatorStore,
        max_age: int = 600,
        must_revalidate: bool = True,
        path_prefix: str = ""
    ):
        super().__init__(app)
        self.store = store
        self.cache_control = build_cache_control(max_age, must_revalidate)
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if not path.startswith(self.path_prefix):
            return await call_next(request)

        if request.method in UNSAFE_METHODS:
            return await self._handle_unsafe(request, call_next, path)
        if request.method in SAFE_METHODS:
            return await self._handle_safe(request, call_next, path)
        return await call_next(request)

    async def _handle_unsafe(self, request: Request, call_next, path: str):
        if_match = parse_etags(request.headers.get("if-match"))
        if if_match and self.store.is_known(path) and not self.store.matches(path, if_match):
            logger.info("Precondition failed", method=request.method, path=path)
            return JSONResponse(
                status_code=status.HTTP_412_PRECONDITION_FAILED,
                content=ErrorResponse(
                    error="Precondition failed",
                    detail="The resource has changed since it was last retrieved",
                    status_code=status.HTTP_412_PRECONDITION_FAILED
                ).model_dump()
            )

        response = await call_next(request)
        if 200 <= response.status_code < 300:
            self.store.mark_modified(path)
        return response

    async def _handle_safe(self, request: Request, call_next, path: str):
        response = await call_next(request)
        if response.status_code != status.HTTP_200_OK:
            return response

        body = b"".join([chunk async for chunk in response.body_iterator])
        etag = compute_etag(body)
        if not request.url.query:
            self.store.remember(path, etag)

        cache_headers = {
            "ETag": etag,
            "Cache-Control": self.cache_control,
            "Vary": "Accept",
        }

        if_none_match = parse_etags(request.headers.get("if-none-match"))
        if etag in if_none_match or "*" in if_none_match:
            return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=cache_headers)

        headers = dict(response.headers)
        headers.pop("content-length", None)
        headers.update(cache_headers)
        return Response(
            content=body,
            status_code=response.status_code,
            headers=headers
        )
