"""Bucket service: serves a local bucket to remote clients.

The service owns a LocalBucketStore and exposes it over the bucket protocol
(see ``filebucket.protocol``). Blocking store operations run in the worker
thread pool, so concurrent connections interleave without a global lock; the
store itself is safe for concurrent use.
"""

import logging
import urllib.parse
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .constants import DEFAULT_PORT, FILEBUCKET_VERSION
from .errors import BucketError, NotFoundError
from .models import StoredEntry
from .protocol import (
    CONTENT_TYPE,
    ENTRIES_PATH,
    ERROR_STATUS,
    HEALTH_PATH,
    OBJECTS_PATH,
    SOURCE_HEADER,
    ErrorCode,
    ErrorResponse,
    HealthResponse,
    StoreResponse,
    error_response_for,
)
from .storage.local import LocalBucketStore

logger = logging.getLogger(__name__)


def _error_response(request: Request, error: ErrorResponse) -> Response:
    status = ERROR_STATUS[error.code]
    if request.method == "HEAD":
        return Response(status_code=status)
    return JSONResponse(status_code=status, content=error.model_dump(mode="json"))


def create_app(store: LocalBucketStore) -> FastAPI:
    """Build the HTTP application serving ``store``."""
    app = FastAPI(title="filebucket", version=FILEBUCKET_VERSION)

    @app.exception_handler(BucketError)
    async def bucket_error_handler(request: Request, exc: BucketError) -> Response:
        if isinstance(exc, NotFoundError):
            logger.debug("%s %s: not found", request.method, request.url.path)
        else:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return _error_response(request, error_response_for(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
        return _error_response(request, ErrorResponse(code=ErrorCode.BAD_REQUEST, detail=str(exc)))

    @app.get(HEALTH_PATH, response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse()

    @app.post(OBJECTS_PATH, response_model=StoreResponse)
    async def store_object(request: Request) -> StoreResponse:
        # Read the whole body first: a client that drops mid-upload commits nothing
        content = await request.body()
        source = request.headers.get(SOURCE_HEADER)
        if source:
            source = urllib.parse.unquote(source)
        digest = await run_in_threadpool(store.store, content, source)
        return StoreResponse(digest=digest)

    # Registered before the GET route so HEAD never falls through to it
    @app.head(OBJECTS_PATH + "/{digest}")
    def object_exists(digest: str) -> Response:
        if not store.exists(digest):
            raise NotFoundError(digest)
        return Response(status_code=200)

    @app.get(OBJECTS_PATH + "/{digest}")
    async def retrieve_object(digest: str) -> Response:
        content = await run_in_threadpool(store.retrieve, digest)
        return Response(content=content, media_type=CONTENT_TYPE)

    @app.get(ENTRIES_PATH + "/{digest}", response_model=StoredEntry)
    def describe_object(digest: str) -> StoredEntry:
        return store.entry(digest)

    return app


class BucketService:
    """A LocalBucketStore published on a host/port endpoint."""

    def __init__(self, store: LocalBucketStore, host: str = "0.0.0.0", port: int = DEFAULT_PORT):
        """
        Args:
            store: Bucket the service delegates to
            host: Interface to listen on
            port: Port to listen on (0 picks a free port)
        """
        self.store = store
        self.host = host
        self.port = port
        self.app = create_app(store)

    @classmethod
    def from_path(cls, path: Optional[Path] = None, **kwargs) -> "BucketService":
        """Serve a local bucket rooted at ``path`` (default bucket directory if None)."""
        return cls(LocalBucketStore(path), **kwargs)

    def server_config(self, log_level: str = "info") -> uvicorn.Config:
        return uvicorn.Config(self.app, host=self.host, port=self.port, log_level=log_level)

    def run(self, log_level: str = "info") -> None:
        """Serve until interrupted."""
        logger.info("Serving filebucket %s on %s:%d", self.store.root, self.host, self.port)
        uvicorn.Server(self.server_config(log_level)).run()
