"""Wire protocol between remote bucket clients and the bucket service.

Requests and responses are HTTP/1.1 messages, so every body is delimited by
``Content-Length`` and a kept-alive connection can carry any number of
sequential operations. No operation depends on an earlier one.

    store      POST /objects            raw body        -> 200 {"digest": ...}
    retrieve   GET  /objects/{digest}                   -> 200 raw body
    exists     HEAD /objects/{digest}                   -> 200 | 404
    entry      GET  /entries/{digest}                   -> 200 StoredEntry JSON
    health     GET  /health                             -> 200 {"status": "ok"}

Failures carry an ``ErrorResponse`` body whose ``code`` names the error kind.
"""

from enum import Enum
from typing import Dict, Type

from pydantic import BaseModel

from .constants import FILEBUCKET_VERSION
from .errors import (
    BucketError,
    IntegrityError,
    NotFoundError,
    RemoteError,
    StorageIOError,
)

OBJECTS_PATH = "/objects"
ENTRIES_PATH = "/entries"
HEALTH_PATH = "/health"

# Optional request header carrying the path the content was backed up from
SOURCE_HEADER = "X-Filebucket-Source"

CONTENT_TYPE = "application/octet-stream"


class ErrorCode(str, Enum):
    """Error kinds reported by the service."""
    NOT_FOUND = "not_found"
    STORAGE_IO = "storage_io"
    INTEGRITY = "integrity"
    BAD_REQUEST = "bad_request"
    INTERNAL = "internal"


ERROR_STATUS: Dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.STORAGE_IO: 500,
    ErrorCode.INTEGRITY: 500,
    ErrorCode.BAD_REQUEST: 400,
    ErrorCode.INTERNAL: 500,
}

_EXCEPTION_CODES: Dict[Type[BucketError], ErrorCode] = {
    NotFoundError: ErrorCode.NOT_FOUND,
    StorageIOError: ErrorCode.STORAGE_IO,
    IntegrityError: ErrorCode.INTEGRITY,
}


class StoreResponse(BaseModel):
    """Successful store: the digest the content is addressed by."""
    digest: str


class ErrorResponse(BaseModel):
    """Failure body for any operation."""
    code: ErrorCode
    detail: str = ""


class HealthResponse(BaseModel):
    """Liveness answer used by clients to fail fast at construction."""
    status: str = "ok"
    version: str = FILEBUCKET_VERSION


def object_path(digest: str) -> str:
    return f"{OBJECTS_PATH}/{digest}"


def entry_path(digest: str) -> str:
    return f"{ENTRIES_PATH}/{digest}"


def error_code_for(exc: Exception) -> ErrorCode:
    """Map a server-side exception to the code sent on the wire."""
    for exc_type, code in _EXCEPTION_CODES.items():
        if isinstance(exc, exc_type):
            return code
    return ErrorCode.INTERNAL


def error_response_for(exc: Exception) -> ErrorResponse:
    """Build the wire error body for a server-side exception."""
    return ErrorResponse(code=error_code_for(exc), detail=str(exc))


def raise_for_error(error: ErrorResponse, digest: str = "") -> None:
    """Raise the client-side exception for a decoded error body.

    ``not_found`` and ``integrity`` become ``NotFoundError`` and
    ``IntegrityError`` so remote and local buckets fail the same way; every
    other code becomes ``RemoteError``.
    """
    if error.code == ErrorCode.NOT_FOUND:
        raise NotFoundError(digest)
    if error.code == ErrorCode.INTEGRITY:
        raise IntegrityError(digest)
    raise RemoteError(error.code.value, error.detail)
