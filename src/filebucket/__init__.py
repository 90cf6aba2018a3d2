"""Content-addressable file backup buckets."""

from .constants import DEFAULT_PORT, FILEBUCKET_VERSION
from .errors import (
    BucketConnectionError,
    BucketError,
    ConfigurationError,
    IntegrityError,
    NotFoundError,
    RemoteError,
    StorageIOError,
)
from .hashing import EMPTY_DIGEST, compute_digest
from .registry import BucketRegistry
from .storage import Bucket, LocalBucketStore, RemoteBucketClient, make_bucket

__version__ = FILEBUCKET_VERSION

__all__ = [
    "Bucket",
    "BucketConnectionError",
    "BucketError",
    "BucketRegistry",
    "ConfigurationError",
    "DEFAULT_PORT",
    "EMPTY_DIGEST",
    "IntegrityError",
    "LocalBucketStore",
    "NotFoundError",
    "RemoteBucketClient",
    "RemoteError",
    "StorageIOError",
    "compute_digest",
    "make_bucket",
]
