"""Storage package: local and remote bucket implementations."""

from .base import Bucket
from .factory import make_bucket
from .local import LocalBucketStore
from .remote import RemoteBucketClient

__all__ = ["Bucket", "LocalBucketStore", "RemoteBucketClient", "make_bucket"]
