"""Named bucket registry.

The registry is built once during startup and handed to whatever needs bucket
lookup; there is no module-level instance.
"""

import logging
from typing import Dict, Iterable, List

from .config import BucketConfig
from .errors import ConfigurationError
from .storage import Bucket, make_bucket

logger = logging.getLogger(__name__)


class BucketRegistry:
    """Mapping of user-chosen bucket names to constructed buckets."""

    def __init__(self):
        self._buckets: Dict[str, Bucket] = {}

    @classmethod
    def from_configs(cls, configs: Iterable[BucketConfig]) -> "BucketRegistry":
        """Construct every configured bucket.

        Raises:
            ConfigurationError: On duplicate names or a local bucket that
                cannot be created
            BucketConnectionError: If a remote bucket is unreachable
        """
        registry = cls()
        try:
            for config in configs:
                if config.name in registry:
                    raise ConfigurationError(f"Filebucket '{config.name}' is defined twice")
                registry.add(config.name, make_bucket(config))
        except BaseException:
            # Release sessions of buckets built before the failure
            registry.close()
            raise
        return registry

    def add(self, name: str, bucket: Bucket) -> None:
        """Register a bucket under a new name."""
        if name in self._buckets:
            raise ConfigurationError(f"Filebucket '{name}' is already registered")
        self._buckets[name] = bucket
        logger.debug("Registered filebucket '%s': %r", name, bucket)

    def get(self, name: str) -> Bucket:
        """Look up a bucket by name.

        Raises:
            ConfigurationError: If no bucket has that name
        """
        try:
            return self._buckets[name]
        except KeyError:
            raise ConfigurationError(f"No filebucket named '{name}'") from None

    def names(self) -> List[str]:
        return sorted(self._buckets)

    def close(self) -> None:
        """Close every registered bucket."""
        for bucket in self._buckets.values():
            bucket.close()

    def __contains__(self, name: object) -> bool:
        return name in self._buckets

    def __len__(self) -> int:
        return len(self._buckets)
