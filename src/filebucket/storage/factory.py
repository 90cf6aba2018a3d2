"""Factory for creating bucket instances from configuration."""

import logging

from ..config import BucketConfig, default_bucket_dir
from ..constants import DEFAULT_PORT
from ..errors import BucketConnectionError, ConfigurationError
from .base import Bucket
from .local import LocalBucketStore
from .remote import RemoteBucketClient

logger = logging.getLogger(__name__)


def make_bucket(config: BucketConfig) -> Bucket:
    """
    Create the bucket described by ``config``.

    A ``server`` selects a remote bucket (``port`` defaulting to
    DEFAULT_PORT) and ``path`` is ignored. Without a server the bucket is
    local at ``path`` or the default bucket directory.

    Args:
        config: Bucket configuration

    Returns:
        Connected/opened Bucket

    Raises:
        BucketConnectionError: If a remote bucket's service is unreachable
        ConfigurationError: If any other construction failure occurs
    """
    if config.is_remote:
        port = config.port or DEFAULT_PORT
        if config.path:
            logger.debug("Ignoring path %s for remote filebucket '%s'", config.path, config.name)
        try:
            return RemoteBucketClient(config.server, port, timeout=config.timeout)
        except BucketConnectionError as e:
            raise BucketConnectionError(
                f"Could not create remote filebucket '{config.name}': {e}"
            ) from e
        except Exception as e:
            raise ConfigurationError(
                f"Could not create remote filebucket '{config.name}': {e}"
            ) from e

    path = config.path or default_bucket_dir()
    try:
        return LocalBucketStore(path)
    except ConfigurationError as e:
        raise ConfigurationError(
            f"Could not create local filebucket '{config.name}': {e}"
        ) from e
