"""Bucket configuration helpers."""

import os
from pathlib import Path
from typing import List, Optional

import platformdirs
import yaml
from pydantic import BaseModel, ValidationError

from .constants import BUCKETDIR_ENV, CONFIG_ENV, DEFAULT_TIMEOUT
from .errors import ConfigurationError


class BucketConfig(BaseModel):
    """User-supplied parameters for one named bucket.

    A ``server`` selects a remote bucket and ``path`` is then ignored;
    otherwise the bucket is local.
    """

    name: str
    server: Optional[str] = None
    port: Optional[int] = None
    path: Optional[Path] = None
    timeout: float = DEFAULT_TIMEOUT

    @property
    def is_remote(self) -> bool:
        return bool(self.server)


def default_bucket_dir() -> Path:
    """Directory used by local buckets configured without a path.

    ``$FILEBUCKET_BUCKETDIR`` wins; otherwise a ``bucket`` directory under the
    platform's per-user data directory.
    """
    override = os.environ.get(BUCKETDIR_ENV)
    if override:
        return Path(override)
    return Path(platformdirs.user_data_dir("filebucket", appauthor=False)) / "bucket"


def default_config_path() -> Optional[Path]:
    """Config file named by ``$FILEBUCKET_CONFIG``, if any."""
    value = os.environ.get(CONFIG_ENV)
    return Path(value) if value else None


def load_config(path: Path) -> List[BucketConfig]:
    """Load bucket definitions from a YAML file.

    Expected layout::

        buckets:
          main:
            path: /var/lib/filebucket
          site:
            server: puppet.example.com
            port: 8140

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except OSError as e:
        raise ConfigurationError(f"Cannot read bucket config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in bucket config {path}: {e}") from e

    buckets = data.get("buckets", {}) if isinstance(data, dict) else None
    if not isinstance(buckets, dict):
        raise ConfigurationError(f"{path}: 'buckets' must be a mapping of name -> parameters")

    configs = []
    for name, params in buckets.items():
        try:
            configs.append(BucketConfig(name=str(name), **(params or {})))
        except (TypeError, ValidationError) as e:
            raise ConfigurationError(f"Invalid filebucket '{name}' in {path}: {e}") from e
    return configs
