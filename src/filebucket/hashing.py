"""Hashing utilities for content addressing.

Every bucket entry is addressed by the MD5 digest of its bytes, written as
32 lowercase hex characters. The digest is only an address, never a security
boundary.
"""

from pathlib import Path
import hashlib
import re


_HEX32 = re.compile(r"^[0-9a-f]{32}$")

# Digest of the empty byte sequence
EMPTY_DIGEST = "d41d8cd98f00b204e9800998ecf8427e"


def compute_digest(content: bytes) -> str:
    """Compute the content digest of a byte sequence.

    Args:
        content: Bytes to hash

    Returns:
        32-character lowercase hex MD5 digest
    """
    return hashlib.md5(content).hexdigest()


def compute_file_digest(path: Path) -> str:
    """Compute the content digest of a file without loading it whole.

    Args:
        path: Path to file to hash

    Returns:
        Same value as ``compute_digest(path.read_bytes())``
    """
    md5 = hashlib.md5()
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            md5.update(chunk)
    return md5.hexdigest()


def normalize_digest(value: str) -> str:
    """Strip surrounding whitespace and lowercase a digest string."""
    return value.strip().lower()


def is_valid_digest(value: str) -> bool:
    """Check whether a (normalized) string can address a bucket entry.

    Security:
        Only 32 hex characters pass, so a digest can never smuggle path
        separators into the object layout.
    """
    return bool(_HEX32.fullmatch(value))


__all__ = [
    "EMPTY_DIGEST",
    "compute_digest",
    "compute_file_digest",
    "is_valid_digest",
    "normalize_digest",
]
