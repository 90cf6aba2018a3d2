"""Base protocol for bucket implementations."""

from typing import Optional, Protocol

from ..models import StoredEntry


class Bucket(Protocol):
    """
    Protocol for bucket implementations.

    Local and remote buckets are interchangeable behind this interface;
    callers never need to know which one they hold.
    """

    def store(self, content: bytes, source_path: Optional[str] = None) -> str:
        """
        Persist content unless already present.

        Args:
            content: Bytes to back up
            source_path: Optional path the content came from (informational)

        Returns:
            Content digest (32 hex chars), identical for identical content
        """
        ...

    def retrieve(self, digest: str) -> bytes:
        """
        Return stored content.

        Raises:
            NotFoundError: If nothing is stored under ``digest``
        """
        ...

    def exists(self, digest: str) -> bool:
        """
        Check whether content is stored under ``digest``.

        Returns:
            True if an entry exists
        """
        ...

    def entry(self, digest: str) -> StoredEntry:
        """
        Return bookkeeping metadata for a stored digest.

        Raises:
            NotFoundError: If nothing is stored under ``digest``
        """
        ...

    def close(self) -> None:
        """Release connections held by the bucket."""
        ...
