"""Data models describing bucket entries.

Models are shared by the local store, the bucket service and the remote
client, so they double as the JSON schema of the entry metadata on the wire.
"""

from typing import List

from pydantic import BaseModel, Field


class SourceRecord(BaseModel):
    """A path the content was backed up from."""
    path: str                      # Original file path (informational only)
    recorded: str                  # ISO 8601 timestamp (UTC)


class StoredEntry(BaseModel):
    """
    Metadata for one stored object.

    The content itself lives in the object file; this is bookkeeping kept in
    the sidecar index and is never part of the addressing key.
    """
    digest: str                                               # 32 hex chars
    size: int                                                 # Content size in bytes
    created: str                                              # ISO 8601 timestamp of first store
    sources: List[SourceRecord] = Field(default_factory=list)

    @property
    def source_paths(self) -> List[str]:
        """All recorded source paths, oldest first."""
        return [s.path for s in self.sources]
