"""Local content-addressed bucket store.

This module stores file content on local disk addressed by its MD5 digest.
It implements atomic writes and per-object locking so concurrent stores of the
same content, from threads or processes, produce exactly one object.

Key Features:
- Content-addressed layout with two levels of sharding
- Atomic promotion (temp file + fsync + rename) so no partial object is visible
- Cross-platform per-object locking via portalocker
- Read-back verification against the digest the content is stored under
- Sidecar SQLite index for creation time and source paths

Technical Considerations:
- Objects are made read-only (0o444) before they become visible
- Lock files persist beside objects to avoid inode coordination issues
- Identical digests are trusted to mean identical content; no byte comparison
"""

from __future__ import annotations
import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

import portalocker

from ..config import default_bucket_dir
from ..constants import INDEX_FILE, OBJECTS_DIR
from ..errors import ConfigurationError, IntegrityError, NotFoundError, StorageIOError
from ..hashing import compute_digest, is_valid_digest, normalize_digest
from ..models import StoredEntry
from ..utils import iso_from_epoch
from .index import EntryIndex

logger = logging.getLogger(__name__)

# ---- Platform-specific helpers ---------------------------------------------

def _fsync_dir(path: Path) -> None:
    """Fsync a directory to ensure directory entry updates are durable.

    This is a best-effort operation that may not work on all platforms/filesystems.
    Windows and some filesystems don't support directory fsync.
    """
    try:
        flags = os.O_RDONLY
        if hasattr(os, "O_DIRECTORY"):
            flags |= os.O_DIRECTORY

        fd = os.open(str(path), flags)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
    except OSError:
        logger.debug("Directory fsync not supported for %s", path)

# ---- LocalBucketStore implementation ---------------------------------------

class LocalBucketStore:
    """Content-addressed bucket on the local filesystem.

    Directory Structure:
        <root>/objects/ab/cd/<full_md5_hex>
        <root>/index.sqlite

    Attributes:
        root: Bucket root directory
        objdir: Object storage directory (root/objects)
        index: Sidecar metadata index

    Thread Safety:
        store/retrieve/exists are safe for concurrent use, including
        concurrent stores of the same digest.
    """

    def __init__(self, root: Optional[Path] = None, lock_timeout: float = 300):
        """Open (creating if needed) a bucket rooted at ``root``.

        Args:
            root: Bucket root directory. If None, uses the default bucket directory.
            lock_timeout: Seconds to wait for a per-object lock

        Raises:
            ConfigurationError: If the root cannot be created or is not writable
        """
        self.root = Path(root) if root else default_bucket_dir()
        self.objdir = self.root / OBJECTS_DIR
        self.lock_timeout = lock_timeout

        try:
            self.objdir.mkdir(parents=True, exist_ok=True)
            # Probe writability now rather than on first store
            with tempfile.NamedTemporaryFile(prefix=".probe-", dir=str(self.root)):
                pass
            self.index = EntryIndex(self.root / INDEX_FILE)
        except (OSError, StorageIOError) as e:
            raise ConfigurationError(
                f"Could not create local filebucket at {self.root}: {e}"
            ) from e

        logger.debug("Opened local bucket at %s", self.root)

    def __repr__(self) -> str:
        return f"LocalBucketStore({str(self.root)!r})"

    def path_for(self, digest: str) -> Path:
        """Get object path for a digest.

        Args:
            digest: 32-character hex digest

        Returns:
            Path where this object is (or would be) stored

        Raises:
            ValueError: If digest format is invalid
        """
        digest = normalize_digest(digest)
        if not is_valid_digest(digest):
            raise ValueError(f"Invalid digest (must be 32 hex chars): {digest!r}")
        return self.objdir / digest[:2] / digest[2:4] / digest

    def exists(self, digest: str) -> bool:
        """Check if an object is stored. Never raises."""
        try:
            return self.path_for(digest).is_file()
        except (ValueError, OSError):
            return False

    def store(self, content: bytes, source_path: Optional[str] = None) -> str:
        """Store content and return its digest.

        Storing content that is already present writes nothing new to the
        object tree; a new ``source_path`` is still recorded in the index.

        Args:
            content: Bytes to back up
            source_path: Optional path the content came from (informational)

        Returns:
            Content digest

        Raises:
            StorageIOError: On filesystem failure or lock timeout
        """
        digest = compute_digest(content)
        dst = self.path_for(digest)

        try:
            if dst.exists():
                logger.debug("Already stored: %s", digest)
            else:
                self._write_object(dst, content)
        except portalocker.LockException as e:
            raise StorageIOError(f"Timed out waiting for lock on {digest}: {e}") from e
        except OSError as e:
            raise StorageIOError(f"Cannot store {digest} in {self.root}: {e}") from e

        self.index.record(digest, len(content), source_path)
        return digest

    def _write_object(self, dst: Path, content: bytes) -> None:
        """Atomically place content at ``dst`` unless another writer got there first.

        Technical Details:
            1. Locks a per-object lock file (persists, OS cleans up on crash)
            2. Re-checks existence after acquiring lock (TOCTOU fix)
            3. Writes to a temp file in the same directory and fsyncs it
            4. Makes it read-only, then atomically renames it into place
        """
        dst.parent.mkdir(parents=True, exist_ok=True)
        lock_path = dst.with_suffix(".lock")

        with portalocker.Lock(str(lock_path), "w", timeout=self.lock_timeout):
            if dst.exists():
                logger.debug("Already stored by concurrent writer: %s", dst.name)
                return

            fd, tmpname = tempfile.mkstemp(prefix=".tmp-", dir=str(dst.parent))
            tmppath = Path(tmpname)
            try:
                with os.fdopen(fd, "wb") as tmp:
                    tmp.write(content)
                    tmp.flush()
                    os.fsync(tmp.fileno())

                # Immutable from the moment it becomes visible
                os.chmod(tmppath, 0o444)
                os.replace(str(tmppath), str(dst))
                _fsync_dir(dst.parent)
                logger.debug("Stored object: %s (%d bytes)", dst, len(content))
            except Exception:
                with contextlib.suppress(OSError):
                    tmppath.unlink()
                raise

    def retrieve(self, digest: str) -> bytes:
        """Return the content stored under ``digest``.

        Raises:
            NotFoundError: If no object exists (including malformed digests)
            StorageIOError: If the object exists but cannot be read
            IntegrityError: If the object's content no longer matches its digest
        """
        digest = normalize_digest(digest)
        try:
            src = self.path_for(digest)
        except ValueError:
            raise NotFoundError(digest) from None

        try:
            content = src.read_bytes()
        except FileNotFoundError:
            raise NotFoundError(digest) from None
        except OSError as e:
            raise StorageIOError(f"Cannot read {digest} from {self.root}: {e}") from e

        actual = compute_digest(content)
        if actual != digest:
            raise IntegrityError(digest, actual)
        return content

    def entry(self, digest: str) -> StoredEntry:
        """Return metadata for a stored object.

        Raises:
            NotFoundError: If no object exists for ``digest``
        """
        digest = normalize_digest(digest)
        if not self.exists(digest):
            raise NotFoundError(digest)

        found = self.index.lookup(digest)
        if found is not None:
            return found

        # Object placed without going through store(); describe it from the file
        logger.warning("No index entry for %s in %s", digest, self.root)
        try:
            stat = self.path_for(digest).stat()
        except OSError as e:
            raise StorageIOError(f"Cannot stat {digest} in {self.root}: {e}") from e
        return StoredEntry(digest=digest, size=stat.st_size, created=iso_from_epoch(stat.st_mtime))

    def close(self) -> None:
        """Nothing to release; connections to the index are per call."""
