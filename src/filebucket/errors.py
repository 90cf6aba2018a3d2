"""Custom exceptions for filebucket.

This module defines the closed set of error kinds raised by buckets. Callers
branch on the concrete class; ``NotFoundError`` in particular is an expected
outcome of ``retrieve`` and is kept distinct from every failure.
"""


class BucketError(RuntimeError):
    """Base class for all bucket-related errors."""
    pass


class NotFoundError(BucketError):
    """No entry exists for the requested digest."""

    def __init__(self, digest: str):
        self.digest = digest
        super().__init__(f"No content stored for digest {digest!r}")


# Storage Errors
class StorageIOError(BucketError):
    """Local filesystem failure while storing or reading content."""
    pass


class IntegrityError(BucketError):
    """Content read back does not hash to the digest it is stored under."""

    def __init__(self, digest: str, actual: str = ""):
        self.digest = digest
        self.actual = actual
        super().__init__(
            f"Integrity check failed for {digest}\n"
            f"  Stored under: {digest}\n"
            f"  Content hash: {actual or 'unknown (reported by bucket service)'}\n"
            f"The bucket entry may be corrupted or tampered with."
        )


# Remote Errors
class BucketConnectionError(BucketError):
    """Remote bucket service unreachable, timed out, or connection lost."""
    pass


class RemoteError(BucketError):
    """Bucket service reported a failure other than "not found"."""

    def __init__(self, code: str, detail: str = ""):
        self.code = code
        self.detail = detail
        message = f"Bucket service error ({code})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


# Configuration Errors
class ConfigurationError(BucketError):
    """A bucket cannot be constructed from the given parameters."""
    pass
