"""Remote bucket client speaking the bucket protocol over HTTP."""

import logging
import urllib.parse
from typing import Optional

import requests
from pydantic import ValidationError

from ..constants import DEFAULT_PORT, DEFAULT_TIMEOUT
from ..errors import BucketConnectionError, IntegrityError, NotFoundError, RemoteError
from ..hashing import compute_digest, is_valid_digest, normalize_digest
from ..models import StoredEntry
from ..protocol import (
    CONTENT_TYPE,
    HEALTH_PATH,
    OBJECTS_PATH,
    SOURCE_HEADER,
    ErrorResponse,
    HealthResponse,
    StoreResponse,
    entry_path,
    object_path,
    raise_for_error,
)

logger = logging.getLogger(__name__)


class RemoteBucketClient:
    """
    Bucket backed by a remote bucket service.

    Holds no durable state; every call is one request/response round trip on
    a kept-alive ``requests.Session``. Nothing is retried.
    """

    def __init__(
        self,
        server: str,
        port: Optional[int] = None,
        timeout: float = DEFAULT_TIMEOUT,
        scheme: str = "http",
        session: Optional[requests.Session] = None,
    ):
        """
        Connect to a bucket service.

        Args:
            server: Host name or address of the bucket service
            port: Service port (default: DEFAULT_PORT)
            timeout: Seconds before a request is abandoned
            scheme: "http" or "https"
            session: Optional pre-configured session (auth, TLS settings)

        Raises:
            BucketConnectionError: If the service cannot be reached now
        """
        self.server = server
        self.port = port or DEFAULT_PORT
        self.timeout = timeout
        self.base_url = f"{scheme}://{server}:{self.port}"
        self.session = session or requests.Session()

        # Fail fast: a misconfigured remote bucket must not look usable
        health = self.ping()
        logger.debug("Connected to bucket service %s (version %s)", self.base_url, health.version)

    def __repr__(self) -> str:
        return f"RemoteBucketClient({self.base_url!r})"

    def __enter__(self) -> "RemoteBucketClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        """Send one request, mapping transport failures to BucketConnectionError."""
        url = self.base_url + path
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            raise BucketConnectionError(
                f"Timed out after {self.timeout}s talking to bucket service at {self.base_url}: {e}"
            ) from e
        except requests.exceptions.RequestException as e:
            raise BucketConnectionError(
                f"Cannot connect to bucket service at {self.base_url}: {e}"
            ) from e

    def _raise_for_response(self, resp: requests.Response, digest: str = "") -> None:
        """Raise the exception described by a non-200 response."""
        try:
            error = ErrorResponse.model_validate_json(resp.content)
        except ValidationError:
            raise RemoteError(f"http_{resp.status_code}", resp.text[:200]) from None
        raise_for_error(error, digest)

    def ping(self) -> HealthResponse:
        """Check that the service is up.

        Raises:
            BucketConnectionError: If the service is unreachable
            RemoteError: If something other than a bucket service answered
        """
        resp = self._request("GET", HEALTH_PATH)
        if resp.status_code != 200:
            self._raise_for_response(resp)
        try:
            return HealthResponse.model_validate_json(resp.content)
        except ValidationError as e:
            raise RemoteError("bad_response", f"{self.base_url} is not a bucket service: {e}") from e

    def store(self, content: bytes, source_path: Optional[str] = None) -> str:
        """Send content to the service and return its digest."""
        headers = {"Content-Type": CONTENT_TYPE}
        if source_path:
            # Header values must stay ASCII
            headers[SOURCE_HEADER] = urllib.parse.quote(source_path)

        resp = self._request("POST", OBJECTS_PATH, data=content, headers=headers)
        if resp.status_code != 200:
            self._raise_for_response(resp)
        try:
            digest = StoreResponse.model_validate_json(resp.content).digest
        except ValidationError as e:
            raise RemoteError("bad_response", f"Invalid store response: {e}") from e

        logger.debug("Stored %d bytes remotely as %s", len(content), digest)
        return digest

    def retrieve(self, digest: str) -> bytes:
        """Fetch content from the service.

        Raises:
            NotFoundError: If the service has no entry (or the digest is malformed)
            IntegrityError: If the bytes received do not hash to ``digest``
            RemoteError: For any other service-side failure
            BucketConnectionError: If the connection fails
        """
        digest = normalize_digest(digest)
        if not is_valid_digest(digest):
            raise NotFoundError(digest)

        resp = self._request("GET", object_path(digest))
        if resp.status_code != 200:
            self._raise_for_response(resp, digest)

        content = resp.content
        actual = compute_digest(content)
        if actual != digest:
            raise IntegrityError(digest, actual)
        return content

    def exists(self, digest: str) -> bool:
        """Ask the service whether an entry exists, without transferring it."""
        digest = normalize_digest(digest)
        if not is_valid_digest(digest):
            return False

        resp = self._request("HEAD", object_path(digest))
        if resp.status_code == 200:
            return True
        if resp.status_code == 404:
            return False
        raise RemoteError(f"http_{resp.status_code}", "Unexpected response to existence check")

    def entry(self, digest: str) -> StoredEntry:
        """Fetch entry metadata from the service."""
        digest = normalize_digest(digest)
        if not is_valid_digest(digest):
            raise NotFoundError(digest)

        resp = self._request("GET", entry_path(digest))
        if resp.status_code != 200:
            self._raise_for_response(resp, digest)
        try:
            return StoredEntry.model_validate_json(resp.content)
        except ValidationError as e:
            raise RemoteError("bad_response", f"Invalid entry response: {e}") from e
