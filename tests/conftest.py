"""Shared test fixtures and utilities."""

import socket
import threading
import time

import pytest
import uvicorn

from filebucket.service import BucketService
from filebucket.storage.local import LocalBucketStore
from filebucket.storage.remote import RemoteBucketClient


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep default bucket dir and config lookups inside tmp_path."""
    monkeypatch.setenv("FILEBUCKET_BUCKETDIR", str(tmp_path / "default-bucket"))
    monkeypatch.delenv("FILEBUCKET_CONFIG", raising=False)


@pytest.fixture
def local_store(tmp_path):
    """Create LocalBucketStore instance with temp directory."""
    return LocalBucketStore(tmp_path / "bucket")


@pytest.fixture
def bucket_service(tmp_path):
    """Run a real bucket service on an ephemeral port.

    Yields (service, port); the server thread is stopped afterwards.
    """
    service = BucketService.from_path(tmp_path / "served", host="127.0.0.1", port=0)
    server = uvicorn.Server(service.server_config(log_level="warning"))
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    deadline = time.time() + 10
    while not server.started:
        if not thread.is_alive() or time.time() > deadline:
            raise RuntimeError("bucket service did not start")
        time.sleep(0.01)

    port = server.servers[0].sockets[0].getsockname()[1]
    try:
        yield service, port
    finally:
        server.should_exit = True
        thread.join(timeout=10)


@pytest.fixture
def remote_client(bucket_service):
    """RemoteBucketClient connected to the running service."""
    _, port = bucket_service
    client = RemoteBucketClient("127.0.0.1", port, timeout=10)
    yield client
    client.close()


@pytest.fixture
def free_port():
    """A port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture(params=["local", "remote"])
def any_bucket(request, tmp_path):
    """The same bucket contract, backed locally or through the service."""
    if request.param == "local":
        yield LocalBucketStore(tmp_path / "bucket")
    else:
        yield request.getfixturevalue("remote_client")
