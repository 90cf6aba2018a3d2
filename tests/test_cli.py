"""Integration tests for CLI commands."""

import pytest
from typer.testing import CliRunner

from filebucket.cli import app
from filebucket.storage.local import LocalBucketStore


HELLO_DIGEST = "5eb63bbbe01eeed093cb22bb8f5acdc3"


@pytest.fixture
def runner():
    """Create a CliRunner for in-process testing."""
    return CliRunner()


@pytest.fixture
def bucket_dir(tmp_path):
    return tmp_path / "cli-bucket"


@pytest.fixture
def motd(tmp_path):
    path = tmp_path / "motd"
    path.write_bytes(b"hello world")
    return path


class TestBackup:
    """Test the backup command."""

    def test_backup_prints_digest(self, runner, bucket_dir, motd):
        result = runner.invoke(app, ["backup", "--local", str(bucket_dir), str(motd)])

        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == f"{HELLO_DIGEST}  {motd}"
        assert LocalBucketStore(bucket_dir).retrieve(HELLO_DIGEST) == b"hello world"

    def test_backup_records_source_path(self, runner, bucket_dir, motd):
        runner.invoke(app, ["backup", "--local", str(bucket_dir), str(motd)])

        entry = LocalBucketStore(bucket_dir).entry(HELLO_DIGEST)
        assert entry.source_paths == [str(motd.resolve())]

    def test_backup_multiple_files(self, runner, bucket_dir, tmp_path, motd):
        other = tmp_path / "other"
        other.write_bytes(b"other")

        result = runner.invoke(app, ["backup", "-l", str(bucket_dir), str(motd), str(other)])

        assert result.exit_code == 0, result.output
        assert len(result.stdout.strip().splitlines()) == 2

    def test_backup_default_bucket(self, runner, tmp_path, motd):
        result = runner.invoke(app, ["backup", str(motd)])

        assert result.exit_code == 0, result.output
        assert LocalBucketStore(tmp_path / "default-bucket").exists(HELLO_DIGEST)

    def test_backup_missing_file(self, runner, bucket_dir, tmp_path):
        result = runner.invoke(app, ["backup", "-l", str(bucket_dir), str(tmp_path / "missing")])
        assert result.exit_code == 1

    def test_backup_unwritable_bucket(self, runner, tmp_path, motd):
        blocker = tmp_path / "blocker"
        blocker.write_text("")

        result = runner.invoke(app, ["backup", "-l", str(blocker / "bucket"), str(motd)])
        assert result.exit_code == 1


class TestRetrieval:
    """Test get, restore, exists and info."""

    @pytest.fixture
    def stored(self, bucket_dir):
        LocalBucketStore(bucket_dir).store(b"hello world", source_path="/etc/motd")
        return bucket_dir

    def test_get(self, runner, stored):
        result = runner.invoke(app, ["get", "-l", str(stored), HELLO_DIGEST])

        assert result.exit_code == 0
        assert result.stdout_bytes == b"hello world"

    def test_get_unknown(self, runner, stored):
        result = runner.invoke(app, ["get", "-l", str(stored), "0" * 31])
        assert result.exit_code == 1

    def test_restore(self, runner, stored, tmp_path):
        dest = tmp_path / "restored" / "motd"

        result = runner.invoke(app, ["restore", "-l", str(stored), HELLO_DIGEST, str(dest)])

        assert result.exit_code == 0, result.output
        assert dest.read_bytes() == b"hello world"

    def test_restore_replaces_existing(self, runner, stored, motd):
        motd.write_bytes(b"changed by someone")

        result = runner.invoke(app, ["restore", "-l", str(stored), HELLO_DIGEST, str(motd)])

        assert result.exit_code == 0, result.output
        assert motd.read_bytes() == b"hello world"

    def test_restore_unknown_leaves_dest(self, runner, stored, motd):
        result = runner.invoke(app, ["restore", "-l", str(stored), "0" * 32, str(motd)])

        assert result.exit_code == 1
        assert motd.read_bytes() == b"hello world"

    def test_exists(self, runner, stored):
        assert runner.invoke(app, ["exists", "-l", str(stored), HELLO_DIGEST]).exit_code == 0
        assert runner.invoke(app, ["exists", "-l", str(stored), "0" * 32]).exit_code == 1

    def test_info(self, runner, stored):
        result = runner.invoke(app, ["info", "-l", str(stored), HELLO_DIGEST])

        assert result.exit_code == 0, result.output
        assert HELLO_DIGEST in result.stdout
        assert "/etc/motd" in result.stdout

    def test_info_unknown(self, runner, stored):
        result = runner.invoke(app, ["info", "-l", str(stored), "0" * 32])
        assert result.exit_code == 1


class TestBucketSelection:
    """Test --bucket/--config and --server selection."""

    def test_named_bucket_from_config(self, runner, tmp_path, motd):
        cfg = tmp_path / "buckets.yaml"
        cfg.write_text(f"buckets:\n  main:\n    path: {tmp_path / 'named'}\n")

        result = runner.invoke(app, ["backup", "-b", "main", "-c", str(cfg), str(motd)])

        assert result.exit_code == 0, result.output
        assert LocalBucketStore(tmp_path / "named").exists(HELLO_DIGEST)

    def test_named_bucket_from_env_config(self, runner, tmp_path, motd, monkeypatch):
        cfg = tmp_path / "buckets.yaml"
        cfg.write_text(f"buckets:\n  main:\n    path: {tmp_path / 'named'}\n")
        monkeypatch.setenv("FILEBUCKET_CONFIG", str(cfg))

        result = runner.invoke(app, ["backup", "-b", "main", str(motd)])
        assert result.exit_code == 0, result.output

    def test_named_bucket_ignores_other_remotes(self, runner, tmp_path, motd, free_port):
        """Only the requested bucket is built; an unreachable neighbour is never contacted."""
        cfg = tmp_path / "buckets.yaml"
        cfg.write_text(
            "buckets:\n"
            f"  main:\n    path: {tmp_path / 'named'}\n"
            f"  offline:\n    server: 127.0.0.1\n    port: {free_port}\n    timeout: 2\n"
        )

        result = runner.invoke(app, ["backup", "-b", "main", "-c", str(cfg), str(motd)])

        assert result.exit_code == 0, result.output
        assert LocalBucketStore(tmp_path / "named").exists(HELLO_DIGEST)

    def test_unknown_bucket_name(self, runner, tmp_path, motd):
        cfg = tmp_path / "buckets.yaml"
        cfg.write_text("buckets:\n  main: {}\n")

        result = runner.invoke(app, ["backup", "-b", "other", "-c", str(cfg), str(motd)])
        assert result.exit_code == 1

    def test_bucket_without_config(self, runner, motd):
        result = runner.invoke(app, ["backup", "-b", "main", str(motd)])
        assert result.exit_code == 1

    def test_remote_backup_and_get(self, runner, bucket_service, motd):
        service, port = bucket_service
        remote = ["--server", "127.0.0.1", "--port", str(port)]

        result = runner.invoke(app, ["backup", *remote, str(motd)])
        assert result.exit_code == 0, result.output
        assert service.store.exists(HELLO_DIGEST)

        result = runner.invoke(app, ["get", *remote, HELLO_DIGEST])
        assert result.stdout_bytes == b"hello world"

    def test_unreachable_server(self, runner, free_port, motd):
        result = runner.invoke(app, ["backup", "--server", "127.0.0.1", "--port", str(free_port), str(motd)])
        assert result.exit_code == 1
