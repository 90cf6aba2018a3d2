"""Tests for bucket configuration loading."""

from pathlib import Path

import pytest

from filebucket.config import BucketConfig, default_bucket_dir, default_config_path, load_config
from filebucket.errors import ConfigurationError


class TestLoadConfig:
    """Test YAML config parsing."""

    def test_load(self, tmp_path):
        cfg = tmp_path / "buckets.yaml"
        cfg.write_text(
            "buckets:\n"
            "  main:\n"
            "    path: /var/lib/filebucket\n"
            "  site:\n"
            "    server: puppet.example.com\n"
            "    port: 8141\n"
            "    timeout: 5\n"
            "  plain:\n"
        )

        configs = {c.name: c for c in load_config(cfg)}

        assert configs["main"].path == Path("/var/lib/filebucket")
        assert not configs["main"].is_remote
        assert configs["site"].server == "puppet.example.com"
        assert configs["site"].port == 8141
        assert configs["site"].timeout == 5.0
        assert configs["site"].is_remote
        assert configs["plain"] == BucketConfig(name="plain")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        cfg = tmp_path / "bad.yaml"
        cfg.write_text("buckets: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(cfg)

    def test_buckets_not_mapping(self, tmp_path):
        cfg = tmp_path / "list.yaml"
        cfg.write_text("buckets:\n  - main\n")
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            load_config(cfg)

    def test_invalid_parameter(self, tmp_path):
        cfg = tmp_path / "port.yaml"
        cfg.write_text("buckets:\n  site:\n    server: x\n    port: not-a-port\n")
        with pytest.raises(ConfigurationError, match="Invalid filebucket 'site'"):
            load_config(cfg)

    def test_empty_file(self, tmp_path):
        cfg = tmp_path / "empty.yaml"
        cfg.write_text("")
        assert load_config(cfg) == []


class TestDefaults:
    """Test default locations."""

    def test_bucket_dir_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FILEBUCKET_BUCKETDIR", str(tmp_path / "custom"))
        assert default_bucket_dir() == tmp_path / "custom"

    def test_bucket_dir_platform_default(self, monkeypatch):
        monkeypatch.delenv("FILEBUCKET_BUCKETDIR")
        path = default_bucket_dir()
        assert path.name == "bucket"
        assert "filebucket" in str(path)

    def test_config_path_from_env(self, tmp_path, monkeypatch):
        assert default_config_path() is None
        monkeypatch.setenv("FILEBUCKET_CONFIG", str(tmp_path / "b.yaml"))
        assert default_config_path() == tmp_path / "b.yaml"
