"""Unit tests for models/config.py."""

import json

import pytest

from fwupdate.models.config import ConfigError, UpdaterConfig, load_config


@pytest.mark.unit
class TestUpdaterConfig:
    """Test UpdaterConfig defaults and normalization."""

    def test_defaults(self):
        config = UpdaterConfig()

        assert config.accepted_extension == ".bin"
        assert config.max_image_size == 2 * 1024 * 1024
        assert config.upload_timeout == 180.0
        assert config.reconnect_max_attempts == 20
        assert config.reconnect_interval == 3.0
        assert config.reconnect_initial_delay == 3.0

    def test_urls(self):
        config = UpdaterConfig(device_url="http://10.0.0.7/")

        assert config.upload_url == "http://10.0.0.7/api/firmware/upload"
        assert config.health_url == "http://10.0.0.7/api/health/status"

    def test_extension_normalized(self):
        assert UpdaterConfig(accepted_extension="BIN").accepted_extension == ".bin"

    def test_explicit_initial_delay(self):
        config = UpdaterConfig(reconnect_interval=3.0, reconnect_initial_delay=0)

        assert config.reconnect_initial_delay == 0

    @pytest.mark.parametrize(
        "field,value",
        [
            ("max_image_size", 0),
            ("upload_timeout", -1),
            ("reconnect_max_attempts", 0),
            ("device_url", "device.local"),
        ],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValueError):
            UpdaterConfig(**{field: value})


@pytest.mark.unit
class TestLoadConfig:
    """Test load_config precedence and errors."""

    def test_missing_default_file_uses_defaults(self):
        assert load_config() == UpdaterConfig()

    def test_default_file_is_read(self, tmp_path):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "fwupdate.json").write_text(json.dumps({"reconnect_max_attempts": 7}))

        assert load_config().reconnect_max_attempts == 7

    def test_explicit_file(self, tmp_path):
        path = tmp_path / "device.json"
        path.write_text(json.dumps({"device_url": "http://cam.local", "max_image_size": 4096}))

        config = load_config(path)

        assert config.device_url == "http://cam.local"
        assert config.max_image_size == 4096

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(ConfigError, match="Failed to read"):
            load_config(path)

    def test_non_object_json(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")

        with pytest.raises(ConfigError, match="JSON object"):
            load_config(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"upload_timeout": 0}))

        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)

    def test_precedence(self, tmp_path, monkeypatch):
        path = tmp_path / "device.json"
        path.write_text(json.dumps({"device_url": "http://file.local", "upload_timeout": 60}))
        monkeypatch.setenv("FWUPDATE_DEVICE_URL", "http://env.local")

        config = load_config(path, upload_timeout=None, reconnect_max_attempts=2)
        assert config.device_url == "http://env.local"
        assert config.upload_timeout == 60
        assert config.reconnect_max_attempts == 2

        config = load_config(path, device_url="http://cli.local")
        assert config.device_url == "http://cli.local"
