"""Global pytest fixtures and configuration."""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fwupdate.models.config import UpdaterConfig  # noqa: E402
from fwupdate.models.image import UpdateImage  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep tests away from the real environment and working directory."""
    monkeypatch.delenv("FWUPDATE_DEVICE_URL", raising=False)
    monkeypatch.delenv("FWUPDATE_CONFIG", raising=False)
    monkeypatch.delenv("FWUPDATE_LOG_LEVEL", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def config():
    """Config with fast timings for tests."""
    return UpdaterConfig(
        device_url="http://device.test",
        upload_timeout=5.0,
        upload_chunk_size=1024,
        reconnect_max_attempts=3,
        reconnect_attempt_timeout=0.5,
        reconnect_interval=0,
    )


@pytest.fixture
def firmware_image():
    """Valid 8KB firmware image."""
    return UpdateImage.from_bytes("firmware.bin", b"\xe9" + b"\x00" * (8 * 1024 - 1))


@pytest.fixture
def firmware_file(tmp_path, firmware_image):
    """Valid firmware image written to disk."""
    path = tmp_path / firmware_image.name
    path.write_bytes(firmware_image.data)
    return path
