"""Unit tests for utils/logging.py."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from fwupdate.utils.logging import DATE_FORMAT, parse_level, setup_logger


@pytest.mark.unit
class TestSetupLogger:
    """Test setup_logger function."""

    @pytest.fixture
    def logger_name(self, request):
        """Unique logger name per test, handlers removed afterwards."""
        name = f"fwupdate_test.{request.node.name}"
        yield name
        lg = logging.getLogger(name)
        for h in list(lg.handlers):
            h.close()
            lg.removeHandler(h)

    def test_creates_log_directory(self, tmp_path, logger_name):
        log_dir = tmp_path / "logs" / "nested"

        setup_logger(logger_name, str(log_dir / "fwupdate.log"))

        assert log_dir.exists()

    def test_default_level_is_info(self, tmp_path, logger_name):
        logger = setup_logger(logger_name, str(tmp_path / "fwupdate.log"))

        assert logger.name == logger_name
        assert logger.level == logging.INFO

    def test_custom_level(self, tmp_path, logger_name):
        logger = setup_logger(logger_name, str(tmp_path / "fwupdate.log"), level=logging.DEBUG)

        assert logger.level == logging.DEBUG

    def test_file_and_console_handlers(self, tmp_path, logger_name):
        logger = setup_logger(
            logger_name, str(tmp_path / "fwupdate.log"), max_bytes=1024, backup_count=5
        )

        file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        console_handlers = [
            h for h in logger.handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 1024
        assert file_handlers[0].backupCount == 5
        assert len(console_handlers) == 1

    def test_console_can_be_disabled(self, tmp_path, logger_name):
        logger = setup_logger(logger_name, str(tmp_path / "fwupdate.log"), console=False)

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RotatingFileHandler)

    def test_no_duplicate_handlers_on_second_call(self, tmp_path, logger_name):
        first = setup_logger(logger_name, str(tmp_path / "fwupdate.log"))
        count = len(first.handlers)

        second = setup_logger(logger_name, str(tmp_path / "fwupdate.log"))

        assert first is second
        assert len(second.handlers) == count

    def test_child_loggers_write_to_file(self, tmp_path, logger_name):
        log_file = tmp_path / "fwupdate.log"
        logger = setup_logger(logger_name, str(log_file), console=False)

        logging.getLogger(f"{logger_name}.transport").info("upload started")
        for h in logger.handlers:
            h.flush()

        content = log_file.read_text()
        assert "upload started" in content
        assert f"[INFO] {logger_name}.transport:" in content

    def test_level_by_name(self, tmp_path, logger_name):
        logger = setup_logger(logger_name, str(tmp_path / "fwupdate.log"), level="debug")

        assert logger.level == logging.DEBUG
        assert all(h.level == logging.DEBUG for h in logger.handlers)

    def test_second_call_updates_level(self, tmp_path, logger_name):
        setup_logger(logger_name, str(tmp_path / "fwupdate.log"))

        logger = setup_logger(logger_name, str(tmp_path / "fwupdate.log"), level="WARNING")

        assert logger.level == logging.WARNING
        assert all(h.level == logging.WARNING for h in logger.handlers)

    def test_console_only(self, tmp_path, logger_name):
        logger = setup_logger(logger_name, log_file=None)

        assert len(logger.handlers) == 1
        assert not isinstance(logger.handlers[0], RotatingFileHandler)
        assert list(tmp_path.iterdir()) == []

    def test_formatter_uses_iso_dates(self, tmp_path, logger_name):
        logger = setup_logger(logger_name, str(tmp_path / "fwupdate.log"), console=False)

        assert logger.handlers[0].formatter.datefmt == DATE_FORMAT


@pytest.mark.unit
class TestParseLevel:
    """Test parse_level function."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (logging.ERROR, logging.ERROR),
            ("INFO", logging.INFO),
            ("debug", logging.DEBUG),
            (" warning ", logging.WARNING),
        ],
    )
    def test_resolves_levels(self, value, expected):
        assert parse_level(value) == expected

    def test_unknown_name_raises(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            parse_level("chatty")
