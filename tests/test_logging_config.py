import logging

from crbundler.common import logging_config
from crbundler.common.config import load_config
from crbundler.models import BundlerSettings, LoggingSettings


def _flush():
    for handler in logging.getLogger().handlers:
        handler.flush()


def test_setup_logging_updates_level(tmp_path):
    log_path = tmp_path / "logs" / "crbundler.log"

    logging_config.setup_logging("INFO", log_path)
    written = logging_config.setup_logging("DEBUG", log_path)

    logging.getLogger("crbundler.tests.logging").debug("debug-entry")
    _flush()

    assert written == log_path
    assert "debug-entry" in log_path.read_text(encoding="utf-8")


def test_configure_logging_uses_settings_directory(tmp_path):
    settings = LoggingSettings(level="warning", directory=tmp_path / "custom", file_name="run.log")

    written = logging_config.configure_logging(settings)
    logger = logging.getLogger("crbundler.tests.logging")
    logger.info("info-entry")
    logger.warning("warning-entry")
    _flush()

    assert written == tmp_path / "custom" / "run.log"
    content = written.read_text(encoding="utf-8")
    assert "warning-entry" in content
    assert "info-entry" not in content


def test_debug_flag_overrides_configured_level(tmp_path):
    settings = LoggingSettings(level="ERROR", directory=tmp_path)

    logging_config.configure_logging(settings, debug=True)

    assert logging.getLogger().level == logging.DEBUG


def test_log_dir_environment_flows_into_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("CRBUNDLER_LOG_DIR", str(tmp_path / "env-logs"))

    settings = BundlerSettings.from_config(load_config())

    assert settings.logging.log_file == tmp_path / "env-logs" / "crbundler.log"
    assert settings.logging.backup_count == 5
