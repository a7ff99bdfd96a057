import logging

import pytest

from folderplay.logging_setup import LOG_TARGETS, build_logging_config, setup_logging


@pytest.fixture
def configured(tmp_path):
    log_directory = tmp_path / "logs"
    setup_logging(log_directory, level="DEBUG")
    yield log_directory
    for name in LOG_TARGETS:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)


def _flush():
    for name in LOG_TARGETS:
        for handler in logging.getLogger(name).handlers:
            handler.flush()


def test_each_concern_gets_its_own_file(configured):
    logging.getLogger("folderplay.playback").info("playing clip")
    _flush()
    assert "playing clip" in (configured / "playback.log").read_text(encoding="utf-8")
    assert "playing clip" not in (configured / "app.log").read_text(encoding="utf-8")


def test_file_operations_also_reach_app_log(configured):
    logging.getLogger("folderplay.fileops").info("moved clip")
    _flush()
    assert "moved clip" in (configured / "fileops.log").read_text(encoding="utf-8")
    assert "moved clip" in (configured / "app.log").read_text(encoding="utf-8")


def test_child_loggers_use_app_log(configured):
    logging.getLogger("folderplay.scan").debug("scanned folder")
    _flush()
    assert "scanned folder" in (configured / "app.log").read_text(encoding="utf-8")


def test_config_uses_requested_level(tmp_path):
    config = build_logging_config(tmp_path, level="WARNING")
    assert config["handlers"]["console"]["level"] == "WARNING"
    assert {logger["level"] for logger in config["loggers"].values()} == {"WARNING"}
    assert config["handlers"]["fileops_file"]["backupCount"] == 3
