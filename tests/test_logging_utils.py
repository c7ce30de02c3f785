import gzip
import logging
from pathlib import Path

import pytest

from iamus.config import DEFAULT_CONFIG, Settings, deep_merge
from iamus.logging_utils import get_logger, level_for


def _settings(debug: dict) -> Settings:
    return Settings(deep_merge(DEFAULT_CONFIG, {"debug": debug}))


@pytest.fixture
def logger_name(request):
    name = f"iamus.test.{request.node.name}"
    yield name
    logger = logging.getLogger(name)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()


@pytest.mark.parametrize(
    "name,level",
    [
        ("error", logging.ERROR),
        ("warn", logging.WARNING),
        ("info", logging.INFO),
        ("http", logging.INFO),
        ("verbose", logging.DEBUG),
        ("DEBUG", logging.DEBUG),
        ("silly", logging.DEBUG),
        ("chatty", logging.INFO),
        (None, logging.INFO),
    ],
)
def test_level_for(name, level):
    assert level_for(name) == level


def test_file_logging(tmp_path: Path, logger_name):
    log_dir = tmp_path / "logs"
    s = _settings({"log-directory": str(log_dir), "log-filename": "t.log", "loglevel": "debug"})

    log = get_logger(logger_name, settings=s)
    log.debug("hello from test")
    for h in log.handlers:
        h.flush()

    assert log.level == logging.DEBUG
    assert "hello from test" in (log_dir / "t.log").read_text(encoding="utf-8")


def test_no_sinks_gets_null_handler(logger_name):
    log = get_logger(logger_name, settings=_settings({"log-to-files": False, "log-to-console": False}))
    assert [type(h) for h in log.handlers] == [logging.NullHandler]


def test_reconfigure_replaces_handlers(tmp_path: Path, logger_name):
    s = _settings({"log-directory": str(tmp_path), "log-to-console": True})
    get_logger(logger_name, settings=s)
    log = get_logger(logger_name, settings=s)

    kinds = sorted(type(h).__name__ for h in log.handlers)
    assert kinds == ["RotatingFileHandler", "StreamHandler"]
    assert get_logger(logger_name) is log


def test_rotated_files_are_compressed(tmp_path: Path, logger_name):
    s = _settings({
        "log-directory": str(tmp_path),
        "log-filename": "iamus.log",
        "log-max-size-megabytes": 0.0002,  # 200 bytes
        "log-max-files": 2,
        "log-compress": True,
    })
    log = get_logger(logger_name, settings=s)
    for i in range(20):
        log.info(f"line {i} " + "x" * 40)

    rotated = tmp_path / "iamus.log.1.gz"
    assert rotated.exists()
    with gzip.open(rotated, "rt", encoding="utf-8") as f:
        assert "line" in f.read()
    assert not (tmp_path / "iamus.log.3.gz").exists()
