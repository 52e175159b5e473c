# tests/test_logging_setup.py
import logging
import os
import time

from access_analyzer.infra.logging_setup import cleanup_old_logs, get_session_logger


def _close(logger):
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_session_logger_writes_to_dated_file(tmp_path):
    logger = get_session_logger("test-writes", tmp_path)
    try:
        logger.info("loaded sample.csv")
        for handler in logger.handlers:
            handler.flush()
        files = list(tmp_path.glob("access_analyzer_*.log"))
        assert len(files) == 1
        assert files[0].name == f"access_analyzer_{time.strftime('%Y%m%d')}.log"
        assert "loaded sample.csv" in files[0].read_text(encoding="utf-8")
    finally:
        _close(logger)


def test_session_logger_does_not_duplicate_handlers(tmp_path):
    first = get_session_logger("test-dupes", tmp_path)
    try:
        second = get_session_logger("test-dupes", tmp_path)
        assert first is second
        assert len(second.handlers) == 1
    finally:
        _close(first)


def test_cleanup_removes_only_old_analyzer_logs(tmp_path):
    now = time.time()
    old = tmp_path / "access_analyzer_20200101.log"
    fresh = tmp_path / "access_analyzer_20991231.log"
    other = tmp_path / "unrelated.log"
    for path in (old, fresh, other):
        path.write_text("x", encoding="utf-8")
    os.utime(old, (now - 3 * 24 * 3600, now - 3 * 24 * 3600))
    os.utime(other, (now - 3 * 24 * 3600, now - 3 * 24 * 3600))

    assert cleanup_old_logs(tmp_path, now=now) == 1
    assert not old.exists()
    assert fresh.exists() and other.exists()


def test_cleanup_of_missing_directory_is_a_no_op(tmp_path):
    assert cleanup_old_logs(tmp_path / "absent") == 0
