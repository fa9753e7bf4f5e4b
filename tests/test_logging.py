import logging

import pytest

from pattogym.config import settings
from pattogym.database import init_db, recent_logs
from pattogym.errors import PersistenceError
from pattogym.log_handler import SQLiteHandler


@pytest.fixture
def db_logger(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DB_DIR", str(tmp_path / "db"))
    init_db()

    logger = logging.getLogger("gymtest.sqlite")
    handler = SQLiteHandler()
    logger.addHandler(handler)
    yield logger
    logger.removeHandler(handler)


def test_sqlite_handler_keeps_warnings(db_logger):
    db_logger.info("routine")
    db_logger.error("workout save failed")

    rows = recent_logs()
    assert [(r["level"], r["logger"]) for r in rows] == [("ERROR", "gymtest.sqlite")]
    assert rows[0]["message"] == "workout save failed"
    assert rows[0]["exception"] is None


def test_sqlite_handler_stores_traceback_separately(db_logger):
    try:
        raise PersistenceError("Failed to save workout")
    except PersistenceError:
        db_logger.exception("Background save for user-1 failed")

    (row,) = recent_logs()
    assert row["message"] == "Background save for user-1 failed"
    assert "PersistenceError: Failed to save workout" in row["exception"]
    assert "Traceback" in row["exception"]


def test_recent_logs_are_newest_first(db_logger):
    for n in range(3):
        db_logger.warning("warning %d", n)

    rows = recent_logs(limit=2)
    assert [r["message"] for r in rows] == ["warning 2", "warning 1"]


def test_init_db_is_repeatable(db_logger):
    db_logger.warning("kept")
    init_db()
    assert [r["message"] for r in recent_logs()] == ["kept"]
