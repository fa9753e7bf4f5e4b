import os
import sqlite3
from contextlib import closing, contextmanager

from .config import settings

LOG_COLUMNS = ("level", "logger", "message", "exception")


def log_db_path() -> str:
    return os.path.join(settings.DB_DIR, settings.DB_FILE)


@contextmanager
def log_connection():
    """
    Yields a connection to the SQLite log file. The block's writes are
    committed on success and rolled back on error; the connection is always
    closed.
    """
    with closing(sqlite3.connect(log_db_path())) as conn:
        conn.row_factory = sqlite3.Row
        with conn:
            yield conn


def insert_log(level: str, logger: str, message: str, exception=None):
    with log_connection() as conn:
        conn.execute(
            f"INSERT INTO logs ({', '.join(LOG_COLUMNS)}) VALUES (?, ?, ?, ?)",
            (level, logger, message, exception),
        )


def recent_logs(limit: int = 50):
    """Newest first."""
    with log_connection() as conn:
        rows = conn.execute(
            f"SELECT id, timestamp, {', '.join(LOG_COLUMNS)} FROM logs "
            "ORDER BY id DESC LIMIT ?",
            (limit,),
        ).fetchall()
    return [dict(row) for row in rows]


def init_db():
    os.makedirs(settings.DB_DIR, exist_ok=True)
    with log_connection() as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
                level TEXT NOT NULL,
                logger TEXT NOT NULL,
                message TEXT,
                exception TEXT
            );
            """
        )
