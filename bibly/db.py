from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import load_config

logger = logging.getLogger(__name__)


def get_connection(db_path: Path | None = None) -> sqlite3.Connection:
    if db_path is None:
        db_path = load_config().db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    # Transactions are opened explicitly with transaction() below.
    conn = sqlite3.connect(db_path, isolation_level=None, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        PRAGMA journal_mode=WAL;
        PRAGMA foreign_keys=ON;
        CREATE TABLE IF NOT EXISTS genres (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL UNIQUE
        );
        CREATE TABLE IF NOT EXISTS books (
            id INTEGER PRIMARY KEY,
            isbn TEXT,
            title TEXT NOT NULL,
            author TEXT,
            publisher TEXT,
            price INTEGER,
            classification_code TEXT,
            is_read INTEGER NOT NULL DEFAULT 0,
            genre_id INTEGER,
            FOREIGN KEY(genre_id) REFERENCES genres(id)
        );
        CREATE INDEX IF NOT EXISTS idx_books_genre_id ON books(genre_id);
        """
    )


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run the enclosed statements as one unit; roll everything back on any error."""
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    else:
        conn.commit()


class CatalogConnection:
    """The single shared catalog connection and the lock that serializes its use.

    Every catalog operation, read or write, holds the lock for its full duration.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._lock = threading.Lock()

    @contextmanager
    def acquire(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            yield self._conn

    def close(self) -> None:
        with self._lock:
            self._conn.close()


def open_catalog(db_path: Path | None = None) -> CatalogConnection:
    conn = get_connection(db_path)
    init_db(conn)
    logger.info("Catalog opened at %s", db_path or load_config().db_path)
    return CatalogConnection(conn)
