from __future__ import annotations

import logging
import sqlite3
from enum import Enum

from ..db import transaction
from ..errors import NotFoundError, ValidationError
from ..schemas import Book, Genre, GenreDeletionResult, NewBook, UpdateBook

logger = logging.getLogger(__name__)

BOOK_COLUMNS = "id, isbn, title, author, publisher, price, classification_code, is_read, genre_id"


class GenreDeletionStep(str, Enum):
    START = "start"
    FALLBACK_RESOLVED = "fallback_resolved"
    BOOKS_REASSIGNED = "books_reassigned"
    GENRE_DELETED = "genre_deleted"
    COMMITTED = "committed"
    ABORTED = "aborted"


def row_to_book(row: sqlite3.Row) -> Book:
    return Book(
        id=int(row["id"]),
        isbn=row["isbn"],
        title=row["title"],
        author=row["author"],
        publisher=row["publisher"],
        price=row["price"],
        classification_code=row["classification_code"],
        is_read=bool(row["is_read"]),
        genre_id=row["genre_id"],
    )


def row_to_genre(row: sqlite3.Row) -> Genre:
    return Genre(id=int(row["id"]), name=row["name"])


def _require_title(title: str | None) -> None:
    if not title or not title.strip():
        raise ValidationError("Title is required.")


def _require_genre_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Genre name is empty.")
    return cleaned


def _require_existing_genre(conn: sqlite3.Connection, genre_id: int | None) -> None:
    if genre_id is None:
        return
    row = conn.execute("SELECT 1 FROM genres WHERE id = ?", (genre_id,)).fetchone()
    if row is None:
        raise ValidationError(f"Genre with id {genre_id} does not exist.")


def list_books(conn: sqlite3.Connection) -> list[Book]:
    rows = conn.execute(f"SELECT {BOOK_COLUMNS} FROM books ORDER BY id").fetchall()
    return [row_to_book(row) for row in rows]


def list_books_by_genre(conn: sqlite3.Connection, genre_id: int) -> list[Book]:
    rows = conn.execute(
        f"SELECT {BOOK_COLUMNS} FROM books WHERE genre_id = ? ORDER BY id",
        (genre_id,),
    ).fetchall()
    return [row_to_book(row) for row in rows]


def get_book(conn: sqlite3.Connection, book_id: int) -> Book:
    row = conn.execute(f"SELECT {BOOK_COLUMNS} FROM books WHERE id = ?", (book_id,)).fetchone()
    if row is None:
        raise NotFoundError(f"Book with id {book_id} not found")
    return row_to_book(row)


def create_book(conn: sqlite3.Connection, new_book: NewBook) -> Book:
    """Insert a book and return the row exactly as stored, defaults included."""
    _require_title(new_book.title)
    is_read = None if new_book.is_read is None else int(new_book.is_read)
    with transaction(conn):
        _require_existing_genre(conn, new_book.genre_id)
        cur = conn.execute(
            """
            INSERT INTO books (title, genre_id, isbn, author, publisher, price, classification_code, is_read)
            VALUES (?, ?, ?, ?, ?, ?, ?, COALESCE(?, 0))
            """,
            (
                new_book.title,
                new_book.genre_id,
                new_book.isbn,
                new_book.author,
                new_book.publisher,
                new_book.price,
                new_book.classification_code,
                is_read,
            ),
        )
        return get_book(conn, int(cur.lastrowid))


def update_book(conn: sqlite3.Connection, book: UpdateBook) -> Book:
    """Overwrite every mutable column of an existing book and return the stored row."""
    _require_title(book.title)
    with transaction(conn):
        _require_existing_genre(conn, book.genre_id)
        cur = conn.execute(
            """
            UPDATE books SET
                isbn = ?,
                title = ?,
                author = ?,
                publisher = ?,
                price = ?,
                classification_code = ?,
                is_read = ?,
                genre_id = ?
            WHERE id = ?
            """,
            (
                book.isbn,
                book.title,
                book.author,
                book.publisher,
                book.price,
                book.classification_code,
                int(book.is_read),
                book.genre_id,
                book.id,
            ),
        )
        if cur.rowcount == 0:
            raise NotFoundError(f"Book with id {book.id} not found")
        return get_book(conn, book.id)


def delete_book(conn: sqlite3.Connection, book_id: int) -> None:
    with transaction(conn):
        cur = conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
        if cur.rowcount == 0:
            raise NotFoundError(f"Book with id {book_id} not found")


def count_books_in_genre(conn: sqlite3.Connection, genre_id: int) -> int:
    row = conn.execute("SELECT COUNT(*) AS total FROM books WHERE genre_id = ?", (genre_id,)).fetchone()
    return int(row["total"])


def list_genres(conn: sqlite3.Connection) -> list[Genre]:
    rows = conn.execute("SELECT id, name FROM genres ORDER BY name").fetchall()
    return [row_to_genre(row) for row in rows]


def _get_or_create_genre(conn: sqlite3.Connection, name: str) -> Genre:
    conn.execute("INSERT OR IGNORE INTO genres (name) VALUES (?)", (name,))
    row = conn.execute("SELECT id, name FROM genres WHERE name = ?", (name,)).fetchone()
    if row is None:
        raise RuntimeError(f"Failed to load genre {name!r}.")
    return row_to_genre(row)


def create_genre(conn: sqlite3.Connection, name: str) -> Genre:
    """Return the genre called ``name``, inserting it first if it does not exist yet."""
    cleaned = _require_genre_name(name)
    with transaction(conn):
        return _get_or_create_genre(conn, cleaned)


def delete_genre(conn: sqlite3.Connection, genre_id: int, fallback_name: str) -> GenreDeletionResult:
    """Delete a genre after moving its books to the fallback genre.

    Runs as one transaction: the fallback genre is looked up or created, every
    book pointing at ``genre_id`` is moved onto it, then the genre row is
    deleted. Books with no genre are left alone. Any failure rolls back all
    three steps.
    """
    fallback_name = _require_genre_name(fallback_name)
    step = GenreDeletionStep.START
    try:
        with transaction(conn):
            fallback = _get_or_create_genre(conn, fallback_name)
            if fallback.id == genre_id:
                raise ValidationError(f"The fallback genre {fallback_name!r} cannot be deleted.")
            step = GenreDeletionStep.FALLBACK_RESOLVED
            logger.debug("Genre %s deletion: fallback genre is %s", genre_id, fallback.id)

            cur = conn.execute(
                "UPDATE books SET genre_id = ? WHERE genre_id = ?",
                (fallback.id, genre_id),
            )
            reassigned = cur.rowcount
            step = GenreDeletionStep.BOOKS_REASSIGNED
            logger.debug("Genre %s deletion: %s books reassigned", genre_id, reassigned)

            cur = conn.execute("DELETE FROM genres WHERE id = ?", (genre_id,))
            if cur.rowcount == 0:
                raise NotFoundError(f"Genre with id {genre_id} not found")
            step = GenreDeletionStep.GENRE_DELETED
    except Exception:
        last_step, step = step, GenreDeletionStep.ABORTED
        logger.warning("Genre %s deletion %s after step %s", genre_id, step.value, last_step.value)
        raise
    step = GenreDeletionStep.COMMITTED
    logger.debug("Genre %s deletion: %s", genre_id, step.value)
    return GenreDeletionResult(
        deleted_genre_id=genre_id,
        fallback_genre_id=fallback.id,
        reassigned_books=reassigned,
    )
