from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator

from ..db import CatalogConnection
from ..errors import StorageError
from ..schemas import Book, Genre, GenreDeletionResult, NewBook, UpdateBook
from . import catalog_store

logger = logging.getLogger(__name__)


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        logger.warning("Catalog %s failed: %s", operation, exc)
        raise StorageError(str(exc)) from exc


class CatalogService:
    """Catalog operations as seen by the front end.

    Each call holds the shared connection for its whole duration, so a write
    and the read-back of its result happen on the same connection with no
    other operation in between.
    """

    def __init__(self, catalog: CatalogConnection, fallback_genre_name: str) -> None:
        self.catalog = catalog
        self.fallback_genre_name = fallback_genre_name

    def list_books(self) -> list[Book]:
        with self.catalog.acquire() as conn, _storage_errors("list_books"):
            return catalog_store.list_books(conn)

    def list_books_by_genre(self, genre_id: int) -> list[Book]:
        with self.catalog.acquire() as conn, _storage_errors("list_books_by_genre"):
            return catalog_store.list_books_by_genre(conn, genre_id)

    def get_book(self, book_id: int) -> Book:
        with self.catalog.acquire() as conn, _storage_errors("get_book"):
            return catalog_store.get_book(conn, book_id)

    def create_book(self, new_book: NewBook) -> Book:
        with self.catalog.acquire() as conn, _storage_errors("create_book"):
            book = catalog_store.create_book(conn, new_book)
        logger.info("Book %s created", book.id)
        return book

    def update_book(self, book: UpdateBook) -> Book:
        with self.catalog.acquire() as conn, _storage_errors("update_book"):
            return catalog_store.update_book(conn, book)

    def delete_book(self, book_id: int) -> None:
        with self.catalog.acquire() as conn, _storage_errors("delete_book"):
            catalog_store.delete_book(conn, book_id)
        logger.info("Book %s deleted", book_id)

    def count_books_in_genre(self, genre_id: int) -> int:
        with self.catalog.acquire() as conn, _storage_errors("count_books_in_genre"):
            return catalog_store.count_books_in_genre(conn, genre_id)

    def list_genres(self) -> list[Genre]:
        with self.catalog.acquire() as conn, _storage_errors("list_genres"):
            return catalog_store.list_genres(conn)

    def create_genre(self, name: str) -> Genre:
        with self.catalog.acquire() as conn, _storage_errors("create_genre"):
            return catalog_store.create_genre(conn, name)

    def delete_genre(self, genre_id: int) -> GenreDeletionResult:
        with self.catalog.acquire() as conn, _storage_errors("delete_genre"):
            result = catalog_store.delete_genre(conn, genre_id, self.fallback_genre_name)
        logger.info(
            "Genre %s deleted, %s books moved to genre %s",
            genre_id,
            result.reassigned_books,
            result.fallback_genre_id,
        )
        return result
