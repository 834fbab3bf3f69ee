"""Catalog and metadata routes; every handler delegates to injected services."""
from __future__ import annotations

from fastapi import APIRouter, Response

from ..schemas import (
    AmazonLookupRequest,
    Book,
    BookUpdateRequest,
    CandidateMetadata,
    Genre,
    GenreBookCount,
    GenreCreate,
    GenreDeletionResult,
    GoogleBooksLookupRequest,
    NdlLookupRequest,
    NewBook,
    RakutenLookupRequest,
    UpdateBook,
)


def build_api_router(*, get_catalog, get_resolver) -> APIRouter:
    """Create the API router; ``get_catalog``/``get_resolver`` return the live services."""
    router = APIRouter()

    @router.get("/genres", response_model=list[Genre])
    def list_genres() -> list[Genre]:
        return get_catalog().list_genres()

    @router.post("/genres", response_model=Genre)
    def add_genre(payload: GenreCreate) -> Genre:
        """Create a genre, or return the existing one with the same name."""
        return get_catalog().create_genre(payload.name)

    @router.delete("/genres/{genre_id}", response_model=GenreDeletionResult)
    def delete_genre(genre_id: int) -> GenreDeletionResult:
        """Delete a genre after moving its books to the fallback genre."""
        return get_catalog().delete_genre(genre_id)

    @router.get("/genres/{genre_id}/books", response_model=list[Book])
    def list_books_by_genre(genre_id: int) -> list[Book]:
        return get_catalog().list_books_by_genre(genre_id)

    @router.get("/genres/{genre_id}/books/count", response_model=GenreBookCount)
    def count_books_by_genre(genre_id: int) -> GenreBookCount:
        count = get_catalog().count_books_in_genre(genre_id)
        return GenreBookCount(genre_id=genre_id, count=count)

    @router.get("/books", response_model=list[Book])
    def list_books() -> list[Book]:
        return get_catalog().list_books()

    @router.get("/books/{book_id}", response_model=Book)
    def get_book(book_id: int) -> Book:
        return get_catalog().get_book(book_id)

    @router.post("/books", response_model=Book)
    def add_book(payload: NewBook) -> Book:
        return get_catalog().create_book(payload)

    @router.put("/books/{book_id}", response_model=Book)
    def update_book(book_id: int, payload: BookUpdateRequest) -> Book:
        return get_catalog().update_book(UpdateBook(id=book_id, **payload.model_dump()))

    @router.delete("/books/{book_id}", status_code=204)
    def delete_book(book_id: int) -> Response:
        get_catalog().delete_book(book_id)
        return Response(status_code=204)

    @router.post("/metadata/ndl", response_model=CandidateMetadata)
    def metadata_ndl(payload: NdlLookupRequest) -> CandidateMetadata:
        """Look up an ISBN in the National Diet Library catalog."""
        return get_resolver().resolve_ndl(payload.isbn)

    @router.post("/metadata/google-books", response_model=CandidateMetadata)
    def metadata_google_books(payload: GoogleBooksLookupRequest) -> CandidateMetadata:
        return get_resolver().resolve_google_books(payload.isbn, api_key=payload.api_key)

    @router.post("/metadata/rakuten", response_model=CandidateMetadata)
    def metadata_rakuten(payload: RakutenLookupRequest) -> CandidateMetadata:
        return get_resolver().resolve_rakuten(payload.isbn, application_id=payload.application_id)

    @router.post("/metadata/amazon", response_model=CandidateMetadata)
    def metadata_amazon(payload: AmazonLookupRequest) -> CandidateMetadata:
        return get_resolver().resolve_amazon(
            payload.isbn,
            access_key=payload.access_key,
            secret_key=payload.secret_key,
            associate_tag=payload.associate_tag,
        )

    return router
