from pydantic import BaseModel


class Genre(BaseModel):
    id: int
    name: str


class Book(BaseModel):
    id: int
    isbn: str | None = None
    title: str
    author: str | None = None
    publisher: str | None = None
    price: int | None = None
    classification_code: str | None = None
    is_read: bool = False
    genre_id: int | None = None


class NewBook(BaseModel):
    title: str
    genre_id: int | None = None
    isbn: str | None = None
    author: str | None = None
    publisher: str | None = None
    price: int | None = None
    classification_code: str | None = None
    is_read: bool | None = None


class UpdateBook(BaseModel):
    id: int
    isbn: str | None = None
    title: str
    author: str | None = None
    publisher: str | None = None
    price: int | None = None
    classification_code: str | None = None
    is_read: bool = False
    genre_id: int | None = None


class CandidateMetadata(BaseModel):
    title: str
    author: str = ""
    publisher: str = ""


class GenreCreate(BaseModel):
    name: str


class GenreDeletionResult(BaseModel):
    deleted_genre_id: int
    fallback_genre_id: int
    reassigned_books: int


class GenreBookCount(BaseModel):
    genre_id: int
    count: int


class BookUpdateRequest(BaseModel):
    isbn: str | None = None
    title: str
    author: str | None = None
    publisher: str | None = None
    price: int | None = None
    classification_code: str | None = None
    is_read: bool = False
    genre_id: int | None = None


class NdlLookupRequest(BaseModel):
    isbn: str


class GoogleBooksLookupRequest(BaseModel):
    isbn: str
    api_key: str | None = None


class RakutenLookupRequest(BaseModel):
    isbn: str
    application_id: str | None = None


class AmazonLookupRequest(BaseModel):
    isbn: str
    access_key: str | None = None
    secret_key: str | None = None
    associate_tag: str | None = None
