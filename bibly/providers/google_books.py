from __future__ import annotations

import logging
import os
from urllib.parse import urlencode

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as SchemaError

from ..errors import NoResultError, TransportError
from ..schemas import CandidateMetadata
from .base import DEFAULT_TIMEOUT, clean_credential, decode_json, fetch_bytes, require_isbn
from .extract import Completeness, MetadataRecord, first_complete

logger = logging.getLogger(__name__)

GOOGLE_BOOKS_URL = "https://www.googleapis.com/books/v1/volumes"


class VolumeInfo(BaseModel):
    title: str | None = None
    authors: list[str] = []
    publisher: str | None = None

    @field_validator("title", "publisher", mode="before")
    @classmethod
    def _text_or_none(cls, value: object) -> str | None:
        return value if isinstance(value, str) else None

    @field_validator("authors", mode="before")
    @classmethod
    def _string_authors(cls, value: object) -> list[str]:
        if not isinstance(value, list):
            return []
        return [name for name in value if isinstance(name, str)]


class Volume(BaseModel):
    volumeInfo: VolumeInfo = Field(default_factory=VolumeInfo)

    @field_validator("volumeInfo", mode="before")
    @classmethod
    def _dict_info(cls, value: object) -> object:
        return value if isinstance(value, dict) else {}


class VolumesResponse(BaseModel):
    items: list[Volume] = []

    @field_validator("items", mode="before")
    @classmethod
    def _dict_items(cls, value: object) -> list[object]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]


def to_record(volume: Volume) -> MetadataRecord:
    info = volume.volumeInfo
    return MetadataRecord(title=info.title, authors=tuple(info.authors), publisher=info.publisher)


class GoogleBooksProvider:
    """Adapter for the Google Books volumes search, queried by ISBN.

    The first item with a non-empty title wins; author and publisher may be blank.
    """

    name = "google_books"
    policy = Completeness.PERMISSIVE

    def __init__(self, api_key: str | None = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.api_key = clean_credential(api_key or os.getenv("GOOGLE_BOOKS_API_KEY"))
        self.timeout = timeout

    def build_url(self, isbn: str) -> str:
        params = {"q": f"isbn:{isbn}"}
        if self.api_key:
            params["key"] = self.api_key
        return f"{GOOGLE_BOOKS_URL}?{urlencode(params)}"

    def parse(self, payload: object) -> CandidateMetadata:
        if not isinstance(payload, dict):
            raise TransportError("Response is not a JSON object.", provider=self.name)
        try:
            response = VolumesResponse.model_validate(payload)
        except SchemaError as exc:
            raise TransportError("Response has an unexpected shape.", provider=self.name, cause=exc) from exc
        logger.debug("%s: %d items in response", self.name, len(response.items))
        candidate = first_complete((to_record(volume) for volume in response.items), self.policy)
        if candidate is None:
            raise NoResultError("No book information found.", provider=self.name)
        return candidate

    def resolve(self, isbn: str) -> CandidateMetadata:
        isbn = require_isbn(isbn, self.name)
        body = fetch_bytes(self.name, self.build_url(isbn), timeout=self.timeout, accept="application/json")
        return self.parse(decode_json(self.name, body))
