from __future__ import annotations

import logging
import os
from urllib.parse import urlencode

from pydantic import BaseModel, field_validator
from pydantic import ValidationError as SchemaError

from ..errors import IncompleteDataError, NoResultError, TransportError, ValidationError
from ..schemas import CandidateMetadata
from .base import DEFAULT_TIMEOUT, clean_credential, decode_json, fetch_bytes, require_isbn
from .extract import Completeness, MetadataRecord, extract_candidate, first_complete, missing_fields

logger = logging.getLogger(__name__)

RAKUTEN_BOOKS_URL = "https://app.rakuten.co.jp/services/api/BooksBook/Search/20170404"


class RakutenItem(BaseModel):
    title: str | None = None
    author: str | None = None
    publisherName: str | None = None

    @field_validator("title", "author", "publisherName", mode="before")
    @classmethod
    def _text_or_none(cls, value: object) -> str | None:
        return value if isinstance(value, str) else None


class RakutenEntry(BaseModel):
    Item: RakutenItem | None = None

    @field_validator("Item", mode="before")
    @classmethod
    def _dict_item(cls, value: object) -> object:
        return value if isinstance(value, dict) else None


class RakutenSearchResponse(BaseModel):
    Items: list[RakutenEntry] = []

    @field_validator("Items", mode="before")
    @classmethod
    def _dict_entries(cls, value: object) -> list[object]:
        if not isinstance(value, list):
            return []
        return [entry for entry in value if isinstance(entry, dict)]


def to_record(item: RakutenItem) -> MetadataRecord:
    authors = (item.author,) if item.author else ()
    return MetadataRecord(title=item.title, authors=authors, publisher=item.publisherName)


class RakutenBooksProvider:
    """Adapter for the Rakuten Books search API.

    Title, author and publisher must all be present. When the search matches a
    single item that lacks some of them the missing fields are reported;
    otherwise an unusable result set is reported as no result.
    """

    name = "rakuten"
    policy = Completeness.STRICT

    def __init__(self, application_id: str | None = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.application_id = clean_credential(application_id or os.getenv("RAKUTEN_APPLICATION_ID"))
        self.timeout = timeout

    def build_url(self, isbn: str) -> str:
        params = {"applicationId": self.application_id or "", "isbn": isbn}
        return f"{RAKUTEN_BOOKS_URL}?{urlencode(params)}"

    def parse(self, payload: object) -> CandidateMetadata:
        if not isinstance(payload, dict):
            raise TransportError("Response is not a JSON object.", provider=self.name)
        try:
            response = RakutenSearchResponse.model_validate(payload)
        except SchemaError as exc:
            raise TransportError("Response has an unexpected shape.", provider=self.name, cause=exc) from exc
        logger.debug("%s: %d items in response", self.name, len(response.Items))
        records = [to_record(entry.Item) for entry in response.Items if entry.Item is not None]
        candidate = first_complete(records, self.policy)
        if candidate is not None:
            return candidate
        if len(records) == 1:
            missing = missing_fields(extract_candidate(records[0]))
            raise IncompleteDataError(missing, provider=self.name)
        raise NoResultError("No book information found.", provider=self.name)

    def resolve(self, isbn: str) -> CandidateMetadata:
        isbn = require_isbn(isbn, self.name)
        if not self.application_id:
            raise ValidationError("Application id is required.", provider=self.name)
        body = fetch_bytes(self.name, self.build_url(isbn), timeout=self.timeout, accept="application/json")
        return self.parse(decode_json(self.name, body))
