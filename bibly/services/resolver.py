from __future__ import annotations

import logging

from ..config import AppConfig
from ..errors import BiblyError
from ..providers.amazon import AmazonProvider
from ..providers.base import DEFAULT_TIMEOUT, MetadataProvider, clean_credential
from ..providers.google_books import GoogleBooksProvider
from ..providers.ndl import NdlProvider
from ..providers.rakuten import RakutenBooksProvider
from ..schemas import CandidateMetadata

logger = logging.getLogger(__name__)


class MetadataResolver:
    """Resolve ISBNs against the provider the caller picks.

    Providers are never raced or retried. Every failure reaches the caller as a
    BiblyError whose ``kind`` is one of invalid_input, not_found,
    incomplete_data, transport or not_implemented, tagged with the provider name.
    """

    def __init__(self, config: AppConfig | None = None) -> None:
        self.timeout = config.request_timeout if config else DEFAULT_TIMEOUT
        self.google_books_api_key = config.google_books_api_key if config else None
        self.rakuten_application_id = config.rakuten_application_id if config else None

    def resolve_ndl(self, isbn: str) -> CandidateMetadata:
        return self._resolve(NdlProvider(timeout=self.timeout), isbn)

    def resolve_google_books(self, isbn: str, api_key: str | None = None) -> CandidateMetadata:
        provider = GoogleBooksProvider(
            api_key=clean_credential(api_key) or self.google_books_api_key,
            timeout=self.timeout,
        )
        return self._resolve(provider, isbn)

    def resolve_rakuten(self, isbn: str, application_id: str | None = None) -> CandidateMetadata:
        provider = RakutenBooksProvider(
            application_id=clean_credential(application_id) or self.rakuten_application_id,
            timeout=self.timeout,
        )
        return self._resolve(provider, isbn)

    def resolve_amazon(
        self,
        isbn: str,
        access_key: str | None = None,
        secret_key: str | None = None,
        associate_tag: str | None = None,
    ) -> CandidateMetadata:
        provider = AmazonProvider(access_key=access_key, secret_key=secret_key, associate_tag=associate_tag)
        return self._resolve(provider, isbn)

    def _resolve(self, provider: MetadataProvider, isbn: str) -> CandidateMetadata:
        try:
            candidate = provider.resolve(isbn)
        except BiblyError as exc:
            if exc.provider is None:
                exc.provider = provider.name
            logger.info("%s: lookup failed (%s): %s", provider.name, exc.kind.value, exc.message)
            raise
        logger.info("%s: resolved %r", provider.name, candidate.title)
        return candidate

