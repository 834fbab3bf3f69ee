from __future__ import annotations

from urllib.parse import urlencode

from ..schemas import CandidateMetadata
from .base import DEFAULT_TIMEOUT, fetch_bytes, require_isbn
from .sru import parse_sru_response

NDL_SRU_URL = "https://ndlsearch.ndl.go.jp/api/sru"


class NdlProvider:
    """Adapter for the National Diet Library SRU endpoint (dcndl records)."""

    name = "ndl"

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, base_url: str = NDL_SRU_URL) -> None:
        self.timeout = timeout
        self.base_url = base_url

    def build_url(self, isbn: str) -> str:
        params = {
            "operation": "searchRetrieve",
            "version": "1.2",
            "recordSchema": "dcndl",
            "query": f"isbn={isbn}",
        }
        return f"{self.base_url}?{urlencode(params)}"

    def resolve(self, isbn: str) -> CandidateMetadata:
        """Resolve an ISBN; title, creator name and publisher name are all required."""
        isbn = require_isbn(isbn, self.name)
        body = fetch_bytes(self.name, self.build_url(isbn), timeout=self.timeout, accept="application/xml")
        return parse_sru_response(body, provider=self.name)
