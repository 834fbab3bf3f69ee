from __future__ import annotations

import json
import logging
import socket
from http.client import HTTPException
from typing import Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..errors import TransportError, ValidationError
from ..schemas import CandidateMetadata

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
USER_AGENT = "bibly/0.1"


class MetadataProvider(Protocol):
    """Interface shared by every metadata source in bibly/services/resolver.py."""

    name: str

    def resolve(self, isbn: str) -> CandidateMetadata:
        """Look up one ISBN and return its title/author/publisher triple."""
        raise NotImplementedError


def require_isbn(isbn: str | None, provider: str) -> str:
    """Return the trimmed ISBN, or raise before any request goes out."""
    cleaned = (isbn or "").strip()
    if not cleaned:
        raise ValidationError("ISBN is required.", provider=provider)
    return cleaned


def clean_credential(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def fetch_bytes(provider: str, url: str, *, timeout: float, accept: str) -> bytes:
    """Issue one GET bounded by ``timeout`` and return the raw body of a 2xx response."""
    request = Request(url, headers={"Accept": accept, "User-Agent": USER_AGENT})
    logger.debug("%s: GET %s", provider, url.split("?", 1)[0])
    try:
        with urlopen(request, timeout=timeout) as response:
            status = response.status
            body = response.read()
    except socket.timeout as exc:
        logger.warning("%s: request timed out", provider)
        raise TransportError("Request timed out.", provider=provider, cause=exc) from exc
    except HTTPError as exc:
        logger.warning("%s: HTTP %s", provider, exc.code)
        raise TransportError(f"Request failed (HTTP {exc.code}).", provider=provider, cause=exc) from exc
    except URLError as exc:
        if isinstance(exc.reason, socket.timeout):
            logger.warning("%s: request timed out", provider)
            raise TransportError("Request timed out.", provider=provider, cause=exc) from exc
        logger.warning("%s: request failed: %s", provider, exc.reason)
        raise TransportError(f"Request failed: {exc.reason}", provider=provider, cause=exc) from exc
    except (OSError, HTTPException) as exc:
        logger.warning("%s: connection failed: %s", provider, exc)
        raise TransportError(f"Connection failed: {exc}", provider=provider, cause=exc) from exc
    if not 200 <= status < 300:
        logger.warning("%s: HTTP %s", provider, status)
        raise TransportError(f"Request failed (HTTP {status}).", provider=provider)
    return body


def decode_json(provider: str, body: bytes) -> object:
    try:
        return json.loads(body.decode("utf-8"))
    except ValueError as exc:
        raise TransportError("Response is not valid JSON.", provider=provider, cause=exc) from exc
