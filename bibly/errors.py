from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    INCOMPLETE_DATA = "incomplete_data"
    TRANSPORT = "transport"
    NOT_IMPLEMENTED = "not_implemented"
    STORAGE = "storage"


class BiblyError(Exception):
    """Base class for every failure surfaced to callers.

    ``str(error)`` is the human-readable message handed back to the front end.
    """

    kind: ErrorKind = ErrorKind.STORAGE

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider

    def __str__(self) -> str:
        if self.provider:
            return f"{self.provider}: {self.message}"
        return self.message


class ValidationError(BiblyError):
    """Input rejected before any I/O took place."""

    kind = ErrorKind.INVALID_INPUT


class NotFoundError(BiblyError):
    kind = ErrorKind.NOT_FOUND


class RecordNotFoundError(NotFoundError):
    """SRU response carried no ``recordData`` payload."""


class NoResultError(NotFoundError):
    """JSON provider returned no acceptable item."""


class IncompleteDataError(BiblyError):
    kind = ErrorKind.INCOMPLETE_DATA

    def __init__(
        self,
        missing_fields: list[str],
        *,
        provider: str | None = None,
        message: str | None = None,
    ) -> None:
        self.missing_fields = list(missing_fields)
        super().__init__(
            message or f"Record is missing required fields: [{', '.join(self.missing_fields)}]",
            provider=provider,
        )


class TransportError(BiblyError):
    """Network, HTTP status or payload decoding failure."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, *, provider: str | None = None, cause: BaseException | None = None) -> None:
        super().__init__(message, provider=provider)
        self.cause = cause


class ProviderNotImplementedError(BiblyError):
    kind = ErrorKind.NOT_IMPLEMENTED


class StorageError(BiblyError):
    kind = ErrorKind.STORAGE
