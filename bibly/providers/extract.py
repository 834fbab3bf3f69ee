from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from ..schemas import CandidateMetadata

FIELD_NAMES = ("title", "author", "publisher")


class Completeness(str, Enum):
    """How much of a candidate must be filled in before a provider accepts it."""

    PERMISSIVE = "permissive"
    STRICT = "strict"


@dataclass(frozen=True)
class MetadataRecord:
    """One provider item after its provider-specific decode step."""

    title: str | None = None
    authors: tuple[str, ...] = field(default_factory=tuple)
    publisher: str | None = None


def _trimmed(value: str | None) -> str:
    return value.strip() if isinstance(value, str) else ""


def join_authors(authors: Iterable[str | None]) -> str:
    names = [_trimmed(name) for name in authors]
    return ", ".join(name for name in names if name)


def extract_candidate(record: MetadataRecord) -> CandidateMetadata | None:
    """Build a candidate from one item, or None when it has no usable title."""
    title = _trimmed(record.title)
    if not title:
        return None
    return CandidateMetadata(
        title=title,
        author=join_authors(record.authors),
        publisher=_trimmed(record.publisher),
    )


def missing_fields(candidate: CandidateMetadata | None) -> list[str]:
    if candidate is None:
        return list(FIELD_NAMES)
    return [name for name in FIELD_NAMES if not getattr(candidate, name)]


def is_complete(candidate: CandidateMetadata | None, policy: Completeness) -> bool:
    if candidate is None:
        return False
    if policy is Completeness.PERMISSIVE:
        return bool(candidate.title)
    return not missing_fields(candidate)


def first_complete(records: Iterable[MetadataRecord], policy: Completeness) -> CandidateMetadata | None:
    """Scan items in order and return the first one the policy accepts."""
    for record in records:
        candidate = extract_candidate(record)
        if is_complete(candidate, policy):
            return candidate
    return None
