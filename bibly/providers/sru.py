"""Parsing of SRU responses that carry a dcndl record as escaped XML text.

The outer SRU envelope holds a ``recordData`` element whose text is itself an
XML document. Inside that record the same ``foaf:name`` leaf appears under both
``dcterms:creator`` and ``dcterms:publisher``, so what a name means depends on
which of those ancestors is currently open.
"""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from enum import Flag, auto
from typing import Iterator

from ..errors import IncompleteDataError, RecordNotFoundError, TransportError
from ..schemas import CandidateMetadata

logger = logging.getLogger(__name__)

DCTERMS_NS = "http://purl.org/dc/terms/"
FOAF_NS = "http://xmlns.com/foaf/0.1/"


class ParseContext(Flag):
    NONE = 0
    TITLE = auto()
    CREATOR = auto()
    PUBLISHER = auto()
    NAME = auto()


CONTEXT_TAGS: dict[str, ParseContext] = {
    f"{{{DCTERMS_NS}}}title": ParseContext.TITLE,
    f"{{{DCTERMS_NS}}}creator": ParseContext.CREATOR,
    f"{{{DCTERMS_NS}}}publisher": ParseContext.PUBLISHER,
    f"{{{FOAF_NS}}}name": ParseContext.NAME,
}


def local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def iter_events(element: ET.Element) -> Iterator[tuple[str, str]]:
    """Yield ("start", tag), ("text", value) and ("end", tag) in document order.

    Whitespace-only text is skipped and all text is trimmed.
    """
    yield "start", element.tag
    text = (element.text or "").strip()
    if text:
        yield "text", text
    for child in element:
        yield from iter_events(child)
        tail = (child.tail or "").strip()
        if tail:
            yield "text", tail
    yield "end", element.tag


class DcndlRecordParser:
    """State machine that picks title, author and publisher out of a dcndl record.

    Only the first title text is kept. A ``foaf:name`` counts as the author only
    while a creator is open and as the publisher only while a publisher is open;
    a name under neither fills nothing.
    """

    def __init__(self, provider: str | None = None) -> None:
        self.provider = provider
        self.context = ParseContext.NONE
        self.title: str | None = None
        self.author: str | None = None
        self.publisher: str | None = None

    def start(self, tag: str) -> None:
        self.context |= CONTEXT_TAGS.get(tag, ParseContext.NONE)

    def end(self, tag: str) -> None:
        self.context &= ~CONTEXT_TAGS.get(tag, ParseContext.NONE)

    def text(self, value: str) -> None:
        if ParseContext.TITLE in self.context:
            if self.title is None:
                self.title = value
            self.context &= ~ParseContext.TITLE
        elif ParseContext.NAME in self.context:
            if ParseContext.CREATOR in self.context:
                if self.author is None:
                    self.author = value
            elif ParseContext.PUBLISHER in self.context:
                if self.publisher is None:
                    self.publisher = value

    def feed(self, root: ET.Element) -> None:
        for event, value in iter_events(root):
            if event == "start":
                self.start(value)
            elif event == "end":
                self.end(value)
            else:
                self.text(value)

    def missing_fields(self) -> list[str]:
        found = {"title": self.title, "author": self.author, "publisher": self.publisher}
        return [name for name, value in found.items() if value is None]

    def result(self) -> CandidateMetadata:
        missing = self.missing_fields()
        if missing:
            raise IncompleteDataError(missing, provider=self.provider)
        return CandidateMetadata(title=self.title, author=self.author, publisher=self.publisher)


def _parse_xml(document: str | bytes, provider: str | None, what: str) -> ET.Element:
    try:
        return ET.fromstring(document)
    except ET.ParseError as exc:
        raise TransportError(f"{what} is not well-formed XML: {exc}", provider=provider, cause=exc) from exc


def extract_record_data(document: str | bytes, provider: str | None = None) -> str:
    """Return the inner record document held by the first ``recordData`` element."""
    root = _parse_xml(document, provider, "SRU response")
    for element in root.iter():
        if local_name(element.tag) != "recordData":
            continue
        text = (element.text or "").strip()
        if text:
            return text
        if len(element):
            # recordPacking=xml: the record is embedded as elements, not text.
            return ET.tostring(element[0], encoding="unicode")
        break
    raise RecordNotFoundError("recordData not found in response.", provider=provider)


def parse_record(record: str, provider: str | None = None) -> CandidateMetadata:
    parser = DcndlRecordParser(provider=provider)
    parser.feed(_parse_xml(record, provider, "Record"))
    return parser.result()


def parse_sru_response(document: str | bytes, provider: str | None = None) -> CandidateMetadata:
    record = extract_record_data(document, provider)
    logger.debug("%s: recordData found (%d chars)", provider, len(record))
    return parse_record(record, provider)
