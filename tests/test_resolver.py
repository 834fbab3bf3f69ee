import json
import os
import socket
import unittest
from unittest.mock import patch
from urllib.error import HTTPError, URLError
from xml.sax.saxutils import escape

from bibly.config import AppConfig
from bibly.errors import ErrorKind, IncompleteDataError, NoResultError
from bibly.providers.base import DEFAULT_TIMEOUT
from bibly.providers.google_books import GoogleBooksProvider
from bibly.providers.rakuten import RakutenBooksProvider
from bibly.schemas import CandidateMetadata
from bibly.services.resolver import MetadataResolver

URLOPEN = "bibly.providers.base.urlopen"
NO_ENV_CREDENTIALS = {"GOOGLE_BOOKS_API_KEY": "", "RAKUTEN_APPLICATION_ID": ""}


class FakeResponse:
    def __init__(self, body, status=200):
        self.body = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
        self.status = status

    def read(self):
        return self.body

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


def requested_url(mock_urlopen):
    request = mock_urlopen.call_args[0][0]
    return request.full_url


class GoogleBooksTests(unittest.TestCase):
    def setUp(self):
        self.env = patch.dict(os.environ, NO_ENV_CREDENTIALS)
        self.env.start()
        self.resolver = MetadataResolver()

    def tearDown(self):
        self.env.stop()

    def test_first_item_with_title_wins(self):
        payload = {
            "items": [
                {"volumeInfo": {"title": "  ", "authors": ["Nobody"]}},
                {"volumeInfo": {"title": " Second ", "authors": [" A ", "", 7, "B"]}},
                {"volumeInfo": {"title": "Third", "authors": ["C"], "publisher": "P"}},
            ]
        }
        with patch(URLOPEN, return_value=FakeResponse(payload)) as mock_urlopen:
            candidate = self.resolver.resolve_google_books("9784000000000")
        self.assertEqual(candidate, CandidateMetadata(title="Second", author="A, B", publisher=""))
        self.assertIn("q=isbn%3A9784000000000", requested_url(mock_urlopen))
        self.assertNotIn("key=", requested_url(mock_urlopen))

    def test_api_key_is_sent_when_given(self):
        payload = {"items": [{"volumeInfo": {"title": "T"}}]}
        with patch(URLOPEN, return_value=FakeResponse(payload)) as mock_urlopen:
            self.resolver.resolve_google_books("9784000000000", api_key=" secret ")
        self.assertIn("key=secret", requested_url(mock_urlopen))

    def test_blank_api_key_is_ignored(self):
        payload = {"items": [{"volumeInfo": {"title": "T"}}]}
        with patch(URLOPEN, return_value=FakeResponse(payload)) as mock_urlopen:
            self.resolver.resolve_google_books("9784000000000", api_key="   ")
        self.assertNotIn("key=", requested_url(mock_urlopen))

    def test_no_titled_item_is_no_result(self):
        payload = {"items": [{"volumeInfo": {"authors": ["A"]}}, {"volumeInfo": {"title": ""}}]}
        with patch(URLOPEN, return_value=FakeResponse(payload)):
            with self.assertRaises(NoResultError) as ctx:
                self.resolver.resolve_google_books("9784000000000")
        self.assertEqual(ctx.exception.kind, ErrorKind.NOT_FOUND)
        self.assertEqual(ctx.exception.provider, "google_books")

    def test_missing_items_is_no_result(self):
        with patch(URLOPEN, return_value=FakeResponse({"totalItems": 0})):
            with self.assertRaises(NoResultError):
                self.resolver.resolve_google_books("9784000000000")


class RakutenTests(unittest.TestCase):
    def setUp(self):
        self.env = patch.dict(os.environ, NO_ENV_CREDENTIALS)
        self.env.start()
        self.resolver = MetadataResolver()

    def tearDown(self):
        self.env.stop()

    def test_scenario_single_complete_item(self):
        payload = {"Items": [{"Item": {"title": "X", "author": "Y", "publisherName": "Z"}}]}
        with patch(URLOPEN, return_value=FakeResponse(payload)) as mock_urlopen:
            candidate = self.resolver.resolve_rakuten("9784000000000", application_id="app-1")
        self.assertEqual(candidate, CandidateMetadata(title="X", author="Y", publisher="Z"))
        url = requested_url(mock_urlopen)
        self.assertIn("applicationId=app-1", url)
        self.assertIn("isbn=9784000000000", url)

    def test_single_incomplete_item_names_missing_fields(self):
        payload = {"Items": [{"Item": {"title": "X", "author": "", "publisherName": "Z"}}]}
        with patch(URLOPEN, return_value=FakeResponse(payload)):
            with self.assertRaises(IncompleteDataError) as ctx:
                self.resolver.resolve_rakuten("9784000000000", application_id="app-1")
        self.assertEqual(ctx.exception.missing_fields, ["author"])
        self.assertEqual(ctx.exception.kind, ErrorKind.INCOMPLETE_DATA)

    def test_empty_items_is_no_result(self):
        with patch(URLOPEN, return_value=FakeResponse({"Items": []})):
            with self.assertRaises(NoResultError):
                self.resolver.resolve_rakuten("9784000000000", application_id="app-1")

    def test_application_id_is_required(self):
        with patch(URLOPEN) as mock_urlopen:
            with self.assertRaises(Exception) as ctx:
                self.resolver.resolve_rakuten("9784000000000")
        self.assertEqual(ctx.exception.kind, ErrorKind.INVALID_INPUT)
        mock_urlopen.assert_not_called()

    def test_configured_application_id_is_used(self):
        resolver = MetadataResolver(AppConfig(db_path=None, rakuten_application_id="from-config"))
        payload = {"Items": [{"Item": {"title": "X", "author": "Y", "publisherName": "Z"}}]}
        with patch(URLOPEN, return_value=FakeResponse(payload)) as mock_urlopen:
            resolver.resolve_rakuten("9784000000000")
        self.assertIn("applicationId=from-config", requested_url(mock_urlopen))


class CompletenessPolicyTests(unittest.TestCase):
    ITEMS = [
        {"title": "", "author": "A1", "publisherName": "P1"},
        {"title": "Only Title", "author": "", "publisherName": ""},
        {"title": "   ", "author": "A3", "publisherName": "P3"},
    ]

    def test_permissive_provider_takes_second_item(self):
        payload = {"items": [{"volumeInfo": {"title": item["title"]}} for item in self.ITEMS]}
        candidate = GoogleBooksProvider(api_key="k").parse(payload)
        self.assertEqual(candidate.title, "Only Title")

    def test_strict_provider_reports_no_result(self):
        payload = {"Items": [{"Item": item} for item in self.ITEMS]}
        with self.assertRaises(NoResultError):
            RakutenBooksProvider(application_id="app").parse(payload)

    def test_permissive_provider_skips_malformed_volume_info(self):
        payload = {"items": [{"volumeInfo": None}, {"volumeInfo": "junk"}, {"volumeInfo": {"title": "Second"}}]}
        candidate = GoogleBooksProvider(api_key="k").parse(payload)
        self.assertEqual(candidate.title, "Second")

    def test_strict_provider_skips_malformed_item(self):
        payload = {
            "Items": [
                {"Item": "junk"},
                {"Item": None},
                {"Item": {"title": "X", "author": "Y", "publisherName": "Z"}},
            ]
        }
        candidate = RakutenBooksProvider(application_id="app").parse(payload)
        self.assertEqual(candidate, CandidateMetadata(title="X", author="Y", publisher="Z"))


class NdlTests(unittest.TestCase):
    RECORD = (
        '<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#" '
        'xmlns:dcterms="http://purl.org/dc/terms/" xmlns:foaf="http://xmlns.com/foaf/0.1/">'
        "<dcterms:title>こころ</dcterms:title>"
        "<dcterms:creator><foaf:Agent><foaf:name>夏目漱石</foaf:name></foaf:Agent></dcterms:creator>"
        "<dcterms:publisher><foaf:Agent><foaf:name>岩波書店</foaf:name></foaf:Agent></dcterms:publisher>"
        "</rdf:RDF>"
    )

    def envelope(self):
        return (
            '<?xml version="1.0" encoding="UTF-8"?>'
            '<searchRetrieveResponse xmlns="http://www.loc.gov/zing/srw/"><records><record>'
            f"<recordData>{escape(self.RECORD)}</recordData>"
            "</record></records></searchRetrieveResponse>"
        ).encode("utf-8")

    def test_resolves_dcndl_record(self):
        with patch(URLOPEN, return_value=FakeResponse(self.envelope())) as mock_urlopen:
            candidate = MetadataResolver().resolve_ndl(" 9784000000000 ")
        self.assertEqual(candidate, CandidateMetadata(title="こころ", author="夏目漱石", publisher="岩波書店"))
        url = requested_url(mock_urlopen)
        self.assertTrue(url.startswith("https://ndlsearch.ndl.go.jp/api/sru?"))
        self.assertIn("recordSchema=dcndl", url)
        self.assertIn("query=isbn%3D9784000000000", url)

    def test_no_record_is_not_found(self):
        body = b'<searchRetrieveResponse xmlns="http://www.loc.gov/zing/srw/"><numberOfRecords>0</numberOfRecords></searchRetrieveResponse>'
        with patch(URLOPEN, return_value=FakeResponse(body)):
            with self.assertRaises(Exception) as ctx:
                MetadataResolver().resolve_ndl("9784000000000")
        self.assertEqual(ctx.exception.kind, ErrorKind.NOT_FOUND)
        self.assertEqual(ctx.exception.provider, "ndl")


class FailureMappingTests(unittest.TestCase):
    def setUp(self):
        self.env = patch.dict(os.environ, NO_ENV_CREDENTIALS)
        self.env.start()
        self.resolver = MetadataResolver()

    def tearDown(self):
        self.env.stop()

    def assert_kind(self, call, kind):
        with self.assertRaises(Exception) as ctx:
            call()
        self.assertEqual(ctx.exception.kind, kind)
        return ctx.exception

    def test_blank_isbn_is_rejected_before_any_request(self):
        with patch(URLOPEN) as mock_urlopen:
            for call in (
                lambda: self.resolver.resolve_ndl("   "),
                lambda: self.resolver.resolve_google_books(""),
                lambda: self.resolver.resolve_rakuten(" ", application_id="app"),
            ):
                self.assert_kind(call, ErrorKind.INVALID_INPUT)
        mock_urlopen.assert_not_called()

    def test_http_error_is_transport_and_not_retried(self):
        error = HTTPError("https://example.invalid", 503, "Service Unavailable", None, None)
        with patch(URLOPEN, side_effect=error) as mock_urlopen:
            exc = self.assert_kind(lambda: self.resolver.resolve_google_books("9784000000000"), ErrorKind.TRANSPORT)
        self.assertEqual(mock_urlopen.call_count, 1)
        self.assertEqual(exc.provider, "google_books")
        self.assertIs(exc.cause, error)
        self.assertIn("503", str(exc))

    def test_non_2xx_status_is_transport(self):
        with patch(URLOPEN, return_value=FakeResponse({}, status=302)):
            self.assert_kind(lambda: self.resolver.resolve_google_books("9784000000000"), ErrorKind.TRANSPORT)

    def test_configured_timeout_reaches_every_request(self):
        resolver = MetadataResolver(AppConfig(db_path=None, request_timeout=3))
        payload = {"items": [{"volumeInfo": {"title": "T"}}]}
        with patch(URLOPEN, return_value=FakeResponse(payload)) as mock_urlopen:
            resolver.resolve_google_books("9784000000000")
        self.assertEqual(mock_urlopen.call_args.kwargs["timeout"], 3.0)

        with patch(URLOPEN, side_effect=socket.timeout("timed out")) as mock_urlopen:
            self.assert_kind(lambda: resolver.resolve_ndl("9784000000000"), ErrorKind.TRANSPORT)
        self.assertEqual(mock_urlopen.call_args.kwargs["timeout"], 3.0)

    def test_default_timeout_bounds_requests(self):
        payload = {"items": [{"volumeInfo": {"title": "T"}}]}
        with patch(URLOPEN, return_value=FakeResponse(payload)) as mock_urlopen:
            self.resolver.resolve_google_books("9784000000000")
        self.assertEqual(mock_urlopen.call_args.kwargs["timeout"], DEFAULT_TIMEOUT)

    def test_timeout_is_transport(self):
        with patch(URLOPEN, side_effect=socket.timeout("timed out")):
            exc = self.assert_kind(lambda: self.resolver.resolve_ndl("9784000000000"), ErrorKind.TRANSPORT)
        self.assertIn("timed out", str(exc))

    def test_dns_failure_is_transport(self):
        with patch(URLOPEN, side_effect=URLError("Name or service not known")):
            self.assert_kind(
                lambda: self.resolver.resolve_rakuten("9784000000000", application_id="app"),
                ErrorKind.TRANSPORT,
            )

    def test_malformed_json_is_transport(self):
        with patch(URLOPEN, return_value=FakeResponse(b"<html>oops</html>")):
            self.assert_kind(lambda: self.resolver.resolve_google_books("9784000000000"), ErrorKind.TRANSPORT)

    def test_json_array_payload_is_transport(self):
        with patch(URLOPEN, return_value=FakeResponse([1, 2, 3])):
            self.assert_kind(
                lambda: self.resolver.resolve_rakuten("9784000000000", application_id="app"),
                ErrorKind.TRANSPORT,
            )

    def test_amazon_is_never_implemented(self):
        with patch(URLOPEN) as mock_urlopen:
            for isbn in ("9784000000000", ""):
                exc = self.assert_kind(
                    lambda: self.resolver.resolve_amazon(isbn, "access", "secret", "tag"),
                    ErrorKind.NOT_IMPLEMENTED,
                )
                self.assertEqual(exc.provider, "amazon")
        mock_urlopen.assert_not_called()


if __name__ == "__main__":
    unittest.main()
