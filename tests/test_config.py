import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from bibly.config import DEFAULT_FALLBACK_GENRE_NAME, DEFAULT_REQUEST_TIMEOUT, load_config


class ConfigTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "config.json"

    def tearDown(self):
        self.tmp.cleanup()

    def test_missing_file_uses_defaults(self):
        with patch.dict(os.environ, {"GOOGLE_BOOKS_API_KEY": "", "RAKUTEN_APPLICATION_ID": ""}):
            config = load_config(self.path)
        self.assertEqual(config.db_path, Path(self.tmp.name) / "bibly.sqlite")
        self.assertEqual(config.fallback_genre_name, DEFAULT_FALLBACK_GENRE_NAME)
        self.assertEqual(config.request_timeout, DEFAULT_REQUEST_TIMEOUT)
        self.assertIsNone(config.google_books_api_key)
        self.assertIsNone(config.rakuten_application_id)

    def test_file_and_environment_values(self):
        self.path.write_text(
            json.dumps({"db_name": "shelf.db", "fallback_genre_name": " Misc ", "request_timeout": 3, "log_level": "debug"}),
            encoding="utf-8",
        )
        env = {"GOOGLE_BOOKS_API_KEY": " g-key ", "RAKUTEN_APPLICATION_ID": "r-id"}
        with patch.dict(os.environ, env):
            config = load_config(self.path)
        self.assertEqual(config.db_path.name, "shelf.db")
        self.assertEqual(config.fallback_genre_name, "Misc")
        self.assertEqual(config.request_timeout, 3.0)
        self.assertEqual(config.log_level, "DEBUG")
        self.assertEqual(config.google_books_api_key, "g-key")
        self.assertEqual(config.rakuten_application_id, "r-id")

    def test_invalid_timeout_falls_back(self):
        self.path.write_text(json.dumps({"request_timeout": "soon"}), encoding="utf-8")
        self.assertEqual(load_config(self.path).request_timeout, DEFAULT_REQUEST_TIMEOUT)


if __name__ == "__main__":
    unittest.main()
