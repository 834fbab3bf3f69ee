from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"
DEFAULT_DB_NAME = "bibly.sqlite"
DEFAULT_FALLBACK_GENRE_NAME = "未分類"
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "INFO"

load_dotenv()


@dataclass(frozen=True)
class AppConfig:
    db_path: Path
    fallback_genre_name: str = DEFAULT_FALLBACK_GENRE_NAME
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL
    google_books_api_key: str | None = None
    rakuten_application_id: str | None = None


def _clean_secret(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def _read_raw(path: Path) -> dict[str, object]:
    if not path.is_file():
        return {}
    raw = json.loads(path.read_text(encoding="utf-8"))
    return raw if isinstance(raw, dict) else {}


def load_config(path: Path = CONFIG_PATH) -> AppConfig:
    raw = _read_raw(path)
    db_name = str(raw.get("db_name") or DEFAULT_DB_NAME)
    fallback = str(raw.get("fallback_genre_name") or "").strip() or DEFAULT_FALLBACK_GENRE_NAME
    try:
        timeout = float(raw.get("request_timeout") or DEFAULT_REQUEST_TIMEOUT)
    except (TypeError, ValueError):
        timeout = DEFAULT_REQUEST_TIMEOUT
    if timeout <= 0:
        timeout = DEFAULT_REQUEST_TIMEOUT
    log_level = str(raw.get("log_level") or DEFAULT_LOG_LEVEL).upper()
    return AppConfig(
        db_path=path.parent / db_name,
        fallback_genre_name=fallback,
        request_timeout=timeout,
        log_level=log_level,
        google_books_api_key=_clean_secret(os.getenv("GOOGLE_BOOKS_API_KEY")),
        rakuten_application_id=_clean_secret(os.getenv("RAKUTEN_APPLICATION_ID")),
    )
