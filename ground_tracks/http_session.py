"""HTTP session factory and JSON loading for manifest and track downloads."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

import requests
from requests import Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import HTTP_POOL_CONNECTIONS, HTTP_POOL_MAXSIZE, REQUEST_TIMEOUT

LOGGER = logging.getLogger(__name__)

__all__ = ["create_default_session", "get_default_session", "is_remote", "fetch_json"]


def _build_retry() -> Retry:
    return Retry(
        total=3,
        backoff_factor=0.5,
        status_forcelist=[500, 502, 503, 504],
        allowed_methods=["GET"],
    )


def create_default_session() -> Session:
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=HTTP_POOL_CONNECTIONS,
        pool_maxsize=HTTP_POOL_MAXSIZE,
        max_retries=_build_retry(),
    )
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update(
        {
            "Accept-Encoding": "gzip, deflate",
            "Accept": "application/json",
        }
    )
    return session


_DEFAULT_SESSION: Session | None = None


def get_default_session() -> Session:
    """Return the shared session, creating it on first use."""

    global _DEFAULT_SESSION
    if _DEFAULT_SESSION is None:
        _DEFAULT_SESSION = create_default_session()
    return _DEFAULT_SESSION


def is_remote(location: str) -> bool:
    """Return ``True`` for http(s) URLs."""

    return urlparse(location).scheme in {"http", "https"}


def fetch_json(
    location: str,
    *,
    session: Session | None = None,
    timeout: float = REQUEST_TIMEOUT,
) -> Any:
    """Load JSON from an http(s) URL, a ``file://`` URL or a filesystem path.

    Raises:
        requests.RequestException: On network failures or non-2xx responses.
        OSError: If a local file cannot be read.
        ValueError: If the body is not valid JSON.
    """

    if is_remote(location):
        http = session or get_default_session()
        LOGGER.debug("GET %s", location)
        response = http.get(location, timeout=timeout)
        response.raise_for_status()
        return response.json()
    parsed = urlparse(location)
    path = Path(unquote(parsed.path)) if parsed.scheme == "file" else Path(location)
    LOGGER.debug("Reading %s", path)
    return json.loads(path.read_text(encoding="utf-8"))
