"""Fetch raw WSDL XML from a file path or an HTTP(S) URL.

One blocking call, no retry: a failure aborts the run.
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from .errors import FetchError

logger = logging.getLogger(__name__)


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def fetch_wsdl(source: str | Path, timeout: float | None = 30.0) -> bytes:
    """Return the raw WSDL document."""
    source = str(source)
    if not source:
        raise FetchError("no WSDL path or URL given")

    if is_url(source):
        logger.info("Fetching WSDL from %s", source)
        try:
            resp = httpx.get(source, timeout=timeout, follow_redirects=True)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise FetchError(f"failed to fetch WSDL from URL {source}: {exc}") from exc
        return resp.content

    path = Path(source)
    logger.info("Reading WSDL from %s", path)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise FetchError(f"failed to open WSDL file {path}: {exc}") from exc
