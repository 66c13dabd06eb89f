"""
HTTP client — the single place enginevu talks to the network.

Thin wrappers over ``urllib.request``. Transport and HTTP errors
(``urllib.error.URLError`` / ``HTTPError``) are not caught here;
they propagate to the caller unmodified.

Bearer tokens are attached as *unredirected* headers: GitHub answers
artifact downloads with a redirect to a pre-signed storage URL, which
rejects requests that still carry the GitHub credential.
"""

from __future__ import annotations

import json
import logging
import shutil
import urllib.request
from pathlib import Path
from typing import Any

from enginevu import __version__

logger = logging.getLogger(__name__)

USER_AGENT = f"enginevu/{__version__}"
_CHUNK = 1024 * 64


def _build_request(url: str, *, token: str | None, accept: str | None) -> urllib.request.Request:
    headers = {"User-Agent": USER_AGENT}
    if accept:
        headers["Accept"] = accept
    req = urllib.request.Request(url, headers=headers)
    if token:
        req.add_unredirected_header("Authorization", f"Bearer {token}")
    return req


def fetch_text(url: str, *, token: str | None = None, timeout: int = 60) -> str:
    """GET ``url`` and return the decoded body."""
    logger.debug("GET %s", url)
    req = _build_request(url, token=token, accept=None)
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        charset = resp.headers.get_content_charset() or "utf-8"
        return resp.read().decode(charset)


def fetch_json(url: str, *, token: str | None = None, timeout: int = 60) -> Any:
    """GET ``url`` and decode the body as JSON."""
    logger.debug("GET %s (json)", url)
    req = _build_request(url, token=token, accept="application/vnd.github+json")
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        return json.loads(resp.read())


def download_file(
    url: str,
    dest: Path,
    *,
    token: str | None = None,
    timeout: int = 60,
) -> Path:
    """Stream ``url`` to ``dest``, creating parent directories.

    Returns:
        ``dest``.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Downloading %s", url)
    req = _build_request(url, token=token, accept=None)
    with urllib.request.urlopen(req, timeout=timeout) as resp, open(dest, "wb") as fh:
        shutil.copyfileobj(resp, fh, _CHUNK)
    logger.debug("Saved %s (%d bytes)", dest, dest.stat().st_size)
    return dest
