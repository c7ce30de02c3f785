"""Read a JSON document from a local file or an HTTP(S) URL.

Usage:
    from iamus.config.json_source import read_in_json

    doc = read_in_json("./iamus.json")
    doc = read_in_json("https://example.org/metaverse.json")

Failures never raise: the caller gets ``None`` and decides which default to
keep. The reason is logged at DEBUG.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import requests

HTTP_TIMEOUT_SECONDS = 10
USER_AGENT = "Iamus-Config/1.0"

logger = logging.getLogger(__name__)


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _fetch_text(url: str, timeout: float) -> Optional[str]:
    try:
        r = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout)
        r.raise_for_status()
        return r.text
    except requests.RequestException as e:
        logger.debug(f"read_in_json: failed fetch of {url}: {e}")
        return None


def _read_text(path: str) -> Optional[str]:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"read_in_json: failed read of {path}: {e}")
        return None


def read_in_json(source: str, timeout: float = HTTP_TIMEOUT_SECONDS) -> Optional[Any]:
    """Return the parsed JSON at ``source`` (path or URL), or ``None`` on any failure."""
    body = _fetch_text(source, timeout) if is_url(source) else _read_text(source)
    if not body or not body.strip():
        return None
    try:
        return json.loads(body)
    except (ValueError, RecursionError) as e:
        logger.debug(f"read_in_json: malformed JSON in {source}: {e}")
        return None
