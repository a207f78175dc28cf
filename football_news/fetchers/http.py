from __future__ import annotations

from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

import requests

from ..utils.logging import get_logger
from .base import FetchError

logger = get_logger("fn.fetchers.http")

_DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/127.0.0.0 Safari/537.36"
    )
}


def _validated_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise FetchError(f"Invalid URL for HTTP fetch: {url}")
    return url


def _get(
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = 20,
) -> requests.Response:
    merged = {**_DEFAULT_HEADERS, **(headers or {})}
    target = _validated_url(url)
    logger.debug("GET %s", target)
    try:
        resp = requests.get(target, params=params, headers=merged, timeout=timeout)
    except requests.Timeout as exc:
        raise FetchError(f"Timed out after {timeout}s: {target}") from exc
    except requests.RequestException as exc:
        raise FetchError(f"Request error for {target}: {exc}") from exc
    if resp.status_code >= 400:
        logger.warning("HTTP fetch failed (%s): %s", resp.status_code, target)
        raise FetchError(f"HTTP {resp.status_code} from {target}")
    return resp


def get_json(
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = 20,
) -> Dict[str, Any]:
    resp = _get(url, params=params, headers=headers, timeout=timeout)
    try:
        payload = resp.json()
    except ValueError as exc:
        raise FetchError(f"Malformed JSON from {url}") from exc
    if not isinstance(payload, dict):
        raise FetchError(f"Unexpected JSON payload from {url}: {type(payload).__name__}")
    return payload


def get_bytes(
    url: str,
    *,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = 20,
) -> bytes:
    return _get(url, headers=headers, timeout=timeout).content
