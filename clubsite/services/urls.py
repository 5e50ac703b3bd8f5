"""Shape checks for object storage URLs."""

from __future__ import annotations

import requests
from flask import current_app

DEFAULT_STORAGE_HOST = 'firebasestorage.googleapis.com'
TOKEN_PARAM = 'token='
DELIVER_MEDIA_FLAG = 'alt=media'


def is_renderable_url(url: str | None) -> bool:
    """True when ``url`` carries both the access token and the deliver-media flag."""
    if not url:
        return False
    return TOKEN_PARAM in url and DELIVER_MEDIA_FLAG in url


def names_storage_host(url: str, storage_host: str = DEFAULT_STORAGE_HOST) -> bool:
    return bool(storage_host) and storage_host in url


def http_probe(url: str, timeout: float = 5) -> bool:
    """Issue one HEAD request and report whether the resource answered."""
    try:
        response = requests.head(url, timeout=timeout, allow_redirects=True)
    except requests.RequestException as e:
        current_app.logger.warning(f"Could not verify URL accessibility for {url}: {e}")
        return False
    current_app.logger.debug(f"URL accessibility check for {url}: {response.status_code}")
    return response.status_code < 400


__all__ = [
    'DEFAULT_STORAGE_HOST',
    'TOKEN_PARAM',
    'DELIVER_MEDIA_FLAG',
    'is_renderable_url',
    'names_storage_host',
    'http_probe',
]
