"""Object storage backends for uploaded images."""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Any, Dict, Mapping
from urllib.parse import quote

import requests
from flask import current_app

from clubsite.services.errors import UploadFailed

FIREBASE_STORAGE_BASE_URL = 'https://firebasestorage.googleapis.com/v0'
LOCAL_URL_PREFIX = '/uploads'


class ObjectStorage:
    """Binary objects addressed by hierarchical path strings."""

    def put(self, path: str, data: bytes, content_type: str) -> str:
        """Store ``data`` at ``path`` and return the stored object name."""
        raise NotImplementedError

    def download_url(self, path: str) -> str:
        """Return a retrievable URL for the object at ``path``."""
        raise NotImplementedError


class FirebaseObjectStorage(ObjectStorage):
    """Firebase Storage through its REST endpoints."""

    def __init__(
        self,
        bucket: str,
        auth_token: str | None = None,
        timeout: float = 10,
        session: requests.Session | None = None,
        base_url: str = FIREBASE_STORAGE_BASE_URL,
    ):
        if not bucket:
            raise ValueError('A storage bucket is required')
        self.bucket = bucket
        self.auth_token = auth_token
        self.timeout = timeout
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip('/')

    @property
    def objects_url(self) -> str:
        return f"{self.base_url}/b/{self.bucket}/o"

    def object_url(self, path: str) -> str:
        return f"{self.objects_url}/{quote(path, safe='')}"

    def _headers(self, content_type: str | None = None) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self.auth_token:
            headers['Authorization'] = f"Firebase {self.auth_token}"
        if content_type:
            headers['Content-Type'] = content_type
        return headers

    def put(self, path: str, data: bytes, content_type: str) -> str:
        try:
            response = self.session.post(
                self.objects_url,
                params={'name': path, 'uploadType': 'media'},
                data=data,
                headers=self._headers(content_type),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            current_app.logger.error(f"Upload of {path} failed: {e}")
            raise UploadFailed(f"Could not reach object storage: {e}") from e

        if not response.ok:
            current_app.logger.error(f"Upload of {path} returned {response.status_code}")
            raise UploadFailed(f"Object storage rejected the upload ({response.status_code})")

        metadata = response.json()
        current_app.logger.info(f"Upload complete: {path} ({metadata.get('size', len(data))} bytes)")
        return metadata.get('name') or path

    def download_url(self, path: str) -> str:
        try:
            response = self.session.get(self.object_url(path), headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            current_app.logger.error(f"Metadata lookup for {path} failed: {e}")
            raise UploadFailed(f"Could not reach object storage: {e}") from e

        if not response.ok:
            raise UploadFailed(f"No download URL for {path} ({response.status_code})")

        tokens = (response.json().get('downloadTokens') or '').split(',')
        url = f"{self.object_url(path)}?alt=media"
        if tokens[0]:
            url = f"{url}&token={tokens[0]}"
        return url


class LocalObjectStorage(ObjectStorage):
    """Filesystem storage used in development.

    URLs mimic the hosted format (``alt=media`` plus a token) so the same
    renderability checks apply. The token is derived from the path and stays
    stable across restarts.
    """

    def __init__(self, root: Path | str, url_prefix: str = LOCAL_URL_PREFIX):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip('/')

    def _resolve(self, path: str) -> Path:
        target = (self.root / path.lstrip('/')).resolve()
        root = self.root.resolve()
        if target != root and root not in target.parents:
            raise UploadFailed('Attempted to write outside the upload folder')
        return target

    def put(self, path: str, data: bytes, content_type: str) -> str:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            current_app.logger.error(f"Failed to save upload {path}: {e}")
            raise UploadFailed('Failed to save file') from e
        current_app.logger.info(f"Upload complete: {path} ({len(data)} bytes, {content_type})")
        return target.relative_to(self.root.resolve()).as_posix()

    def download_url(self, path: str) -> str:
        target = self._resolve(path)
        if not target.is_file():
            raise UploadFailed(f"No object stored at {path}")
        name = target.relative_to(self.root.resolve()).as_posix()
        token = uuid.uuid5(uuid.NAMESPACE_URL, name)
        return f"{self.url_prefix}/{quote(name)}?alt=media&token={token}"


def build_object_storage(config: Mapping[str, Any], default_root: Path | str) -> ObjectStorage:
    """Create the object storage selected by ``OBJECT_STORAGE_BACKEND``."""
    backend = (config.get('OBJECT_STORAGE_BACKEND') or 'local').lower()
    if backend == 'firebase':
        return FirebaseObjectStorage(
            bucket=config.get('FIREBASE_STORAGE_BUCKET'),
            auth_token=config.get('FIREBASE_AUTH_TOKEN'),
            timeout=config.get('REMOTE_TIMEOUT', 10),
        )
    if backend == 'local':
        return LocalObjectStorage(config.get('UPLOAD_FOLDER') or default_root)
    raise ValueError(f"Unknown object storage backend: {backend}")


__all__ = [
    'ObjectStorage',
    'FirebaseObjectStorage',
    'LocalObjectStorage',
    'build_object_storage',
    'LOCAL_URL_PREFIX',
]
