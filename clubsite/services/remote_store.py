"""Remote structured store adapters.

The remote store holds one document per collection key inside a single
namespace (``website``). Each document carries one field, ``data``, with the
whole collection. A plain ``set_document`` replaces the slot entirely, so
callers that must not clobber fields read before they write.
"""

from __future__ import annotations

import copy
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping
from urllib.parse import quote

import requests
from flask import current_app

from clubsite.services.errors import RemoteUnavailable
from clubsite.services.firestore_codec import decode_fields, encode_fields

FIRESTORE_BASE_URL = 'https://firestore.googleapis.com/v1'
DATA_FIELD = 'data'


@dataclass(frozen=True)
class WriteResult:
    """Acknowledgement returned for every completed write."""

    key: str
    update_time: str | None = None


def field_payload(field_path: str, value: Any) -> Dict[str, Any]:
    """Expand a dotted field path into a nested payload.

    ``field_payload('data.heroBackgroundImage', url)`` gives
    ``{'data': {'heroBackgroundImage': url}}``.
    """
    parts = [part for part in field_path.split('.') if part]
    if not parts:
        raise ValueError('Field path must not be empty')
    payload: Dict[str, Any] = {parts[-1]: value}
    for part in reversed(parts[:-1]):
        payload = {part: payload}
    return payload


def leaf_paths(payload: Mapping[str, Any], prefix: str = '') -> List[str]:
    """List the dotted paths of every non-map value in ``payload``."""
    paths: List[str] = []
    for key, value in payload.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping) and value:
            paths.extend(leaf_paths(value, path))
        else:
            paths.append(path)
    return paths


def deep_merge(target: Dict[str, Any], updates: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge ``updates`` into ``target`` in place.

    Raises:
        ValueError: a nested update would replace an existing non-map value
    """
    for key, value in updates.items():
        if isinstance(value, Mapping) and isinstance(target.get(key), dict):
            deep_merge(target[key], value)
        elif isinstance(value, Mapping) and target.get(key) is not None:
            raise ValueError(f"Cannot merge fields into {key!r}: it holds a {type(target[key]).__name__}")
        else:
            target[key] = copy.deepcopy(value)
    return target


class DocumentStore:
    """Interface consumed by the content reconciler and upload pipeline."""

    namespace = 'website'

    def get_document(self, key: str) -> Dict[str, Any] | None:
        """Return the document stored under ``key`` or ``None`` if absent.

        Raises:
            RemoteUnavailable: the backing service could not be reached
        """
        raise NotImplementedError

    def set_document(self, key: str, payload: Dict[str, Any], merge: bool = False) -> WriteResult:
        """Write ``payload`` to ``key``.

        Without ``merge`` the slot is fully replaced. With ``merge`` only the
        leaf fields present in ``payload`` are written.

        Raises:
            RemoteUnavailable: the write was not acknowledged
        """
        raise NotImplementedError

    def get_data(self, key: str) -> Any:
        document = self.get_document(key)
        if document is None:
            return None
        return document.get(DATA_FIELD)

    def set_data(self, key: str, data: Any) -> WriteResult:
        return self.set_document(key, {DATA_FIELD: data})

    def merge_field(self, key: str, field_path: str, value: Any) -> WriteResult:
        return self.set_document(key, field_payload(field_path, value), merge=True)

    def await_consistency(
        self,
        key: str,
        payload: Dict[str, Any],
        attempts: int = 5,
        delay: float = 0.5,
    ) -> bool:
        """Re-read ``key`` until it equals ``payload``.

        Returns False when the document still differs after ``attempts`` reads.
        """
        for attempt in range(attempts):
            try:
                if self.get_document(key) == payload:
                    return True
            except RemoteUnavailable as e:
                current_app.logger.warning(f"Consistency check for {key} failed: {e}")
            if attempt < attempts - 1:
                time.sleep(delay)
        return False


class FirestoreDocumentStore(DocumentStore):
    """Document store backed by the Firestore REST API."""

    def __init__(
        self,
        project_id: str,
        namespace: str = 'website',
        api_key: str | None = None,
        auth_token: str | None = None,
        timeout: float = 10,
        session: requests.Session | None = None,
        base_url: str = FIRESTORE_BASE_URL,
    ):
        if not project_id:
            raise ValueError('A Firestore project id is required')
        self.project_id = project_id
        self.namespace = namespace
        self.api_key = api_key
        self.auth_token = auth_token
        self.timeout = timeout
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip('/')

    def document_url(self, key: str) -> str:
        return (
            f"{self.base_url}/projects/{self.project_id}/databases/(default)/documents/"
            f"{quote(self.namespace, safe='')}/{quote(key, safe='')}"
        )

    def _headers(self) -> Dict[str, str]:
        if self.auth_token:
            return {'Authorization': f"Bearer {self.auth_token}"}
        return {}

    def _params(self) -> List[tuple[str, str]]:
        return [('key', self.api_key)] if self.api_key else []

    def get_document(self, key: str) -> Dict[str, Any] | None:
        try:
            response = self.session.get(
                self.document_url(key),
                params=self._params(),
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            current_app.logger.error(f"Failed to read {self.namespace}/{key}: {e}")
            raise RemoteUnavailable(f"Could not reach the document store: {e}", key) from e

        if response.status_code == 404:
            return None
        if not response.ok:
            current_app.logger.error(f"Read of {self.namespace}/{key} returned {response.status_code}")
            raise RemoteUnavailable(f"Document store returned {response.status_code}", key)

        body = response.json()
        return decode_fields(body.get('fields', {}))

    def set_document(self, key: str, payload: Dict[str, Any], merge: bool = False) -> WriteResult:
        params = self._params()
        if merge:
            params.extend(('updateMask.fieldPaths', path) for path in leaf_paths(payload))

        try:
            response = self.session.patch(
                self.document_url(key),
                params=params,
                headers=self._headers(),
                json={'fields': encode_fields(payload)},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            current_app.logger.error(f"Failed to write {self.namespace}/{key}: {e}")
            raise RemoteUnavailable(f"Could not reach the document store: {e}", key) from e

        if not response.ok:
            current_app.logger.error(f"Write of {self.namespace}/{key} returned {response.status_code}")
            raise RemoteUnavailable(f"Document store rejected the write ({response.status_code})", key)

        body = response.json()
        return WriteResult(key=key, update_time=body.get('updateTime'))


class MemoryDocumentStore(DocumentStore):
    """In-process document store for development and tests."""

    def __init__(self, documents: Dict[str, Dict[str, Any]] | None = None, namespace: str = 'website'):
        self.namespace = namespace
        self.documents: Dict[str, Dict[str, Any]] = copy.deepcopy(documents or {})

    def get_document(self, key: str) -> Dict[str, Any] | None:
        document = self.documents.get(key)
        return copy.deepcopy(document) if document is not None else None

    def set_document(self, key: str, payload: Dict[str, Any], merge: bool = False) -> WriteResult:
        if merge and key in self.documents:
            merged = deep_merge(copy.deepcopy(self.documents[key]), payload)
            self.documents[key] = merged
        else:
            self.documents[key] = copy.deepcopy(payload)
        return WriteResult(key=key, update_time=datetime.now(timezone.utc).isoformat())


def build_document_store(config: Mapping[str, Any]) -> DocumentStore:
    """Create the document store selected by ``REMOTE_STORE_BACKEND``."""
    backend = (config.get('REMOTE_STORE_BACKEND') or 'memory').lower()
    namespace = config.get('FIRESTORE_NAMESPACE') or 'website'
    if backend == 'firestore':
        return FirestoreDocumentStore(
            project_id=config.get('FIREBASE_PROJECT_ID'),
            namespace=namespace,
            api_key=config.get('FIREBASE_API_KEY'),
            auth_token=config.get('FIREBASE_AUTH_TOKEN'),
            timeout=config.get('REMOTE_TIMEOUT', 10),
        )
    if backend == 'memory':
        return MemoryDocumentStore(namespace=namespace)
    raise ValueError(f"Unknown remote store backend: {backend}")


__all__ = [
    'DATA_FIELD',
    'WriteResult',
    'DocumentStore',
    'FirestoreDocumentStore',
    'MemoryDocumentStore',
    'build_document_store',
    'field_payload',
    'leaf_paths',
]
