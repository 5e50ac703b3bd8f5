"""Asset upload pipeline: store images and record their URLs."""

from __future__ import annotations

import base64
import binascii
import mimetypes
import time
from typing import IO, Callable, Union
from urllib.parse import unquote_to_bytes

from flask import current_app
from werkzeug.datastructures import FileStorage

from clubsite.models.records import CollectionKey, coerce_collection_key
from clubsite.services.errors import InvalidEncoding, InvalidLinkTarget, LinkFailed, RemoteUnavailable, UploadFailed
from clubsite.services.object_storage import ObjectStorage
from clubsite.services.remote_store import DATA_FIELD, DocumentStore
from clubsite.services.urls import http_probe, is_renderable_url

DATA_URL_SCHEME = 'data:'
DEFAULT_CONTENT_TYPE = 'application/octet-stream'
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB
# A path containing this character already carries an id/timestamp.
DISAMBIGUATION_MARKER = '_'

UploadSource = Union[bytes, bytearray, FileStorage, IO[bytes]]


def _now_ms() -> int:
    return int(time.time() * 1000)


def unique_path(path: str, now_ms: int | None = None) -> str:
    """Append a timestamp suffix unless ``path`` is already disambiguated."""
    if DISAMBIGUATION_MARKER in path:
        return path
    return f"{path}_{now_ms if now_ms is not None else _now_ms()}"


def parse_data_url(data_url: str) -> tuple[str, bytes]:
    """
    Decode a data-URL.

    Args:
        data_url: ``data:<content type>[;base64],<payload>``

    Returns:
        (content_type, decoded bytes)

    Raises:
        InvalidEncoding: the string is not a well-formed, non-empty data-URL
    """
    if not isinstance(data_url, str) or not data_url.startswith(DATA_URL_SCHEME):
        raise InvalidEncoding('Invalid data URL')

    header, sep, payload = data_url[len(DATA_URL_SCHEME):].partition(',')
    if not sep:
        raise InvalidEncoding('Data URL has no payload separator')

    params = header.split(';')
    content_type = (params[0] or 'text/plain').strip().lower()
    if 'base64' in (p.strip().lower() for p in params[1:]):
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidEncoding('Data URL payload is not valid base64') from e
    else:
        data = unquote_to_bytes(payload)

    if not data:
        raise InvalidEncoding('Data URL payload is empty')
    return content_type, data


def check_link_target(collection_key: str | CollectionKey, field_name: str) -> None:
    """Reject link targets that the next full save would overwrite.

    Content collections are rewritten whole on save, so a linked URL survives
    only when it lands on a field of a singleton's record under ``data.``.
    List collections are edited through their records instead. Documents
    outside the content collections accept any field.

    Raises:
        InvalidLinkTarget: the field cannot hold a linked URL
    """
    parts = [part for part in (field_name or '').split('.') if part]
    if not parts:
        raise InvalidLinkTarget('A field name is required')
    try:
        key = coerce_collection_key(collection_key)
    except KeyError:
        return
    if not key.is_singleton:
        raise InvalidLinkTarget(f"{key.value} holds a list of records; update the record instead")
    if parts[0] != DATA_FIELD or len(parts) < 2:
        raise InvalidLinkTarget(f"Fields of {key.value} must be addressed as {DATA_FIELD}.<field>")


def read_upload(file: UploadSource) -> tuple[bytes, str]:
    """Return the bytes and content type of an upload source."""
    if isinstance(file, (bytes, bytearray)):
        return bytes(file), DEFAULT_CONTENT_TYPE

    if isinstance(file, FileStorage):
        file.stream.seek(0)
        data = file.stream.read()
        content_type = file.mimetype or mimetypes.guess_type(file.filename or '')[0]
        return data, content_type or DEFAULT_CONTENT_TYPE

    if hasattr(file, 'read'):
        data = file.read()
        name = getattr(file, 'name', '') or ''
        content_type = mimetypes.guess_type(name)[0] if isinstance(name, str) else None
        return data, content_type or DEFAULT_CONTENT_TYPE

    raise UploadFailed('Invalid file object provided')


class AssetUploadPipeline:
    """Uploads binaries to object storage and links URLs into documents."""

    def __init__(
        self,
        storage: ObjectStorage,
        documents: DocumentStore,
        max_size: int = MAX_FILE_SIZE,
        verify_access: bool = False,
        probe: Callable[[str], bool] = http_probe,
        clock: Callable[[], int] = _now_ms,
    ):
        self.storage = storage
        self.documents = documents
        self.max_size = max_size
        self.verify_access = verify_access
        self.probe = probe
        self.clock = clock

    def upload_binary(self, file: UploadSource, path: str) -> str:
        """Store a binary object and return its download URL."""
        data, content_type = read_upload(file)
        return self._store(data, content_type, path)

    def upload_data_url(self, data_url: str, path: str) -> str:
        """Decode a data-URL, store the bytes and return the download URL.

        Malformed input fails with ``InvalidEncoding`` before any network call.
        """
        content_type, data = parse_data_url(data_url)
        return self._store(data, content_type, path)

    def get_image_url(self, path: str) -> str:
        if not path:
            raise UploadFailed('No path provided')
        url = self.storage.download_url(path)
        self._verify(url)
        return url

    def link_url(self, collection_key: str | CollectionKey, field_name: str, url: str) -> None:
        """Merge ``url`` into ``field_name`` of the document slot.

        Raises:
            InvalidLinkTarget: the field would be lost on the next save
            LinkFailed: the document write failed; the upload stays in storage
        """
        check_link_target(collection_key, field_name)
        key = collection_key.value if isinstance(collection_key, CollectionKey) else collection_key
        try:
            self.documents.merge_field(key, field_name, url)
        except RemoteUnavailable as e:
            current_app.logger.error(f"Uploaded {url} but could not save it to {key}.{field_name}: {e}")
            raise LinkFailed(url, key, field_name, e) from e
        current_app.logger.info(f"Image URL saved to {self.documents.namespace}/{key}.{field_name}")

    def upload_and_link(
        self,
        file: UploadSource,
        storage_path: str,
        collection_key: str | CollectionKey,
        field_name: str,
    ) -> str:
        check_link_target(collection_key, field_name)
        url = self.upload_binary(file, storage_path)
        self.link_url(collection_key, field_name, url)
        return url

    def upload_data_url_and_link(
        self,
        data_url: str,
        storage_path: str,
        collection_key: str | CollectionKey,
        field_name: str,
    ) -> str:
        check_link_target(collection_key, field_name)
        url = self.upload_data_url(data_url, storage_path)
        self.link_url(collection_key, field_name, url)
        return url

    def _store(self, data: bytes, content_type: str, path: str) -> str:
        if not path:
            raise UploadFailed('No storage path provided')
        if len(data) > self.max_size:
            raise UploadFailed(f"File exceeds maximum upload size of {self.max_size // (1024 * 1024)} MB")

        target = unique_path(path, self.clock())
        stored = self.storage.put(target, data, content_type)
        url = self.storage.download_url(stored)
        current_app.logger.info(f"Image uploaded to {stored}: {url}")
        self._verify(url)
        return url

    def _verify(self, url: str) -> None:
        """Best-effort checks; problems are logged, never raised."""
        if not is_renderable_url(url):
            current_app.logger.warning(f"Storage URL is missing its access token or media flag: {url}")
        if self.verify_access:
            self.probe(url)


__all__ = [
    'AssetUploadPipeline',
    'DATA_URL_SCHEME',
    'MAX_FILE_SIZE',
    'check_link_target',
    'parse_data_url',
    'read_upload',
    'unique_path',
]
