"""Admin edit workflow: upload pending inline images, then update the store."""

from __future__ import annotations

from typing import Any, Dict, Optional

from flask import current_app

from clubsite.models.records import (
    CollectionKey,
    Coach,
    ContentRecord,
    RecordId,
    RecordKind,
    decode_record,
)
from clubsite.services.content_store import ContentStore
from clubsite.services.errors import UploadFailed
from clubsite.services.uploads import DATA_URL_SCHEME, AssetUploadPipeline

# Keys used by edit forms for the preview copy of a freshly picked image.
TEMP_IMAGE_KEYS = ('tempImageData', 'imageFile')

STORAGE_PATHS: Dict[RecordKind, str] = {
    RecordKind.PLAYER: 'players/player_{id}_{ts}',
    RecordKind.COACH: 'coaches/coach_{id}',
    RecordKind.EVENT: 'events/event_{id}_{ts}',
    RecordKind.NEWS_ITEM: 'news/news_{id}_{ts}',
}
ABOUT_IMAGE_PATH = 'pages/about'
HERO_IMAGE_PATH = 'settings/hero'


def is_data_url(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(DATA_URL_SCHEME)


def storage_path_for(kind: RecordKind, record_id: RecordId, timestamp: int) -> str:
    template = STORAGE_PATHS.get(kind, f"{kind.value}/{kind.value}_{{id}}_{{ts}}")
    return template.format(id=record_id, ts=timestamp)


def _upload_or_keep(pipeline: Optional[AssetUploadPipeline], data_url: str, path: str) -> str:
    """Upload ``data_url``; on storage failure keep it inline for the sanitizer.

    ``InvalidEncoding`` is not caught: a malformed image aborts the edit.
    """
    if pipeline is None:
        return data_url
    try:
        return pipeline.upload_data_url(data_url, path)
    except UploadFailed as e:
        current_app.logger.error(f"Image upload to {path} failed, saving record without it: {e}")
        return data_url


def _resolve_record_id(store: ContentStore, key: CollectionKey, record_id: RecordId | None) -> RecordId:
    if record_id is None:
        return store.next_id(key)
    existing = store.get_record(key, record_id)
    if existing is not None:
        return existing.id
    try:
        return int(record_id)
    except (TypeError, ValueError):
        return record_id


def prepare_images(
    pipeline: Optional[AssetUploadPipeline],
    kind: RecordKind,
    payload: Dict[str, Any],
) -> Dict[str, Any]:
    """Replace inline images in a wire-format record payload with uploaded URLs."""
    payload = dict(payload)
    pending = None
    for temp_key in TEMP_IMAGE_KEYS:
        value = payload.pop(temp_key, None)
        if is_data_url(value):
            pending = value
    if pending is None and is_data_url(payload.get('image')):
        pending = payload['image']

    timestamp = pipeline.clock() if pipeline is not None else 0
    if pending is not None:
        payload['image'] = _upload_or_keep(pipeline, pending, storage_path_for(kind, payload['id'], timestamp))

    gallery = payload.get('gallery')
    if kind is RecordKind.EVENT and isinstance(gallery, list):
        payload['gallery'] = [
            _upload_or_keep(pipeline, item, f"events/event_{payload['id']}_gallery{index}_{timestamp}")
            if is_data_url(item) else item
            for index, item in enumerate(gallery)
        ]
    return payload


def apply_record_edit(
    store: ContentStore,
    pipeline: Optional[AssetUploadPipeline],
    key: CollectionKey,
    payload: Dict[str, Any],
    record_id: RecordId | None = None,
) -> ContentRecord:
    """
    Create or replace a record in a list collection.

    Args:
        store: Content store owning the collection
        pipeline: Upload pipeline for inline images (None skips uploads)
        key: Target list collection
        payload: Wire-format record fields
        record_id: Id of the record being replaced; None creates a new record

    Returns:
        The stored record
    """
    if key.is_singleton:
        raise ValueError(f"{key.value} is not a list collection")
    payload = {**payload, 'id': _resolve_record_id(store, key, record_id)}
    payload = prepare_images(pipeline, key.kind, payload)
    record = decode_record(key.kind, payload)
    return store.upsert_record(record)


def apply_coach_edit(
    store: ContentStore,
    pipeline: Optional[AssetUploadPipeline],
    payload: Dict[str, Any],
    coach_id: RecordId | None = None,
) -> Coach:
    """Create or replace a coach inside the page content."""
    if coach_id is None:
        resolved: RecordId = store.next_coach_id()
    else:
        resolved = next(
            (c.id for c in store.page_content.coaches if str(c.id) == str(coach_id)),
            coach_id,
        )
    payload = prepare_images(pipeline, RecordKind.COACH, {**payload, 'id': resolved})
    coach = decode_record(RecordKind.COACH, payload)
    return store.upsert_coach(coach)


def apply_singleton_edit(
    store: ContentStore,
    pipeline: Optional[AssetUploadPipeline],
    key: CollectionKey,
    changes: Dict[str, Any],
) -> ContentRecord:
    """Update page content or site settings, uploading inline images first."""
    changes = dict(changes)
    image_field, path = {
        CollectionKey.PAGE_CONTENT: ('aboutImage', ABOUT_IMAGE_PATH),
        CollectionKey.SITE_SETTINGS: ('heroBackgroundImage', HERO_IMAGE_PATH),
    }[key]
    if is_data_url(changes.get(image_field)):
        changes[image_field] = _upload_or_keep(pipeline, changes[image_field], path)
    return store.update_singleton(key, changes)


__all__ = [
    'apply_record_edit',
    'apply_coach_edit',
    'apply_singleton_edit',
    'prepare_images',
    'storage_path_for',
    'is_data_url',
]
