"""Strip inline binary images from records before they reach the remote store."""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from clubsite.models.records import ContentRecord, Event, PageContent, SiteSettings

# Anything longer than this is an embedded data-URL that was never uploaded.
IMAGE_SIZE_THRESHOLD = 10_000
IMAGE_PLACEHOLDER = 'image-placeholder'


def is_oversized_image(value: Any) -> bool:
    return isinstance(value, str) and len(value) > IMAGE_SIZE_THRESHOLD


def sanitize_image(value: Optional[str]) -> Optional[str]:
    """Return the placeholder marker for oversized inline images, else ``value``."""
    if is_oversized_image(value):
        return IMAGE_PLACEHOLDER
    return value


def sanitize_record(record: ContentRecord) -> ContentRecord:
    """Return a copy of ``record`` with oversized images replaced.

    Nested image holders (campaign rosters, gallery entries, coaches, the about
    and hero images) are handled too. The input is never mutated.
    """
    updates: dict[str, Any] = {}

    if 'image' in type(record).model_fields and is_oversized_image(record.image):
        updates['image'] = IMAGE_PLACEHOLDER

    if isinstance(record, Event):
        if record.roster:
            updates['roster'] = sanitize(record.roster)
        if record.gallery and any(is_oversized_image(item) for item in record.gallery):
            updates['gallery'] = [sanitize_image(item) for item in record.gallery]
    elif isinstance(record, PageContent):
        if is_oversized_image(record.about_image):
            updates['about_image'] = IMAGE_PLACEHOLDER
        updates['coaches'] = sanitize(record.coaches)
    elif isinstance(record, SiteSettings):
        if is_oversized_image(record.hero_background_image):
            updates['hero_background_image'] = IMAGE_PLACEHOLDER

    return record.model_copy(update=updates)


def sanitize(records: Iterable[ContentRecord]) -> List[ContentRecord]:
    """Sanitize every record, returning new records."""
    return [sanitize_record(record) for record in records]


__all__ = [
    'IMAGE_SIZE_THRESHOLD',
    'IMAGE_PLACEHOLDER',
    'is_oversized_image',
    'sanitize_image',
    'sanitize_record',
    'sanitize',
]
