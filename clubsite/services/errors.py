"""Error taxonomy shared by the content services."""

from __future__ import annotations

from typing import Iterable


class ContentError(Exception):
    """Base class for content synchronisation failures."""


class RemoteUnavailable(ContentError):
    """The remote document store could not be reached or refused the call."""

    def __init__(self, message: str, collection_key: str | None = None):
        super().__init__(message)
        self.collection_key = collection_key


class InvalidEncoding(ContentError):
    """A data-URL handed to the upload pipeline is malformed."""


class UploadFailed(ContentError):
    """Object storage rejected or could not complete an upload."""


class LinkFailed(ContentError):
    """An upload succeeded but recording its URL on a document failed.

    The stored object is left in place; ``url`` is still usable.
    """

    def __init__(self, url: str, collection_key: str, field_name: str, cause: Exception | None = None):
        super().__init__(f"Uploaded to {url} but could not link it to {collection_key}.{field_name}")
        self.url = url
        self.collection_key = collection_key
        self.field_name = field_name
        self.cause = cause


class InvalidLinkTarget(ContentError):
    """A link field that a later full save of the collection would overwrite."""


class SaveFailed(ContentError):
    """One or more collections could not be written during ``save()``.

    Writes that already completed for other collections are not rolled back.
    """

    def __init__(self, failed_keys: Iterable[str], completed_keys: Iterable[str] = ()):
        self.failed_keys = list(failed_keys)
        self.completed_keys = list(completed_keys)
        super().__init__(f"Failed to save: {', '.join(self.failed_keys)}")


class InvalidImageUrl(ContentError):
    """An image source that cannot be rendered as-is."""


__all__ = [
    'ContentError',
    'RemoteUnavailable',
    'InvalidEncoding',
    'UploadFailed',
    'LinkFailed',
    'InvalidLinkTarget',
    'SaveFailed',
    'InvalidImageUrl',
]
