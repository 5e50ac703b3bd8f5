"""Tests for the admin edit workflow."""

import base64

import pytest

from clubsite.models.records import CollectionKey
from clubsite.services.editing import apply_coach_edit, apply_record_edit, apply_singleton_edit
from clubsite.services.errors import InvalidEncoding, UploadFailed
from clubsite.services.object_storage import ObjectStorage
from clubsite.services.sanitize import IMAGE_PLACEHOLDER, IMAGE_SIZE_THRESHOLD
from clubsite.services.uploads import AssetUploadPipeline

PNG_DATA_URL = 'data:image/png;base64,' + base64.b64encode(b'\x89PNG' + b'\x00' * 16).decode('ascii')


class StubStorage(ObjectStorage):
    def __init__(self, fail=False):
        self.fail = fail
        self.paths = []

    def put(self, path, data, content_type):
        if self.fail:
            raise UploadFailed('bucket unavailable')
        self.paths.append(path)
        return path

    def download_url(self, path):
        return f'https://firebasestorage.googleapis.com/v0/b/demo/o/{path}?alt=media&token=t'


@pytest.fixture
def storage():
    return StubStorage()


@pytest.fixture
def pipeline(app, storage, remote):
    return AssetUploadPipeline(storage, remote, clock=lambda: 1700)


def test_new_record_gets_next_id_and_uploaded_image(store, pipeline, storage):
    store.load()

    player = apply_record_edit(store, pipeline, CollectionKey.PLAYERS, {
        'name': 'Sam Lee',
        'tempImageData': PNG_DATA_URL,
    })

    assert player.id == 4
    assert storage.paths == ['players/player_4_1700']
    assert player.image.endswith('players/player_4_1700?alt=media&token=t')
    assert 'tempImageData' not in player.model_dump(by_alias=True)


def test_existing_record_keeps_its_id(store, pipeline):
    store.load()

    event = apply_record_edit(store, pipeline, CollectionKey.EVENTS, {'title': 'Renamed'}, record_id='2')

    assert event.id == 2
    assert [e.title for e in store.records(CollectionKey.EVENTS)] == ['Spring Tournament', 'Renamed']


def test_storage_failure_keeps_inline_image_for_sanitizer(app, store, remote):
    store.load()
    pipeline = AssetUploadPipeline(StubStorage(fail=True), remote)
    big_data_url = 'data:image/png;base64,' + 'A' * IMAGE_SIZE_THRESHOLD

    news = apply_record_edit(store, pipeline, CollectionKey.NEWS, {'title': 'Photo day', 'image': big_data_url})
    store.save()

    assert news.image == big_data_url
    assert remote.get_data('news')[-1]['image'] == IMAGE_PLACEHOLDER


def test_malformed_image_aborts_edit(store, pipeline):
    store.load()

    with pytest.raises(InvalidEncoding):
        apply_record_edit(store, pipeline, CollectionKey.PLAYERS, {'name': 'Bad', 'image': 'data:image/png;base64,!!'})

    assert len(store.records(CollectionKey.PLAYERS)) == 3


def test_gallery_data_urls_are_uploaded(store, pipeline, storage):
    store.load()

    event = apply_record_edit(store, pipeline, CollectionKey.EVENTS, {
        'title': 'Finals',
        'type': 'past',
        'gallery': ['https://example.com/kept.jpg', PNG_DATA_URL],
    })

    assert event.gallery[0] == 'https://example.com/kept.jpg'
    assert 'events/event_3_gallery1_1700' in storage.paths


def test_coach_edit_uses_coach_path(store, pipeline, storage):
    store.load()

    coach = apply_coach_edit(store, pipeline, {'name': 'New Coach', 'imageFile': PNG_DATA_URL})

    assert coach.id == 4
    assert storage.paths == ['coaches/coach_4']
    assert store.page_content.coaches[-1].name == 'New Coach'


def test_hero_image_upload(store, pipeline, storage):
    store.load()

    settings = apply_singleton_edit(store, pipeline, CollectionKey.SITE_SETTINGS, {
        'heroTitle': 'Welcome',
        'heroBackgroundImage': PNG_DATA_URL,
    })

    assert settings.hero_title == 'Welcome'
    assert storage.paths == ['settings/hero_1700']
    assert store.site_settings.hero_background_image.startswith('https://firebasestorage.googleapis.com/')
