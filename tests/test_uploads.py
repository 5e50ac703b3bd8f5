"""Tests for the asset upload pipeline."""

import base64
import io

import pytest
from werkzeug.datastructures import FileStorage

from clubsite.services.errors import InvalidEncoding, InvalidLinkTarget, LinkFailed, UploadFailed
from clubsite.services.object_storage import LocalObjectStorage, ObjectStorage
from clubsite.services.remote_store import MemoryDocumentStore
from clubsite.services.uploads import AssetUploadPipeline, parse_data_url, unique_path
from clubsite.services.urls import is_renderable_url

PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 32
PNG_DATA_URL = 'data:image/png;base64,' + base64.b64encode(PNG_BYTES).decode('ascii')


class RecordingStorage(ObjectStorage):
    """Object storage that records every call and never touches the network."""

    def __init__(self, token='tok123'):
        self.calls = []
        self.token = token

    def put(self, path, data, content_type):
        self.calls.append(('put', path, data, content_type))
        return path

    def download_url(self, path):
        self.calls.append(('download_url', path))
        url = f"https://firebasestorage.googleapis.com/v0/b/demo/o/{path.replace('/', '%2F')}?alt=media"
        return f"{url}&token={self.token}" if self.token else url


@pytest.fixture
def storage():
    return RecordingStorage()


@pytest.fixture
def documents():
    return MemoryDocumentStore()


@pytest.fixture
def pipeline(app, storage, documents):
    return AssetUploadPipeline(storage, documents, max_size=1024, clock=lambda: 1700000000000)


class TestUniquePath:
    def test_suffix_added(self):
        assert unique_path('players/photo', 42) == 'players/photo_42'

    def test_existing_marker_kept(self):
        assert unique_path('players/player_7_1699', 42) == 'players/player_7_1699'


class TestParseDataUrl:
    def test_base64_payload(self):
        content_type, data = parse_data_url(PNG_DATA_URL)
        assert content_type == 'image/png'
        assert data == PNG_BYTES

    def test_percent_encoded_payload(self):
        content_type, data = parse_data_url('data:image/svg+xml,%3Csvg%3E%3C%2Fsvg%3E')
        assert content_type == 'image/svg+xml'
        assert data == b'<svg></svg>'

    @pytest.mark.parametrize('value', [
        'image/png;base64,AAAA',
        'data:image/png;base64',
        'data:image/png;base64,not base64!!',
        'data:image/png;base64,',
        '',
    ])
    def test_malformed(self, value):
        with pytest.raises(InvalidEncoding):
            parse_data_url(value)


class TestUploadDataUrl:
    def test_malformed_data_url_makes_no_storage_call(self, pipeline, storage):
        with pytest.raises(InvalidEncoding):
            pipeline.upload_data_url('data:image/png;base64,%%%', 'players/photo')

        assert storage.calls == []

    def test_declared_content_type_is_stored(self, pipeline, storage):
        data_url = 'data:text/plain;base64,' + base64.b64encode(b'hello').decode('ascii')

        pipeline.upload_data_url(data_url, 'players/photo')

        assert storage.calls[0] == ('put', 'players/photo_1700000000000', b'hello', 'text/plain')

    def test_upload_returns_download_url(self, pipeline, storage):
        url = pipeline.upload_data_url(PNG_DATA_URL, 'players/photo')

        assert storage.calls[0] == ('put', 'players/photo_1700000000000', PNG_BYTES, 'image/png')
        assert is_renderable_url(url)

    def test_oversized_payload_rejected(self, app, storage, documents):
        pipeline = AssetUploadPipeline(storage, documents, max_size=8)

        with pytest.raises(UploadFailed):
            pipeline.upload_data_url(PNG_DATA_URL, 'players/photo')
        assert storage.calls == []

    def test_url_without_token_is_returned_with_warning(self, app, documents, caplog):
        pipeline = AssetUploadPipeline(RecordingStorage(token=None), documents, clock=lambda: 1)

        url = pipeline.upload_data_url(PNG_DATA_URL, 'news/news_3_1')

        assert not is_renderable_url(url)
        assert 'missing its access token' in caplog.text


class TestUploadBinary:
    def test_file_storage_upload(self, pipeline, storage):
        file = FileStorage(stream=io.BytesIO(PNG_BYTES), filename='photo.png', content_type='image/png')

        pipeline.upload_binary(file, 'coaches/coach_2')

        assert storage.calls[0] == ('put', 'coaches/coach_2', PNG_BYTES, 'image/png')

    def test_missing_path_rejected(self, pipeline):
        with pytest.raises(UploadFailed):
            pipeline.upload_binary(PNG_BYTES, '')

    def test_access_probe_runs_when_enabled(self, app, storage, documents):
        probed = []
        pipeline = AssetUploadPipeline(
            storage, documents, verify_access=True, probe=lambda url: probed.append(url) or False,
        )

        url = pipeline.upload_binary(PNG_BYTES, 'players/p_1')

        assert probed == [url]


class TestLinking:
    def test_link_merges_field(self, pipeline, documents):
        documents.set_document('siteSettings', {'data': {'heroTitle': 'Sublime'}})

        url = pipeline.upload_data_url_and_link(PNG_DATA_URL, 'settings/hero', 'siteSettings', 'data.heroBackgroundImage')

        assert documents.get_document('siteSettings') == {
            'data': {'heroTitle': 'Sublime', 'heroBackgroundImage': url},
        }

    def test_link_failure_keeps_url(self, app, storage, remote):
        remote.fail_writes.add('pageContent')
        pipeline = AssetUploadPipeline(storage, remote, clock=lambda: 5)

        with pytest.raises(LinkFailed) as excinfo:
            pipeline.upload_and_link(PNG_BYTES, 'pages/about', 'pageContent', 'data.aboutImage')

        assert excinfo.value.url.startswith('https://firebasestorage.googleapis.com/')
        assert any(call[0] == 'put' for call in storage.calls)

    def test_list_collection_target_rejected_before_upload(self, pipeline, storage, documents):
        documents.set_data('players', [{'id': 1, 'name': 'Ace'}])

        with pytest.raises(InvalidLinkTarget):
            pipeline.upload_data_url_and_link(PNG_DATA_URL, 'players/player_1', 'players', 'data.image')

        assert storage.calls == []
        assert documents.get_data('players') == [{'id': 1, 'name': 'Ace'}]

    @pytest.mark.parametrize('field', ['aboutImage', 'data', ''])
    def test_singleton_target_must_be_under_data(self, pipeline, storage, field):
        with pytest.raises(InvalidLinkTarget):
            pipeline.upload_and_link(PNG_BYTES, 'pages/about', 'pageContent', field)
        assert storage.calls == []

    def test_other_documents_accept_any_field(self, pipeline, documents):
        url = pipeline.upload_and_link(PNG_BYTES, 'sponsors/logo', 'sponsors', 'logo')

        assert documents.get_document('sponsors') == {'logo': url}


class TestLocalStorage:
    def test_round_trip_through_upload_route(self, app, client, tmp_path):
        storage = LocalObjectStorage(tmp_path / 'uploads')
        pipeline = AssetUploadPipeline(storage, MemoryDocumentStore(), clock=lambda: 9)

        url = pipeline.upload_binary(PNG_BYTES, 'players/photo')

        assert url.startswith('/uploads/players/photo_9?alt=media&token=')
        assert (tmp_path / 'uploads' / 'players' / 'photo_9').read_bytes() == PNG_BYTES
        response = client.get(url)
        assert response.status_code == 200
        assert response.data == PNG_BYTES

    def test_paths_cannot_escape_root(self, app, tmp_path):
        storage = LocalObjectStorage(tmp_path / 'uploads')

        with pytest.raises(UploadFailed):
            storage.put('../outside', PNG_BYTES, 'image/png')
