"""Tests for the Firestore REST adapter, its value codec and the object storage client."""

from unittest.mock import MagicMock

import pytest
import requests

from clubsite.services.errors import RemoteUnavailable, UploadFailed
from clubsite.services.firestore_codec import decode_fields, encode_fields, encode_value
from clubsite.services.object_storage import FirebaseObjectStorage
from clubsite.services.remote_store import (
    FirestoreDocumentStore,
    MemoryDocumentStore,
    field_payload,
    leaf_paths,
)


def _response(status=200, body=None):
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    response.json.return_value = body or {}
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def firestore(app, session):
    return FirestoreDocumentStore('demo-project', api_key='key-123', session=session)


class TestCodec:
    def test_scalar_encoding(self):
        assert encode_value(True) == {'booleanValue': True}
        assert encode_value(7) == {'integerValue': '7'}
        assert encode_value(1.5) == {'doubleValue': 1.5}
        assert encode_value(None) == {'nullValue': None}

    def test_nested_collection_decodes_to_original(self):
        data = {'data': [{'id': 1, 'isCaptain': False, 'image': None, 'gallery': ['a', 'b']}]}
        assert decode_fields(encode_fields(data)) == data

    def test_timestamp_decoded_as_string(self):
        assert decode_fields({'at': {'timestampValue': '2025-01-01T00:00:00Z'}}) == {'at': '2025-01-01T00:00:00Z'}

    def test_empty_array_and_map(self):
        fields = {'list': {'arrayValue': {}}, 'map': {'mapValue': {}}}
        assert decode_fields(fields) == {'list': [], 'map': {}}

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            encode_value(object())


class TestPaths:
    def test_field_payload(self):
        assert field_payload('data.heroBackgroundImage', 'u') == {'data': {'heroBackgroundImage': 'u'}}
        assert field_payload('aboutImage', 'u') == {'aboutImage': 'u'}

    def test_leaf_paths(self):
        assert leaf_paths({'data': {'a': 1, 'b': {'c': 2}}, 'x': []}) == ['data.a', 'data.b.c', 'x']


class TestFirestoreDocumentStore:
    def test_document_url(self, firestore):
        assert firestore.document_url('pageContent') == (
            'https://firestore.googleapis.com/v1/projects/demo-project/databases/(default)/documents/website/pageContent'
        )

    def test_get_decodes_fields(self, firestore, session):
        session.get.return_value = _response(body={'fields': encode_fields({'data': [{'id': 1}]})})

        assert firestore.get_data('players') == [{'id': 1}]
        _, kwargs = session.get.call_args
        assert kwargs['params'] == [('key', 'key-123')]

    def test_missing_document(self, firestore, session):
        session.get.return_value = _response(status=404)
        assert firestore.get_document('news') is None

    def test_server_error_raises(self, firestore, session):
        session.get.return_value = _response(status=503)
        with pytest.raises(RemoteUnavailable) as excinfo:
            firestore.get_document('news')
        assert excinfo.value.collection_key == 'news'

    def test_connection_error_raises(self, firestore, session):
        session.get.side_effect = requests.ConnectionError('offline')
        with pytest.raises(RemoteUnavailable):
            firestore.get_document('news')

    def test_full_replace_has_no_update_mask(self, firestore, session):
        session.patch.return_value = _response(body={'updateTime': '2025-01-01T00:00:00Z'})

        result = firestore.set_data('teams', [{'id': 1, 'name': 'A Team'}])

        assert result.key == 'teams'
        assert result.update_time == '2025-01-01T00:00:00Z'
        _, kwargs = session.patch.call_args
        assert kwargs['params'] == [('key', 'key-123')]
        assert kwargs['json'] == {'fields': encode_fields({'data': [{'id': 1, 'name': 'A Team'}]})}

    def test_merge_sends_update_mask(self, firestore, session):
        session.patch.return_value = _response()

        firestore.merge_field('siteSettings', 'data.heroBackgroundImage', 'https://img')

        _, kwargs = session.patch.call_args
        assert ('updateMask.fieldPaths', 'data.heroBackgroundImage') in kwargs['params']

    def test_rejected_write_raises(self, firestore, session):
        session.patch.return_value = _response(status=403)
        with pytest.raises(RemoteUnavailable):
            firestore.set_data('teams', [])

    def test_requires_project_id(self):
        with pytest.raises(ValueError):
            FirestoreDocumentStore('')


class TestMemoryDocumentStore:
    def test_reads_are_copies(self):
        store = MemoryDocumentStore()
        store.set_data('players', [{'id': 1}])

        store.get_data('players').append({'id': 2})

        assert store.get_data('players') == [{'id': 1}]

    def test_merge_keeps_sibling_fields(self):
        store = MemoryDocumentStore({'pageContent': {'data': {'coaches': [1]}}})

        store.merge_field('pageContent', 'data.aboutImage', 'u')

        assert store.get_data('pageContent') == {'coaches': [1], 'aboutImage': 'u'}

    def test_merge_into_list_raises(self):
        store = MemoryDocumentStore({'players': {'data': [{'id': 1}]}})

        with pytest.raises(ValueError):
            store.merge_field('players', 'data.image', 'u')

        assert store.get_data('players') == [{'id': 1}]

    def test_await_consistency(self, app):
        store = MemoryDocumentStore()
        store.set_data('news', [])

        assert store.await_consistency('news', {'data': []}, attempts=1)
        assert not store.await_consistency('news', {'data': [1]}, attempts=2, delay=0)


class TestFirebaseObjectStorage:
    def test_put_and_download_url(self, app, session):
        storage = FirebaseObjectStorage('demo.appspot.com', session=session)
        session.post.return_value = _response(body={'name': 'players/p_1', 'size': '4'})
        session.get.return_value = _response(body={'downloadTokens': 'tok-1,tok-2'})

        name = storage.put('players/p_1', b'data', 'image/png')
        url = storage.download_url(name)

        assert name == 'players/p_1'
        assert url == 'https://firebasestorage.googleapis.com/v0/b/demo.appspot.com/o/players%2Fp_1?alt=media&token=tok-1'
        _, kwargs = session.post.call_args
        assert kwargs['params'] == {'name': 'players/p_1', 'uploadType': 'media'}
        assert kwargs['headers']['Content-Type'] == 'image/png'

    def test_download_url_without_token(self, app, session):
        storage = FirebaseObjectStorage('demo.appspot.com', session=session)
        session.get.return_value = _response(body={})

        assert storage.download_url('news/n_1').endswith('?alt=media')

    def test_upload_failure(self, app, session):
        storage = FirebaseObjectStorage('demo.appspot.com', session=session)
        session.post.side_effect = requests.Timeout('slow')

        with pytest.raises(UploadFailed):
            storage.put('players/p_1', b'data', 'image/png')
