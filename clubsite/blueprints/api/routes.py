"""JSON API for the content store and the upload pipeline."""

from __future__ import annotations

from flask import Blueprint, abort, current_app, jsonify, request
from pydantic import ValidationError

from clubsite.auth import api_admin_required
from clubsite.extensions import limiter
from clubsite.models.records import CollectionKey, coerce_collection_key, encode_collection, encode_record
from clubsite.services.content_store import get_content_store
from clubsite.services.editing import apply_coach_edit, apply_record_edit, apply_singleton_edit
from clubsite.services.errors import InvalidEncoding, InvalidLinkTarget, LinkFailed, SaveFailed, UploadFailed
from clubsite.services.images import ImageWithFallback
from clubsite.services.uploads import AssetUploadPipeline
from clubsite.services.urls import is_renderable_url

api_bp = Blueprint('api', __name__)


def get_upload_pipeline() -> AssetUploadPipeline:
    return current_app.extensions['upload_pipeline']


def _collection(name: str) -> CollectionKey:
    try:
        return coerce_collection_key(name)
    except KeyError:
        abort(404)


def _list_collection(name: str) -> CollectionKey:
    key = _collection(name)
    if key.is_singleton:
        abort(405)
    return key


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        abort(400)
    return payload


@api_bp.errorhandler(SaveFailed)
def handle_save_failed(error: SaveFailed):
    return jsonify({
        'error': 'Saving failed. Please try again.',
        'failed': error.failed_keys,
        'saved': error.completed_keys,
        'retry': True,
    }), 503


@api_bp.errorhandler(InvalidEncoding)
def handle_invalid_encoding(error: InvalidEncoding):
    return jsonify({'error': str(error)}), 400


@api_bp.errorhandler(InvalidLinkTarget)
def handle_invalid_link_target(error: InvalidLinkTarget):
    return jsonify({'error': str(error)}), 400


@api_bp.errorhandler(UploadFailed)
def handle_upload_failed(error: UploadFailed):
    return jsonify({'error': str(error)}), 502


@api_bp.errorhandler(LinkFailed)
def handle_link_failed(error: LinkFailed):
    return jsonify({
        'error': str(error),
        'url': error.url,
        'renderable': is_renderable_url(error.url),
    }), 207


@api_bp.errorhandler(ValidationError)
def handle_validation_error(error: ValidationError):
    return jsonify({'error': 'Invalid record', 'details': error.errors(include_url=False, include_context=False)}), 400


@api_bp.route('/content', methods=['GET'])
@limiter.exempt
def content_snapshot():
    return jsonify(get_content_store().snapshot())


@api_bp.route('/content/<name>', methods=['GET'])
@limiter.exempt
def get_collection(name: str):
    key = _collection(name)
    store = get_content_store()
    return jsonify({'key': key.value, 'data': encode_collection(key, store.get(key))})


@api_bp.route('/content/<name>/<record_id>', methods=['GET'])
@limiter.exempt
def get_record(name: str, record_id: str):
    key = _list_collection(name)
    record = get_content_store().get_record(key, record_id)
    if record is None:
        abort(404)
    return jsonify({'item': encode_record(record)})


@api_bp.route('/content/<name>', methods=['POST'])
@api_admin_required
def create_record(name: str):
    key = _list_collection(name)
    store = get_content_store()
    record = apply_record_edit(store, get_upload_pipeline(), key, _json_body())
    report = store.save()
    return jsonify({'item': encode_record(record), 'saved': report.keys}), 201


@api_bp.route('/content/<name>/<record_id>', methods=['PUT'])
@api_admin_required
def replace_record(name: str, record_id: str):
    key = _list_collection(name)
    store = get_content_store()
    record = apply_record_edit(store, get_upload_pipeline(), key, _json_body(), record_id=record_id)
    report = store.save()
    return jsonify({'item': encode_record(record), 'saved': report.keys})


@api_bp.route('/content/<name>/<record_id>', methods=['DELETE'])
@api_admin_required
def delete_record(name: str, record_id: str):
    key = _list_collection(name)
    store = get_content_store()
    if not store.delete_record(key, record_id):
        abort(404)
    report = store.save()
    return jsonify({'deleted': record_id, 'saved': report.keys})


@api_bp.route('/content/<name>', methods=['PUT'])
@api_admin_required
def update_singleton(name: str):
    key = _collection(name)
    if not key.is_singleton:
        abort(405)
    store = get_content_store()
    value = apply_singleton_edit(store, get_upload_pipeline(), key, _json_body())
    report = store.save()
    return jsonify({'item': encode_record(value), 'saved': report.keys})


@api_bp.route('/content/pageContent/coaches', methods=['POST'])
@api_admin_required
def create_coach():
    store = get_content_store()
    coach = apply_coach_edit(store, get_upload_pipeline(), _json_body())
    report = store.save()
    return jsonify({'item': encode_record(coach), 'saved': report.keys}), 201


@api_bp.route('/content/pageContent/coaches/<coach_id>', methods=['PUT'])
@api_admin_required
def replace_coach(coach_id: str):
    store = get_content_store()
    coach = apply_coach_edit(store, get_upload_pipeline(), _json_body(), coach_id=coach_id)
    report = store.save()
    return jsonify({'item': encode_record(coach), 'saved': report.keys})


@api_bp.route('/content/pageContent/coaches/<coach_id>', methods=['DELETE'])
@api_admin_required
def delete_coach(coach_id: str):
    store = get_content_store()
    if not store.delete_coach(coach_id):
        abort(404)
    report = store.save()
    return jsonify({'deleted': coach_id, 'saved': report.keys})


@api_bp.route('/sync/save', methods=['POST'])
@api_admin_required
def save_content():
    report = get_content_store().save()
    return jsonify({'saved': report.keys})


@api_bp.route('/sync/refresh', methods=['POST'])
@api_admin_required
def refresh_content():
    sources = get_content_store().refresh()
    return jsonify({'sources': {key.value: source for key, source in sources.items()}})


@api_bp.route('/uploads', methods=['POST'])
@api_admin_required
def upload_image():
    """Upload a multipart ``file`` or a JSON ``dataUrl``; optionally link it."""
    pipeline = get_upload_pipeline()
    if request.files:
        file = request.files.get('file')
        params = request.form
        if file is None or not file.filename:
            return jsonify({'error': 'No file provided'}), 400
    else:
        file = None
        params = _json_body()

    path = (params.get('path') or '').strip()
    if not path:
        return jsonify({'error': 'A storage path is required'}), 400
    collection = params.get('collection')
    field = params.get('field')
    if bool(collection) != bool(field):
        return jsonify({'error': 'collection and field must be given together'}), 400

    if file is not None:
        if collection:
            url = pipeline.upload_and_link(file, path, collection, field)
        else:
            url = pipeline.upload_binary(file, path)
    else:
        data_url = params.get('dataUrl') or ''
        if collection:
            url = pipeline.upload_data_url_and_link(data_url, path, collection, field)
        else:
            url = pipeline.upload_data_url(data_url, path)

    if collection:
        get_content_store().apply_linked_field(collection, field, url)

    return jsonify({'url': url, 'renderable': is_renderable_url(url)}), 201


@api_bp.route('/images/check', methods=['GET'])
@limiter.exempt
def check_image():
    src = request.args.get('src', '')
    image = ImageWithFallback(src, request.args.get('alt', ''))
    return jsonify({'src': src, 'state': image.state.value})
