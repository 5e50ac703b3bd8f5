"""Application factory for the club website."""

from __future__ import annotations

import os
from pathlib import Path

from flask import Flask, jsonify, render_template, request

from clubsite.blueprints.admin import admin_bp
from clubsite.blueprints.api import api_bp
from clubsite.blueprints.auth import auth_bp
from clubsite.blueprints.public import public_bp
from clubsite.config import Config
from clubsite.extensions import csrf, db, limiter
from clubsite.security.config import (
    configure_security_headers,
    configure_secure_session,
    validate_input_length,
)
from clubsite.services.content_store import ContentStore
from clubsite.services.images import image_with_fallback
from clubsite.services.mirror import LocalMirror
from clubsite.services.object_storage import build_object_storage
from clubsite.services.remote_store import build_document_store
from clubsite.services.uploads import AssetUploadPipeline


def create_app(config_class=Config):
    """Create Flask application."""
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_object(config_class)

    db.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)
    # The JSON API is session-gated and called from scripts, not forms
    csrf.exempt(api_bp)
    # Public pages and served uploads are not rate limited
    limiter.exempt(public_bp)

    configure_security_headers(app)
    configure_secure_session(app)
    validate_input_length(app)

    if os.getenv("FLASK_ENV") == "development":
        app.config["TEMPLATES_AUTO_RELOAD"] = True
        app.config["SEND_FILE_MAX_AGE_DEFAULT"] = 0

    with app.app_context():
        import clubsite.models  # noqa: F401
        db.create_all()

    documents = build_document_store(app.config)
    storage = build_object_storage(app.config, Path(app.instance_path) / 'uploads')
    store = ContentStore(documents, LocalMirror(), seed_examples=app.config.get('SEED_EXAMPLE_CONTENT', True))
    app.extensions['content_store'] = store
    app.extensions['upload_pipeline'] = AssetUploadPipeline(
        storage,
        documents,
        max_size=app.config['MAX_UPLOAD_SIZE'],
        verify_access=app.config.get('UPLOAD_VERIFY_ACCESS', False),
    )

    if app.config.get('CONTENT_LOAD_ON_STARTUP', True):
        with app.app_context():
            store.load()

    app.jinja_env.globals['image_with_fallback'] = image_with_fallback

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(public_bp)
    app.register_blueprint(api_bp, url_prefix='/api/v1')

    @app.errorhandler(404)
    def not_found(error):
        if request.path.startswith('/api/'):
            return jsonify({'error': 'Not found'}), 404
        return render_template('404.html'), 404

    from clubsite.commands import register_commands
    register_commands(app)

    return app
