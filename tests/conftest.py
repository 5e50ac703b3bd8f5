import pytest

from clubsite import create_app
from clubsite.config import Config
from clubsite.extensions import db
from clubsite.services.errors import RemoteUnavailable
from clubsite.services.remote_store import MemoryDocumentStore


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    REMOTE_STORE_BACKEND = 'memory'
    OBJECT_STORAGE_BACKEND = 'local'
    UPLOAD_VERIFY_ACCESS = False
    ADMIN_PASSWORD = 'test-password'
    ADMIN_PASSWORD_HASH = None
    CONTENT_LOAD_ON_STARTUP = True
    SEED_EXAMPLE_CONTENT = True
    REFRESH_ON_PAGE_VIEW = True


class FlakyDocumentStore(MemoryDocumentStore):
    """Memory store whose reads and writes can be switched off per key."""

    def __init__(self, documents=None):
        super().__init__(documents)
        self.fail_reads = set()
        self.fail_writes = set()
        self.writes = []

    def get_document(self, key):
        if key in self.fail_reads or '*' in self.fail_reads:
            raise RemoteUnavailable('store offline', key)
        return super().get_document(key)

    def set_document(self, key, payload, merge=False):
        if key in self.fail_writes or '*' in self.fail_writes:
            raise RemoteUnavailable('write rejected', key)
        self.writes.append((key, merge))
        return super().set_document(key, payload, merge=merge)


@pytest.fixture
def app(tmp_path):
    """Create and configure a test application instance."""
    config = type('AppTestConfig', (TestConfig,), {'UPLOAD_FOLDER': str(tmp_path / 'uploads')})
    app = create_app(config)

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def limited_client(tmp_path):
    """Test client for an application with rate limiting switched on."""
    config = type('LimitedTestConfig', (TestConfig,), {
        'UPLOAD_FOLDER': str(tmp_path / 'limited-uploads'),
        'RATELIMIT_ENABLED': True,
    })
    app = create_app(config)

    with app.app_context():
        yield app.test_client()
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture
def admin_client(app):
    """Test client with the admin session flag set."""
    client = app.test_client()
    with client.session_transaction() as sess:
        sess[app.config['ADMIN_SESSION_KEY']] = True
    return client


@pytest.fixture
def remote():
    return FlakyDocumentStore()


@pytest.fixture
def store(app, remote):
    """Content store over a controllable remote store and the app's mirror."""
    from clubsite.services.content_store import ContentStore
    from clubsite.services.mirror import LocalMirror

    return ContentStore(remote, LocalMirror(), seed_examples=True)
