import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('1', 'true', 'yes')


class Config:
    # Provide a safe development fallback to avoid 500s when SECRET_KEY is missing.
    SECRET_KEY = os.getenv('SECRET_KEY') or 'dev-secret-key-change-me'
    DATABASE_URL = os.getenv('DATABASE_URL')
    # The local mirror lives in this database; it is a cache, never the source of truth.
    SQLALCHEMY_DATABASE_URI = DATABASE_URL or 'sqlite:///clubsite.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    WTF_CSRF_TIME_LIMIT = None

    # Remote structured store
    # "firestore" talks to the Firestore REST API, "memory" keeps documents in-process (development)
    REMOTE_STORE_BACKEND = os.getenv('REMOTE_STORE_BACKEND') or (
        'firestore' if os.getenv('FIREBASE_PROJECT_ID') else 'memory'
    )
    FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID')
    FIREBASE_API_KEY = os.getenv('FIREBASE_API_KEY')
    FIREBASE_AUTH_TOKEN = os.getenv('FIREBASE_AUTH_TOKEN')
    FIRESTORE_NAMESPACE = os.getenv('FIRESTORE_NAMESPACE', 'website')
    REMOTE_TIMEOUT = float(os.getenv('REMOTE_TIMEOUT', '10'))

    # Object storage
    # "firebase" uploads to Firebase Storage, "local" writes under UPLOAD_FOLDER
    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')
    OBJECT_STORAGE_BACKEND = os.getenv('OBJECT_STORAGE_BACKEND') or (
        'firebase' if os.getenv('FIREBASE_STORAGE_BUCKET') else 'local'
    )
    UPLOAD_FOLDER = os.getenv('UPLOAD_FOLDER')
    STORAGE_HOST = os.getenv('STORAGE_HOST', 'firebasestorage.googleapis.com')
    MAX_UPLOAD_SIZE = int(os.getenv('MAX_UPLOAD_SIZE', str(5 * 1024 * 1024)))
    UPLOAD_VERIFY_ACCESS = _env_flag('UPLOAD_VERIFY_ACCESS', 'false')

    # Admin gate: a single password and a session flag, no user accounts
    ADMIN_PASSWORD = os.getenv('ADMIN_PASSWORD', 'sublime-admin')
    ADMIN_PASSWORD_HASH = os.getenv('ADMIN_PASSWORD_HASH')
    ADMIN_SESSION_KEY = os.getenv('ADMIN_SESSION_KEY', 'isAdminAuthenticated')

    # Content cache behaviour
    CONTENT_LOAD_ON_STARTUP = _env_flag('CONTENT_LOAD_ON_STARTUP', 'true')
    SEED_EXAMPLE_CONTENT = _env_flag('SEED_EXAMPLE_CONTENT', 'true')
    REFRESH_ON_PAGE_VIEW = _env_flag('REFRESH_ON_PAGE_VIEW', 'true')
