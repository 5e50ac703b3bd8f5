#!/usr/bin/env python3
"""Development server runner for the club site."""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv


def setup_environment():
    """Load .env and default to the in-process backends."""
    env_file = Path(__file__).parent / '.env'
    if env_file.exists():
        load_dotenv(env_file)
        print(f"✓ Loaded environment from {env_file}")
    else:
        print(f"⚠️ No .env file found at {env_file}; using in-memory store and local uploads")

    os.environ.setdefault('FLASK_APP', 'clubsite')
    os.environ.setdefault('FLASK_ENV', 'development')
    os.environ.setdefault('FLASK_DEBUG', '1')


def run_development_server():
    from clubsite import create_app

    app = create_app()
    store = app.extensions['content_store']

    print("\n" + "=" * 60)
    print("🚀 Starting club site development server")
    print("=" * 60)
    print(f"Remote store: {app.config['REMOTE_STORE_BACKEND']}")
    print(f"Object storage: {app.config['OBJECT_STORAGE_BACKEND']}")
    for key, source in store.sources.items():
        print(f"   • {key.value}: loaded from {source}")
    print("\n📱 Access the application at http://localhost:5000")
    print("   Admin login: http://localhost:5000/auth/login")
    print("\n⏹️ Press Ctrl+C to stop the server")
    print("=" * 60)

    app.run(host='0.0.0.0', port=5000, debug=True, use_reloader=True)


def main():
    setup_environment()
    try:
        run_development_server()
    except KeyboardInterrupt:
        print("\n\n🛑 Development server stopped by user")
    except Exception as e:
        print(f"\n❌ Failed to start development server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
