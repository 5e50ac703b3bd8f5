"""Security headers, session hardening and request size limits."""

from flask import abort, request

from clubsite.services.urls import DEFAULT_STORAGE_HOST


def configure_security_headers(app):
    """Configure security headers."""
    storage_host = app.config.get('STORAGE_HOST') or DEFAULT_STORAGE_HOST

    @app.after_request
    def add_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'

        # Images come from the object store; inline data URLs are still shown until uploaded
        csp_directives = [
            "default-src 'self'",
            "script-src 'self' 'unsafe-inline'",
            "style-src 'self' 'unsafe-inline'",
            f"img-src 'self' data: https://{storage_host}",
            "connect-src 'self'",
            "frame-ancestors 'none'",
            "base-uri 'self'",
            "form-action 'self'",
        ]
        response.headers['Content-Security-Policy'] = "; ".join(csp_directives)

        if request.is_secure:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        return response

    return app


def configure_secure_session(app):
    """Configure secure session settings."""
    production = app.config.get('ENV') == 'production'
    app.config.update(
        SESSION_COOKIE_SECURE=production,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE='Lax',
        PERMANENT_SESSION_LIFETIME=7200,  # 2 hours
        WTF_CSRF_TIME_LIMIT=3600,
        WTF_CSRF_SSL_STRICT=production,
    )
    return app


def validate_input_length(app):
    """Reject request bodies larger than an upload plus its data-URL overhead."""
    max_upload = app.config.get('MAX_UPLOAD_SIZE', 5 * 1024 * 1024)
    # base64 inflates by 4/3; leave room for the surrounding JSON
    limit = max_upload * 2

    @app.before_request
    def limit_request_size():
        if request.content_length and request.content_length > limit:
            abort(413)

    return app


__all__ = [
    'configure_security_headers',
    'configure_secure_session',
    'validate_input_length',
]
