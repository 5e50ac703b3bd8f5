"""Security configuration for the club site."""

from .config import configure_secure_session, configure_security_headers, validate_input_length

__all__ = ['configure_security_headers', 'configure_secure_session', 'validate_input_length']
