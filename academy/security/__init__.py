"""
Security module for the application.

- Security headers on every response
- Request gate: anonymous visitors are sent to the login page except on
  public paths
"""
from flask import Flask

from .security_headers import SecurityHeaders
from .gate import RequestGate


def init_security(app: Flask):
    """
    Initialize all security features for the Flask app.

    Args:
        app: Flask application instance
    """
    SecurityHeaders.init_app(app)
    RequestGate.init_app(app)
    app.logger.info("Security features initialized")


__all__ = [
    'SecurityHeaders',
    'RequestGate',
    'init_security',
]
