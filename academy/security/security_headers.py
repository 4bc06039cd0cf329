"""
Security headers module.

Adds security and caching headers to all responses.
"""
from flask import request, current_app


class SecurityHeaders:
    """Adds security headers to HTTP responses."""

    @staticmethod
    def init_app(app):
        """
        Initialize security headers for the Flask app.

        Args:
            app: Flask application instance
        """
        @app.after_request
        def add_security_headers(response):
            csp = (
                "default-src 'self'; "
                "script-src 'self' 'unsafe-inline'; "
                "style-src 'self' 'unsafe-inline'; "
                "img-src 'self' data: https:; "
                "media-src 'self' https:; "
                "frame-src https:; "
                "frame-ancestors 'self'; "
                "base-uri 'self'; "
                "form-action 'self';"
            )
            response.headers['Content-Security-Policy'] = csp
            response.headers['X-Content-Type-Options'] = 'nosniff'
            # Stored uploads may be embedded by our own pages
            if request.endpoint == 'uploads.serve_object':
                response.headers['X-Frame-Options'] = 'SAMEORIGIN'
            else:
                response.headers['X-Frame-Options'] = 'DENY'
            response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'

            if current_app.config.get('SESSION_COOKIE_SECURE', False):
                response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

            # Pages and API answers always reflect the current session
            if 'Cache-Control' not in response.headers and request.endpoint != 'uploads.serve_object':
                if response.content_type and (
                    'text/html' in response.content_type or 'application/json' in response.content_type
                ):
                    response.cache_control.no_store = True

            return response
