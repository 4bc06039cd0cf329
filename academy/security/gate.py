"""
Request gate.

Requests for anything but a public path need one of the configured auth
cookies; without one the visitor is redirected to the login page with the
original path in ``redirectedFrom``. API routes are not gated here, they
answer 401/403 themselves.
"""
from urllib.parse import urlencode

from flask import current_app, redirect, request

PUBLIC_EXACT = ("/",)
PUBLIC_PREFIXES = (
    "/auth/login",
    "/auth/register",
    "/auth/reset",
    "/auth/signout",
    "/courses",
)
EXEMPT_PREFIXES = ("/api/", "/static/", "/uploads/")


def is_public_path(path: str) -> bool:
    if path in PUBLIC_EXACT:
        return True
    if path.startswith(EXEMPT_PREFIXES):
        return True
    return any(path == prefix or path.startswith(prefix + "/") for prefix in PUBLIC_PREFIXES)


def has_auth_cookie(cookies, names) -> bool:
    return any(cookies.get(name) for name in names)


class RequestGate:

    @staticmethod
    def init_app(app):
        @app.before_request
        def gate_request():
            path = request.path
            if is_public_path(path):
                return None
            if has_auth_cookie(request.cookies, current_app.config["AUTH_COOKIE_NAMES"]):
                return None
            current_app.logger.info(f"Gate redirect for {path}")
            return redirect("/auth/login?" + urlencode({"redirectedFrom": path}))
