"""Helpers for reading request bodies."""
from flask import jsonify, redirect, request


class BadBody(ValueError):
    """The request body could not be parsed."""


def json_body() -> dict:
    """
    Parsed JSON object of the current request.

    An empty body counts as ``{}``; anything else that is not a JSON object
    raises BadBody.
    """
    if not request.get_data(cache=True):
        return {}
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadBody("Invalid JSON body")
    return data


def form_or_json() -> dict:
    """Fields of a form post or a JSON body, whichever the client sent."""
    if request.is_json:
        return json_body()
    return request.form.to_dict()


def wants_json() -> bool:
    accept = request.headers.get('Accept', '')
    return request.is_json or 'application/json' in accept


def as_bool(value) -> bool | None:
    """Checkbox/JSON boolean: True for true/"true"/"on"/"1", None when absent."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('true', 'on', '1', 'yes')


def as_int(value, field: str) -> int | None:
    """Integer field or None; raises BadBody with a field-specific message."""
    if value is None or value == '':
        return None
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise BadBody(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadBody(f"{field} must be an integer")


def clean_str(value) -> str:
    return value.strip() if isinstance(value, str) else ''


def optional_str(value) -> str | None:
    return clean_str(value) or None


def ok_or_redirect(payload: dict, target: str):
    """JSON for fetch callers, a 303 back to ``target`` for plain form posts."""
    if wants_json():
        body = {'ok': True, 'redirect_to': target}
        body.update(payload)
        return jsonify(body)
    response = redirect(target, code=303)
    response.headers['Cache-Control'] = 'no-store'
    return response


def redirect_target(explicit, fallback: str) -> str:
    """Explicit ``redirect_to`` if it is a local path, else ``fallback``."""
    if isinstance(explicit, str) and explicit.startswith('/') and not explicit.startswith('//'):
        return explicit
    return fallback
