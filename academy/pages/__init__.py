from flask import Blueprint

# Blueprint for the server-rendered pages
pages_bp = Blueprint('pages', __name__)

from academy.pages import routes  # noqa: E402,F401
