from flask import Blueprint

# Blueprint for file uploads and public object serving
uploads_bp = Blueprint('uploads', __name__)

from academy.uploads import routes  # noqa: E402,F401
