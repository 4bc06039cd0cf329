from flask import Blueprint

certificates_bp = Blueprint('certificates', __name__)

from academy.certificates import routes  # noqa: E402,F401
