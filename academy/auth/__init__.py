from flask import Blueprint

# Blueprint for authentication and profile endpoints
auth_bp = Blueprint("auth", __name__)

# Import routes so that they are registered with the blueprint
from academy.auth import routes, admin_routes  # noqa: E402,F401
