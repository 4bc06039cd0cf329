from flask import Blueprint

# Blueprint for quiz authoring and quiz attempts
quiz_bp = Blueprint('quiz', __name__)

from academy.quiz import authoring_routes, attempt_routes  # noqa: E402,F401
