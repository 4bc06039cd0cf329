"""
Course catalog: courses, modules, lessons and lesson completions.
"""
from flask import Blueprint

catalog_bp = Blueprint('catalog', __name__)

from academy.catalog import course_routes, content_routes  # noqa: E402,F401
