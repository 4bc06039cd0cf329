"""
Upload gateway.

Files arrive as multipart field ``file`` and are written to a storage
bucket under a generated key; the answer is the object's public URL.
"""
import os

from flask import abort, current_app, jsonify, request, send_file
from flask_login import current_user

from academy import db
from academy.catalog.models import Course
from academy.common.decorators import admin_required, api_login_required, can_manage_course, forbidden, roles_required
from academy.common.request_utils import clean_str
from academy.common.storage import StorageError, allowed_file, file_size, generate_key, get_storage
from academy.uploads import uploads_bp


def _store_upload(bucket: str, prefix: str = ''):
    """Validate ``request.files['file']`` and store it; returns a response tuple."""
    file = request.files.get('file')
    if file is None or not file.filename:
        return jsonify({'error': 'No file provided'}), 400

    if not allowed_file(file.filename, current_app.config['ALLOWED_EXTENSIONS']):
        return jsonify({'error': 'File type not allowed'}), 400

    size = file_size(file.stream)
    if size > current_app.config['MAX_FILE_SIZE']:
        return jsonify({'error': 'File too large'}), 413

    key = generate_key(file.filename, prefix)
    try:
        url = get_storage().upload(bucket, key, file)
    except StorageError as e:
        return jsonify({'error': str(e)}), 400
    except OSError as e:
        current_app.logger.exception(f"Writing {bucket}/{key} failed")
        return jsonify({'error': str(e)}), 500

    current_app.logger.info(f"Stored {bucket}/{key} ({size} bytes) for {current_user.id}")
    return jsonify({'url': url}), 200


@uploads_bp.route('/api/upload', methods=['POST'])
@api_login_required
def upload_file():
    """Generic upload (lesson images and the like) into the ``uploads`` bucket."""
    return _store_upload('uploads')


@uploads_bp.route('/api/admin/courses/upload-image', methods=['POST'])
@roles_required('tutor', 'admin', 'super admin')
def upload_course_image():
    """Course cover image; form field ``courseId`` names the course."""
    course_id = clean_str(request.form.get('courseId') or request.form.get('course_id'))
    if not course_id:
        return jsonify({'error': 'courseId is required'}), 400

    course = db.session.get(Course, course_id)
    if course is not None and not can_manage_course(course):
        return forbidden(f"course={course_id}")
    return _store_upload('course-images', f"courses/{course_id}")


@uploads_bp.route('/api/admin/certificates/upload', methods=['POST'])
@admin_required
def upload_certificate_background():
    """Certificate template background image."""
    return _store_upload('certificates', 'templates')


@uploads_bp.route('/uploads/<bucket>/<path:key>')
def serve_object(bucket, key):
    """Serve a stored object. Objects are public, no sign-in needed."""
    try:
        full_path = get_storage().path_for(bucket, key)
    except StorageError:
        current_app.logger.warning(f"Rejected object path: {bucket}/{key}")
        abort(404)

    if not os.path.isfile(full_path):
        abort(404)

    response = send_file(full_path)
    response.cache_control.max_age = 86400
    response.cache_control.public = True
    return response
