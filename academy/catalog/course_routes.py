"""
Course routes.

- Public course listing and detail
- Course creation (with modules, lessons and quizzes) for tutors and admins
- Course edits, archiving and deletion for admins and the course instructor
"""
from flask import current_app, jsonify, request
from flask_login import current_user

from academy import db
from academy.catalog import catalog_bp
from academy.catalog.models import Course
from academy.catalog.service import CatalogError, apply_course_fields, create_course_graph
from academy.common.decorators import (
    admin_required,
    api_login_required,
    can_manage_course,
    forbidden,
    is_admin,
    roles_required,
)
from academy.common.request_utils import (
    BadBody,
    clean_str,
    form_or_json,
    json_body,
    ok_or_redirect,
    redirect_target,
)


def _course_id_from(data: dict) -> str:
    return clean_str(data.get('courseId') or data.get('course_id') or data.get('id'))


@catalog_bp.route('/api/courses', methods=['GET'])
def list_courses():
    """Courses open to learners (not archived), newest first."""
    try:
        courses = (
            Course.query.filter_by(archived=False)
            .order_by(Course.created_at.desc())
            .all()
        )
        return jsonify({'courses': [c.to_dict() for c in courses]})
    except Exception as e:
        current_app.logger.exception("Listing courses failed")
        return jsonify({'error': str(e)}), 500


@catalog_bp.route('/api/courses', methods=['POST'])
@roles_required('tutor', 'admin', 'super admin')
def create_course():
    """
    Create a course together with its content.

    Request body:
    {
        "title": "Course title",
        "description": "...", "imageUrl": "...", "category": "...", "tag": "...", "level": "...",
        "modules": [
            {"title": "...", "ordering": 1,
             "lessons": [{"title": "...", "content": "<p>..</p>", "type": "article", "ordering": 1}],
             "quiz": {"title": "...", "passing_score": 70, "questions": [...]}}
        ],
        "finalQuiz": {"title": "...", "passing_score": 70, "questions": [...]}
    }
    """
    try:
        data = json_body()
    except BadBody as e:
        return jsonify({'error': str(e)}), 400

    try:
        course = create_course_graph(data, current_user.id, current_app.config['DEFAULT_PASSING_SCORE'])
        db.session.commit()
    except CatalogError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), e.status
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Creating course failed")
        return jsonify({'error': str(e)}), 500

    current_app.logger.info(f"Course {course.id} created by {current_user.id}")
    return jsonify({'id': course.id}), 201


@catalog_bp.route('/api/courses/<course_id>', methods=['GET'])
def get_course(course_id):
    """Course with its modules and their lessons, in order."""
    course = db.session.get(Course, course_id)
    if course is None:
        return jsonify({'error': 'Course not found'}), 404
    data = course.to_dict()
    data['modules'] = [m.to_dict(with_lessons=True) for m in course.modules]
    return jsonify({'course': data})


@catalog_bp.route('/api/courses/update', methods=['POST'])
@api_login_required
def update_course_form():
    """
    Update course fields from the course edit form (or JSON).

    ``archived`` and ``instructor_id`` are only honoured for admins.
    """
    try:
        data = form_or_json()
    except BadBody as e:
        return jsonify({'error': str(e)}), 400

    course_id = _course_id_from(data)
    if not course_id:
        return jsonify({'error': 'Missing course id'}), 400

    course = db.session.get(Course, course_id)
    if course is None:
        return jsonify({'error': 'Course not found'}), 404
    if not can_manage_course(course):
        return forbidden(f"course={course_id}")

    try:
        apply_course_fields(course, data, admin=is_admin())
        db.session.commit()
    except CatalogError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), e.status
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Updating course {course_id} failed")
        return jsonify({'error': str(e)}), 500

    target = redirect_target(data.get('redirect_to'), f"/admin/courses/edit/{course.id}")
    return ok_or_redirect({'id': course.id}, target)


@catalog_bp.route('/api/admin/courses', methods=['GET'])
@admin_required
def admin_list_courses():
    """Every course including archived ones."""
    courses = Course.query.order_by(Course.created_at.desc()).all()
    return jsonify({'courses': [c.to_dict() for c in courses]})


@catalog_bp.route('/api/admin/courses/<course_id>', methods=['GET', 'PUT', 'DELETE'])
@api_login_required
def admin_course(course_id):
    course = db.session.get(Course, course_id)
    if course is None:
        return jsonify({'error': 'Course not found'}), 404
    if not can_manage_course(course):
        return forbidden(f"course={course_id}")

    if request.method == 'GET':
        return jsonify(course.to_dict())

    try:
        if request.method == 'PUT':
            data = json_body()
            apply_course_fields(course, data, admin=is_admin())
            db.session.commit()
            current_app.logger.info(f"Course {course_id} updated by {current_user.id}")
            return jsonify(course.to_dict())

        db.session.delete(course)
        db.session.commit()
        current_app.logger.info(f"Course {course_id} deleted by {current_user.id}")
        return jsonify({'ok': True})
    except (BadBody, CatalogError) as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Course {course_id} {request.method} failed")
        return jsonify({'error': str(e)}), 500


def _load_managed_course(owner_only: bool = False):
    """
    (course, None) for the course named in the body, or (None, error response).
    """
    try:
        data = form_or_json()
    except BadBody as e:
        return None, (jsonify({'error': str(e)}), 400)

    course_id = _course_id_from(data)
    if not course_id:
        return None, (jsonify({'error': 'courseId is required'}), 400)

    course = db.session.get(Course, course_id)
    if course is None:
        return None, (jsonify({'error': 'Course not found'}), 404)

    allowed = course.instructor_id == current_user.id if owner_only else can_manage_course(course)
    if not allowed:
        return None, forbidden(f"course={course_id}")
    return course, None


def _set_archived(archived: bool, owner_only: bool = False):
    course, error = _load_managed_course(owner_only=owner_only)
    if error:
        return error
    try:
        course.archived = archived
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Archive toggle for course {course.id} failed")
        return jsonify({'error': str(e)}), 500
    current_app.logger.info(f"Course {course.id} archived={archived} by {current_user.id}")
    return jsonify({'ok': True, 'id': course.id, 'archived': archived})


@catalog_bp.route('/api/admin/archive-course', methods=['POST'])
@api_login_required
def archive_course():
    return _set_archived(True)


@catalog_bp.route('/api/admin/unarchive-course', methods=['POST'])
@api_login_required
def unarchive_course():
    return _set_archived(False)


@catalog_bp.route('/api/tutor/unarchive-course', methods=['POST'])
@api_login_required
def tutor_unarchive_course():
    """Instructors restore their own archived courses."""
    return _set_archived(False, owner_only=True)


@catalog_bp.route('/api/admin/delete-course', methods=['POST'])
@api_login_required
def delete_course():
    """Delete a course and everything under it."""
    course, error = _load_managed_course()
    if error:
        return error
    course_id = course.id
    try:
        db.session.delete(course)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Deleting course {course_id} failed")
        return jsonify({'error': str(e)}), 500
    current_app.logger.info(f"Course {course_id} deleted by {current_user.id}")
    return jsonify({'ok': True})
