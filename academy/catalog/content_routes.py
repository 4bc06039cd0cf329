"""
Module, lesson and lesson-completion routes.

Edit endpoints take either a form post (answered with a 303 back to the
course editor) or JSON (answered with ``{ok, id, redirect_to}``).
"""
from flask import current_app, jsonify, request
from flask_login import current_user
from sqlalchemy.exc import IntegrityError

from academy import db
from academy.catalog import catalog_bp
from academy.catalog.models import Course, Lesson, LessonCompletion, Module
from academy.catalog.service import CatalogError, insert_lesson, lesson_type, move_lesson
from academy.common.decorators import api_login_required, can_manage_course, forbidden
from academy.common.request_utils import (
    BadBody,
    as_int,
    clean_str,
    form_or_json,
    json_body,
    ok_or_redirect,
    optional_str,
    redirect_target,
)


def _editor_path(course_id: str, module_id: str | None = None) -> str:
    path = f"/admin/courses/edit/{course_id}"
    return f"{path}#module-{module_id}" if module_id else path


@catalog_bp.route('/api/modules', methods=['POST'])
@api_login_required
def create_module():
    """
    Add a module to a course.

    Request body: {"course_id": "...", "title": "...", "ordering": 2}
    Ordering defaults to after the last module.
    """
    try:
        data = json_body()
        ordering = as_int(data.get('ordering'), 'ordering')
    except BadBody as e:
        return jsonify({'error': str(e)}), 400

    course_id = clean_str(data.get('course_id'))
    title = clean_str(data.get('title'))
    if not course_id or not title:
        return jsonify({'error': 'Missing fields: course_id and title are required'}), 400

    course = db.session.get(Course, course_id)
    if course is None:
        return jsonify({'error': 'Course not found'}), 404
    if not can_manage_course(course):
        return forbidden(f"course={course_id}")

    try:
        if ordering is None:
            ordering = max((m.ordering for m in course.modules), default=0) + 1
        module = Module(course_id=course.id, title=title, ordering=ordering)
        db.session.add(module)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Creating module in course {course_id} failed")
        return jsonify({'error': str(e)}), 500

    current_app.logger.info(f"Module {module.id} added to course {course_id}")
    return jsonify(module.to_dict()), 201


@catalog_bp.route('/api/modules/update', methods=['POST'])
@api_login_required
def update_module():
    try:
        data = form_or_json()
        ordering = as_int(data.get('ordering'), 'ordering')
    except BadBody as e:
        return jsonify({'error': str(e)}), 400

    module_id = clean_str(data.get('id') or data.get('module_id'))
    if not module_id:
        return jsonify({'error': 'Missing module id'}), 400

    module = db.session.get(Module, module_id)
    if module is None:
        return jsonify({'error': 'Module not found'}), 404
    if not can_manage_course(module.course):
        return forbidden(f"module={module_id}")

    try:
        title = clean_str(data.get('title'))
        if title:
            module.title = title
        if ordering is not None:
            module.ordering = ordering
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Updating module {module_id} failed")
        return jsonify({'error': str(e)}), 500

    target = redirect_target(data.get('redirect_to'), _editor_path(module.course_id))
    return ok_or_redirect({'id': module.id, 'course_id': module.course_id}, target)


@catalog_bp.route('/api/lessons/create', methods=['POST'])
@api_login_required
def create_lesson():
    """
    Add a lesson to a module.

    Fields: module_id, title (required), type, content, image_url, ordering,
    redirect_to. Inserting in the middle pushes later lessons down.
    """
    try:
        data = form_or_json()
        ordering = as_int(data.get('ordering'), 'ordering')
        kind = lesson_type(data.get('type'))
    except (BadBody, CatalogError) as e:
        return jsonify({'error': str(e)}), 400

    module_id = clean_str(data.get('module_id'))
    title = clean_str(data.get('title'))
    if not module_id or not title:
        return jsonify({'error': 'Missing module_id or title'}), 400

    module = db.session.get(Module, module_id)
    if module is None:
        return jsonify({'error': 'Module not found'}), 404
    if not can_manage_course(module.course):
        return forbidden(f"module={module_id}")

    try:
        lesson = insert_lesson(
            module,
            title=title,
            content=data.get('content') or '',
            kind=kind,
            image_url=optional_str(data.get('image_url')),
            ordering=ordering,
        )
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Creating lesson in module {module_id} failed")
        return jsonify({'error': str(e)}), 500

    current_app.logger.info(f"Lesson {lesson.id} added to module {module_id} at {lesson.ordering}")
    target = redirect_target(data.get('redirect_to'), _editor_path(module.course_id, module.id))
    return ok_or_redirect({'id': lesson.id, 'ordering': lesson.ordering}, target)


@catalog_bp.route('/api/lessons/update', methods=['POST'])
@api_login_required
def update_lesson():
    """Edit a lesson; a new ordering moves it within its module."""
    try:
        data = form_or_json()
        ordering = as_int(data.get('ordering'), 'ordering')
        kind = lesson_type(data.get('type')) if data.get('type') else None
    except (BadBody, CatalogError) as e:
        return jsonify({'error': str(e)}), 400

    lesson_id = clean_str(data.get('id') or data.get('lesson_id'))
    if not lesson_id:
        return jsonify({'error': 'Missing lesson id'}), 400

    lesson = db.session.get(Lesson, lesson_id)
    if lesson is None:
        return jsonify({'error': 'Lesson not found'}), 404
    module = lesson.module
    if not can_manage_course(module.course):
        return forbidden(f"lesson={lesson_id}")

    try:
        title = clean_str(data.get('title'))
        if title:
            lesson.title = title
        if 'content' in data:
            lesson.content = data.get('content') or ''
        if kind:
            lesson.type = kind
        if 'image_url' in data:
            lesson.image_url = optional_str(data.get('image_url'))
        if ordering is not None and ordering != lesson.ordering:
            move_lesson(lesson, ordering)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Updating lesson {lesson_id} failed")
        return jsonify({'error': str(e)}), 500

    target = redirect_target(data.get('redirect_to'), _editor_path(module.course_id, module.id))
    return ok_or_redirect({'id': lesson.id, 'ordering': lesson.ordering}, target)


@catalog_bp.route('/api/lesson-completions', methods=['GET'])
@api_login_required
def list_lesson_completions():
    """Lesson ids the signed-in learner completed, optionally for one course."""
    query = LessonCompletion.query.filter_by(user_id=current_user.id)
    course_id = request.args.get('course_id') or request.args.get('courseId')
    if course_id:
        query = (
            query.join(Lesson, Lesson.id == LessonCompletion.lesson_id)
            .join(Module, Module.id == Lesson.module_id)
            .filter(Module.course_id == course_id)
        )
    completions = query.all()
    return jsonify({'completed': [c.lesson_id for c in completions]})


@catalog_bp.route('/api/lesson-completions', methods=['POST'])
@api_login_required
def complete_lesson():
    """Mark a lesson completed for the signed-in learner; repeating is harmless."""
    try:
        data = json_body()
    except BadBody as e:
        return jsonify({'error': str(e)}), 400

    lesson_id = clean_str(data.get('lesson_id') or data.get('lessonId'))
    if not lesson_id:
        return jsonify({'error': 'lesson_id is required'}), 400
    if db.session.get(Lesson, lesson_id) is None:
        return jsonify({'error': 'Lesson not found'}), 404

    existing = LessonCompletion.query.filter_by(lesson_id=lesson_id, user_id=current_user.id).first()
    if existing:
        return jsonify({'ok': True, 'id': existing.id})

    try:
        completion = LessonCompletion(lesson_id=lesson_id, user_id=current_user.id)
        db.session.add(completion)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        existing = LessonCompletion.query.filter_by(lesson_id=lesson_id, user_id=current_user.id).first()
        return jsonify({'ok': True, 'id': existing.id if existing else None})
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Completing lesson {lesson_id} failed")
        return jsonify({'error': str(e)}), 500

    return jsonify({'ok': True, 'id': completion.id}), 201
