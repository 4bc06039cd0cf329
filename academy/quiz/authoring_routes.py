"""
Quiz authoring routes.

- Save a quiz (flat fields, or the editor's quiz + questions graph)
- List, read, edit and delete quizzes
- Load a quiz with its questions and options for the editor
- Add or remove single questions and add options
"""
from flask import current_app, jsonify, request
from flask_login import current_user
from sqlalchemy import func

from academy import db
from academy.catalog.models import Course
from academy.common.decorators import api_login_required, can_manage_course, forbidden, is_admin
from academy.common.request_utils import BadBody, as_bool, clean_str, json_body, optional_str
from academy.quiz import quiz_bp
from academy.quiz.models import Question, Quiz
from academy.quiz.service import (
    QuizError,
    add_option,
    build_question,
    load_quiz_for_editor,
    parse_passing_score,
    replace_questions,
    save_quiz,
)


def _course_for_save(data: dict):
    """Course a save touches: the stored quiz's course on update, else ``course_id``."""
    if not isinstance(data, dict):
        return None
    if data.get('id'):
        quiz = db.session.get(Quiz, str(data['id']))
        return quiz.course if quiz else None
    course_id = clean_str(data.get('course_id'))
    return db.session.get(Course, course_id) if course_id else None


def _managed_quiz(quiz_id):
    """(quiz, None) when the caller may edit the quiz, else (None, error response)."""
    quiz = db.session.get(Quiz, quiz_id)
    if quiz is None:
        return None, (jsonify({'error': 'Quiz not found'}), 404)
    if not can_manage_course(quiz.course):
        return None, forbidden(f"quiz={quiz_id}")
    return quiz, None


@quiz_bp.route('/api/admin/quizzes/save', methods=['POST'])
@quiz_bp.route('/api/quizzes/save', methods=['POST'])
@api_login_required
def save_quiz_route():
    """
    Create or update a quiz.

    Flat body: {"id"?, "course_id", "module_id"?, "title", "description"?, "passing_score"?}
    answered with {"id"}.

    Editor body: {"quiz": {...flat fields...}, "questions": [...]} replaces the
    quiz's questions and options too and is answered with
    {"id", "quiz": {"id"}, "questions": [...]}.

    201 when a quiz was created, 200 on update. Nothing is written when any
    part of the payload is invalid.
    """
    try:
        body = json_body()
    except BadBody as e:
        return jsonify({'error': str(e)}), 400

    graph = isinstance(body.get('quiz'), dict)
    quiz_data = body['quiz'] if graph else body

    course = _course_for_save(quiz_data)
    if course is not None and not can_manage_course(course):
        return forbidden(f"course={course.id}")

    try:
        quiz, created = save_quiz(quiz_data)
        saved_questions = None
        if graph:
            saved_questions = replace_questions(quiz, body.get('questions'))
        db.session.commit()
    except QuizError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), e.status
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Saving quiz failed")
        return jsonify({'error': str(e)}), 500

    current_app.logger.info(f"Quiz {quiz.id} {'created' if created else 'updated'} by {current_user.id}")
    status = 201 if created else 200
    if not graph:
        return jsonify({'id': quiz.id}), status

    questions = []
    for question in saved_questions:
        item = question.to_dict()
        item['options'] = [option.to_dict() for option in question.options]
        questions.append(item)
    return jsonify({'id': quiz.id, 'quiz': {'id': quiz.id}, 'questions': questions}), status


@quiz_bp.route('/api/admin/quizzes', methods=['GET'])
@api_login_required
def list_quizzes():
    """Quizzes the caller can edit, optionally for one course (?course_id=)."""
    query = Quiz.query
    course_id = request.args.get('course_id') or request.args.get('courseId')
    if course_id:
        query = query.filter(Quiz.course_id == course_id)
    if not is_admin():
        query = query.join(Course, Course.id == Quiz.course_id).filter(Course.instructor_id == current_user.id)
    quizzes = query.order_by(Quiz.created_at.asc()).all()
    return jsonify({'quizzes': [q.to_dict() for q in quizzes]})


@quiz_bp.route('/api/admin/quizzes/<quiz_id>', methods=['GET', 'PUT', 'DELETE'])
@api_login_required
def quiz_detail(quiz_id):
    quiz, error = _managed_quiz(quiz_id)
    if error:
        return error

    if request.method == 'GET':
        return jsonify(quiz.to_dict())

    try:
        if request.method == 'PUT':
            data = json_body()
            if 'title' in data:
                title = clean_str(data.get('title'))
                if not title:
                    raise QuizError("title cannot be empty")
                quiz.title = title
            if 'description' in data:
                quiz.description = optional_str(data.get('description'))
            if 'passing_score' in data:
                quiz.passing_score = parse_passing_score(data.get('passing_score'), quiz.passing_score)
            db.session.commit()
            return jsonify(quiz.to_dict())

        db.session.delete(quiz)
        db.session.commit()
        current_app.logger.info(f"Quiz {quiz_id} deleted by {current_user.id}")
        return jsonify({'ok': True})
    except (BadBody, QuizError) as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Quiz {quiz_id} {request.method} failed")
        return jsonify({'error': str(e)}), 500


@quiz_bp.route('/api/admin/quizzes/<quiz_id>/editor', methods=['GET'])
@api_login_required
def quiz_editor_data(quiz_id):
    """
    Quiz with its questions and options.

    Query: course_id (defaults to the quiz's course), module_id, final=1 to
    only accept the course's final quiz.
    """
    quiz, error = _managed_quiz(quiz_id)
    if error:
        return error

    data = load_quiz_for_editor(
        quiz.id,
        request.args.get('course_id') or quiz.course_id,
        module_id=request.args.get('module_id'),
        final=bool(as_bool(request.args.get('final'))),
    )
    if data is None:
        return jsonify({'error': 'Quiz not found'}), 404
    return jsonify(data)


@quiz_bp.route('/api/admin/quizzes/<quiz_id>/questions', methods=['POST'])
@api_login_required
def add_question(quiz_id):
    """
    Append one question.

    Request body: {"type", "prompt_html", "ordering"?, "options"?}
    Choice questions may omit options and receive them one at a time.
    """
    quiz, error = _managed_quiz(quiz_id)
    if error:
        return error

    try:
        data = json_body()
        last = db.session.query(func.max(Question.ordering)).filter(Question.quiz_id == quiz.id).scalar() or 0
        question = build_question(quiz, data, last + 1, require_options=False)
        db.session.add(question)
        db.session.commit()
    except (BadBody, QuizError) as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Adding question to quiz {quiz_id} failed")
        return jsonify({'error': str(e)}), 500

    item = question.to_dict()
    item['options'] = [option.to_dict() for option in question.options]
    return jsonify(item), 201


@quiz_bp.route('/api/admin/quizzes/<quiz_id>/questions/<question_id>', methods=['DELETE'])
@api_login_required
def delete_question(quiz_id, question_id):
    quiz, error = _managed_quiz(quiz_id)
    if error:
        return error

    question = db.session.get(Question, question_id)
    if question is None or question.quiz_id != quiz.id:
        return jsonify({'error': 'Question not found'}), 404

    try:
        db.session.delete(question)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Deleting question {question_id} failed")
        return jsonify({'error': str(e)}), 500
    return jsonify({'ok': True})


@quiz_bp.route('/api/admin/quizzes/<quiz_id>/questions/<question_id>/options', methods=['POST'])
@api_login_required
def add_question_option(quiz_id, question_id):
    """Request body: {"text": "...", "is_correct": false, "ordering"?}"""
    quiz, error = _managed_quiz(quiz_id)
    if error:
        return error

    question = db.session.get(Question, question_id)
    if question is None or question.quiz_id != quiz.id:
        return jsonify({'error': 'Question not found'}), 404

    try:
        option = add_option(question, json_body())
        db.session.commit()
    except (BadBody, QuizError) as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Adding option to question {question_id} failed")
        return jsonify({'error': str(e)}), 500

    return jsonify(option.to_dict()), 201
