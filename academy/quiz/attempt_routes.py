"""
Quiz attempt routes.

The learner is always the signed-in profile; user ids in request bodies are
ignored.
"""
from flask import current_app, jsonify
from flask_login import current_user

from academy import db
from academy.catalog.models import Course
from academy.certificates.service import issue_certificate
from academy.common.decorators import api_login_required, can_manage_course, forbidden
from academy.common.request_utils import BadBody, clean_str, json_body
from academy.quiz import quiz_bp
from academy.quiz.models import Quiz, QuizAttempt
from academy.quiz.service import QuizError, grade_attempt, start_attempt


def _certificate_if_final(attempt: QuizAttempt):
    """Issue (or reuse) the course certificate when a final quiz attempt passed."""
    quiz = attempt.quiz
    if not attempt.passed or not quiz.is_final:
        return None
    certificate, _ = issue_certificate(current_user.id, quiz.course_id, attempt_id=attempt.id)
    return certificate


@quiz_bp.route('/api/quizzes/<quiz_id>/attempts', methods=['POST'])
@quiz_bp.route('/api/admin/quizzes/<quiz_id>/attempts', methods=['POST'])
@api_login_required
def create_attempt(quiz_id):
    """Start an attempt for the signed-in learner."""
    quiz = db.session.get(Quiz, quiz_id)
    if quiz is None:
        return jsonify({'error': 'Quiz not found'}), 404

    try:
        attempt = start_attempt(quiz, current_user.id)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Starting attempt on quiz {quiz_id} failed")
        return jsonify({'error': str(e)}), 500

    current_app.logger.info(f"Attempt {attempt.id} started on quiz {quiz_id} by {current_user.id}")
    return jsonify({'id': attempt.id}), 201


@quiz_bp.route('/api/admin/quizzes/<quiz_id>/attempts', methods=['GET'])
@api_login_required
def list_attempts(quiz_id):
    """Every attempt at a quiz, for the people who manage its course."""
    quiz = db.session.get(Quiz, quiz_id)
    if quiz is None:
        return jsonify({'error': 'Quiz not found'}), 404
    if not can_manage_course(quiz.course):
        return forbidden(f"quiz={quiz_id}")

    attempts = QuizAttempt.query.filter_by(quiz_id=quiz.id).order_by(QuizAttempt.started_at.desc()).all()
    return jsonify({'attempts': [a.to_dict() for a in attempts]})


@quiz_bp.route('/api/attempts/<attempt_id>/responses', methods=['POST'])
@api_login_required
def submit_responses(attempt_id):
    """
    Grade an attempt.

    Request body:
    {"answers": [{"question_id": "...", "selected_option_id": "..."},
                 {"question_id": "...", "answer_text": "..."}]}

    Answers, score and pass flag are stored together; passing a final quiz
    also issues the course certificate.
    """
    attempt = db.session.get(QuizAttempt, attempt_id)
    if attempt is None:
        return jsonify({'error': 'Attempt not found'}), 404
    if attempt.user_id != current_user.id:
        return forbidden(f"attempt={attempt_id}")
    if attempt.is_finished:
        return jsonify({'error': 'Attempt already submitted'}), 400

    try:
        data = json_body()
    except BadBody as e:
        return jsonify({'error': str(e)}), 400
    answers = data.get('answers')
    if not isinstance(answers, list) or not answers:
        return jsonify({'error': 'answers must be a non-empty list'}), 400

    try:
        result = grade_attempt(attempt, answers)
        certificate = _certificate_if_final(attempt)
        db.session.commit()
    except QuizError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), e.status
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Grading attempt {attempt_id} failed")
        return jsonify({'error': str(e)}), 500

    current_app.logger.info(
        f"Attempt {attempt_id} graded: {result['total_score']}/{result['gradable']} passed={result['passed']}"
    )
    return jsonify({
        'total_score': result['total_score'],
        'percent': result['percent'],
        'passed': result['passed'],
        'certificate': certificate.to_dict() if certificate else None,
    })


@quiz_bp.route('/api/quizzes/submit-final', methods=['POST'])
@api_login_required
def submit_final_quiz():
    """
    Start and grade an attempt at a course's final quiz in one request.

    Request body: {"courseId": "...", "answers": [...]}
    """
    try:
        data = json_body()
    except BadBody as e:
        return jsonify({'error': str(e)}), 400

    course_id = clean_str(data.get('courseId') or data.get('course_id'))
    answers = data.get('answers')
    if not course_id or not isinstance(answers, list):
        return jsonify({'error': 'Invalid payload'}), 400

    course = db.session.get(Course, course_id)
    quiz = course.final_quiz if course else None
    if quiz is None:
        return jsonify({'error': 'Final quiz not found'}), 404

    try:
        attempt = start_attempt(quiz, current_user.id)
        result = grade_attempt(attempt, answers)
        certificate = _certificate_if_final(attempt)
        db.session.commit()
    except QuizError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), e.status
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Final quiz submission for course {course_id} failed")
        return jsonify({'error': str(e)}), 500

    return jsonify({
        'attempt_id': attempt.id,
        'score': result['total_score'],
        'percent': result['percent'],
        'passing_score': result['passing_score'],
        'passed': result['passed'],
        'certificate_url': certificate.certificate_url if certificate else None,
        'certificate_pdf_url': certificate.pdf_url if certificate else None,
    })
