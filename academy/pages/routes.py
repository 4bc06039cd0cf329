"""
Server-rendered pages.

Page failures are rendered in place as a red error paragraph with the
matching status code; they never redirect.
"""
from flask import redirect, render_template, request, url_for
from flask_login import current_user, login_required

from academy import db
from academy.auth.models import Profile
from academy.auth.utils import display_name
from academy.catalog.models import Course, LessonCompletion
from academy.certificates.models import CertificateIssued, CertificateTemplate
from academy.certificates.rendering import certificate_context
from academy.common.decorators import can_manage_course, current_role, is_admin
from academy.common.request_utils import redirect_target
from academy.pages import pages_bp
from academy.quiz.models import Quiz, QuizAttempt
from academy.quiz.service import load_quiz_for_editor

STAFF_ROLES = ('tutor', 'admin', 'super admin')


def error_page(message: str, status: int):
    return render_template('error.html', message=message), status


@pages_bp.route('/')
def index():
    if current_user.is_authenticated:
        return redirect(url_for('pages.dashboard'))
    courses = (
        Course.query.filter_by(archived=False)
        .order_by(Course.created_at.desc())
        .limit(6)
        .all()
    )
    return render_template('index.html', courses=courses)


@pages_bp.route('/auth/login')
def login_page():
    redirected_from = redirect_target(request.args.get('redirectedFrom'), url_for('pages.dashboard'))
    if current_user.is_authenticated:
        return redirect(redirected_from)
    return render_template('auth/login.html', redirected_from=redirected_from)


@pages_bp.route('/auth/register')
def register_page():
    if current_user.is_authenticated:
        return redirect(url_for('pages.dashboard'))
    return render_template('auth/register.html')


@pages_bp.route('/courses')
def course_list():
    courses = Course.query.filter_by(archived=False).order_by(Course.created_at.desc()).all()
    return render_template('courses/list.html', courses=courses)


@pages_bp.route('/courses/<course_id>')
def course_detail(course_id):
    """Course outline with lesson content; signed-in learners see their progress."""
    course = db.session.get(Course, course_id)
    if course is None or (course.archived and not can_manage_course(course)):
        return error_page('Course not found.', 404)

    completed = set()
    certificate = None
    if current_user.is_authenticated:
        lesson_ids = course.lesson_ids()
        if lesson_ids:
            rows = (
                LessonCompletion.query.filter_by(user_id=current_user.id)
                .filter(LessonCompletion.lesson_id.in_(lesson_ids))
                .all()
            )
            completed = {row.lesson_id for row in rows}
        certificate = CertificateIssued.query.filter_by(user_id=current_user.id, course_id=course.id).first()

    return render_template(
        'courses/detail.html',
        course=course,
        completed=completed,
        final_quiz=course.final_quiz,
        certificate=certificate,
    )


@pages_bp.route('/courses/<course_id>/modules/<module_id>/quiz/<quiz_id>')
@login_required
def module_quiz(course_id, module_id, quiz_id):
    """Take a module quiz; answers are graded through the attempt API."""
    course = db.session.get(Course, course_id)
    if course is None or (course.archived and not can_manage_course(course)):
        return error_page('Course not found.', 404)
    quiz = Quiz.query.filter_by(id=quiz_id, course_id=course.id, module_id=module_id).first()
    if quiz is None:
        return error_page('Quiz not found.', 404)
    return render_template('courses/quiz.html', course=course, module=quiz.module, quiz=quiz)


@pages_bp.route('/dashboard')
@login_required
def dashboard():
    name, _ = display_name(current_user.first_name, current_user.last_name, current_user.email)
    certificates = (
        CertificateIssued.query.filter_by(user_id=current_user.id)
        .order_by(CertificateIssued.issued_at.desc())
        .all()
    )
    attempts = (
        QuizAttempt.query.filter_by(user_id=current_user.id)
        .order_by(QuizAttempt.started_at.desc())
        .limit(10)
        .all()
    )
    teaching = []
    if current_role() in STAFF_ROLES:
        teaching = Course.query.filter_by(instructor_id=current_user.id).order_by(Course.created_at.desc()).all()
    return render_template(
        'dashboard.html',
        display_name=name,
        certificates=certificates,
        attempts=attempts,
        teaching=teaching,
    )


@pages_bp.route('/admin/courses')
@login_required
def admin_courses():
    """All courses for admins, own courses for tutors."""
    if current_role() not in STAFF_ROLES:
        return error_page('You do not have access to this page.', 403)
    query = Course.query
    if not is_admin():
        query = query.filter_by(instructor_id=current_user.id)
    courses = query.order_by(Course.created_at.desc()).all()
    return render_template('admin/courses.html', courses=courses)


@pages_bp.route('/admin/courses/edit/<course_id>')
@login_required
def course_editor(course_id):
    course = db.session.get(Course, course_id)
    if course is None:
        return error_page('Course not found.', 404)
    if not can_manage_course(course):
        return error_page('You do not have access to this course.', 403)
    return render_template('admin/course_edit.html', course=course, is_admin=is_admin())


@pages_bp.route('/admin/courses/edit/<course_id>/final-quiz/<quiz_id>')
@login_required
def final_quiz_editor(course_id, quiz_id):
    course = db.session.get(Course, course_id)
    if course is not None and not can_manage_course(course):
        return error_page('You do not have access to this course.', 403)
    data = load_quiz_for_editor(quiz_id, course_id, final=True)
    if course is None or data is None:
        return error_page('Final quiz not found.', 404)
    return render_template('admin/quiz_editor.html', course=course, module=None, data=data)


@pages_bp.route('/admin/courses/edit/<course_id>/modules/<module_id>/quiz/<quiz_id>')
@login_required
def module_quiz_editor(course_id, module_id, quiz_id):
    course = db.session.get(Course, course_id)
    if course is not None and not can_manage_course(course):
        return error_page('You do not have access to this course.', 403)
    data = load_quiz_for_editor(quiz_id, course_id, module_id=module_id)
    if course is None or data is None:
        return error_page('Quiz not found.', 404)
    module = next((m for m in course.modules if m.id == module_id), None)
    return render_template('admin/quiz_editor.html', course=course, module=module, data=data)


@pages_bp.route('/admin/users')
@login_required
def admin_users():
    if not is_admin():
        return error_page('You do not have access to this page.', 403)
    users = Profile.query.order_by(Profile.created_at.desc()).all()
    return render_template('admin/users.html', users=users)


@pages_bp.route('/admin/certificates')
@login_required
def admin_certificates():
    if not is_admin():
        return error_page('You do not have access to this page.', 403)
    templates = CertificateTemplate.query.order_by(CertificateTemplate.created_at.desc()).all()
    return render_template('admin/certificates.html', templates=templates)


@pages_bp.route('/certificates/<certificate_id>')
@login_required
def certificate_view(certificate_id):
    """Certificate background with the learner name, course and date drawn on top."""
    certificate = db.session.get(CertificateIssued, certificate_id)
    if certificate is None:
        return error_page('Certificate not found.', 404)
    if certificate.user_id != current_user.id and not is_admin():
        return error_page('You do not have access to this certificate.', 403)

    return render_template('certificates/view.html', **certificate_context(certificate))
