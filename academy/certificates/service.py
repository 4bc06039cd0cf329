"""Certificate templates and issuance."""
from datetime import datetime

from flask import current_app
from sqlalchemy import update

from academy import db
from academy.catalog.models import Course, LessonCompletion
from academy.certificates.models import CertificateIssued, CertificateTemplate, POSITION_FIELDS
from academy.certificates.rendering import store_certificate_pdf
from academy.common.request_utils import BadBody, as_bool, as_int, clean_str
from academy.quiz.models import QuizAttempt

TEMPLATE_INT_FIELDS = POSITION_FIELDS + ("font_size",)
TEMPLATE_FIELDS = ("name", "image_url", "font_color", "is_active") + TEMPLATE_INT_FIELDS


class CertificateError(ValueError):
    status = 400


def certificate_path(certificate_id: str) -> str:
    return f"/certificates/{certificate_id}"


def active_template():
    return (
        CertificateTemplate.query.filter_by(is_active=True)
        .order_by(CertificateTemplate.created_at.desc())
        .first()
    )


def apply_template_fields(template: CertificateTemplate, data: dict) -> None:
    """Copy recognised template fields from ``data``; unknown keys are ignored."""
    for field in TEMPLATE_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field in TEMPLATE_INT_FIELDS:
            try:
                value = as_int(value, field)
            except BadBody as e:
                raise CertificateError(str(e))
            if value is None:
                raise CertificateError(f"{field} cannot be empty")
        elif field == "is_active":
            value = bool(as_bool(value))
        else:
            value = clean_str(value)
            if not value:
                raise CertificateError(f"{field} cannot be empty")
        setattr(template, field, value)


def update_template(template: CertificateTemplate, data: dict) -> CertificateTemplate:
    """
    Apply an edit. When the edit activates the template every other template
    is deactivated in the same unit of work as the update itself.
    """
    apply_template_fields(template, data)
    if template.is_active:
        # new templates need their id before the others can be excluded
        db.session.flush()
        db.session.execute(
            update(CertificateTemplate)
            .where(CertificateTemplate.id != template.id)
            .where(CertificateTemplate.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        current_app.logger.info(f"Certificate template {template.id} activated")
    db.session.flush()
    return template


def course_completed(user_id: str, course: Course) -> bool:
    """
    True when the learner completed every lesson of the course and, if the
    course has a final quiz, their latest attempt at it passed. A course
    without lessons cannot be completed.
    """
    lesson_ids = course.lesson_ids()
    if not lesson_ids:
        return False

    done = (
        LessonCompletion.query.filter_by(user_id=user_id)
        .filter(LessonCompletion.lesson_id.in_(lesson_ids))
        .count()
    )
    if done != len(lesson_ids):
        return False

    final_quiz = course.final_quiz
    if final_quiz is None:
        return True
    latest = (
        QuizAttempt.query.filter_by(user_id=user_id, quiz_id=final_quiz.id)
        .order_by(QuizAttempt.started_at.desc())
        .first()
    )
    return bool(latest and latest.passed)


def issue_certificate(user_id: str, course_id: str, attempt_id=None, template=None) -> tuple[CertificateIssued, bool]:
    """
    Certificate for (user, course), creating it when missing.

    Issuance is idempotent: an existing row is returned as is (gaining the
    attempt id if it had none). Returns (certificate, created).
    """
    existing = CertificateIssued.query.filter_by(user_id=user_id, course_id=course_id).first()
    if existing is not None:
        if attempt_id and not existing.attempt_id:
            existing.attempt_id = attempt_id
        return existing, False

    if template is None:
        template = active_template()

    certificate = CertificateIssued(
        user_id=user_id,
        course_id=course_id,
        attempt_id=attempt_id,
        template_id=template.id if template else None,
        issued_at=datetime.utcnow(),
    )
    db.session.add(certificate)
    db.session.flush()
    certificate.certificate_url = certificate_path(certificate.id)
    store_certificate_pdf(certificate)
    current_app.logger.info(f"Certificate {certificate.id} issued to {user_id} for course {course_id}")
    return certificate, True
