"""
Certificate routes.

- Learner lookups by attempt or by course, and explicit issuance
- Template management for admins
"""
from flask import current_app, jsonify
from flask_login import current_user
from sqlalchemy.exc import IntegrityError

from academy import db
from academy.catalog.models import Course
from academy.certificates import certificates_bp
from academy.certificates.models import CertificateIssued, CertificateTemplate
from academy.certificates.service import (
    CertificateError,
    active_template,
    course_completed,
    issue_certificate,
    update_template,
)
from academy.common.decorators import admin_required, api_login_required, forbidden
from academy.common.request_utils import BadBody, clean_str, json_body
from academy.quiz.models import QuizAttempt


@certificates_bp.route('/api/attempts/<attempt_id>/certificate', methods=['GET'])
@api_login_required
def certificate_for_attempt(attempt_id):
    """URL of the certificate issued for an attempt of the signed-in learner."""
    attempt = db.session.get(QuizAttempt, attempt_id)
    if attempt is None:
        return jsonify({'error': 'Certificate not found'}), 404
    if attempt.user_id != current_user.id:
        return forbidden(f"attempt={attempt_id}")

    certificate = CertificateIssued.query.filter_by(attempt_id=attempt.id).first()
    if certificate is None and attempt.passed and attempt.quiz.is_final:
        # later passes reuse the certificate issued for the first one
        certificate = CertificateIssued.query.filter_by(
            user_id=attempt.user_id, course_id=attempt.quiz.course_id
        ).first()
    if certificate is None or not certificate.certificate_url:
        return jsonify({'error': 'Certificate not found'}), 404
    return jsonify({'url': certificate.certificate_url, 'pdf_url': certificate.pdf_url})


@certificates_bp.route('/api/certificates/by-course/<course_id>', methods=['GET'])
def certificate_for_course(course_id):
    """The signed-in learner's certificate for a course; null when there is none."""
    if not current_user.is_authenticated:
        return jsonify({'certificate': None})
    certificate = CertificateIssued.query.filter_by(user_id=current_user.id, course_id=course_id).first()
    return jsonify({'certificate': certificate.to_dict() if certificate else None})


@certificates_bp.route('/api/certificates/issue', methods=['POST'])
@api_login_required
def issue_course_certificate():
    """
    Issue the signed-in learner's certificate for a completed course.

    Request body: {"courseId": "..."}
    The course counts as completed when every lesson is completed and the
    latest final quiz attempt (if the course has a final quiz) passed.
    """
    try:
        data = json_body()
    except BadBody as e:
        return jsonify({'error': str(e)}), 400

    course_id = clean_str(data.get('courseId') or data.get('course_id'))
    if not course_id:
        return jsonify({'error': 'courseId is required'}), 400

    course = db.session.get(Course, course_id)
    if course is None:
        return jsonify({'error': 'Course not found'}), 404

    existing = CertificateIssued.query.filter_by(user_id=current_user.id, course_id=course.id).first()
    if existing:
        return jsonify({'id': existing.id, 'certificate': existing.to_dict(), 'created': False})

    if not course_completed(current_user.id, course):
        return jsonify({'error': 'Course not completed yet'}), 400

    template = active_template()
    if template is None:
        return jsonify({'error': 'No active certificate template'}), 400

    try:
        certificate, created = issue_certificate(current_user.id, course.id, template=template)
        db.session.commit()
    except IntegrityError:
        # issued by a concurrent request in the meantime
        db.session.rollback()
        certificate = CertificateIssued.query.filter_by(user_id=current_user.id, course_id=course.id).first()
        if certificate is None:
            current_app.logger.exception(f"Issuing certificate for course {course_id} failed")
            return jsonify({'error': 'Could not issue certificate'}), 500
        created = False
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Issuing certificate for course {course_id} failed")
        return jsonify({'error': str(e)}), 500

    body = {'id': certificate.id, 'certificate': certificate.to_dict(), 'created': created}
    return jsonify(body), 201 if created else 200


@certificates_bp.route('/api/admin/certificates/templates', methods=['GET'])
@admin_required
def list_templates():
    templates = CertificateTemplate.query.order_by(CertificateTemplate.created_at.desc()).all()
    return jsonify({'templates': [t.to_dict() for t in templates]})


@certificates_bp.route('/api/admin/certificates/templates', methods=['POST'])
@admin_required
def create_template():
    """
    Request body: {"name", "image_url", "name_x"?, "name_y"?, "course_x"?,
    "course_y"?, "date_x"?, "date_y"?, "font_size"?, "font_color"?, "is_active"?}
    """
    try:
        data = json_body()
    except BadBody as e:
        return jsonify({'error': str(e)}), 400

    if not clean_str(data.get('name')) or not clean_str(data.get('image_url')):
        return jsonify({'error': 'name and image_url are required'}), 400

    try:
        template = CertificateTemplate()
        db.session.add(template)
        update_template(template, data)
        db.session.commit()
    except CertificateError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), e.status
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Creating certificate template failed")
        return jsonify({'error': str(e)}), 500

    current_app.logger.info(f"Certificate template {template.id} created by {current_user.id}")
    return jsonify({'id': template.id}), 201


@certificates_bp.route('/api/admin/certificates/templates/<template_id>', methods=['PATCH'])
@admin_required
def patch_template(template_id):
    template = db.session.get(CertificateTemplate, template_id)
    if template is None:
        return jsonify({'error': 'Template not found'}), 404

    try:
        update_template(template, json_body())
        db.session.commit()
    except (BadBody, CertificateError) as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Updating certificate template {template_id} failed")
        return jsonify({'error': str(e)}), 500

    return jsonify({'ok': True})


@certificates_bp.route('/api/admin/certificates/templates/<template_id>', methods=['DELETE'])
@admin_required
def delete_template(template_id):
    template = db.session.get(CertificateTemplate, template_id)
    if template is None:
        return jsonify({'error': 'Template not found'}), 404

    try:
        db.session.delete(template)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Deleting certificate template {template_id} failed")
        return jsonify({'error': str(e)}), 500

    current_app.logger.info(f"Certificate template {template_id} deleted by {current_user.id}")
    return jsonify({'ok': True})
