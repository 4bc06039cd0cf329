"""
Certificate rendering.

The same Jinja sheet is used for the HTML certificate page and for the PDF
copy, which WeasyPrint builds when a certificate is issued and which is
stored in the ``certificates`` bucket.
"""
import io

from flask import current_app, render_template
from werkzeug.datastructures import FileStorage

from academy.auth.utils import display_name
from academy.common.storage import get_storage


def certificate_context(certificate) -> dict:
    """Learner name, course title and issue date drawn on a certificate."""
    user = certificate.user
    name, _ = display_name(user.first_name, user.last_name, user.email) if user else ('Learner', 'default')
    return {
        'certificate': certificate,
        'template': certificate.template,
        'learner_name': name,
        'course_title': certificate.course.title if certificate.course else '',
        'issued_on': certificate.issued_at.strftime('%B %d, %Y') if certificate.issued_at else '',
    }


def render_certificate_pdf(certificate) -> bytes:
    from weasyprint import HTML

    context = certificate_context(certificate)
    template = context['template']
    background = None
    if template is not None:
        # stored backgrounds are read from disk, anything else is fetched as is
        background = get_storage().local_file_url(template.image_url) or template.image_url
    html = render_template('certificates/pdf.html', background=background, **context)
    return HTML(string=html).write_pdf()


def store_certificate_pdf(certificate):
    """
    Render the certificate to PDF and store it under
    ``certificates/issued/cert-<id>.pdf``. Sets and returns ``pdf_url``.

    A certificate whose PDF cannot be built is still issued; the failure is
    logged and ``pdf_url`` stays empty.
    """
    if not current_app.config.get('CERTIFICATE_PDF_ENABLED', True):
        return None

    try:
        pdf = render_certificate_pdf(certificate)
        upload = FileStorage(
            stream=io.BytesIO(pdf),
            filename=f"cert-{certificate.id}.pdf",
            content_type='application/pdf',
        )
        certificate.pdf_url = get_storage().upload('certificates', f"issued/cert-{certificate.id}.pdf", upload)
    except Exception:
        current_app.logger.exception(f"Building the PDF for certificate {certificate.id} failed")
        return None

    current_app.logger.info(f"Certificate {certificate.id} PDF stored at {certificate.pdf_url}")
    return certificate.pdf_url
