from datetime import datetime

from academy import db
from academy.common.ids import new_id

POSITION_FIELDS = ("name_x", "name_y", "course_x", "course_y", "date_x", "date_y")


class CertificateTemplate(db.Model):
    """
    Background image plus the positions (in pixels from the top-left corner)
    where the learner name, course title and issue date are drawn.
    """
    __tablename__ = "certificate_templates"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    image_url = db.Column(db.String(1024), nullable=False)
    name_x = db.Column(db.Integer, nullable=False, default=400)
    name_y = db.Column(db.Integer, nullable=False, default=300)
    course_x = db.Column(db.Integer, nullable=False, default=400)
    course_y = db.Column(db.Integer, nullable=False, default=380)
    date_x = db.Column(db.Integer, nullable=False, default=400)
    date_y = db.Column(db.Integer, nullable=False, default=460)
    font_size = db.Column(db.Integer, nullable=False, default=32)
    font_color = db.Column(db.String(20), nullable=False, default="#111111")
    is_active = db.Column(db.Boolean, nullable=False, default=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<CertificateTemplate {self.id}: {self.name}>"

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "image_url": self.image_url,
            "font_size": self.font_size,
            "font_color": self.font_color,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        for field in POSITION_FIELDS:
            data[field] = getattr(self, field)
        return data


class CertificateIssued(db.Model):
    __tablename__ = "certificates_issued"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    attempt_id = db.Column(db.String(36), db.ForeignKey("quiz_attempts.id", ondelete="SET NULL"), nullable=True, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    template_id = db.Column(db.String(36), db.ForeignKey("certificate_templates.id", ondelete="SET NULL"), nullable=True)
    issued_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    certificate_url = db.Column(db.String(1024), nullable=True)
    pdf_url = db.Column(db.String(1024), nullable=True)

    user = db.relationship("Profile")
    course = db.relationship("Course")
    template = db.relationship("CertificateTemplate")

    __table_args__ = (
        db.UniqueConstraint("user_id", "course_id", name="uq_certificates_issued_user_course"),
    )

    def __repr__(self) -> str:
        return f"<CertificateIssued {self.id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "attempt_id": self.attempt_id,
            "user_id": self.user_id,
            "course_id": self.course_id,
            "template_id": self.template_id,
            "issued_at": self.issued_at.isoformat() if self.issued_at else None,
            "certificate_url": self.certificate_url,
            "pdf_url": self.pdf_url,
        }
