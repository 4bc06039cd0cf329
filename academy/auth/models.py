from datetime import datetime
from flask_login import UserMixin

from academy import db
from academy.common.ids import new_id


class Profile(db.Model, UserMixin):
    """
    An account and its access profile.

    ``role`` and ``status`` are stored as entered; access checks normalize
    them through ``academy.auth.utils`` before comparing.
    """
    __tablename__ = "profiles"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=True)
    first_name = db.Column(db.String(120), nullable=True)
    last_name = db.Column(db.String(120), nullable=True)
    role = db.Column(db.String(40), nullable=False, default="student", index=True)
    status = db.Column(db.String(40), nullable=False, default="pending")
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Profile {self.email} ({self.role})>"

    @property
    def normalized_role(self):
        from academy.auth.utils import normalize_role
        return normalize_role(self.role)

    def is_admin(self) -> bool:
        return self.normalized_role in ("admin", "super admin")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
