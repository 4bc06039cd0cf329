import re
from typing import Optional

from passlib.hash import bcrypt


EMAIL_REGEX = re.compile(r"^[^@]+@[^@]+\.[^@]+$")

ROLES = ("student", "tutor", "admin", "super admin")
ADMIN_ROLES = ("admin", "super admin")
STATUSES = ("pending", "active", "suspended")

_ROLE_ALIASES = {
    "superadmin": "super admin",
}


def _truncate_password(plain_password: str) -> str:
    """Helper to consistently truncate password to its first 72 UTF-8 bytes."""
    # bcrypt only looks at 72 bytes; drop any multi-byte character cut in half.
    password_bytes = plain_password.encode('utf-8')[:72]
    return password_bytes.decode('utf-8', errors='ignore')


def hash_password(plain_password: str) -> str:
    """
    Hash password using bcrypt. It is truncated to the first 72 bytes
    of its UTF-8 encoding before hashing.
    """
    return bcrypt.hash(_truncate_password(plain_password))


def verify_password(plain_password: str, password_hash: Optional[str]) -> bool:
    """Verify a password against a hash, using the same truncation as hash_password."""
    if not password_hash:
        return False
    return bcrypt.verify(_truncate_password(plain_password), password_hash)


def is_valid_email(email: str) -> bool:
    return bool(email and EMAIL_REGEX.match(email))


def validate_password(password: str, min_length: int) -> tuple[bool, str | None]:
    """
    Basic server-side password validation.
    Returns (is_valid, error_message).
    """
    if not isinstance(password, str):
        return False, "Password must be a string"
    if len(password) < min_length:
        return False, f"Password must be at least {min_length} characters long"
    return True, None


def normalize_role(raw: Optional[str]) -> Optional[str]:
    """
    Fold a free-text role into one of ROLES, or None when unrecognised.

    Case and surrounding whitespace are ignored, and underscores, hyphens and
    runs of spaces all count as a single space, so "super_admin", "Super-Admin"
    and "superadmin" are all "super admin".
    """
    if not raw:
        return None
    role = re.sub(r"[\s_\-]+", " ", raw.strip().lower()).strip()
    role = _ROLE_ALIASES.get(role, role)
    return role if role in ROLES else None


def normalize_status(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    status = raw.strip().lower()
    return status if status in STATUSES else None


def _title_case(value: str) -> str:
    return re.sub(r"(^|[\s\-'])(\w)", lambda m: m.group(1) + m.group(2).upper(), value.lower())


def display_name(first_name: Optional[str], last_name: Optional[str], email: Optional[str]) -> tuple[str, str]:
    """
    Name shown on dashboards and certificates.

    Returns (name, source) where source is "profiles" when the profile has a
    first or last name and "email" when the name was derived from the
    address's local part.
    """
    if first_name or last_name:
        name = f"{_title_case(first_name or '')} {_title_case(last_name or '')}".strip()
        return name, "profiles"
    local = (email or "").split("@")[0].replace(".", " ")
    pretty = re.sub(r"\b\w", lambda m: m.group(0).upper(), local).strip()
    return pretty or "Learner", "email"
