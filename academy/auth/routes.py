from flask import current_app, jsonify, redirect, request, url_for
from flask_login import current_user, login_user, logout_user
from sqlalchemy.exc import IntegrityError

from academy import db
from academy.auth import auth_bp
from academy.auth.models import Profile
from academy.auth.utils import (
    display_name,
    hash_password,
    is_valid_email,
    normalize_role,
    normalize_status,
    validate_password,
    verify_password,
)
from academy.common.decorators import api_login_required
from academy.common.request_utils import BadBody, clean_str, json_body, optional_str

SELF_REGISTER_ROLES = ("student", "tutor")


@auth_bp.route("/api/auth/register", methods=["POST"])
def register():
    """
    Create a profile with a password. New accounts start as ``pending``.

    Request body: {"email", "password", "first_name"?, "last_name"?, "role"?}
    where role is "student" (default) or "tutor".
    """
    try:
        data = json_body()
    except BadBody as e:
        return jsonify({"error": str(e)}), 400

    email = clean_str(data.get("email")).lower()
    password = data.get("password") or ""
    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400
    if not is_valid_email(email):
        return jsonify({"error": "Please provide a valid email address"}), 400

    ok, message = validate_password(password, current_app.config["MIN_PASSWORD_LENGTH"])
    if not ok:
        return jsonify({"error": message}), 400

    role = normalize_role(data.get("role")) or "student"
    if role not in SELF_REGISTER_ROLES:
        return jsonify({"error": "role must be student or tutor"}), 400

    if db.session.query(Profile.id).filter_by(email=email).first():
        return jsonify({"error": "An account with this email already exists"}), 400

    try:
        profile = Profile(
            email=email,
            password_hash=hash_password(password),
            first_name=optional_str(data.get("first_name")),
            last_name=optional_str(data.get("last_name")),
            role=role,
            status="pending",
        )
        db.session.add(profile)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "An account with this email already exists"}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Registration failed")
        return jsonify({"error": str(e)}), 500

    current_app.logger.info(f"Profile registered: {profile.id} ({role})")
    return jsonify({"id": profile.id, "message": "Profile created"}), 201


@auth_bp.route("/api/auth/login", methods=["POST"])
def login():
    try:
        data = json_body()
    except BadBody as e:
        return jsonify({"error": str(e)}), 400

    email = clean_str(data.get("email")).lower()
    password = data.get("password") or ""
    remember = bool(data.get("remember", False))

    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400
    if not isinstance(password, str):
        return jsonify({"error": "Password must be a string"}), 400

    profile = Profile.query.filter_by(email=email).first()
    if not profile or not verify_password(password, profile.password_hash):
        return jsonify({"error": "Invalid email or password"}), 401

    if normalize_status(profile.status) == "suspended":
        current_app.logger.warning(f"Login refused for suspended profile {profile.id}")
        return jsonify({"error": "Account suspended"}), 403

    login_user(profile, remember=remember)
    current_app.logger.info(f"Profile signed in: {profile.id}")
    return jsonify({"user": profile.to_dict()}), 200


@auth_bp.route("/api/auth/logout", methods=["POST"])
def logout():
    logout_user()
    return jsonify({"ok": True})


@auth_bp.route("/auth/signout", methods=["GET", "POST"])
def signout():
    """Sign out and clear every auth cookie variant, then go to the login page."""
    logout_user()
    response = redirect(url_for("pages.login_page"), code=302)
    names = set(current_app.config["AUTH_COOKIE_NAMES"])
    names.update(n for n in request.cookies if n.startswith(("sb-", "supabase-")))
    for name in names:
        response.delete_cookie(name, path="/")
    response.headers["Cache-Control"] = "no-store"
    return response


@auth_bp.route("/api/whoami", methods=["GET"])
def whoami():
    if not current_user.is_authenticated:
        return jsonify({"user": None})
    return jsonify({"user": current_user.to_dict()})


@auth_bp.route("/api/users/me/display-name", methods=["GET"])
@api_login_required
def my_display_name():
    name, source = display_name(current_user.first_name, current_user.last_name, current_user.email)
    return jsonify({
        "first_name": current_user.first_name,
        "last_name": current_user.last_name,
        "displayName": name,
        "source": source,
    })
