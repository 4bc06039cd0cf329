"""Admin management of profiles."""
from flask import current_app, jsonify
from flask_login import current_user
from sqlalchemy.exc import IntegrityError

from academy import db
from academy.auth import auth_bp
from academy.auth.models import Profile
from academy.auth.utils import hash_password, is_valid_email, validate_password
from academy.common.decorators import admin_required
from academy.common.request_utils import BadBody, json_body, optional_str

PROFILE_TEXT_FIELDS = ("first_name", "last_name", "role", "status")


def _no_store(response):
    response.headers["Cache-Control"] = "no-store"
    return response


@auth_bp.route("/api/admin/users", methods=["GET"])
@admin_required
def list_users():
    """All profiles, newest first."""
    profiles = Profile.query.order_by(Profile.created_at.desc()).all()
    return _no_store(jsonify({"users": [p.to_dict() for p in profiles]}))


@auth_bp.route("/api/admin/users/<user_id>", methods=["PATCH"])
@admin_required
def update_user(user_id):
    """
    Edit a profile. Only keys present in the body are changed.

    Request body: {"first_name"?, "last_name"?, "role"?, "status"?,
    "email"?, "password"?}. Role and status are stored as given.
    """
    try:
        data = json_body()
    except BadBody as e:
        return jsonify({"error": str(e)}), 400

    profile = db.session.get(Profile, user_id)
    if not profile:
        return jsonify({"error": "User not found"}), 404

    try:
        for field in PROFILE_TEXT_FIELDS:
            if field in data:
                value = optional_str(data.get(field))
                if field in ("role", "status") and value is None:
                    return jsonify({"error": f"{field} cannot be empty"}), 400
                setattr(profile, field, value)

        if data.get("email"):
            email = str(data["email"]).strip().lower()
            if not is_valid_email(email):
                return jsonify({"error": "Please provide a valid email address"}), 400
            profile.email = email

        if data.get("password"):
            ok, message = validate_password(data["password"], current_app.config["MIN_PASSWORD_LENGTH"])
            if not ok:
                return jsonify({"error": message}), 400
            profile.password_hash = hash_password(data["password"])

        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "An account with this email already exists"}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Updating profile {user_id} failed")
        return jsonify({"error": str(e)}), 500

    current_app.logger.info(f"Profile {user_id} updated by {current_user.id}")
    return _no_store(jsonify({"ok": True}))


@auth_bp.route("/api/admin/users/<user_id>", methods=["DELETE"])
@admin_required
def delete_user(user_id):
    profile = db.session.get(Profile, user_id)
    if not profile:
        return jsonify({"error": "User not found"}), 404
    if profile.id == current_user.id:
        return jsonify({"error": "You cannot delete your own account"}), 400

    try:
        db.session.delete(profile)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Deleting profile {user_id} failed")
        return jsonify({"error": str(e)}), 500

    current_app.logger.info(f"Profile {user_id} deleted by {current_user.id}")
    return _no_store(jsonify({"ok": True}))
