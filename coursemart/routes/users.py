from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from coursemart.errors import APIError, NotFoundError
from coursemart.extensions import db
from coursemart.models import Course, User
from coursemart.utils.auth import get_current_user, role_required

bp = Blueprint("users", __name__)

PROFILE_FIELDS = {
    "name": "name",
    "phone": "phone",
    "address": "address",
    "profileImage": "profile_image",
    "coverImage": "cover_image",
}


def get_user_or_404(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def ensure_email_free(email, user=None):
    email = email.strip().lower()
    existing = User.query.filter_by(email=email).first()
    if existing and existing is not user:
        raise APIError("User already exists with this email", 400)
    return email


def ensure_self_or_admin(target_id):
    current = get_current_user()
    if current.id != target_id and not current.is_admin:
        raise APIError("Not authorized to access this user", 403)
    return current


@bp.route("/me", methods=["GET"])
@jwt_required()
def get_me():
    return jsonify({"success": True, "data": get_current_user().to_dict()})


@bp.route("/me", methods=["PUT"])
@jwt_required()
def update_me():
    user = get_current_user()
    data = request.get_json(silent=True) or {}

    if data.get("email"):
        user.email = ensure_email_free(data["email"], user)
    for field, column in PROFILE_FIELDS.items():
        if data.get(field):
            setattr(user, column, data[field])

    db.session.commit()
    return jsonify({"success": True, "data": user.to_dict()})


@bp.route("/changepassword", methods=["POST"])
@jwt_required()
def change_password():
    data = request.get_json(silent=True) or {}
    old_password = data.get("oldPassword")
    new_password = data.get("newPassword")

    if not old_password or not new_password:
        raise APIError("Please provide both oldPassword and newPassword.", 400)

    user = get_current_user()
    if not user.check_password(old_password):
        raise APIError("Old password is incorrect.", 401)

    user.set_password(new_password)
    db.session.commit()
    return jsonify({"success": True, "message": "Password changed successfully."})


@bp.route("", methods=["GET"])
@role_required("admin")
def get_users():
    users = User.query.order_by(User.id).all()
    return jsonify({"success": True, "count": len(users), "data": [u.to_dict() for u in users]})


@bp.route("", methods=["POST"])
@role_required("admin")
def create_user():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    email = data.get("email") or ""
    password = data.get("password")

    if not all([name, email.strip(), password]):
        raise APIError("Please provide name, email and password.", 400)

    user = User(name=name, email=ensure_email_free(email), role=data.get("role") or "user")
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return jsonify({"success": True, "data": user.to_dict()}), 201


@bp.route("/<int:user_id>", methods=["GET"])
@jwt_required()
def get_user(user_id):
    ensure_self_or_admin(user_id)
    return jsonify({"success": True, "data": get_user_or_404(user_id).to_dict()})


@bp.route("/<int:user_id>", methods=["PUT"])
@jwt_required()
def update_user(user_id):
    current = ensure_self_or_admin(user_id)
    user = get_user_or_404(user_id)
    data = request.get_json(silent=True) or {}

    if data.get("name"):
        user.name = data["name"]
    if data.get("email"):
        user.email = ensure_email_free(data["email"], user)
    if data.get("role"):
        if not current.is_admin:
            raise APIError("Only admins can change roles", 403)
        user.role = data["role"]
    if data.get("password"):
        user.set_password(data["password"])

    db.session.commit()
    return jsonify({"success": True, "data": user.to_dict()})


@bp.route("/<int:user_id>", methods=["DELETE"])
@role_required("admin")
def delete_user(user_id):
    user = get_user_or_404(user_id)

    reviewed_courses = {
        r.reviewable_id for r in user.reviews if r.reviewable_model == "Course"
    }

    current_app.logger.info(f"Deleting user {user_id}")
    db.session.delete(user)
    db.session.flush()

    # ratings of courses this user reviewed no longer include their reviews
    for course_id in reviewed_courses:
        Course.calculate_ratings(course_id)
    db.session.commit()

    return jsonify({"success": True, "message": "User removed", "data": {"_id": user_id}})
