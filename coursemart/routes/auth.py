from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import create_access_token

from coursemart.errors import APIError
from coursemart.extensions import db
from coursemart.models import User

bp = Blueprint("auth", __name__)


def token_response(user, status_code=200):
    return jsonify({
        "success": True,
        "token": create_access_token(identity=str(user.id)),
        "data": user.to_dict(),
    }), status_code


@bp.route("/register", methods=["POST"])
def register():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password")

    if not all([name, email, password]):
        raise APIError("Please provide name, email and password.", 400)

    if User.query.filter_by(email=email).first():
        raise APIError("User already exists with this email", 400)

    user = User(name=name, email=email)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    current_app.logger.info(f"Registered user {user.id}")
    return token_response(user, 201)


@bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True)
    if not data:
        raise APIError("Missing JSON data", 400)

    email = (data.get("email") or "").strip().lower()
    user = User.query.filter_by(email=email).first()

    if not user or not user.check_password(data.get("password")):
        raise APIError("Invalid credentials", 401)

    return token_response(user)
