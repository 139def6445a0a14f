import traceback

from flask import jsonify, current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from coursemart.extensions import db, jwt


class APIError(Exception):
    """Error raised by views and models; rendered as {"success": false, "message": ...}."""

    status_code = 400

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        body = dict(self.payload or {})
        body["success"] = False
        body["message"] = self.message
        return body


class ValidationError(APIError):
    status_code = 400


class NotFoundError(APIError):
    status_code = 404


class PaymentError(APIError):
    status_code = 402


class PaymentGatewayError(APIError):
    status_code = 502


def _error_response(message, status_code, payload=None, exc=None):
    body = dict(payload or {})
    body["success"] = False
    body["message"] = message
    if exc is not None and current_app.config.get("DEBUG"):
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return jsonify(body), status_code


def register_error_handlers(app):
    @app.errorhandler(APIError)
    def handle_api_error(err):
        db.session.rollback()
        return _error_response(err.message, err.status_code, err.payload, err)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err):
        db.session.rollback()
        current_app.logger.warning(f"Integrity error: {err.orig}")
        return _error_response("Duplicate or invalid record.", 400, exc=err)

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        return _error_response(err.description, err.code)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err):
        db.session.rollback()
        current_app.logger.exception(f"Unhandled error: {err}")
        return _error_response("Server Error", 500, exc=err)


@jwt.unauthorized_loader
def missing_token(reason):
    return jsonify({"success": False, "message": f"Not authorized, {reason}"}), 401


@jwt.invalid_token_loader
def invalid_token(reason):
    return jsonify({"success": False, "message": f"Not authorized, {reason}"}), 401


@jwt.expired_token_loader
def expired_token(jwt_header, jwt_payload):
    return jsonify({"success": False, "message": "Not authorized, token expired"}), 401
