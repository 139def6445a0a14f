from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from coursemart.errors import APIError, PaymentError
from coursemart.extensions import db
from coursemart.helpers.currency import get_currency, to_minor_units
from coursemart.models import Enrollment, Payment
from coursemart.routes.courses import get_course_or_404
from coursemart.utils.auth import get_current_user
from coursemart.utils.stripe_client import create_payment_intent, retrieve_payment_intent

bp = Blueprint("payments", __name__)

REUSABLE_INTENT_STATUSES = {
    "requires_payment_method",
    "requires_confirmation",
    "requires_action",
    "processing",
    "succeeded",
}


def confirm_course_payment(intent_id, course, user):
    """Check with Stripe that ``intent_id`` paid for ``course`` by ``user``.

    Marks the local Payment row successful (creating it if the intent was made
    elsewhere). Raises PaymentError when the intent does not match; the caller
    commits.
    """
    intent = retrieve_payment_intent(intent_id)

    status = intent.get("status")
    if status != "succeeded":
        raise PaymentError(f"Payment has not completed (status: {status}).")

    metadata = intent.get("metadata") or {}
    if str(metadata.get("course_id")) != str(course.id) or str(metadata.get("user_id")) != str(user.id):
        raise PaymentError("Payment does not match this course.")

    currency = (intent.get("currency") or get_currency()).lower()
    expected = to_minor_units(course.price, currency)
    if intent.get("amount") != expected:
        raise PaymentError("Payment amount does not match the course price.")

    payment = Payment.query.filter_by(reference=intent_id).first()
    if not payment:
        payment = Payment(
            user_id=user.id,
            course_id=course.id,
            amount=expected,
            currency=currency,
            reference=intent_id,
        )
        db.session.add(payment)
    payment.status = "successful"
    return intent


def intent_response(intent, payment, status_code=200):
    return jsonify({
        "clientSecret": intent.get("client_secret"),
        "paymentIntentId": intent.get("id"),
        "status": intent.get("status"),
        "amount": payment.amount,
        "currency": payment.currency,
        "publishableKey": current_app.config.get("STRIPE_PUBLISHABLE_KEY"),
    }), status_code


@bp.route("/config", methods=["GET"])
def payment_config():
    return jsonify({
        "publishableKey": current_app.config.get("STRIPE_PUBLISHABLE_KEY"),
        "currency": get_currency(),
    })


@bp.route("/intent", methods=["POST"])
@jwt_required()
def create_intent():
    """Create (or reuse) a Stripe PaymentIntent for a course."""
    user = get_current_user()
    data = request.get_json(silent=True) or {}
    course_id = data.get("courseId")

    if course_id is None:
        raise APIError("Missing courseId", 400)
    try:
        course_id = int(course_id)
    except (TypeError, ValueError):
        raise APIError("Invalid courseId", 400)

    course = get_course_or_404(course_id)

    if course.price == 0:
        raise APIError("This course is free. Enroll directly.", 400)

    if Enrollment.query.filter_by(user_id=user.id, course_id=course.id).first():
        raise APIError("You are already enrolled in this course.", 400)

    currency = get_currency()
    amount = to_minor_units(course.price, currency)

    # Reuse the user's pending intent for this course so a retry never creates a second charge
    pending = Payment.query.filter_by(
        user_id=user.id, course_id=course.id, status="pending"
    ).first()
    if pending and pending.reference:
        if pending.amount == amount and pending.currency == currency:
            intent = retrieve_payment_intent(pending.reference)
            if intent.get("status") in REUSABLE_INTENT_STATUSES:
                current_app.logger.info(f"Reusing PaymentIntent {pending.reference}")
                return intent_response(intent, pending)
        # price changed or intent cancelled
        pending.status = "failed"

    payment = Payment(
        user_id=user.id,
        course_id=course.id,
        amount=amount,
        currency=currency,
        status="pending",
    )
    db.session.add(payment)
    db.session.flush()

    intent = create_payment_intent(
        amount,
        currency,
        metadata={"course_id": course.id, "user_id": user.id},
        idempotency_key=f"course-{course.id}-user-{user.id}-payment-{payment.id}",
    )
    payment.reference = intent["id"]
    db.session.commit()

    return intent_response(intent, payment, 201)
