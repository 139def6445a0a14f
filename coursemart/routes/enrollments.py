from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from sqlalchemy.exc import IntegrityError

from coursemart.errors import APIError, NotFoundError, PaymentError, ValidationError
from coursemart.extensions import db
from coursemart.models import Enrollment, LessonProgress, VideoLesson
from coursemart.routes.courses import get_course_or_404
from coursemart.routes.payment import confirm_course_payment
from coursemart.utils.auth import get_current_user

bp = Blueprint("enrollments", __name__)


def get_enrollment(user_id, course_id):
    return Enrollment.query.filter_by(user_id=user_id, course_id=course_id).first()


def build_lessons_progress(items, course_id):
    if not isinstance(items, list):
        raise ValidationError("lessonsProgress must be a list.")

    lesson_ids = {
        lesson_id
        for (lesson_id,) in db.session.query(VideoLesson.id).filter_by(course_id=course_id)
    }

    entries = []
    for item in items:
        if not isinstance(item, dict) or item.get("lessonId") is None:
            raise ValidationError("Each lessonsProgress entry needs a lessonId.")
        try:
            lesson_id = int(item["lessonId"])
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid lessonId '{item['lessonId']}'.")
        if lesson_id not in lesson_ids:
            raise ValidationError(f"Lesson {lesson_id} does not belong to this course.")

        entries.append(LessonProgress(
            lesson_id=lesson_id,
            watched_duration=item.get("watchedDuration") or 0,
            completed=bool(item.get("completed", False)),
        ))
    return entries


@bp.route("/<int:course_id>", methods=["POST"])
@jwt_required()
def enroll_in_course(course_id):
    user = get_current_user()
    course = get_course_or_404(course_id)
    data = request.get_json(silent=True) or {}
    intent_id = (data.get("paymentIntentId") or "").strip() or None

    existing = get_enrollment(user.id, course.id)
    if existing:
        # Client retried after a successful charge: hand back the same enrollment
        if intent_id and existing.transaction_id == intent_id:
            return jsonify({
                "success": True,
                "message": "Already enrolled with this payment",
                "enrollment": existing.to_dict(),
            }), 200
        raise APIError("You are already enrolled in this course.", 400)

    if course.price == 0:
        enrollment = Enrollment(
            user_id=user.id,
            course_id=course.id,
            payment_status="not_required",
            price_paid=0,
        )
    else:
        if not intent_id:
            raise PaymentError("Payment is required to enroll in this course.")
        if Enrollment.query.filter_by(transaction_id=intent_id).first():
            raise APIError("This payment has already been used for an enrollment.", 400)

        confirm_course_payment(intent_id, course, user)
        enrollment = Enrollment(
            user_id=user.id,
            course_id=course.id,
            payment_status="paid",
            payment_method="card",
            transaction_id=intent_id,
            price_paid=course.price,
        )

    db.session.add(enrollment)
    try:
        db.session.commit()
    except IntegrityError:
        # a concurrent request enrolled the same user first
        db.session.rollback()
        if Enrollment.query.filter_by(user_id=user.id, course_id=course.id).first():
            raise APIError("You are already enrolled in this course.", 400)
        raise
    current_app.logger.info(
        f"User {user.id} enrolled in course {course.id} ({enrollment.payment_status})"
    )

    return jsonify({
        "success": True,
        "message": "Enrollment successful",
        "enrollment": enrollment.to_dict(),
    }), 201


@bp.route("/<int:course_id>", methods=["DELETE"])
@jwt_required()
def unenroll_from_course(course_id):
    user = get_current_user()
    enrollment = get_enrollment(user.id, course_id)
    if not enrollment:
        raise NotFoundError("You are not enrolled in this course.")

    current_app.logger.info(f"Removing lesson progress for enrollment {enrollment.id}")
    enrollment.clear_lesson_progress()
    db.session.flush()

    db.session.delete(enrollment)
    db.session.commit()

    return jsonify({"success": True, "message": "Successfully unenrolled"}), 200


@bp.route("/my", methods=["GET"])
@jwt_required()
def get_my_enrollments():
    user = get_current_user()
    enrollments = (
        Enrollment.query.filter_by(user_id=user.id)
        .order_by(Enrollment.enrolled_at.desc(), Enrollment.id.desc())
        .all()
    )
    return jsonify({
        "success": True,
        "count": len(enrollments),
        "enrollments": [e.to_dict(populate_course=True) for e in enrollments],
    })


@bp.route("/<int:course_id>", methods=["PATCH"])
@jwt_required()
def update_enrollment(course_id):
    user = get_current_user()
    enrollment = get_enrollment(user.id, course_id)
    if not enrollment:
        raise NotFoundError("Enrollment not found for this user/course.")

    data = request.get_json(silent=True) or {}

    # Partial update: only fields present in the body change
    if data.get("progress") is not None:
        enrollment.progress = data["progress"]
    if data.get("status"):
        enrollment.status = data["status"]
    if data.get("lastAccessed"):
        enrollment.last_accessed = data["lastAccessed"]
    if data.get("completionDate"):
        enrollment.completion_date = data["completionDate"]
    if data.get("certificateUrl"):
        enrollment.certificate_url = data["certificateUrl"]
    if data.get("lessonsProgress") is not None:
        enrollment.lessons_progress = build_lessons_progress(data["lessonsProgress"], course_id)
    if data.get("notes") is not None:
        enrollment.notes = data["notes"]

    db.session.commit()

    return jsonify({
        "success": True,
        "message": "Enrollment updated",
        "enrollment": enrollment.to_dict(),
    })
