from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from coursemart.errors import APIError, NotFoundError
from coursemart.extensions import db
from coursemart.models import Course, Review
from coursemart.utils.auth import get_current_user

bp = Blueprint("reviews", __name__)

# reviewable types that have a catalog in this service
REVIEWABLE_TYPES = {"Course": Course}


def resolve_reviewable(reviewable_type, reviewable_id):
    model = REVIEWABLE_TYPES.get(reviewable_type)
    if model is None:
        raise APIError(f"Reviews for '{reviewable_type}' are not supported.", 400)

    try:
        reviewable_id = int(reviewable_id)
    except (TypeError, ValueError):
        raise APIError("Invalid reviewableId", 400)

    target = db.session.get(model, reviewable_id)
    if not target:
        raise NotFoundError(f"{reviewable_type} not found.")
    return target


def refresh_ratings(reviewable_type, reviewable_id):
    if reviewable_type == "Course":
        Course.calculate_ratings(reviewable_id)


@bp.route("", methods=["POST"])
@jwt_required()
def add_or_update_review():
    user = get_current_user()
    data = request.get_json(silent=True) or {}

    reviewable_type = data.get("reviewableType") or "Course"
    rating = data.get("rating")
    if data.get("reviewableId") is None or rating is None:
        raise APIError("Please provide reviewableId and rating.", 400)

    target = resolve_reviewable(reviewable_type, data["reviewableId"])

    review = Review.query.filter_by(
        user_id=user.id, reviewable_id=target.id, reviewable_model=reviewable_type
    ).first()
    created = review is None
    if created:
        review = Review(user_id=user.id, reviewable_id=target.id, reviewable_model=reviewable_type)
        db.session.add(review)

    review.rating = rating
    review.comment = data.get("comment") or ""

    db.session.flush()
    refresh_ratings(reviewable_type, target.id)
    db.session.commit()

    return jsonify({
        "success": True,
        "message": "Review added" if created else "Review updated",
        "data": review.to_dict(),
    }), 201 if created else 200


@bp.route("/<reviewable_type>/<int:reviewable_id>", methods=["GET"])
def get_reviews(reviewable_type, reviewable_id):
    target = resolve_reviewable(reviewable_type, reviewable_id)
    reviews = (
        Review.query.filter_by(reviewable_id=target.id, reviewable_model=reviewable_type)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
    return jsonify({
        "success": True,
        "count": len(reviews),
        "data": [r.to_dict() for r in reviews],
    })


@bp.route("/<int:review_id>", methods=["DELETE"])
@jwt_required()
def delete_review(review_id):
    user = get_current_user()
    review = db.session.get(Review, review_id)
    if not review:
        raise NotFoundError("Review not found")
    if review.user_id != user.id and not user.is_admin:
        raise APIError("Not authorized to delete this review", 403)

    reviewable_type, reviewable_id = review.reviewable_model, review.reviewable_id
    db.session.delete(review)
    db.session.flush()
    refresh_ratings(reviewable_type, reviewable_id)
    db.session.commit()

    return jsonify({"success": True, "data": {"message": "Review deleted"}})
