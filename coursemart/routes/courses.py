from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from sqlalchemy import or_

from coursemart.errors import APIError, NotFoundError, ValidationError
from coursemart.extensions import db
from coursemart.helpers.formatting import parse_bool
from coursemart.models import Course, CourseVideo
from coursemart.utils.auth import role_required

bp = Blueprint("courses", __name__)

REQUIRED_FIELDS = ("title", "description", "instructor", "price", "image")


def get_pagination(default_limit):
    """Read ?page=&limit=; missing or non-numeric values fall back to the defaults."""
    page = request.args.get("page", 1, type=int)
    limit = request.args.get("limit", default_limit, type=int)
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive integers.")
    return page, limit


def get_course_or_404(course_id):
    course = db.session.get(Course, course_id)
    if not course:
        raise NotFoundError("Course not found.")
    return course


def build_videos(videos):
    if videos is None:
        return []
    if not isinstance(videos, list):
        raise ValidationError("videos must be a list.")
    return [CourseVideo.from_payload(v) for v in videos]


def create_from_payload(data, featured=None):
    # price 0 is a valid (free) course, so only None counts as missing
    missing = [f for f in REQUIRED_FIELDS if data.get(f) in (None, "")]
    if missing:
        raise APIError("Please provide all required fields.", 400)

    is_featured = parse_bool(data.get("isFeatured"), "isFeatured") if featured is None else featured

    course = Course(
        title=data["title"],
        description=data["description"],
        instructor=data["instructor"],
        price=data["price"],
        image=data["image"],
        rating=data.get("rating") or 0,
        reviews=data.get("reviews") or 0,
        is_featured=is_featured,
        short_video_link=(data.get("shortVideoLink") or "") if is_featured else "",
    )
    course.videos = build_videos(data.get("videos"))

    db.session.add(course)
    db.session.commit()
    current_app.logger.info(f"Created course {course.id} (featured={course.is_featured})")
    return course


@bp.route("", methods=["GET"])
@jwt_required()
def list_courses():
    page, limit = get_pagination(default_limit=10)
    courses = (
        Course.query.order_by(Course.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return jsonify([c.to_summary() for c in courses])


@bp.route("", methods=["POST"])
@role_required("admin")
def create_course():
    data = request.get_json(silent=True) or {}
    course = create_from_payload(data)
    return jsonify(course.to_dict()), 201


@bp.route("/featured", methods=["POST"])
@role_required("admin")
def create_featured_course():
    data = request.get_json(silent=True) or {}
    course = create_from_payload(data, featured=True)
    return jsonify(course.to_dict()), 201


@bp.route("/featuredreels", methods=["GET"])
@jwt_required()
def featured_reels():
    page, limit = get_pagination(default_limit=5)
    reels = (
        Course.query.filter_by(is_featured=True)
        .order_by(Course.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return jsonify([c.to_reel() for c in reels])


@bp.route("/search", methods=["GET"])
@jwt_required()
def search_courses():
    query = (request.args.get("query") or "").strip()
    if not query:
        return jsonify([])

    # % and _ in the query are literal characters
    courses = Course.query.filter(
        or_(
            Course.title.icontains(query, autoescape=True),
            Course.description.icontains(query, autoescape=True),
        )
    ).all()

    result = []
    for c in courses:
        item = c.to_summary()
        item["shortVideoLink"] = c.short_video_link
        result.append(item)
    return jsonify(result)


@bp.route("/admin", methods=["GET"])
@role_required("admin")
def list_courses_admin():
    courses = Course.query.order_by(Course.id).all()
    return jsonify([c.to_dict() for c in courses])


@bp.route("/<int:course_id>", methods=["GET"])
@jwt_required()
def get_course(course_id):
    course = get_course_or_404(course_id)
    return jsonify(course.to_dict())


@bp.route("/<int:course_id>", methods=["PUT"])
@role_required("admin")
def update_course(course_id):
    course = get_course_or_404(course_id)
    data = request.get_json(silent=True) or {}

    for field in ("title", "description", "instructor", "image"):
        if data.get(field):
            setattr(course, field, data[field])

    if data.get("price") is not None:
        course.price = data["price"]
    if data.get("videos") is not None:
        course.videos = build_videos(data["videos"])
    if data.get("rating") is not None:
        course.rating = data["rating"]
    if data.get("reviews") is not None:
        course.reviews = data["reviews"]
    if data.get("isFeatured") is not None:
        course.is_featured = parse_bool(data["isFeatured"], "isFeatured")

    if not course.is_featured:
        course.short_video_link = ""
    elif "shortVideoLink" in data:
        course.short_video_link = data["shortVideoLink"] or ""

    db.session.commit()
    return jsonify(course.to_dict())


@bp.route("/<int:course_id>", methods=["DELETE"])
@role_required("admin")
def delete_course(course_id):
    course = get_course_or_404(course_id)
    db.session.delete(course)
    db.session.commit()
    current_app.logger.info(f"Deleted course {course_id}")
    return jsonify({"message": "Course removed successfully."}), 200
