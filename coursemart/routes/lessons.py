from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from coursemart.errors import APIError
from coursemart.extensions import db
from coursemart.models import VideoLesson
from coursemart.routes.courses import get_course_or_404
from coursemart.utils.auth import role_required

bp = Blueprint("lessons", __name__)


# List lessons for a course
@bp.route("/<int:course_id>/lessons", methods=["GET"])
@jwt_required()
def list_lessons(course_id):
    course = get_course_or_404(course_id)
    return jsonify([lesson.to_dict() for lesson in course.lessons])


# Admin create a lesson
@bp.route("/<int:course_id>/lessons", methods=["POST"])
@role_required("admin")
def create_lesson(course_id):
    course = get_course_or_404(course_id)
    data = request.get_json(silent=True) or {}

    if not data.get("title") or not data.get("url"):
        raise APIError("Please provide a title and url for the lesson.", 400)

    lesson = VideoLesson(
        course=course,
        title=data["title"],
        url=data["url"],
        cover_image=data.get("coverImage") or "",
        description=data.get("description") or "",
        duration=data.get("duration") or 0,
        priority=data.get("priority") or 0,
    )
    db.session.add(lesson)
    db.session.commit()
    return jsonify(lesson.to_dict()), 201
