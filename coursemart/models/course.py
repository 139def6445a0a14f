import re
from datetime import datetime

from flask import current_app
from sqlalchemy import event, func
from sqlalchemy.orm import Session, validates

from coursemart.errors import ValidationError
from coursemart.extensions import db
from coursemart.helpers.formatting import iso

VIDEO_URL_RE = re.compile(r"^(https?://.*\.(?:mp4|webm|ogg))$", re.IGNORECASE)
IMAGE_URL_RE = re.compile(r"^(https?://.*\.(?:png|jpg|jpeg|gif|svg|webp))$", re.IGNORECASE)


def check_video_url(value, required=True):
    if not value:
        if required:
            raise ValidationError("Please add a video URL.")
        return ""
    if not VIDEO_URL_RE.match(value):
        raise ValidationError("Please enter a valid video URL.")
    return value


def check_image_url(value, required=True):
    if not value:
        if required:
            raise ValidationError("Please add an image URL.")
        return ""
    if not IMAGE_URL_RE.match(value):
        raise ValidationError("Please enter a valid image URL.")
    return value


class Course(db.Model):
    __tablename__ = "course"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    instructor = db.Column(db.String(120), nullable=False)
    price = db.Column(db.Float, nullable=False)
    image = db.Column(db.String(500), nullable=False)
    rating = db.Column(db.Float, nullable=False, default=0)
    reviews = db.Column(db.Integer, nullable=False, default=0)
    is_featured = db.Column(db.Boolean, nullable=False, default=False)
    short_video_link = db.Column(db.String(500), nullable=False, default="")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    videos = db.relationship(
        "CourseVideo",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by=lambda: [CourseVideo.priority, CourseVideo.id],
    )
    lessons = db.relationship(
        "VideoLesson",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by=lambda: [VideoLesson.priority, VideoLesson.id],
    )
    enrollments = db.relationship("Enrollment", back_populates="course", cascade="all, delete-orphan")
    payments = db.relationship("Payment", back_populates="course", cascade="all, delete-orphan")

    @validates("title", "description", "instructor")
    def validate_text(self, key, value):
        if not value or not str(value).strip():
            raise ValidationError(f"Please add a course {key}.")
        return value

    @validates("price")
    def validate_price(self, key, value):
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise ValidationError("Please add a price.")
        if value < 0:
            raise ValidationError("Price must be a positive number.")
        return value

    @validates("image")
    def validate_image(self, key, value):
        return check_image_url(value)

    @validates("short_video_link")
    def validate_short_video_link(self, key, value):
        return check_video_url(value, required=False)

    def sort_videos(self):
        # list.sort is stable, so equal priorities keep insertion order
        self.videos.sort(key=lambda v: v.priority or 0)

    @classmethod
    def calculate_ratings(cls, course_id):
        """Recompute rating and review count from the course's reviews.

        Writes through the current session; the caller commits.
        """
        from coursemart.models.review import Review

        current_app.logger.info(f"Calculating ratings for course {course_id}")
        average, total = (
            db.session.query(func.avg(Review.rating), func.count(Review.id))
            .filter(Review.reviewable_id == course_id, Review.reviewable_model == "Course")
            .one()
        )

        course = db.session.get(cls, course_id)
        if not course:
            return None

        if total:
            course.rating = float(average)
            course.reviews = int(total)
        else:
            course.rating = 0
            course.reviews = 0
        return course

    def to_summary(self):
        return {
            "_id": self.id,
            "title": self.title,
            "description": self.description,
            "image": self.image,
            "rating": self.rating,
            "reviews": self.reviews,
            "isFeatured": self.is_featured,
        }

    def to_reel(self):
        return {
            "_id": self.id,
            "title": self.title,
            "shortVideoLink": self.short_video_link,
            "image": self.image,
        }

    def to_dict(self):
        return {
            "_id": self.id,
            "title": self.title,
            "description": self.description,
            "instructor": self.instructor,
            "price": self.price,
            "image": self.image,
            "videos": [v.to_dict() for v in self.videos],
            "rating": self.rating,
            "reviews": self.reviews,
            "isFeatured": self.is_featured,
            "shortVideoLink": self.short_video_link,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


class CourseVideo(db.Model):
    __tablename__ = "course_video"

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey("course.id", ondelete="CASCADE"), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    url = db.Column(db.String(500), nullable=False)
    cover_image = db.Column(db.String(500), nullable=False, default="")
    description = db.Column(db.Text, nullable=False, default="")
    duration = db.Column(db.Float, nullable=False, default=0)  # seconds
    priority = db.Column(db.Integer, nullable=False, default=0)  # lower plays first

    course = db.relationship("Course", back_populates="videos")

    @validates("title")
    def validate_title(self, key, value):
        if not value:
            raise ValidationError("Please add a video title.")
        return value

    @validates("url")
    def validate_url(self, key, value):
        return check_video_url(value)

    @validates("cover_image")
    def validate_cover_image(self, key, value):
        return check_image_url(value, required=False)

    @classmethod
    def from_payload(cls, data):
        if not isinstance(data, dict):
            raise ValidationError("Each video must be an object.")
        return cls(
            title=data.get("title"),
            url=data.get("url"),
            cover_image=data.get("coverImage") or "",
            description=data.get("description") or "",
            duration=data.get("duration") or 0,
            priority=data.get("priority") or 0,
        )

    def to_dict(self):
        return {
            "title": self.title,
            "url": self.url,
            "coverImage": self.cover_image,
            "description": self.description,
            "duration": self.duration,
            "priority": self.priority,
        }


class VideoLesson(db.Model):
    __tablename__ = "video_lesson"

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey("course.id", ondelete="CASCADE"), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    url = db.Column(db.String(500), nullable=False)
    cover_image = db.Column(db.String(500), nullable=False, default="")
    description = db.Column(db.Text, nullable=False, default="")
    duration = db.Column(db.Float, nullable=False, default=0)
    priority = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    course = db.relationship("Course", back_populates="lessons")

    @validates("title")
    def validate_title(self, key, value):
        if not value:
            raise ValidationError("Please add a video title.")
        return value

    @validates("url")
    def validate_url(self, key, value):
        return check_video_url(value)

    @validates("cover_image")
    def validate_cover_image(self, key, value):
        return check_image_url(value, required=False)

    def to_dict(self):
        return {
            "_id": self.id,
            "title": self.title,
            "url": self.url,
            "coverImage": self.cover_image,
            "description": self.description,
            "duration": self.duration,
            "priority": self.priority,
            "course": self.course_id,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


@event.listens_for(Session, "before_flush")
def sort_course_videos(session, flush_context, instances):
    for obj in list(session.new) + list(session.dirty):
        if isinstance(obj, Course):
            obj.sort_videos()
        elif isinstance(obj, CourseVideo) and obj.course is not None:
            obj.course.sort_videos()


@event.listens_for(Course, "before_delete")
def delete_course_reviews(mapper, connection, target):
    from coursemart.models.review import Review

    current_app.logger.info(f"Cascade delete: removing reviews for course {target.id}")
    connection.execute(
        Review.__table__.delete().where(
            Review.__table__.c.reviewable_id == target.id,
            Review.__table__.c.reviewable_model == "Course",
        )
    )
