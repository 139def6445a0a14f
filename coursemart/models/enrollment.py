from datetime import datetime

from sqlalchemy.orm import validates

from coursemart.errors import ValidationError
from coursemart.extensions import db
from coursemart.helpers.formatting import iso, parse_datetime

PAYMENT_STATUSES = ("not_required", "paid", "pending", "refunded")
ENROLLMENT_STATUSES = ("active", "completed", "cancelled", "paused")


class Enrollment(db.Model):
    __tablename__ = "enrollment"
    __table_args__ = (
        db.UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey("course.id", ondelete="CASCADE"), nullable=False)
    enrolled_at = db.Column(db.DateTime, default=datetime.utcnow)

    payment_status = db.Column(
        db.Enum(*PAYMENT_STATUSES, name="payment_status"),
        nullable=False,
        default="not_required",
    )
    payment_method = db.Column(db.String(50), nullable=False, default="")
    # PaymentIntent id for paid enrollments; unique so a replayed intent cannot enroll twice
    transaction_id = db.Column(db.String(120), unique=True, nullable=True)
    price_paid = db.Column(db.Float, nullable=False, default=0)
    discount_code = db.Column(db.String(50), nullable=False, default="")

    progress = db.Column(db.Float, nullable=False, default=0)  # percentage
    status = db.Column(
        db.Enum(*ENROLLMENT_STATUSES, name="enrollment_status"),
        nullable=False,
        default="active",
    )
    last_accessed = db.Column(db.DateTime, default=datetime.utcnow)
    completion_date = db.Column(db.DateTime, nullable=True)
    certificate_url = db.Column(db.String(500), nullable=False, default="")
    notes = db.Column(db.Text, nullable=False, default="")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    student = db.relationship("User", back_populates="enrollments")
    course = db.relationship("Course", back_populates="enrollments")
    lessons_progress = db.relationship(
        "LessonProgress",
        back_populates="enrollment",
        cascade="all, delete-orphan",
        order_by="LessonProgress.id",
    )

    @validates("progress")
    def validate_progress(self, key, value):
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise ValidationError("Progress must be a number.")
        if not 0 <= value <= 100:
            raise ValidationError("Progress must be between 0 and 100.")
        return value

    @validates("status")
    def validate_status(self, key, value):
        if value not in ENROLLMENT_STATUSES:
            raise ValidationError(
                f"Invalid status '{value}'. Use one of: {', '.join(ENROLLMENT_STATUSES)}."
            )
        return value

    @validates("last_accessed", "completion_date")
    def validate_dates(self, key, value):
        return parse_datetime(value, key)

    @validates("payment_status")
    def validate_payment_status(self, key, value):
        if value not in PAYMENT_STATUSES:
            raise ValidationError(f"Invalid payment status '{value}'.")
        return value

    def clear_lesson_progress(self):
        self.lessons_progress = []

    def to_dict(self, populate_course=False):
        if populate_course and self.course is not None:
            course = {
                "_id": self.course.id,
                "title": self.course.title,
                "image": self.course.image,
                "instructor": self.course.instructor,
                "price": self.course.price,
            }
        else:
            course = self.course_id

        return {
            "_id": self.id,
            "user": self.user_id,
            "course": course,
            "enrolledAt": iso(self.enrolled_at),
            "paymentStatus": self.payment_status,
            "paymentMethod": self.payment_method,
            "transactionId": self.transaction_id or "",
            "pricePaid": self.price_paid,
            "discountCode": self.discount_code,
            "progress": self.progress,
            "status": self.status,
            "lastAccessed": iso(self.last_accessed),
            "completionDate": iso(self.completion_date),
            "certificateUrl": self.certificate_url,
            "lessonsProgress": [lp.to_dict() for lp in self.lessons_progress],
            "notes": self.notes,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


class LessonProgress(db.Model):
    __tablename__ = "lesson_progress"

    id = db.Column(db.Integer, primary_key=True)
    enrollment_id = db.Column(
        db.Integer, db.ForeignKey("enrollment.id", ondelete="CASCADE"), nullable=False
    )
    lesson_id = db.Column(
        db.Integer, db.ForeignKey("video_lesson.id", ondelete="CASCADE"), nullable=False
    )
    watched_duration = db.Column(db.Float, nullable=False, default=0)
    completed = db.Column(db.Boolean, nullable=False, default=False)

    enrollment = db.relationship("Enrollment", back_populates="lessons_progress")
    lesson = db.relationship("VideoLesson")

    @validates("watched_duration")
    def validate_watched_duration(self, key, value):
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise ValidationError("watchedDuration must be a number.")
        if value < 0:
            raise ValidationError("watchedDuration cannot be negative.")
        return value

    def to_dict(self):
        return {
            "lessonId": self.lesson_id,
            "watchedDuration": self.watched_duration,
            "completed": self.completed,
        }


class Payment(db.Model):
    __tablename__ = "payment"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey("course.id", ondelete="CASCADE"), nullable=False)
    amount = db.Column(db.Integer, nullable=False)  # minor units (cents)
    currency = db.Column(db.String(10), nullable=False, default="usd")
    provider = db.Column(db.String(20), nullable=False, default="stripe")
    reference = db.Column(db.String(120), unique=True, nullable=True)  # PaymentIntent id
    status = db.Column(
        db.Enum("pending", "successful", "failed", name="payment_record_status"),
        nullable=False,
        default="pending",
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", back_populates="payments")
    course = db.relationship("Course", back_populates="payments")

    def to_dict(self):
        return {
            "_id": self.id,
            "user": self.user_id,
            "course": self.course_id,
            "amount": self.amount,
            "currency": self.currency,
            "provider": self.provider,
            "reference": self.reference,
            "status": self.status,
            "createdAt": iso(self.created_at),
        }
