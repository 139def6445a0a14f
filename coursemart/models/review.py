from datetime import datetime

from sqlalchemy.orm import validates

from coursemart.errors import ValidationError
from coursemart.extensions import db
from coursemart.helpers.formatting import iso

REVIEWABLE_MODELS = ("Course", "Product")


class Review(db.Model):
    """A rating left by a user on a reviewable record.

    ``reviewable_id`` has no foreign key: the target table depends on
    ``reviewable_model``. Course reviews are removed by the course's
    delete hook.
    """

    __tablename__ = "review"
    __table_args__ = (
        db.UniqueConstraint(
            "user_id", "reviewable_id", "reviewable_model", name="uq_review_user_reviewable"
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    reviewable_id = db.Column(db.Integer, nullable=False, index=True)
    reviewable_model = db.Column(
        db.Enum(*REVIEWABLE_MODELS, name="reviewable_model"), nullable=False
    )
    rating = db.Column(db.Float, nullable=False)
    comment = db.Column(db.Text, nullable=False, default="")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", back_populates="reviews")

    @validates("rating")
    def validate_rating(self, key, value):
        if isinstance(value, bool):
            raise ValidationError("Rating must be a number between 1 and 5.")
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise ValidationError("Rating must be a number between 1 and 5.")
        if not 1 <= value <= 5:
            raise ValidationError("Rating must be a number between 1 and 5.")
        return value

    @validates("reviewable_model")
    def validate_reviewable_model(self, key, value):
        if value not in REVIEWABLE_MODELS:
            raise ValidationError(f"Unknown reviewable type '{value}'.")
        return value

    def to_dict(self):
        return {
            "_id": self.id,
            "user": {
                "_id": self.user_id,
                "name": self.user.name if self.user else None,
                "profileImage": self.user.profile_image if self.user else None,
            },
            "reviewable": self.reviewable_id,
            "reviewableModel": self.reviewable_model,
            "rating": self.rating,
            "comment": self.comment,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
