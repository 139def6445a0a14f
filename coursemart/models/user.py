from datetime import datetime

from sqlalchemy.orm import validates
from werkzeug.security import generate_password_hash, check_password_hash

from coursemart.errors import ValidationError
from coursemart.extensions import db
from coursemart.helpers.formatting import iso
from coursemart.models.course import check_image_url

USER_ROLES = ("user", "admin")


class User(db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.Enum(*USER_ROLES, name="user_role"), nullable=False, default="user")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Profile fields
    phone = db.Column(db.String(50), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    profile_image = db.Column(db.String(500), nullable=True)
    cover_image = db.Column(db.String(500), nullable=True)

    enrollments = db.relationship("Enrollment", back_populates="student", cascade="all, delete-orphan")
    reviews = db.relationship("Review", back_populates="user", cascade="all, delete-orphan")
    payments = db.relationship("Payment", back_populates="user", cascade="all, delete-orphan")

    @validates("email")
    def validate_email(self, key, value):
        value = (value or "").strip().lower()
        if "@" not in value:
            raise ValidationError("Please add a valid email.")
        return value

    @validates("role")
    def validate_role(self, key, value):
        if value not in USER_ROLES:
            raise ValidationError(f"Invalid role '{value}'.")
        return value

    @validates("profile_image", "cover_image")
    def validate_images(self, key, value):
        return check_image_url(value, required=False) or None

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return bool(password) and check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == "admin"

    def to_dict(self):
        return {
            "_id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "phone": self.phone,
            "address": self.address,
            "profileImage": self.profile_image,
            "coverImage": self.cover_image,
            "createdAt": iso(self.created_at),
        }
