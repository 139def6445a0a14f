"""
Shared pytest fixtures: an app on in-memory SQLite, users with tokens, and a course factory.
Stripe is never reached; tests patch coursemart.utils.stripe_client.requests.
"""

from unittest.mock import Mock

import pytest
from flask_jwt_extended import create_access_token

from coursemart import create_app
from coursemart.config import TestingConfig
from coursemart.extensions import db
from coursemart.models import Course, CourseVideo, User


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make_user(role="user", password="secret123", **fields):
        counter["n"] += 1
        user = User(
            name=fields.pop("name", f"User {counter['n']}"),
            email=fields.pop("email", f"user{counter['n']}@example.com"),
            role=role,
            **fields,
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


def headers_for(user):
    token = create_access_token(identity=str(user.id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(role="admin", name="Admin", email="admin@example.com")


@pytest.fixture
def user_headers(user):
    return headers_for(user)


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture
def make_course(app):
    def _make_course(**fields):
        videos = fields.pop("videos", [])
        course = Course(
            title=fields.pop("title", "Python Basics"),
            description=fields.pop("description", "Learn Python from scratch"),
            instructor=fields.pop("instructor", "Ada"),
            price=fields.pop("price", 49.99),
            image=fields.pop("image", "https://cdn.example.com/python.png"),
            **fields,
        )
        course.videos = [CourseVideo.from_payload(v) for v in videos]
        db.session.add(course)
        db.session.commit()
        return course

    return _make_course


@pytest.fixture
def free_course(make_course):
    return make_course(title="Free Intro", price=0)


@pytest.fixture
def paid_course(make_course):
    return make_course(title="Advanced Flask", price=49.99)


@pytest.fixture
def stripe_response():
    """Build a fake requests.Response for the Stripe client."""

    def _response(payload, status_code=200):
        response = Mock()
        response.status_code = status_code
        response.json.return_value = payload
        return response

    return _response


@pytest.fixture
def course_payload():
    return {
        "title": "Data Science 101",
        "description": "Pandas, plots and statistics",
        "instructor": "Grace",
        "price": 19.5,
        "image": "https://cdn.example.com/ds.jpg",
    }


@pytest.fixture
def auth_headers(app):
    return headers_for
