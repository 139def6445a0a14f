from flask import Flask
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .errors import register_error_handlers
from .extensions import db, migrate, jwt
from . import models  # noqa: F401  register tables with SQLAlchemy
from .commands import create_admin
from .routes import auth, users, courses, lessons, enrollments, payment, ads, reviews


def create_app(config_class=Config):
    app = Flask(__name__)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    CORS(app, resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})
    app.url_map.strict_slashes = False

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    register_error_handlers(app)
    app.cli.add_command(create_admin)

    # Register blueprints
    app.register_blueprint(auth.bp, url_prefix="/api/auth")
    app.register_blueprint(users.bp, url_prefix="/api/users")
    app.register_blueprint(courses.bp, url_prefix="/api/courses")
    app.register_blueprint(lessons.bp, url_prefix="/api/courses")
    app.register_blueprint(enrollments.bp, url_prefix="/api/enrollments")
    app.register_blueprint(payment.bp, url_prefix="/api/payments")
    app.register_blueprint(ads.bp, url_prefix="/api/ads")
    app.register_blueprint(reviews.bp, url_prefix="/api/reviews")

    @app.route("/api/health")
    def health():
        return {"status": "ok"}

    return app
