import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS
from marshmallow import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from fitcoach.commands import register_commands
from fitcoach.config import config
from fitcoach.errors import InvalidArgument, ServiceError, Unauthenticated, UpstreamUnavailable
from fitcoach.extensions import db, jwt, ma, migrate


def configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def register_error_handlers(app):
    def render(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(ServiceError)
    def handle_service_error(error):
        db.session.rollback()
        return render(error)

    @app.errorhandler(ValidationError)
    def handle_validation_error(error):
        db.session.rollback()
        return render(InvalidArgument("Invalid request payload", payload={"errors": error.messages}))

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        db.session.rollback()
        logging.error(f"Database error: {error}")
        return render(UpstreamUnavailable("Data store unavailable, retry the request"))

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({"error": error.name.lower().replace(" ", "_"), "msg": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        logging.exception(f"Unhandled error: {error}")
        return jsonify({"error": "internal_error", "msg": "Internal server error"}), 500


def register_jwt_callbacks():
    def unauthenticated(message):
        return jsonify(Unauthenticated(message).to_dict()), 401

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return unauthenticated("Token has expired")

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return unauthenticated(f"Invalid token: {error}")

    @jwt.unauthorized_loader
    def unauthorized_callback(error):
        return unauthenticated(error)


def create_app(config_name=None):
    config_name = config_name or os.getenv("FLASK_CONFIG", "default")

    app = Flask(__name__)
    app.config.from_object(config[config_name])
    configure_logging(app)

    db.init_app(app)
    ma.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)
    CORS(app, resources={r"/*": {
        "origins": app.config["CORS_ORIGINS"],
        "allow_headers": ["Content-Type", "Authorization"],
        "methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    }}, supports_credentials=True)

    register_jwt_callbacks()
    register_error_handlers(app)
    register_commands(app)

    from fitcoach.routes.auth import auth_bp
    from fitcoach.routes.coach import coach_bp
    from fitcoach.routes.workout_day import workout_day_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(coach_bp, url_prefix="/coach")
    app.register_blueprint(workout_day_bp, url_prefix="/workout-day")

    app.logger.info(f"fitcoach started with '{config_name}' config")
    return app
