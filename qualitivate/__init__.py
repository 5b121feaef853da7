import logging
import uuid

from flask import Flask, jsonify, g, request, has_request_context
from flask.logging import default_handler
from flask_cors import CORS

from qualitivate.config import Config
from qualitivate.extensions import db, jwt, migrate
from qualitivate.errors import register_error_handlers

CORRELATION_HEADER = 'X-Correlation-ID'


class CorrelationIdFilter(logging.Filter):
    """Stamps every record with the current request's correlation id."""

    def filter(self, record):
        if has_request_context():
            record.correlation_id = getattr(g, 'correlation_id', '-')
        elif not hasattr(record, 'correlation_id'):
            record.correlation_id = '-'
        return True


def _configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    app.logger.removeHandler(default_handler)
    if not any(isinstance(f, CorrelationIdFilter) for h in app.logger.handlers for f in h.filters):
        handler = logging.StreamHandler()
        handler.addFilter(CorrelationIdFilter())
        handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s'
        ))
        app.logger.addHandler(handler)
    # Service modules log under qualitivate.*, children of app.logger
    app.logger.setLevel(level)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    _configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)
    CORS(app, origins=app.config.get('CORS_ORIGINS', '*'), expose_headers=[CORRELATION_HEADER])

    @app.before_request
    def assign_correlation_id():
        g.correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())

    @app.after_request
    def echo_correlation_id(response):
        correlation_id = getattr(g, 'correlation_id', None)
        if correlation_id:
            response.headers[CORRELATION_HEADER] = correlation_id
        return response

    # Health check endpoint - register early so it's always available
    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({"status": "ok"}), 200

    # Import models
    from qualitivate.models import (
        Company,
        Site,
        Department,
        User,
        SurveyTemplate,
        TemplateQuestion,
        Survey,
        Question,
        Response,
        Answer,
    )

    # Register blueprints
    from qualitivate.api import auth
    app.register_blueprint(auth.bp, url_prefix='/api/auth')
    from qualitivate.api import companies
    app.register_blueprint(companies.bp, url_prefix='/api/companies')
    from qualitivate.api import sites
    app.register_blueprint(sites.bp, url_prefix='/api/sites')
    from qualitivate.api import departments
    app.register_blueprint(departments.bp, url_prefix='/api/departments')
    from qualitivate.api import users
    app.register_blueprint(users.bp, url_prefix='/api/users')
    from qualitivate.api import templates
    app.register_blueprint(templates.bp, url_prefix='/api/templates')
    from qualitivate.api import surveys
    app.register_blueprint(surveys.bp, url_prefix='/api/surveys')
    from qualitivate.api import responses
    app.register_blueprint(responses.bp, url_prefix='/api/responses')
    from qualitivate.api import analytics
    app.register_blueprint(analytics.bp, url_prefix='/api/analytics')

    # Every protected request reloads the caller; deleted or disabled users are rejected
    @jwt.user_lookup_loader
    def load_user(jwt_header, jwt_data):
        user = db.session.get(User, jwt_data["sub"])
        if user is None or not user.is_active:
            return None
        return user

    # JWT error handlers for clearer responses
    @jwt.user_lookup_error_loader
    def jwt_user_not_found(jwt_header, jwt_data):
        return jsonify({"error": "User not found or inactive"}), 401

    @jwt.unauthorized_loader
    def jwt_missing_token(err):
        return jsonify({"error": "Unauthorized", "details": err}), 401

    @jwt.invalid_token_loader
    def jwt_invalid_token(err):
        return jsonify({"error": "Invalid token", "details": err}), 401

    @jwt.expired_token_loader
    def jwt_expired_token(header, payload):
        return jsonify({"error": "Token expired"}), 401

    register_error_handlers(app)

    from qualitivate.cli import register_commands
    register_commands(app)

    return app
