"""
Error taxonomy raised by the service layer and the handlers that turn it into
JSON responses.

Services never build HTTP responses themselves: they raise one of the classes
below and ``register_error_handlers`` maps it to ``{"error": ...}`` with the
matching status code.
"""
from flask import jsonify, current_app, g
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from qualitivate.extensions import db


class QualitivateError(Exception):
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None, details=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self):
        payload = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class NotFoundError(QualitivateError):
    status_code = 404
    default_message = 'Not found'


class AuthorizationError(QualitivateError):
    status_code = 403
    default_message = 'Access denied'


class AuthenticationError(QualitivateError):
    status_code = 401
    default_message = 'Unauthorized'


class ValidationFailed(QualitivateError):
    status_code = 400
    default_message = 'Validation failed'


class ConflictError(QualitivateError):
    status_code = 409
    default_message = 'Conflict'


def _correlation_id():
    return getattr(g, 'correlation_id', None)


def register_error_handlers(app):
    @app.errorhandler(QualitivateError)
    def handle_domain_error(err):
        if err.status_code >= 500:
            db.session.rollback()
            current_app.logger.error(
                "Request failed: %s", err.message,
                extra={"correlation_id": _correlation_id()}
            )
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(ValidationError)
    def handle_schema_error(err):
        return jsonify({"error": "Validation failed", "details": err.messages}), 400

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err):
        db.session.rollback()
        current_app.logger.warning(
            "Integrity error: %s", err.orig,
            extra={"correlation_id": _correlation_id()}
        )
        return jsonify({"error": "Conflict with existing data"}), 409

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        return jsonify({"error": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(err):
        db.session.rollback()
        current_app.logger.exception(
            "Unexpected error", extra={"correlation_id": _correlation_id()}
        )
        return jsonify({"error": "Internal server error"}), 500
