"""
App-wide error handlers.

Maps the ``core.exceptions`` hierarchy, SQLAlchemy integrity errors and
werkzeug HTTP errors to the standard ``{"error", "code"}`` JSON body.
Every handler that follows a failed write rolls the session back first.
"""

import logging

from flask import request
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from projecthub.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    StateConflictError,
    TooManyAttemptsError,
    ValidationError,
)
from projecthub.models import db
from projecthub.utils.errors import E, api_error
from projecthub.utils.helpers import classify_integrity_error

logger = logging.getLogger(__name__)

_HTTP_CODES = {
    400: E.VALIDATION_INVALID,
    401: E.UNAUTHENTICATED,
    403: E.FORBIDDEN,
    404: E.NOT_FOUND,
    409: E.CONFLICT_STATE,
    429: E.RATE_LIMITED,
}


def register_error_handlers(app):
    """Attach JSON error handlers to the Flask app."""

    @app.errorhandler(NotFoundError)
    def _not_found(error: NotFoundError):
        db.session.rollback()
        return api_error(E.NOT_FOUND, str(error))

    @app.errorhandler(ValidationError)
    def _validation(error: ValidationError):
        db.session.rollback()
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @app.errorhandler(ConflictError)
    def _conflict(error: ConflictError):
        db.session.rollback()
        return api_error(E.CONFLICT_DUPLICATE, str(error))

    @app.errorhandler(StateConflictError)
    def _state_conflict(error: StateConflictError):
        db.session.rollback()
        return api_error(
            E.CONFLICT_STATE, str(error),
            details={"current": error.current, "requested": error.requested},
        )

    @app.errorhandler(PermissionDeniedError)
    def _forbidden(error: PermissionDeniedError):
        db.session.rollback()
        return api_error(E.FORBIDDEN, str(error))

    @app.errorhandler(AuthenticationError)
    def _unauthenticated(error: AuthenticationError):
        return api_error(E.UNAUTHENTICATED, str(error))

    @app.errorhandler(TooManyAttemptsError)
    def _too_many(error: TooManyAttemptsError):
        return api_error(E.RATE_LIMITED, str(error), retry_after=error.retry_after)

    @app.errorhandler(IntegrityError)
    def _integrity(error: IntegrityError):
        db.session.rollback()
        kind = classify_integrity_error(error)
        logger.warning("Integrity error on %s %s (%s): %s",
                       request.method, request.path, kind, error.orig)
        if kind == "unique":
            return api_error(E.CONFLICT_DUPLICATE, "A record with this value already exists.")
        if kind == "foreign_key":
            return api_error(E.VALIDATION_CONSTRAINT, "Referenced record does not exist.")
        return api_error(E.VALIDATION_CONSTRAINT, "Value violates a database constraint.")

    @app.errorhandler(HTTPException)
    def _http(error: HTTPException):
        extra = {}
        if error.code == 404:
            message = "Not found"
            extra["path"] = request.path
        elif error.code == 429:
            message = "Too many requests"
            # Flask-Limiter puts the exceeded limit ("20 per 1 minute") here
            extra["limit"] = error.description
        else:
            message = error.description or error.name
        code = _HTTP_CODES.get(error.code, E.VALIDATION_INVALID if error.code < 500 else E.INTERNAL)
        return api_error(code, message, status=error.code, **extra)

    @app.errorhandler(Exception)
    def _unexpected(error: Exception):
        db.session.rollback()
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return api_error(E.INTERNAL, "Internal server error")
