from flask import current_app, jsonify, request
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException


class APIError(Exception):
    """Expected failure with an HTTP status and a user-facing message."""

    def __init__(self, message, status=400, **extra):
        super().__init__(message)
        self.message = message
        self.status = status
        self.extra = extra

    def to_response(self):
        body = {"error": self.message}
        body.update(self.extra)
        return jsonify(body), self.status


def first_validation_message(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return 'Invalid request data'
    msg = errors[0].get('msg') or 'Invalid request data'
    # pydantic prefixes custom ValueError messages
    return msg.replace('Value error, ', '', 1)


def sanitize_error(exc):
    """Map an exception to (message, status) without leaking internals."""
    if isinstance(exc, APIError):
        return exc.message, exc.status
    if isinstance(exc, ValidationError):
        return first_validation_message(exc), 400

    if current_app.debug:
        return str(exc) or exc.__class__.__name__, 500

    text = str(exc)
    if 'invalid_grant' in text or '401' in text:
        return 'Authentication expired. Please sign in again.', 401
    if '403' in text:
        return 'Access denied', 403
    if 'rate limit' in text.lower() or '429' in text:
        return 'Too many requests. Please try again later.', 429
    return 'An unexpected error occurred', 500


def error_response(exc, context=None):
    message, status = sanitize_error(exc)
    if status >= 500 or not isinstance(exc, (APIError, ValidationError)):
        if context:
            current_app.logger.exception('[%s] %s', context, exc)
        else:
            current_app.logger.exception(exc)
    elif context:
        current_app.logger.info('[%s] %s (%s)', context, message, status)
    if isinstance(exc, APIError):
        return exc.to_response()
    return jsonify({"error": message}), status


def register_error_handlers(app):
    @app.errorhandler(APIError)
    def _api_error(exc):
        return exc.to_response()

    @app.errorhandler(ValidationError)
    def _validation_error(exc):
        return jsonify({"error": first_validation_message(exc)}), 400

    @app.errorhandler(HTTPException)
    def _http_error(exc):
        if request.path.startswith('/api/'):
            return jsonify({"error": exc.description or exc.name}), exc.code
        return exc
