from flask import current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError as SchemaValidationError
import logging

from utils.exceptions import AppError
from .responses import api_response

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    # Application errors carry their own status and client-safe message
    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        if err.status_code >= 500:
            logger.error("%s: %s", err.__class__.__name__, err.message, exc_info=err)
        return api_response(err.status_code, err.message)

    # Marshmallow validation errors map to 400 with field-level details
    @app.errorhandler(SchemaValidationError)
    def handle_validation_error(err: SchemaValidationError):
        if current_app and current_app.debug:
            logger.info("Validation failed: %s", err.messages)
        return api_response(400, "Invalid input", errors=err.messages)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return api_response(err.code or 400, err.description or err.name)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        return api_response(500, "An unexpected error occurred")
