# payrelay/error_handlers.py
import logging
import traceback

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from payrelay.errors import DomainError, ProviderError, StorageFault

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    """Register all error handlers for the application"""

    @app.errorhandler(DomainError)
    def handle_domain_error(error):
        if isinstance(error, StorageFault):
            logger.error(f"Storage fault: {error.message} - Path: {request.path}")
        elif isinstance(error, ProviderError):
            logger.error(f"Payment provider error: {error.message} - Path: {request.path}")
        else:
            logger.warning(f"{error.__class__.__name__}: {error.message} - Path: {request.path}")

        body = {
            "success": False,
            "message": error.message,
            "error": error.payload if error.payload is not None else error.error,
        }
        return jsonify(body), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """
        Handles known HTTP errors (404, 405, etc.)
        """
        logger.info(f"{e.code} {e.name}: {request.method} {request.path}")
        return jsonify({
            "success": False,
            "error": e.name,
            "message": e.description,
            "path": request.path,
        }), e.code

    @app.errorhandler(Exception)
    def handle_exception(e):
        """
        Handles all unexpected server errors
        Prevents stack trace leakage in responses
        """
        logger.error(f"Unhandled exception: {str(e)} - Path: {request.path}")
        if app.config.get("DEBUG", False):
            logger.error(f"Traceback: {traceback.format_exc()}")

        return jsonify({
            "success": False,
            "error": "Internal Server Error",
            "message": "Something went wrong. Please try again later.",
            "path": request.path,
        }), 500
