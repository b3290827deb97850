"""Error handlers for the application."""
from werkzeug.exceptions import HTTPException

from erp_api.core.errors import ApiError
from .responses import error_response


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError):
        """Render classified errors at their own status."""
        if error.status_code >= 500:
            app.logger.error(f"{type(error).__name__}: {error.message}", exc_info=error.__cause__ is not None)
        else:
            app.logger.info(f"{type(error).__name__} ({error.status_code}): {error.message}")
        return error_response(error.message, error.status_code)

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 Not Found errors."""
        return error_response("Route not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return error_response("Method not allowed", 405)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        """Other werkzeug errors keep their status inside the envelope."""
        return error_response(error.description or error.name, error.code or 500)

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        # Pass through HTTP errors
        if isinstance(error, HTTPException):
            return handle_http_exception(error)

        # ALWAYS log the error (even in production) - logs are secure
        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return error_response("Internal server error", 500)
