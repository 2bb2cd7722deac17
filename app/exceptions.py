"""
Catalog - Custom Exceptions and Exception Handlers
"""
import structlog
from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = structlog.get_logger('exceptions')


class CatalogException(Exception):
    """Base exception for the catalog service"""
    status_code = 400

    def __init__(self, message: str, code: str = "CATALOG_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self):
        return {
            'error': True,
            'code': self.code,
            'message': self.message
        }


class DatabaseException(CatalogException):
    """Database-related exceptions"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message, code="DATABASE_ERROR")
        logger.error(f"Database error: {message}")


class ProviderException(CatalogException):
    """Upstream provider (Watchmode / TMDb) failures"""
    status_code = 502

    def __init__(self, message: str, provider: str = "provider"):
        self.provider = provider
        super().__init__(message, code="PROVIDER_ERROR")
        logger.warning(f"{provider} error: {message}")


class NotFoundException(CatalogException):
    """Missing resources"""
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, code="NOT_FOUND")


def register_exception_handlers(app):
    """Register exception handlers with Flask app"""

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Handle HTTP exceptions"""
        return jsonify({
            'error': True,
            'code': e.name.upper().replace(' ', '_'),
            'message': e.description
        }), e.code

    @app.errorhandler(CatalogException)
    def handle_catalog_exception(e):
        """Handle catalog exceptions, using the status of the subclass"""
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_generic_exception(e):
        """Handle all other exceptions"""
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({
            'error': True,
            'code': 'INTERNAL_ERROR',
            'message': 'An unexpected error occurred'
        }), 500
