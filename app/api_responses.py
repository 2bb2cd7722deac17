"""
API Response Utilities - Standardized error handling and responses
"""

from flask import jsonify
from functools import wraps
from sqlalchemy.exc import SQLAlchemyError
import logging

from exceptions import CatalogException, DatabaseException

logger = logging.getLogger("main")


# API Error Codes
class ErrorCode:
    SUCCESS = "SUCCESS"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


DEFAULT_MESSAGES = {
    ErrorCode.NOT_FOUND: "Resource not found",
    ErrorCode.VALIDATION_ERROR: "Invalid request parameters",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred",
    ErrorCode.DATABASE_ERROR: "Database unavailable",
}


def success_response(data=None, message=None, status_code=200):
    """
    Standard success response format for API endpoints
    """
    response = {"code": ErrorCode.SUCCESS, "success": True}

    if data is not None:
        response["data"] = data

    if message:
        response["message"] = message

    return jsonify(response), status_code


def error_response(error_code=ErrorCode.INTERNAL_ERROR, message=None, status_code=400, log_error=True):
    """
    Standard error response format for API endpoints
    """
    response = {
        "code": error_code,
        "success": False,
        "message": message or DEFAULT_MESSAGES.get(error_code, "Request failed"),
    }

    if log_error and error_code in [ErrorCode.INTERNAL_ERROR, ErrorCode.DATABASE_ERROR]:
        logger.error(f"{error_code}: {message}")

    return jsonify(response), status_code


def handle_api_errors(f):
    """
    Decorator to standardize error handling for API endpoints
    Store failures on reads are the only errors callers get to see.
    """

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except CatalogException as e:
            return error_response(e.code, message=e.message, status_code=e.status_code)
        except ValueError as e:
            return error_response(ErrorCode.VALIDATION_ERROR, message=str(e), status_code=400)
        except SQLAlchemyError as e:
            error = DatabaseException(f"{f.__name__}: {e}")
            return error_response(error.code, message="Failed to read the catalog", status_code=error.status_code,
                                  log_error=False)
        except Exception as e:
            logger.error(f"Unhandled exception in {f.__name__}: {e}", exc_info=True)
            return error_response(ErrorCode.INTERNAL_ERROR, status_code=500)

    return wrapper


def paginated_response(items, total, page, per_page):
    """
    Paginated list: envelope fields plus the flat movies/total/page/limit/totalPages shape
    the catalog grid reads.
    """
    total_pages = (total + per_page - 1) // per_page
    response = {
        "code": ErrorCode.SUCCESS,
        "success": True,
        "movies": items,
        "total": total,
        "page": page,
        "limit": per_page,
        "totalPages": total_pages,
        "pagination": {
            "has_more": page * per_page < total,
            "next_page": page + 1 if page * per_page < total else None,
            "prev_page": page - 1 if page > 1 else None,
        },
    }
    return jsonify(response), 200
