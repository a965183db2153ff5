"""
Domain errors raised by the scheduling services.

Every error carries the HTTP status code the API layer answers with, so the
services never import FastAPI and the routers never translate by hand.
"""
from functools import wraps
import logging

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class SchedulingError(Exception):
    status_code: int = 500
    default_detail: str = "Scheduling operation failed"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(SchedulingError):
    status_code = 400
    default_detail = "Invalid request"


class UnauthorizedError(SchedulingError):
    status_code = 401
    default_detail = "Could not validate credentials"


class ForbiddenError(SchedulingError):
    status_code = 403
    default_detail = "Not enough permissions"


class NotFoundError(SchedulingError):
    status_code = 404
    default_detail = "Resource not found"


class ConflictError(SchedulingError):
    status_code = 409
    default_detail = "Selected time is not available"


class InternalError(SchedulingError):
    status_code = 500
    default_detail = "Internal error"


def store_operation(func):
    """Roll back and wrap storage failures of a service method.

    The decorated method must belong to an object exposing the request
    session as ``self.db``. Domain errors pass through untouched; any
    ``SQLAlchemyError`` becomes an ``InternalError``.
    """
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except SchedulingError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"{func.__qualname__} failed: {type(exc).__name__} - {exc}")
            raise InternalError() from exc
    return wrapper
