import logging
from contextlib import contextmanager

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class AssetServiceError(HTTPException):
    """Базовая доменная ошибка. Сервисы бросают её наследников, как HTTPException в роутерах."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, detail: str | None = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_message)

    @property
    def message(self) -> str:
        return self.detail


class ValidationError(AssetServiceError):
    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(AssetServiceError):
    status_code = 401
    default_message = "Not authenticated"


class PermissionDeniedError(AssetServiceError):
    status_code = 403
    default_message = "Access denied"


class NotFoundError(AssetServiceError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(AssetServiceError):
    status_code = 409
    default_message = "Conflict"


class InsufficientStockError(ConflictError):
    default_message = "insufficient stock"


class InfrastructureError(AssetServiceError):
    status_code = 500
    default_message = "Internal server error"


@contextmanager
def db_errors(operation: str, client_id: str | None, conflict_message: str = "Conflict"):
    """
    Переводит ошибки SQLAlchemy в доменные: нарушение уникальности -> ConflictError,
    остальное -> InfrastructureError. Контекст (операция, клиент) только в лог.
    """
    try:
        yield
    except IntegrityError as e:
        logger.warning(f"{operation}: integrity error for client {client_id}: {e.orig}")
        raise ConflictError(conflict_message) from e
    except SQLAlchemyError as e:
        logger.error(f"{operation}: database error for client {client_id}: {e}", exc_info=True)
        raise InfrastructureError() from e
