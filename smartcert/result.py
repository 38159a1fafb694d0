"""
Результат операции API: Ok(payload) | Err(kind, message).

Обработчики маршрутов возвращают Result, а не словари произвольной формы.
Преобразование в HTTP-ответ выполняется в одном месте (to_response).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from fastapi.responses import JSONResponse

from .exceptions import (
    AuthenticationError, AuthorizationError, CertificateError,
    CertificateNotFoundError, ConflictError, IssuerNotFoundError,
    StatusTransitionError, ValidationError
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ErrorKind(str, Enum):
    """Вид ошибки и соответствующий HTTP статус."""
    VALIDATION = "VALIDATION"
    AUTHENTICATION = "AUTHENTICATION"
    AUTHORIZATION = "AUTHORIZATION"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL = "INTERNAL"

    @property
    def http_status(self) -> int:
        return _KIND_TO_STATUS[self]


_KIND_TO_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.AUTHORIZATION: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}

# Порядок важен: подклассы раньше базовых классов
_EXCEPTION_TO_KIND = (
    (ValidationError, ErrorKind.VALIDATION),
    (AuthenticationError, ErrorKind.AUTHENTICATION),
    (AuthorizationError, ErrorKind.AUTHORIZATION),
    (CertificateNotFoundError, ErrorKind.NOT_FOUND),
    (IssuerNotFoundError, ErrorKind.NOT_FOUND),
    (StatusTransitionError, ErrorKind.CONFLICT),
)


@dataclass(frozen=True)
class Ok:
    """Успешный результат."""
    payload: Any
    message: Optional[str] = None
    status_code: int = 200

    @property
    def is_ok(self) -> bool:
        return True

    def to_response(self) -> JSONResponse:
        content = {"success": True, "data": self.payload}
        if self.message:
            content["message"] = self.message
        return JSONResponse(content=content, status_code=self.status_code)


@dataclass(frozen=True)
class Err:
    """Ошибочный результат."""
    kind: ErrorKind
    message: str

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def status_code(self) -> int:
        return self.kind.http_status

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            content={"success": False, "message": self.message},
            status_code=self.status_code
        )


Result = Union[Ok, Err]


def from_exception(error: Exception) -> Err:
    """
    Преобразует исключение в Err.

    Ошибки бизнес-правил передаются клиенту как есть. Ошибки хранилища,
    коллизии и неизвестные исключения скрываются за общим сообщением.

    Args:
        error: Перехваченное исключение

    Returns:
        Err: Результат с видом ошибки и сообщением для клиента
    """
    if isinstance(error, CertificateError):
        for exc_type, kind in _EXCEPTION_TO_KIND:
            if isinstance(error, exc_type):
                return Err(kind, str(error))
        if isinstance(error, ConflictError):
            logger.error(f"Неразрешенная коллизия при записи: {error}")
        else:
            logger.error(f"Внутренняя ошибка: {error}")
        return Err(ErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)

    logger.exception(f"Неожиданная ошибка: {error}")
    return Err(ErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)
