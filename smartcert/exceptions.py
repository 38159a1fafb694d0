"""
Кастомные исключения для системы сертификатов.
"""

from typing import Optional


class CertificateError(Exception):
    """Базовое исключение для всех ошибок сертификатов."""
    pass


class ValidationError(CertificateError):
    """Ошибка валидации входных данных."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ConflictError(CertificateError):
    """Нарушение уникальности при записи (хеш или код сертификата)."""

    def __init__(self, message: str, column: Optional[str] = None):
        super().__init__(message)
        self.column = column


class CertificateNotFoundError(CertificateError):
    """Сертификат не найден."""
    pass


class IssuerNotFoundError(CertificateError):
    """Учетная запись издателя не найдена."""
    pass


class AuthorizationError(CertificateError):
    """Недостаточно прав для операции."""
    pass


class AuthenticationError(AuthorizationError):
    """Отсутствуют или некорректны учетные данные."""
    pass


class StatusTransitionError(CertificateError):
    """Недопустимый переход статуса сертификата."""
    pass


class StorageError(CertificateError):
    """Ошибка работы с базой данных."""
    pass


class IssuanceError(CertificateError):
    """Повторная коллизия идентификаторов при выпуске."""
    pass
