"""
SmartCert - выпуск и проверка подлинности академических сертификатов.

Основные компоненты:
- generator: код сертификата и хеш проверки
- database: хранилище сертификатов и издателей
- service: выпуск, списки и смена статуса
- verification: публичная проверка
- api: HTTP API на FastAPI
"""

from .container import Services, build_services
from .exceptions import (
    AuthenticationError, AuthorizationError, CertificateError, CertificateNotFoundError,
    ConflictError, IssuanceError, StatusTransitionError, StorageError, ValidationError
)
from .generator import CertificateIDGenerator, HashContent
from .models import Certificate, CertificateRequest, CertificateStatus, SearchRequest, Verdict

__version__ = "1.0.0"

__all__ = [
    'Services',
    'build_services',
    'AuthenticationError',
    'AuthorizationError',
    'CertificateError',
    'CertificateNotFoundError',
    'ConflictError',
    'IssuanceError',
    'StatusTransitionError',
    'StorageError',
    'ValidationError',
    'CertificateIDGenerator',
    'HashContent',
    'Certificate',
    'CertificateRequest',
    'CertificateStatus',
    'SearchRequest',
    'Verdict',
]
