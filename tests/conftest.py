"""
Общие фикстуры для тестов
"""
from datetime import datetime, timezone

import pytest
from sqlalchemy.pool import StaticPool

from config.settings import Settings
from smartcert.container import build_services
from smartcert.database import DatabaseManager
from smartcert.models import CertificateRequest
from smartcert.security import IssuerSession


@pytest.fixture
def settings(tmp_path):
    """Настройки для тестов: SQLite в памяти и логи во временной директории"""
    return Settings(
        _env_file=None,
        database_url_override="sqlite://",
        jwt_secret="smartcert-test-secret-0123456789abcdef",
        log_file=tmp_path / "logs" / "test.log",
    )


@pytest.fixture
def db_manager():
    """Менеджер БД на SQLite в памяти"""
    manager = DatabaseManager("sqlite://", poolclass=StaticPool)
    manager.create_tables()
    yield manager
    manager.drop_tables()
    manager.engine.dispose()


@pytest.fixture
def services(settings, db_manager):
    """Связанные сервисы на тестовой БД"""
    return build_services(settings, db_manager)


def _session_for(services, email, password, name, university=None):
    profile = services.account_service.ensure_admin(email, password, name, university)
    return IssuerSession(user_id=profile.id, email=profile.email, name=profile.name, role=profile.role)


@pytest.fixture
def issuer(services):
    """Сессия основного издателя"""
    return _session_for(services, "admin@unijos.edu", "admin123", "Admin User", "University of Jos")


@pytest.fixture
def other_issuer(services):
    """Сессия второго издателя"""
    return _session_for(services, "registrar@unilag.edu", "secret456", "Registrar", "University of Lagos")


@pytest.fixture
def certificate_request():
    """Образец запроса на выпуск"""
    return CertificateRequest(
        recipient_name="Aisha Bello",
        email="csc045@unijos.edu",
        course="Computer Science",
        matriculation_number="CSC/2017/045",
        issue_date="2024-06-01",
    )


@pytest.fixture
def issued_certificate(services, issuer, certificate_request):
    """Выпущенный сертификат"""
    return services.certificate_service.issue(issuer, certificate_request)


@pytest.fixture
def today():
    """Текущая дата по UTC"""
    return datetime.now(timezone.utc).date()
