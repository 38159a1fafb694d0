"""
Сборка сервисов приложения из настроек.
"""

from dataclasses import dataclass
from typing import Optional

from config.settings import Settings, get_settings
from .accounts import AccountService
from .database import CertificateRepository, DatabaseManager, IssuerRepository
from .generator import CertificateIDGenerator
from .security import TokenManager
from .service import CertificateService
from .validators import DataValidator
from .verification import VerificationService


@dataclass
class Services:
    """Набор связанных между собой сервисов."""
    settings: Settings
    db_manager: DatabaseManager
    certificate_repo: CertificateRepository
    issuer_repo: IssuerRepository
    token_manager: TokenManager
    certificate_service: CertificateService
    verification_service: VerificationService
    account_service: AccountService


def build_services(settings: Optional[Settings] = None,
                   db_manager: Optional[DatabaseManager] = None) -> Services:
    """
    Создает сервисы, разделяющие один менеджер БД и один генератор идентификаторов.

    Args:
        settings: Настройки (по умолчанию глобальные)
        db_manager: Менеджер БД (по умолчанию по settings.database_url)

    Returns:
        Services: Готовые к работе сервисы
    """
    settings = settings or get_settings()
    db_manager = db_manager or DatabaseManager(settings.database_url)

    certificate_repo = CertificateRepository(db_manager)
    issuer_repo = IssuerRepository(db_manager)
    id_generator = CertificateIDGenerator()
    token_manager = TokenManager(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        max_age_days=settings.session_max_age_days
    )

    return Services(
        settings=settings,
        db_manager=db_manager,
        certificate_repo=certificate_repo,
        issuer_repo=issuer_repo,
        token_manager=token_manager,
        certificate_service=CertificateService(
            certificate_repo,
            id_generator=id_generator,
            validator=DataValidator(default_template=settings.default_template),
            max_page_size=settings.max_page_size
        ),
        verification_service=VerificationService(
            certificate_repo,
            attestation_label=settings.attestation_label,
            id_generator=id_generator
        ),
        account_service=AccountService(issuer_repo, token_manager),
    )
