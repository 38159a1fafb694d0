"""
Основная бизнес-логика выпуска сертификатов и работы с ними.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from .database import CertificateRepository
from .exceptions import (
    CertificateNotFoundError, ConflictError, IssuanceError, StatusTransitionError
)
from .generator import CertificateIDGenerator, HashContent
from .models import Certificate, CertificatePage, CertificateRequest, CertificateStatus, SearchRequest
from .security import IssuerSession
from .validators import DataValidator

# Настройка логирования
logger = logging.getLogger(__name__)

# Допустимые переходы статусов. REVOKED конечный.
STATUS_TRANSITIONS = {
    CertificateStatus.PENDING: {CertificateStatus.ISSUED, CertificateStatus.REVOKED},
    CertificateStatus.ISSUED: {CertificateStatus.VERIFIED, CertificateStatus.REVOKED},
    CertificateStatus.VERIFIED: {CertificateStatus.REVOKED},
    CertificateStatus.REVOKED: set(),
}


class CertificateService:
    """Сервис выпуска и учета сертификатов."""

    def __init__(self, certificate_repo: CertificateRepository,
                 id_generator: Optional[CertificateIDGenerator] = None,
                 validator: Optional[DataValidator] = None,
                 max_page_size: int = 100):
        """
        Инициализация сервиса.

        Args:
            certificate_repo: Репозиторий сертификатов
            id_generator: Генератор кода и хеша
            validator: Валидатор входных данных
            max_page_size: Максимальный размер страницы списка
        """
        self.certificate_repo = certificate_repo
        self.id_generator = id_generator or CertificateIDGenerator()
        self.validator = validator or DataValidator()
        self.max_page_size = max_page_size

    def issue(self, issuer: IssuerSession, request: CertificateRequest) -> Certificate:
        """
        Выпускает новый сертификат от имени издателя.

        Args:
            issuer: Сессия издателя
            request: Запрос на выпуск

        Returns:
            Certificate: Сохраненный сертификат со статусом ISSUED

        Raises:
            ValidationError: При ошибке валидации
            IssuanceError: При повторной коллизии кода или хеша
            StorageError: При ошибке БД
        """
        data = self.validator.validate_issuance(request)
        logger.info(f"Выпуск сертификата для {data.email} издателем {issuer.user_id}")

        content = HashContent(
            recipient_name=data.recipient_name,
            email=data.email,
            course=data.course,
            matriculation_number=data.matriculation_number,
            issue_date=data.issue_date.isoformat(),
            issuing_user_id=issuer.user_id,
        )
        fields = {
            "recipient_name": data.recipient_name,
            "email": data.email,
            "course": data.course,
            "matriculation_number": data.matriculation_number,
            "issue_date": data.issue_date,
            "expiry_date": data.expiry_date,
            "template": data.template,
            "signatory_left": data.signatory_left,
            "signatory_right": data.signatory_right,
            "status": CertificateStatus.ISSUED.value,
            "issuing_user_id": issuer.user_id,
        }

        # Одна повторная попытка с новыми кодом и хешем
        for attempt in range(2):
            fields["certificate_code"] = self.id_generator.generate_code()
            fields["verification_hash"] = self.id_generator.generate_verification_hash(content)
            fields["issued_at"] = datetime.now(timezone.utc)
            try:
                certificate = self.certificate_repo.create(fields, performed_by=issuer.user_id)
            except ConflictError as e:
                if attempt == 0:
                    logger.warning(f"Коллизия {e.column} при выпуске, повторная генерация")
                    continue
                logger.error(f"Повторная коллизия {e.column} при выпуске сертификата")
                raise IssuanceError("Не удалось сгенерировать уникальные идентификаторы сертификата") from e

            logger.info(
                f"Сертификат {certificate.certificate_code} выпущен, хеш {certificate.verification_hash}"
            )
            return certificate

    def get_certificate(self, issuer: IssuerSession, internal_id: str) -> Certificate:
        """
        Получает сертификат издателя по внутреннему ID.

        Raises:
            CertificateNotFoundError: Сертификат не найден или принадлежит другому издателю
        """
        certificate = self.certificate_repo.find_by_id(internal_id)
        if certificate is None or certificate.issuing_user_id != issuer.user_id:
            raise CertificateNotFoundError("Certificate not found")
        return certificate

    def list_certificates(self, issuer: IssuerSession, search_request: SearchRequest) -> CertificatePage:
        """
        Поиск сертификатов издателя.

        Args:
            issuer: Сессия издателя
            search_request: Параметры страницы и фильтры

        Returns:
            CertificatePage: Страница сертификатов
        """
        self.validator.validate_pagination(search_request.page, search_request.limit, self.max_page_size)
        search = (search_request.search or "").strip() or None

        certificates, total = self.certificate_repo.list_by_issuer(
            issuer.user_id,
            status=search_request.status,
            search=search,
            page=search_request.page,
            limit=search_request.limit,
        )
        logger.info(f"Найдено сертификатов издателя {issuer.user_id}: {total}")

        return CertificatePage(
            certificates=certificates,
            page=search_request.page,
            limit=search_request.limit,
            total=total,
        )

    def change_status(self, issuer: IssuerSession, internal_id: str,
                      new_status: CertificateStatus) -> Certificate:
        """
        Меняет статус сертификата издателя.

        Raises:
            CertificateNotFoundError: Сертификат не найден
            StatusTransitionError: Переход не разрешен
        """
        certificate = self.get_certificate(issuer, internal_id)
        new_status = CertificateStatus(new_status)

        if new_status not in STATUS_TRANSITIONS[certificate.status]:
            raise StatusTransitionError(
                f"Cannot change status from {certificate.status.value} to {new_status.value}"
            )

        updated = self.certificate_repo.update_status(internal_id, new_status, performed_by=issuer.user_id)
        if updated is None:
            raise CertificateNotFoundError("Certificate not found")

        logger.info(
            f"Статус сертификата {updated.certificate_code} изменен: "
            f"{certificate.status.value} -> {new_status.value}"
        )
        return updated

    def revoke(self, issuer: IssuerSession, internal_id: str) -> Certificate:
        """Отзывает сертификат."""
        return self.change_status(issuer, internal_id, CertificateStatus.REVOKED)

    def get_history(self, issuer: IssuerSession, internal_id: str) -> list:
        """Возвращает историю изменений сертификата издателя."""
        self.get_certificate(issuer, internal_id)
        return self.certificate_repo.get_certificate_history(internal_id)

    def get_statistics(self, issuer: IssuerSession) -> Dict[str, int]:
        """
        Получает статистику по сертификатам издателя.

        Returns:
            Dict: Счетчики для панели управления
        """
        stats = self.certificate_repo.get_statistics(issuer.user_id)
        return {
            "totalCertificates": stats["total"],
            "issuedCertificates": stats[CertificateStatus.ISSUED.value],
            "verifiedCertificates": stats[CertificateStatus.VERIFIED.value],
            "pendingCertificates": stats[CertificateStatus.PENDING.value],
            "revokedCertificates": stats[CertificateStatus.REVOKED.value],
            "todayIssued": stats["today_issued"],
        }
