"""
Публичная проверка подлинности сертификатов.
"""

import logging
from datetime import date
from typing import Optional

from .database import CertificateRepository
from .exceptions import ValidationError
from .generator import CertificateIDGenerator
from .models import Certificate, CertificateStatus, Verdict, VerificationResult

logger = logging.getLogger(__name__)

MESSAGES = {
    Verdict.VALID: "Certificate verified successfully",
    Verdict.NOT_FOUND: "Certificate not found or invalid hash",
    Verdict.INVALID_STATUS: "Certificate is not valid (not issued)",
    Verdict.EXPIRED: "Certificate has expired",
}


class VerificationService:
    """
    Сервис проверки сертификатов.

    Проверка ничего не изменяет в хранилище и не требует сессии издателя.
    Порядок проверок: существование, затем статус, затем срок действия.
    """

    def __init__(self, certificate_repo: CertificateRepository,
                 attestation_label: str = "Verified by Smart Cert System",
                 id_generator: Optional[CertificateIDGenerator] = None):
        self.certificate_repo = certificate_repo
        self.attestation_label = attestation_label
        self.id_generator = id_generator or CertificateIDGenerator()

    def verify(self, candidate: Optional[str], today: Optional[date] = None) -> VerificationResult:
        """
        Проверяет сертификат по хешу проверки или по коду сертификата.

        Args:
            candidate: Хеш проверки или 8-символьный код
            today: Дата, на которую проверяется срок действия

        Returns:
            VerificationResult: Вердикт, сообщение и данные сертификата для VALID

        Raises:
            ValidationError: Если кандидат пустой
        """
        candidate = (candidate or "").strip()
        if not candidate:
            raise ValidationError("Certificate ID is required", field="certificateId")

        certificate = self._lookup(candidate)

        if certificate is None:
            return self._verdict(Verdict.NOT_FOUND, candidate)

        if certificate.status != CertificateStatus.ISSUED:
            return self._verdict(Verdict.INVALID_STATUS, candidate)

        if certificate.is_expired(today):
            return self._verdict(Verdict.EXPIRED, candidate)

        return self._verdict(Verdict.VALID, candidate, self._certificate_data(certificate))

    def _lookup(self, candidate: str) -> Optional[Certificate]:
        """Ищет по хешу или по коду в зависимости от формы кандидата."""
        verification_hash = candidate.lower()
        if self.id_generator.validate_hash_format(verification_hash):
            return self.certificate_repo.find_by_hash(verification_hash)

        code = candidate.upper()
        if self.id_generator.validate_code_format(code):
            return self.certificate_repo.find_by_code(code)
        return None

    def _verdict(self, verdict: Verdict, candidate: str, data: Optional[dict] = None) -> VerificationResult:
        logger.info(f"Проверка сертификата {candidate}: {verdict.value}")
        return VerificationResult(verdict=verdict, message=MESSAGES[verdict], certificate_data=data)

    def _certificate_data(self, certificate: Certificate) -> dict:
        """Данные сертификата, раскрываемые при успешной проверке."""
        return {
            "id": certificate.id,
            "certificateId": certificate.certificate_code,
            "recipientName": certificate.recipient_name,
            "studentName": certificate.recipient_name,
            "course": certificate.course,
            "graduationYear": certificate.graduation_year,
            "university": certificate.issuer_university or "Unknown University",
            "issuedAt": certificate.issue_date.isoformat(),
            "issuer": certificate.issuer_name or "Unknown Issuer",
            "verificationHash": certificate.verification_hash,
            "digitalSignature": self.attestation_label,
        }
