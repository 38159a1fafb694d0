"""
Pydantic модели для валидации и сериализации данных сертификатов.
"""

import math
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CertificateStatus(str, Enum):
    """Статус сертификата. Проверку проходит только ISSUED."""
    PENDING = "PENDING"
    ISSUED = "ISSUED"
    VERIFIED = "VERIFIED"
    REVOKED = "REVOKED"


class Verdict(str, Enum):
    """Итог проверки сертификата."""
    VALID = "VALID"
    NOT_FOUND = "NOT_FOUND"
    INVALID_STATUS = "INVALID_STATUS"
    EXPIRED = "EXPIRED"


class CertificateRequest(BaseModel):
    """
    Модель запроса на выпуск сертификата в том виде, в каком он приходит от клиента.

    Поля намеренно необязательные: обязательность и формат проверяет
    DataValidator, чтобы вернуть ошибку с именем поля, а не ответ 422.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "recipientName": "Aisha Bello",
                "email": "csc045@unijos.edu",
                "course": "Computer Science",
                "matricNo": "CSC/2017/045",
                "issueDate": "2024-06-01",
                "expiryDate": None,
                "template": "classic"
            }
        }
    )

    recipient_name: Optional[str] = Field(None, alias="recipientName", description="Имя получателя")
    email: Optional[str] = Field(None, description="Email получателя")
    course: Optional[str] = Field(None, description="Программа обучения")
    matriculation_number: Optional[str] = Field(None, alias="matricNo", description="Номер зачетной книжки")
    issue_date: Optional[str] = Field(None, alias="issueDate", description="Дата выпуска (YYYY-MM-DD)")
    expiry_date: Optional[str] = Field(None, alias="expiryDate", description="Дата окончания (YYYY-MM-DD)")
    template: Optional[str] = Field(None, description="Шаблон оформления")
    signatory_left: Optional[str] = Field(None, alias="signatoryLeft", description="Подписант слева")
    signatory_right: Optional[str] = Field(None, alias="signatoryRight", description="Подписант справа")


class IssuanceInput(BaseModel):
    """Проверенные и нормализованные данные для выпуска."""
    recipient_name: str
    email: str
    course: str
    matriculation_number: str
    issue_date: date
    expiry_date: Optional[date] = None
    template: str
    signatory_left: Optional[str] = None
    signatory_right: Optional[str] = None


class Certificate(BaseModel):
    """Модель сертификата."""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Внутренний идентификатор")
    certificate_code: str = Field(..., min_length=8, max_length=8, description="Код сертификата")
    verification_hash: str = Field(..., min_length=64, max_length=64, description="Хеш проверки")
    recipient_name: str
    email: str
    course: str
    matriculation_number: str
    issue_date: date
    expiry_date: Optional[date] = None
    status: CertificateStatus = CertificateStatus.ISSUED
    template: str = "classic"
    signatory_left: Optional[str] = None
    signatory_right: Optional[str] = None
    issuing_user_id: str
    issuer_name: Optional[str] = None
    issuer_university: Optional[str] = None
    issued_at: Optional[datetime] = None
    created_at: datetime

    def is_expired(self, today: Optional[date] = None) -> bool:
        """Истек ли срок действия. Срок истекает с началом дня expiry_date (UTC), без даты не истекает."""
        if self.expiry_date is None:
            return False
        today = today or datetime.now(timezone.utc).date()
        return self.expiry_date <= today

    @property
    def graduation_year(self) -> str:
        """Год выпуска по дате выдачи."""
        return str(self.issue_date.year)

    def to_issuance_dict(self) -> Dict[str, Any]:
        """Ответ на выпуск сертификата."""
        return {
            "id": self.id,
            "certificateId": self.certificate_code,
            "hash": self.verification_hash,
            "recipientName": self.recipient_name,
            "email": self.email,
            "course": self.course,
            "matricNo": self.matriculation_number,
            "issueDate": self.issue_date.isoformat(),
            "expiryDate": self.expiry_date.isoformat() if self.expiry_date else None,
            "status": self.status.value,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Конвертирует объект в словарь для списков и карточки сертификата."""
        data = self.to_issuance_dict()
        data.update({
            "template": self.template,
            "signatoryLeft": self.signatory_left,
            "signatoryRight": self.signatory_right,
            "issuedAt": self.issued_at.isoformat() if self.issued_at else None,
            "createdAt": self.created_at.isoformat(),
        })
        return data


class SearchRequest(BaseModel):
    """Модель запроса списка сертификатов издателя."""
    page: int = Field(default=1, description="Номер страницы")
    limit: int = Field(default=10, description="Размер страницы")
    status: Optional[CertificateStatus] = Field(None, description="Фильтр по статусу")
    search: Optional[str] = Field(None, description="Поиск по имени, email, курсу и номеру")


class CertificatePage(BaseModel):
    """Страница сертификатов."""
    certificates: List[Certificate]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "certificates": [certificate.to_dict() for certificate in self.certificates],
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "pages": self.pages,
            },
        }


class VerificationRequest(BaseModel):
    """Запрос проверки. certificateId содержит хеш проверки или код сертификата."""
    certificate_id: Optional[str] = Field(None, alias="certificateId")

    model_config = ConfigDict(populate_by_name=True)


class VerificationResult(BaseModel):
    """Результат проверки сертификата."""
    verdict: Verdict
    message: str
    certificate_data: Optional[Dict[str, Any]] = None

    @property
    def is_valid(self) -> bool:
        return self.verdict == Verdict.VALID

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "success": self.is_valid,
            "isValid": self.is_valid,
            "verdict": self.verdict.value,
            "message": self.message,
        }
        if self.certificate_data is not None:
            data["certificateData"] = self.certificate_data
        return data


class StatusChangeRequest(BaseModel):
    """Запрос смены статуса сертификата."""
    status: Optional[str] = None


class LoginRequest(BaseModel):
    """Запрос входа издателя."""
    email: Optional[str] = None
    password: Optional[str] = None


class IssuerProfile(BaseModel):
    """Профиль издателя."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str] = None
    email: str
    university: Optional[str] = None
    image: Optional[str] = None
    role: str = "ADMIN"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "university": self.university,
            "image": self.image,
            "role": self.role,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class ProfileUpdateRequest(BaseModel):
    """Запрос обновления профиля издателя."""
    name: Optional[str] = None
    email: Optional[str] = None
    university: Optional[str] = None
    image: Optional[str] = None
