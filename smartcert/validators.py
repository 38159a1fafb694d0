"""
Модуль валидации входных данных для сертификатов.
"""

import re
from datetime import date
from typing import Optional

from .exceptions import ValidationError
from .models import CertificateRequest, IssuanceInput

TEMPLATES = ("classic", "modern", "corporate", "harvard")


class EmailValidator:
    """Валидатор email адресов вида local@domain.tld."""

    def __init__(self):
        self.pattern = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

    def validate(self, email: str) -> bool:
        if not email or len(email) > 255:
            return False
        return bool(self.pattern.match(email))


class DateValidator:
    """Разбор дат в формате ISO."""

    def parse(self, value: str, field: str) -> date:
        """
        Разбор даты в формате YYYY-MM-DD.

        Допускается полная ISO метка времени: часть после 'T' отбрасывается.

        Args:
            value: Строка даты
            field: Имя поля для сообщения об ошибке

        Returns:
            date: Разобранная дата

        Raises:
            ValidationError: При некорректном формате
        """
        try:
            return date.fromisoformat(value.split('T', 1)[0].strip())
        except ValueError:
            raise ValidationError(f"Invalid date for {field}: expected YYYY-MM-DD", field=field)


class DataValidator:
    """Общий валидатор данных выпуска."""

    # Обязательные поля: имя атрибута и имя поля в запросе
    REQUIRED_FIELDS = (
        ("recipient_name", "recipientName"),
        ("email", "email"),
        ("course", "course"),
        ("matriculation_number", "matricNo"),
        ("issue_date", "issueDate"),
    )

    def __init__(self, default_template: str = "classic"):
        self.email_validator = EmailValidator()
        self.date_validator = DateValidator()
        self.default_template = default_template

    def validate_issuance(self, request: CertificateRequest) -> IssuanceInput:
        """
        Проверка и нормализация запроса на выпуск.

        Args:
            request: Запрос на выпуск

        Returns:
            IssuanceInput: Нормализованные данные

        Raises:
            ValidationError: С именем первого некорректного поля
        """
        values = {}
        for attribute, field in self.REQUIRED_FIELDS:
            value = _clean(getattr(request, attribute))
            if not value:
                raise ValidationError(f"Missing required field: {field}", field=field)
            values[attribute] = value

        email = values["email"]
        if not self.email_validator.validate(email):
            raise ValidationError(f"Invalid email address: {email}", field="email")

        issue_date = self.date_validator.parse(values["issue_date"], "issueDate")

        expiry_date = None
        expiry_raw = _clean(request.expiry_date)
        if expiry_raw:
            expiry_date = self.date_validator.parse(expiry_raw, "expiryDate")

        template = (_clean(request.template) or self.default_template).lower()
        if template not in TEMPLATES:
            raise ValidationError(
                f"Unknown template: {template}. Expected one of: {', '.join(TEMPLATES)}",
                field="template"
            )

        return IssuanceInput(
            recipient_name=values["recipient_name"],
            email=email,
            course=values["course"],
            matriculation_number=values["matriculation_number"],
            issue_date=issue_date,
            expiry_date=expiry_date,
            template=template,
            signatory_left=_clean(request.signatory_left),
            signatory_right=_clean(request.signatory_right),
        )

    def validate_pagination(self, page: int, limit: int, max_page_size: int):
        """Проверка параметров страницы."""
        if page < 1:
            raise ValidationError("page must be greater than or equal to 1", field="page")
        if limit < 1 or limit > max_page_size:
            raise ValidationError(f"limit must be between 1 and {max_page_size}", field="limit")


def _clean(value: Optional[str]) -> Optional[str]:
    """Обрезает пробелы; пустая строка превращается в None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None
