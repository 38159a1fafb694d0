"""
Генератор идентификаторов сертификатов: короткий код и хеш проверки.
"""

import hashlib
import re
import secrets
import string
import threading
import time
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class HashContent:
    """Данные сертификата, от которых вычисляется хеш проверки."""
    recipient_name: str
    email: str
    course: str
    matriculation_number: str
    issue_date: str
    issuing_user_id: str


class CertificateIDGenerator:
    """Генератор кода сертификата и хеша проверки."""

    CODE_LENGTH = 8
    HASH_LENGTH = 64

    def __init__(self):
        # Символы для генерации кода (латинские буквы в верхнем регистре + цифры)
        self.characters = string.ascii_uppercase + string.digits
        self.code_pattern = re.compile(rf'^[A-Z0-9]{{{self.CODE_LENGTH}}}$')
        self.hash_pattern = re.compile(rf'^[0-9a-f]{{{self.HASH_LENGTH}}}$')
        self._last_timestamp = 0
        self._lock = threading.Lock()

    def _next_timestamp(self) -> int:
        """Строго возрастающая метка времени в наносекундах."""
        with self._lock:
            self._last_timestamp = max(time.time_ns(), self._last_timestamp + 1)
            return self._last_timestamp

    def generate_code(self) -> str:
        """
        Генерирует короткий код сертификата.

        Формат: 8 символов из [A-Z0-9]. Уникальность не проверяется,
        коллизию обнаруживает ограничение уникальности в хранилище.

        Returns:
            str: Код сертификата
        """
        return ''.join(secrets.choice(self.characters) for _ in range(self.CODE_LENGTH))

    def generate_verification_hash(self, content: HashContent,
                                   timestamp_ns: Optional[int] = None) -> str:
        """
        Вычисляет хеш проверки сертификата.

        К данным сертификата добавляется метка времени высокого разрешения,
        поэтому повторный выпуск с теми же данными дает другой хеш.

        Args:
            content: Данные сертификата
            timestamp_ns: Метка времени в наносекундах (по умолчанию текущая)

        Returns:
            str: SHA-256 в виде 64 шестнадцатеричных символов в нижнем регистре
        """
        if timestamp_ns is None:
            timestamp_ns = self._next_timestamp()

        hash_input = "-".join([
            content.recipient_name,
            content.email,
            content.course,
            content.matriculation_number,
            content.issue_date,
            content.issuing_user_id,
            str(timestamp_ns),
        ])
        return hashlib.sha256(hash_input.encode('utf-8')).hexdigest()

    def validate_code_format(self, code: str) -> bool:
        """Проверяет формат кода сертификата."""
        return bool(code) and bool(self.code_pattern.match(code))

    def validate_hash_format(self, value: str) -> bool:
        """Проверяет формат хеша проверки."""
        return bool(value) and bool(self.hash_pattern.match(value))
