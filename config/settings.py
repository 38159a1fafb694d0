"""
Настройки приложения, загружаемые из переменных окружения.
"""

import logging
import secrets
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
MIN_JWT_SECRET_BYTES = 32

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Настройки приложения."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore"  # Игнорировать дополнительные поля из .env
    )

    # Настройки базы данных
    database_url_override: Optional[str] = Field(
        default=None,
        validation_alias="DATABASE_URL",
        description="Полный URL подключения к БД"
    )
    db_host: str = Field(default="localhost", description="Хост базы данных")
    db_port: int = Field(default=5432, description="Порт базы данных")
    db_name: str = Field(default="", description="Имя базы данных")
    db_user: str = Field(default="postgres", description="Пользователь базы данных")
    db_password: str = Field(default="", description="Пароль базы данных")

    # Настройки сессий издателей
    jwt_secret: str = Field(default="", description="Секрет подписи токенов, не короче 32 байт")
    jwt_algorithm: str = Field(default="HS256", description="Алгоритм подписи токенов")
    session_max_age_days: int = Field(default=30, ge=1, description="Срок жизни токена в днях")

    # Настройки сертификатов
    attestation_label: str = Field(
        default="Verified by Smart Cert System",
        description="Метка подтверждения в ответе проверки"
    )
    default_template: str = Field(default="classic", description="Шаблон по умолчанию")
    default_page_size: int = Field(default=10, ge=1, description="Размер страницы по умолчанию")
    max_page_size: int = Field(default=100, ge=1, description="Максимальный размер страницы")

    # Настройки логирования
    log_level: str = Field(default="INFO", description="Уровень логирования")
    log_file: Path = Field(default=Path("./logs/smartcert.log"), description="Путь к файлу логов")

    # Настройки приложения
    debug: bool = Field(default=False, description="Режим отладки")
    cors_origins: str = Field(default="*", description="Разрешенные источники через запятую")

    @property
    def database_url(self) -> str:
        """Возвращает URL подключения к базе данных."""
        if self.database_url_override:
            return self.database_url_override
        if not self.db_name:
            return "sqlite:///./smartcert.db"
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def cors_origins_list(self) -> List[str]:
        """Возвращает список разрешенных источников."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Валидация уровня логирования."""
        level = v.upper().strip()
        if level not in LOG_LEVELS:
            raise ValueError(f"Неизвестный уровень логирования: {v}")
        return level

    @model_validator(mode='after')
    def check_jwt_secret(self):
        """Без секрета запуск возможен только в режиме отладки."""
        if not self.jwt_secret:
            if not self.debug:
                raise ValueError("JWT_SECRET не задан")
            self.jwt_secret = secrets.token_urlsafe(MIN_JWT_SECRET_BYTES)
            logger.warning("JWT_SECRET не задан, токены подписываются случайным секретом до перезапуска")
        elif len(self.jwt_secret.encode('utf-8')) < MIN_JWT_SECRET_BYTES:
            raise ValueError(f"JWT_SECRET должен быть не короче {MIN_JWT_SECRET_BYTES} байт")
        return self

    def create_directories(self):
        """Создает директорию для логов."""
        self.log_file.parent.mkdir(parents=True, exist_ok=True)


# Настройки создаются при первом обращении
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Возвращает объект настроек."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
