"""
Учетные записи издателей: вход, профиль и начальное заполнение.
"""

import logging
from typing import Optional

from .database import IssuerRepository
from .exceptions import AuthenticationError, AuthorizationError, IssuerNotFoundError, ValidationError
from .models import IssuerProfile, ProfileUpdateRequest
from .security import IssuerSession, TokenManager, check_password, hash_password
from .validators import EmailValidator

logger = logging.getLogger(__name__)


class AccountService:
    """Сервис учетных записей издателей."""

    def __init__(self, issuer_repo: IssuerRepository, token_manager: TokenManager):
        self.issuer_repo = issuer_repo
        self.token_manager = token_manager
        self.email_validator = EmailValidator()

    def authenticate(self, email: str, password: str) -> IssuerSession:
        """
        Проверяет email и пароль издателя.

        Raises:
            AuthenticationError: Неизвестный email или неверный пароль
        """
        email = (email or "").strip().lower()
        credentials = self.issuer_repo.get_credentials(email) if email else None
        if credentials is None:
            logger.warning(f"Попытка входа с неизвестным email {email}")
            raise AuthenticationError("Invalid email or password")

        profile, password_hash = credentials
        if not check_password(password, password_hash):
            logger.warning(f"Неверный пароль для {email}")
            raise AuthenticationError("Invalid email or password")

        logger.info(f"Издатель {profile.id} вошел в систему")
        return IssuerSession(user_id=profile.id, email=profile.email, name=profile.name, role=profile.role)

    def issue_token(self, session: IssuerSession) -> str:
        return self.token_manager.issue(session)

    def get_profile(self, session: IssuerSession, user_id: Optional[str]) -> IssuerProfile:
        """Возвращает профиль; доступен только собственный профиль."""
        self._check_owner(session, user_id)
        profile = self.issuer_repo.get_by_id(user_id)
        if profile is None:
            raise IssuerNotFoundError("User not found")
        return profile

    def update_profile(self, session: IssuerSession, user_id: Optional[str],
                       request: ProfileUpdateRequest) -> IssuerProfile:
        """
        Обновляет собственный профиль издателя.

        Raises:
            AuthorizationError: user_id не совпадает с сессией
            ValidationError: Нет имени/email или email занят
        """
        self._check_owner(session, user_id)

        name = (request.name or "").strip()
        email = (request.email or "").strip().lower()
        if not name or not email:
            raise ValidationError("Name and email are required", field="name" if not name else "email")
        if not self.email_validator.validate(email):
            raise ValidationError(f"Invalid email address: {email}", field="email")
        if self.issuer_repo.email_taken(email, exclude_id=user_id):
            raise ValidationError("Email already in use", field="email")

        profile = self.issuer_repo.update_profile(
            user_id,
            name=name,
            email=email,
            university=(request.university or "").strip() or None,
            image=request.image or None,
        )
        if profile is None:
            raise IssuerNotFoundError("User not found")

        logger.info(f"Профиль издателя {user_id} обновлен")
        return profile

    def ensure_admin(self, email: str, password: str, name: str,
                     university: Optional[str] = None) -> IssuerProfile:
        """Создает или обновляет учетную запись администратора."""
        email = email.strip().lower()
        if not self.email_validator.validate(email):
            raise ValidationError(f"Invalid email address: {email}", field="email")
        if not password:
            raise ValidationError("Password is required", field="password")

        profile = self.issuer_repo.upsert(
            email=email,
            password_hash=hash_password(password),
            name=name,
            university=university,
            role="ADMIN",
        )
        logger.info(f"Учетная запись администратора {email} готова")
        return profile

    @staticmethod
    def _check_owner(session: IssuerSession, user_id: Optional[str]):
        if not user_id or user_id != session.user_id:
            raise AuthorizationError("Forbidden")
