"""
Пароли и токены сессий издателей.
"""

from datetime import datetime, timedelta, timezone
from dataclasses import dataclass
from typing import Optional

import bcrypt
import jwt

from .exceptions import AuthenticationError

BCRYPT_ROUNDS = 12


@dataclass(frozen=True)
class IssuerSession:
    """Контекст сессии издателя, передаваемый в каждый обработчик."""
    user_id: str
    email: str
    name: Optional[str] = None
    role: str = "ADMIN"


def hash_password(password: str) -> str:
    """Возвращает bcrypt-хеш пароля."""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(BCRYPT_ROUNDS)).decode('utf-8')


def check_password(password: str, password_hash: Optional[str]) -> bool:
    """Сверяет пароль с bcrypt-хешем. Отсутствующий хеш не совпадает ни с чем."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


class TokenManager:
    """Выпуск и проверка JWT издателей."""

    def __init__(self, secret: str, algorithm: str = "HS256", max_age_days: int = 30):
        self.secret = secret
        self.algorithm = algorithm
        self.max_age = timedelta(days=max_age_days)

    def issue(self, session: IssuerSession) -> str:
        """Выпускает токен для сессии."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": session.user_id,
            "email": session.email,
            "name": session.name,
            "role": session.role,
            "iat": now,
            "exp": now + self.max_age,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> IssuerSession:
        """
        Проверяет токен и восстанавливает контекст сессии.

        Raises:
            AuthenticationError: Если токен отсутствует, просрочен или подделан
        """
        if not token:
            raise AuthenticationError("Unauthorized")
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Session expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Unauthorized")

        if not payload.get("sub") or not payload.get("email"):
            raise AuthenticationError("Unauthorized")

        return IssuerSession(
            user_id=payload["sub"],
            email=payload["email"],
            name=payload.get("name"),
            role=payload.get("role") or "ADMIN",
        )
