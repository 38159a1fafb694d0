"""
Тесты для учетных записей и токенов издателей
"""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from smartcert.exceptions import AuthenticationError, AuthorizationError, ValidationError
from smartcert.models import ProfileUpdateRequest
from smartcert.security import IssuerSession, TokenManager, check_password, hash_password

SECRET = "smartcert-test-secret-0123456789abcdef"


class TestPasswords:
    """Тесты хеширования паролей"""

    def test_hash_and_check(self):
        password_hash = hash_password("admin123")

        assert password_hash != "admin123"
        assert check_password("admin123", password_hash)
        assert not check_password("admin124", password_hash)

    def test_missing_hash(self):
        assert not check_password("admin123", None)
        assert not check_password("", hash_password("admin123"))
        assert not check_password("admin123", "not-a-bcrypt-hash")


class TestTokenManager:
    """Тесты JWT издателей"""

    @pytest.fixture
    def manager(self):
        return TokenManager(SECRET)

    @pytest.fixture
    def session(self):
        return IssuerSession(user_id="5f0c6f0e-3b7c-4c59-9a53-1f1f7e2b8a10",
                             email="admin@unijos.edu", name="Admin User")

    def test_round_trip(self, manager, session):
        assert manager.decode(manager.issue(session)) == session

    def test_missing_token(self, manager):
        with pytest.raises(AuthenticationError, match="Unauthorized"):
            manager.decode("")

    def test_tampered_token(self, manager, session):
        token = TokenManager("another-smartcert-secret-0123456789").issue(session)

        with pytest.raises(AuthenticationError, match="Unauthorized"):
            manager.decode(token)

    def test_expired_token(self, manager, session):
        """Тест просроченного токена"""
        issued = datetime.now(timezone.utc) - timedelta(days=31)
        token = jwt.encode({
            "sub": session.user_id,
            "email": session.email,
            "iat": issued,
            "exp": issued + timedelta(days=30),
        }, SECRET, algorithm="HS256")

        with pytest.raises(AuthenticationError, match="Session expired"):
            manager.decode(token)

    def test_token_without_subject(self, manager):
        token = jwt.encode({"email": "admin@unijos.edu"}, SECRET, algorithm="HS256")

        with pytest.raises(AuthenticationError):
            manager.decode(token)


class TestAccountService:
    """Тесты AccountService"""

    def test_authenticate(self, services, issuer):
        """Тест входа, email без учета регистра"""
        session = services.account_service.authenticate("ADMIN@unijos.edu", "admin123")

        assert session == issuer

    @pytest.mark.parametrize("email, password", [
        ("admin@unijos.edu", "wrong"),
        ("nobody@unijos.edu", "admin123"),
        ("", ""),
        (None, None),
    ])
    def test_authenticate_rejects(self, services, issuer, email, password):
        with pytest.raises(AuthenticationError, match="Invalid email or password"):
            services.account_service.authenticate(email, password)

    def test_ensure_admin_is_idempotent(self, services, issuer):
        """Тест повторного заполнения администратора"""
        profile = services.account_service.ensure_admin(
            "admin@unijos.edu", "new-password", "Admin User", "University of Jos"
        )

        assert profile.id == issuer.user_id
        assert services.account_service.authenticate("admin@unijos.edu", "new-password") == issuer

    def test_get_own_profile(self, services, issuer):
        profile = services.account_service.get_profile(issuer, issuer.user_id)

        assert profile.email == "admin@unijos.edu"
        assert profile.university == "University of Jos"
        assert "password" not in str(profile.to_dict()).lower()

    def test_other_profile_is_forbidden(self, services, issuer, other_issuer):
        with pytest.raises(AuthorizationError, match="Forbidden"):
            services.account_service.get_profile(issuer, other_issuer.user_id)
        with pytest.raises(AuthorizationError):
            services.account_service.get_profile(issuer, None)

    def test_update_profile(self, services, issuer):
        """Тест обновления профиля"""
        profile = services.account_service.update_profile(issuer, issuer.user_id, ProfileUpdateRequest(
            name="Dr. Admin", email="Registry@UniJos.edu", university="University of Jos"
        ))

        assert profile.name == "Dr. Admin"
        assert profile.email == "registry@unijos.edu"

    def test_update_profile_requires_name_and_email(self, services, issuer):
        with pytest.raises(ValidationError, match="Name and email are required"):
            services.account_service.update_profile(issuer, issuer.user_id, ProfileUpdateRequest(
                name="", email="admin@unijos.edu"
            ))

    def test_update_profile_email_taken(self, services, issuer, other_issuer):
        with pytest.raises(ValidationError, match="Email already in use"):
            services.account_service.update_profile(issuer, issuer.user_id, ProfileUpdateRequest(
                name="Admin User", email="registrar@unilag.edu"
            ))
