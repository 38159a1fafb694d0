"""
API для работы с сертификатами
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .accounts import AccountService
from .database import DatabaseManager
from .exceptions import CertificateError, ValidationError
from .models import (
    CertificateRequest, CertificateStatus, LoginRequest, ProfileUpdateRequest,
    SearchRequest, StatusChangeRequest, VerificationRequest
)
from .result import Ok, Result, from_exception
from .security import IssuerSession, TokenManager
from .service import CertificateService
from .verification import VerificationService

bearer_scheme = HTTPBearer(auto_error=False)


def _parse_status_filter(value: Optional[str]) -> Optional[CertificateStatus]:
    """Неизвестное значение фильтра статуса игнорируется."""
    if value and value.upper() in CertificateStatus.__members__:
        return CertificateStatus(value.upper())
    return None


class _Raw(Ok):
    """Ответ проверки отдается без обертки data: {success, isValid, message, certificateData?}."""

    def to_response(self) -> JSONResponse:
        return JSONResponse(content=self.payload, status_code=self.status_code)


class CertificateAPI:
    """API для работы с сертификатами"""

    def __init__(
            self,
            db_manager: DatabaseManager,
            certificate_service: CertificateService,
            verification_service: VerificationService,
            account_service: AccountService,
            token_manager: TokenManager,
            default_page_size: int = 10,
            lifespan=None
    ):
        self.db_manager = db_manager
        self.certificate_service = certificate_service
        self.verification_service = verification_service
        self.account_service = account_service
        self.token_manager = token_manager
        self.default_page_size = default_page_size
        self.logger = logging.getLogger(__name__)

        # Создание FastAPI приложения
        self.app = FastAPI(
            title="SmartCert API",
            description="API выпуска и проверки сертификатов",
            version="1.0.0",
            lifespan=lifespan
        )
        self.app.state.certificate_api = self

        self._setup_exception_handlers()
        self._setup_routes()

    def current_issuer(
            self,
            credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
    ) -> IssuerSession:
        """Контекст сессии издателя из токена Authorization: Bearer."""
        token = credentials.credentials if credentials else None
        return self.token_manager.decode(token)

    def _run(self, operation: Callable[[], Result]) -> JSONResponse:
        """Выполняет операцию и превращает результат или исключение в ответ."""
        try:
            result = operation()
        except Exception as e:
            result = from_exception(e)
        return result.to_response()

    def _setup_exception_handlers(self):
        """Ошибки из зависимостей отдаются в том же формате, что и из обработчиков."""

        @self.app.exception_handler(CertificateError)
        async def certificate_error_handler(request: Request, exc: CertificateError):
            return from_exception(exc).to_response()

    def _setup_routes(self):
        """Настройка маршрутов API"""

        @self.app.post("/api/auth/login", tags=["auth"])
        def login(request: LoginRequest):
            """Вход издателя по email и паролю"""
            def operation():
                session = self.account_service.authenticate(request.email, request.password)
                return Ok({
                    "accessToken": self.account_service.issue_token(session),
                    "tokenType": "bearer",
                    "user": {
                        "id": session.user_id,
                        "email": session.email,
                        "name": session.name,
                        "role": session.role,
                    },
                })
            return self._run(operation)

        @self.app.post("/api/certificates", tags=["certificates"])
        def create_certificate(
                request: CertificateRequest,
                issuer: IssuerSession = Depends(self.current_issuer)
        ):
            """Выпуск нового сертификата"""
            def operation():
                certificate = self.certificate_service.issue(issuer, request)
                return Ok(certificate.to_issuance_dict(), status_code=201)
            return self._run(operation)

        @self.app.get("/api/certificates", tags=["certificates"])
        def list_certificates(
                page: int = 1,
                limit: Optional[int] = None,
                status: Optional[str] = None,
                search: Optional[str] = None,
                issuer: IssuerSession = Depends(self.current_issuer)
        ):
            """Список сертификатов издателя"""
            def operation():
                search_request = SearchRequest(
                    page=page,
                    limit=limit if limit is not None else self.default_page_size,
                    status=_parse_status_filter(status),
                    search=search,
                )
                certificate_page = self.certificate_service.list_certificates(issuer, search_request)
                return Ok(certificate_page.to_dict())
            return self._run(operation)

        @self.app.get("/api/certificates/{certificate_id}", tags=["certificates"])
        def get_certificate(certificate_id: str, issuer: IssuerSession = Depends(self.current_issuer)):
            """Карточка сертификата издателя"""
            return self._run(lambda: Ok(self.certificate_service.get_certificate(issuer, certificate_id).to_dict()))

        @self.app.get("/api/certificates/{certificate_id}/history", tags=["certificates"])
        def get_certificate_history(certificate_id: str, issuer: IssuerSession = Depends(self.current_issuer)):
            """История изменений сертификата"""
            return self._run(lambda: Ok(self.certificate_service.get_history(issuer, certificate_id)))

        @self.app.patch("/api/certificates/{certificate_id}/status", tags=["certificates"])
        def change_certificate_status(
                certificate_id: str,
                request: StatusChangeRequest,
                issuer: IssuerSession = Depends(self.current_issuer)
        ):
            """Смена статуса сертификата"""
            def operation():
                new_status = (request.status or "").strip().upper()
                if new_status not in CertificateStatus.__members__:
                    raise ValidationError(
                        f"status must be one of: {', '.join(CertificateStatus.__members__)}",
                        field="status"
                    )
                certificate = self.certificate_service.change_status(
                    issuer, certificate_id, CertificateStatus(new_status)
                )
                return Ok(certificate.to_dict(), message="Certificate status updated")
            return self._run(operation)

        @self.app.post("/api/verification", tags=["verification"])
        def verify_certificate(request: VerificationRequest):
            """Публичная проверка сертификата по хешу или коду"""
            def operation():
                verification = self.verification_service.verify(request.certificate_id)
                return _Raw(verification.to_dict())
            return self._run(operation)

        @self.app.get("/api/dashboard/stats", tags=["dashboard"])
        def dashboard_stats(issuer: IssuerSession = Depends(self.current_issuer)):
            """Статистика издателя для панели управления"""
            return self._run(lambda: Ok(self.certificate_service.get_statistics(issuer)))

        @self.app.get("/api/user/profile", tags=["profile"])
        def get_profile(userId: Optional[str] = None, issuer: IssuerSession = Depends(self.current_issuer)):
            """Профиль издателя"""
            return self._run(lambda: Ok(self.account_service.get_profile(issuer, userId).to_dict()))

        @self.app.put("/api/user/profile", tags=["profile"])
        def update_profile(
                request: ProfileUpdateRequest,
                userId: Optional[str] = None,
                issuer: IssuerSession = Depends(self.current_issuer)
        ):
            """Обновление профиля издателя"""
            def operation():
                profile = self.account_service.update_profile(issuer, userId, request)
                return Ok(profile.to_dict(), message="Profile updated successfully")
            return self._run(operation)

        @self.app.get("/health", tags=["monitoring"])
        def health_check():
            """Проверка здоровья API и БД"""
            database_ok = self.db_manager.health_check()
            if not database_ok:
                self.logger.warning("Проверка здоровья: база данных недоступна")
            health_status = {
                "status": "healthy" if database_ok else "unhealthy",
                "timestamp": datetime.now().isoformat(),
                "components": {
                    "api": {"status": "healthy", "message": "API is running"},
                    "database": {
                        "status": "healthy" if database_ok else "unhealthy",
                        "message": "Database connection is active" if database_ok else "Database is unreachable",
                    },
                },
            }
            return JSONResponse(content=health_status, status_code=200 if database_ok else 503)
