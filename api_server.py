"""
FastAPI сервер SmartCert
"""
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import Settings, get_settings
from smartcert.api import CertificateAPI
from smartcert.container import build_services
from smartcert.database import DatabaseManager


def setup_logging(settings: Settings):
    """Настройка логирования"""
    settings.create_directories()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(settings.log_file),
            logging.StreamHandler()
        ]
    )


def create_app(settings: Optional[Settings] = None,
               db_manager: Optional[DatabaseManager] = None) -> FastAPI:
    """Создание FastAPI приложения"""
    settings = settings or get_settings()
    setup_logging(settings)

    services = build_services(settings, db_manager)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Управление жизненным циклом приложения"""
        logging.info("Запуск API сервера...")
        services.db_manager.create_tables()

        yield

        logging.info("Остановка API сервера...")
        services.db_manager.engine.dispose()

    certificate_api = CertificateAPI(
        db_manager=services.db_manager,
        certificate_service=services.certificate_service,
        verification_service=services.verification_service,
        account_service=services.account_service,
        token_manager=services.token_manager,
        default_page_size=settings.default_page_size,
        lifespan=lifespan
    )
    app = certificate_api.app
    app.state.services = services

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api_server:create_app",
        factory=True,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=get_settings().debug
    )
