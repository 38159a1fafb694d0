"""
Модели SQLAlchemy и репозитории для работы с базой данных.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy import (
    JSON, Column, Date, DateTime, ForeignKey, Index, String, Text, Uuid,
    UniqueConstraint, create_engine, func, or_, text
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, joinedload, relationship, sessionmaker

from config.settings import get_settings
from .exceptions import ConflictError, StorageError, ValidationError
from .models import Certificate as CertificateModel
from .models import CertificateStatus, IssuerProfile

logger = logging.getLogger(__name__)

# Базовый класс для моделей
Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Issuer(Base):
    """Учетная запись сотрудника, выпускающего сертификаты."""

    __tablename__ = "issuers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    university = Column(String(255), nullable=True)
    image = Column(Text, nullable=True)
    role = Column(String(20), nullable=False, default="ADMIN")
    password_hash = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    certificates = relationship("Certificate", back_populates="issuer")

    def __repr__(self):
        return f"<Issuer(id={self.id}, email={self.email})>"


class Certificate(Base):
    """Модель сертификата."""

    __tablename__ = "certificates"

    # Основные поля
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    certificate_code = Column(String(8), nullable=False)
    verification_hash = Column(String(64), nullable=False)
    recipient_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    course = Column(String(255), nullable=False)
    matriculation_number = Column(String(64), nullable=False)
    issue_date = Column(Date, nullable=False)
    expiry_date = Column(Date, nullable=True)
    status = Column(String(16), nullable=False, default=CertificateStatus.ISSUED.value, index=True)

    # Оформление
    template = Column(String(32), nullable=False, default="classic")
    signatory_left = Column(String(255), nullable=True)
    signatory_right = Column(String(255), nullable=True)

    # Метаданные
    issuing_user_id = Column(Uuid, ForeignKey("issuers.id"), nullable=False)
    issued_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    issuer = relationship("Issuer", back_populates="certificates")

    # Ограничения уникальности и индексы для поиска
    __table_args__ = (
        UniqueConstraint('verification_hash', name='uq_certificates_verification_hash'),
        UniqueConstraint('certificate_code', name='uq_certificates_certificate_code'),
        Index('idx_certificate_issuer_created', 'issuing_user_id', 'created_at'),
        Index('idx_certificate_issuer_status', 'issuing_user_id', 'status'),
    )

    def __repr__(self):
        return f"<Certificate(code={self.certificate_code}, status={self.status})>"


class CertificateHistory(Base):
    """Модель истории изменений сертификатов."""

    __tablename__ = "certificate_history"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    certificate_id = Column(Uuid, ForeignKey("certificates.id"), nullable=False, index=True)
    action = Column(String(50), nullable=False)  # 'created', 'status_changed'
    performed_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    performed_by = Column(String(64), nullable=False)
    details = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<CertificateHistory(certificate_id={self.certificate_id}, action={self.action})>"


class DatabaseManager:
    """Менеджер для работы с базой данных."""

    def __init__(self, database_url: str = None, **engine_kwargs):
        """
        Инициализация менеджера БД.

        Args:
            database_url: URL подключения к БД
            engine_kwargs: Дополнительные параметры create_engine
        """
        if database_url is None:
            database_url = get_settings().database_url

        if database_url.startswith("sqlite"):
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        else:
            engine_kwargs.setdefault("pool_pre_ping", True)
            engine_kwargs.setdefault("pool_recycle", 3600)

        self.engine = create_engine(database_url, echo=False, **engine_kwargs)
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )

    def create_tables(self):
        """Создает все таблицы в базе данных."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Таблицы базы данных созданы")

    def drop_tables(self):
        """Удаляет все таблицы из базы данных."""
        Base.metadata.drop_all(bind=self.engine)
        logger.info("Таблицы базы данных удалены")

    def get_session(self) -> Session:
        """Возвращает новую сессию для работы с БД."""
        return self.SessionLocal()

    def health_check(self) -> bool:
        """Проверяет подключение к базе данных."""
        try:
            with self.get_session() as session:
                session.execute(text("SELECT 1"))
                return True
        except SQLAlchemyError as e:
            logger.error(f"Ошибка подключения к БД: {e}")
            return False


def _parse_uuid(value) -> Optional[uuid.UUID]:
    """Преобразует строку в UUID; некорректное значение дает None."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def _to_model(row: Certificate) -> CertificateModel:
    """Конвертирует строку БД в Pydantic модель, пока сессия открыта."""
    issuer = row.issuer
    return CertificateModel(
        id=str(row.id),
        certificate_code=row.certificate_code,
        verification_hash=row.verification_hash,
        recipient_name=row.recipient_name,
        email=row.email,
        course=row.course,
        matriculation_number=row.matriculation_number,
        issue_date=row.issue_date,
        expiry_date=row.expiry_date,
        status=CertificateStatus(row.status),
        template=row.template,
        signatory_left=row.signatory_left,
        signatory_right=row.signatory_right,
        issuing_user_id=str(row.issuing_user_id),
        issuer_name=issuer.name if issuer else None,
        issuer_university=issuer.university if issuer else None,
        issued_at=row.issued_at,
        created_at=row.created_at,
    )


def _conflict_column(error: IntegrityError) -> Optional[str]:
    """Определяет столбец, нарушивший уникальность."""
    message = str(error.orig)
    for column in ("verification_hash", "certificate_code"):
        if column in message:
            return column
    return None


class CertificateRepository:
    """Репозиторий для работы с сертификатами."""

    def __init__(self, db_manager: DatabaseManager):
        """
        Инициализация репозитория.

        Args:
            db_manager: Менеджер базы данных
        """
        self.db_manager = db_manager

    def create(self, certificate_data: dict, performed_by: str) -> CertificateModel:
        """
        Создает новый сертификат вместе с записью истории.

        Args:
            certificate_data: Данные сертификата
            performed_by: ID издателя

        Returns:
            CertificateModel: Созданный сертификат

        Raises:
            ConflictError: Если код или хеш уже заняты
            StorageError: При ошибке БД
        """
        data = dict(certificate_data)
        data["issuing_user_id"] = _parse_uuid(data["issuing_user_id"])

        try:
            with self.db_manager.get_session() as session:
                certificate = Certificate(**data)
                session.add(certificate)
                session.flush()

                self._add_history_record(
                    session,
                    certificate.id,
                    "created",
                    performed_by,
                    {"certificate_code": certificate.certificate_code}
                )
                session.commit()

                return _to_model(certificate)

        except IntegrityError as e:
            column = _conflict_column(e)
            if column is None:
                raise StorageError(f"Ошибка сохранения сертификата: {e.orig}") from e
            logger.warning(f"Коллизия уникального значения в столбце {column}")
            raise ConflictError(f"Значение {column} уже существует", column=column) from e
        except SQLAlchemyError as e:
            raise StorageError(f"Ошибка сохранения сертификата: {e}") from e

    def find_by_hash(self, verification_hash: str) -> Optional[CertificateModel]:
        """Получает сертификат по хешу проверки."""
        return self._find_one(Certificate.verification_hash == verification_hash)

    def find_by_code(self, certificate_code: str) -> Optional[CertificateModel]:
        """Получает сертификат по коду."""
        return self._find_one(Certificate.certificate_code == certificate_code)

    def find_by_id(self, internal_id: str) -> Optional[CertificateModel]:
        """Получает сертификат по внутреннему ID."""
        parsed = _parse_uuid(internal_id)
        if parsed is None:
            return None
        return self._find_one(Certificate.id == parsed)

    def _find_one(self, criterion) -> Optional[CertificateModel]:
        try:
            with self.db_manager.get_session() as session:
                row = session.query(Certificate).options(
                    joinedload(Certificate.issuer)
                ).filter(criterion).first()
                return _to_model(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Ошибка получения сертификата: {e}") from e

    def list_by_issuer(self, issuing_user_id: str, status: Optional[CertificateStatus] = None,
                       search: Optional[str] = None, page: int = 1,
                       limit: int = 10) -> Tuple[List[CertificateModel], int]:
        """
        Получает страницу сертификатов издателя.

        Args:
            issuing_user_id: ID издателя
            status: Фильтр по статусу
            search: Подстрока для поиска без учета регистра
            page: Номер страницы, начиная с 1
            limit: Размер страницы

        Returns:
            Tuple[List[CertificateModel], int]: Сертификаты страницы и общее количество
        """
        issuer_id = _parse_uuid(issuing_user_id)
        if issuer_id is None:
            return [], 0

        try:
            with self.db_manager.get_session() as session:
                query = session.query(Certificate).filter(Certificate.issuing_user_id == issuer_id)

                if status:
                    query = query.filter(Certificate.status == CertificateStatus(status).value)

                if search:
                    pattern = f"%{search}%"
                    query = query.filter(or_(
                        Certificate.recipient_name.ilike(pattern),
                        Certificate.email.ilike(pattern),
                        Certificate.course.ilike(pattern),
                        Certificate.matriculation_number.ilike(pattern),
                    ))

                total = query.count()
                rows = query.options(joinedload(Certificate.issuer)).order_by(
                    Certificate.created_at.desc()
                ).offset((page - 1) * limit).limit(limit).all()

                return [_to_model(row) for row in rows], total
        except SQLAlchemyError as e:
            raise StorageError(f"Ошибка поиска сертификатов: {e}") from e

    def update_status(self, internal_id: str, new_status: CertificateStatus,
                      performed_by: str) -> Optional[CertificateModel]:
        """
        Меняет статус сертификата и записывает изменение в историю.

        Returns:
            Optional[CertificateModel]: Обновленный сертификат или None, если не найден
        """
        parsed = _parse_uuid(internal_id)
        if parsed is None:
            return None

        try:
            with self.db_manager.get_session() as session:
                certificate = session.query(Certificate).filter(Certificate.id == parsed).first()
                if not certificate:
                    return None

                old_status = certificate.status
                certificate.status = CertificateStatus(new_status).value

                self._add_history_record(
                    session,
                    certificate.id,
                    "status_changed",
                    performed_by,
                    {"from": old_status, "to": certificate.status}
                )
                session.commit()

                return _to_model(certificate)
        except SQLAlchemyError as e:
            raise StorageError(f"Ошибка изменения статуса сертификата: {e}") from e

    def _add_history_record(self, session: Session, certificate_id: uuid.UUID,
                            action: str, user_id: str, details: dict = None):
        """Добавляет запись в историю изменений."""
        session.add(CertificateHistory(
            certificate_id=certificate_id,
            action=action,
            performed_by=str(user_id),
            details=details
        ))

    def get_certificate_history(self, internal_id: str) -> List[dict]:
        """
        Получает историю изменений сертификата, новые записи первыми.

        Args:
            internal_id: Внутренний ID сертификата

        Returns:
            List[dict]: Записи истории
        """
        parsed = _parse_uuid(internal_id)
        if parsed is None:
            return []

        try:
            with self.db_manager.get_session() as session:
                records = session.query(CertificateHistory).filter(
                    CertificateHistory.certificate_id == parsed
                ).order_by(CertificateHistory.performed_at.desc()).all()
                return [
                    {
                        "action": record.action,
                        "performedAt": record.performed_at.isoformat(),
                        "performedBy": record.performed_by,
                        "details": record.details,
                    }
                    for record in records
                ]
        except SQLAlchemyError as e:
            raise StorageError(f"Ошибка получения истории: {e}") from e

    def get_statistics(self, issuing_user_id: str) -> Dict[str, int]:
        """
        Получает статистику по сертификатам издателя.

        Returns:
            dict: Общее количество, количество по статусам и выпущенные сегодня
        """
        issuer_id = _parse_uuid(issuing_user_id)
        counts = {status.value: 0 for status in CertificateStatus}
        if issuer_id is None:
            return {"total": 0, "today_issued": 0, **counts}

        day_start = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
        day_end = day_start + timedelta(days=1)

        try:
            with self.db_manager.get_session() as session:
                rows = session.query(Certificate.status, func.count(Certificate.id)).filter(
                    Certificate.issuing_user_id == issuer_id
                ).group_by(Certificate.status).all()
                for status, count in rows:
                    counts[status] = count

                today_issued = session.query(Certificate).filter(
                    Certificate.issuing_user_id == issuer_id,
                    Certificate.issued_at >= day_start,
                    Certificate.issued_at < day_end
                ).count()

            return {"total": sum(counts.values()), "today_issued": today_issued, **counts}
        except SQLAlchemyError as e:
            raise StorageError(f"Ошибка получения статистики: {e}") from e


def _to_profile(row: Issuer) -> IssuerProfile:
    return IssuerProfile(
        id=str(row.id),
        name=row.name,
        email=row.email,
        university=row.university,
        image=row.image,
        role=row.role,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class IssuerRepository:
    """Репозиторий учетных записей издателей."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    def get_by_id(self, issuer_id: str) -> Optional[IssuerProfile]:
        parsed = _parse_uuid(issuer_id)
        if parsed is None:
            return None
        try:
            with self.db_manager.get_session() as session:
                row = session.get(Issuer, parsed)
                return _to_profile(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Ошибка получения издателя: {e}") from e

    def get_credentials(self, email: str) -> Optional[Tuple[IssuerProfile, Optional[str]]]:
        """Возвращает профиль и хеш пароля по email."""
        try:
            with self.db_manager.get_session() as session:
                row = session.query(Issuer).filter(Issuer.email == email).first()
                return (_to_profile(row), row.password_hash) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Ошибка получения издателя: {e}") from e

    def email_taken(self, email: str, exclude_id: Optional[str] = None) -> bool:
        """Проверяет, занят ли email другим издателем."""
        try:
            with self.db_manager.get_session() as session:
                query = session.query(Issuer).filter(Issuer.email == email)
                excluded = _parse_uuid(exclude_id) if exclude_id else None
                if excluded is not None:
                    query = query.filter(Issuer.id != excluded)
                return query.first() is not None
        except SQLAlchemyError as e:
            raise StorageError(f"Ошибка проверки email: {e}") from e

    def upsert(self, email: str, password_hash: str, name: str,
               university: Optional[str], role: str = "ADMIN") -> IssuerProfile:
        """Создает издателя или обновляет существующего с тем же email."""
        try:
            with self.db_manager.get_session() as session:
                row = session.query(Issuer).filter(Issuer.email == email).first()
                if row is None:
                    row = Issuer(email=email)
                    session.add(row)
                row.password_hash = password_hash
                row.name = name
                row.university = university
                row.role = role
                session.commit()
                return _to_profile(row)
        except SQLAlchemyError as e:
            raise StorageError(f"Ошибка сохранения издателя: {e}") from e

    def update_profile(self, issuer_id: str, name: str, email: str,
                       university: Optional[str], image: Optional[str]) -> Optional[IssuerProfile]:
        """Обновляет профиль издателя."""
        parsed = _parse_uuid(issuer_id)
        if parsed is None:
            return None
        try:
            with self.db_manager.get_session() as session:
                row = session.get(Issuer, parsed)
                if row is None:
                    return None
                row.name = name
                row.email = email
                row.university = university
                row.image = image
                session.commit()
                return _to_profile(row)
        except IntegrityError as e:
            raise ValidationError("Email already in use", field="email") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Ошибка обновления профиля: {e}") from e
