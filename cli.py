"""
CLI интерфейс SmartCert
"""
import argparse
import logging
import sys
from typing import Optional

from config.settings import Settings, get_settings
from smartcert.container import Services, build_services
from smartcert.exceptions import CertificateError, ValidationError
from smartcert.models import CertificateRequest, CertificateStatus, SearchRequest
from smartcert.security import IssuerSession


class CertificateCLI:
    """CLI интерфейс для работы с сертификатами"""

    def __init__(self, services: Optional[Services] = None, settings: Optional[Settings] = None):
        self.settings = settings or (services.settings if services else get_settings())
        self.setup_logging()
        self.services = services or build_services(self.settings)

    def setup_logging(self):
        """Настройка логирования"""
        self.settings.create_directories()
        logging.basicConfig(
            level=getattr(logging, self.settings.log_level),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[
                logging.FileHandler(self.settings.log_file),
                logging.StreamHandler()
            ]
        )
        self.logger = logging.getLogger(__name__)

    def _issuer_session(self, email: str) -> IssuerSession:
        """Контекст издателя по email для операций от имени оператора."""
        credentials = self.services.issuer_repo.get_credentials(email.strip().lower())
        if credentials is None:
            raise ValidationError(f"Издатель {email} не найден", field="issuer_email")
        profile, _ = credentials
        return IssuerSession(user_id=profile.id, email=profile.email, name=profile.name, role=profile.role)

    def init_db(self, args):
        """Создание таблиц"""
        self.services.db_manager.create_tables()
        print("✓ Таблицы базы данных созданы")

    def seed_admin(self, args):
        """Создание учетной записи администратора"""
        profile = self.services.account_service.ensure_admin(
            email=args.email,
            password=args.password,
            name=args.name,
            university=args.university
        )
        print("✓ Администратор готов:")
        print(f"  ID: {profile.id}")
        print(f"  Email: {profile.email}")
        print(f"  Имя: {profile.name}")

    def issue_certificate(self, args):
        """Выпуск сертификата через CLI"""
        issuer = self._issuer_session(args.issuer_email)
        certificate = self.services.certificate_service.issue(issuer, CertificateRequest(
            recipient_name=args.recipient,
            email=args.email,
            course=args.course,
            matriculation_number=args.matric,
            issue_date=args.issue_date,
            expiry_date=args.expiry_date,
            template=args.template
        ))

        print("✓ Сертификат успешно выпущен:")
        print(f"  ID: {certificate.id}")
        print(f"  Код: {certificate.certificate_code}")
        print(f"  Хеш: {certificate.verification_hash}")
        print(f"  Получатель: {certificate.recipient_name}")
        print(f"  Курс: {certificate.course}")
        print(f"  Статус: {certificate.status.value}")

    def verify_certificate(self, args):
        """Проверка сертификата через CLI"""
        result = self.services.verification_service.verify(args.candidate)

        if not result.is_valid:
            print(f"✗ {result.message}")
            return

        data = result.certificate_data
        print(f"✓ {result.message}:")
        print(f"  Код: {data['certificateId']}")
        print(f"  Получатель: {data['recipientName']}")
        print(f"  Курс: {data['course']}")
        print(f"  Год выпуска: {data['graduationYear']}")
        print(f"  Издатель: {data['issuer']}")

    def list_certificates(self, args):
        """Список сертификатов издателя"""
        issuer = self._issuer_session(args.issuer_email)
        page = self.services.certificate_service.list_certificates(issuer, SearchRequest(
            page=args.page,
            limit=args.limit,
            status=CertificateStatus(args.status) if args.status else None,
            search=args.search
        ))

        if not page.certificates:
            print("  Сертификаты не найдены")
            return

        print(f"Сертификаты (страница {page.page} из {page.pages}, всего {page.total}):")
        for certificate in page.certificates:
            print(
                f"  {certificate.certificate_code}  {certificate.status.value:<8}  "
                f"{certificate.recipient_name} - {certificate.course}  ({certificate.id})"
            )

    def revoke_certificate(self, args):
        """Отзыв сертификата"""
        issuer = self._issuer_session(args.issuer_email)
        certificate = self.services.certificate_service.revoke(issuer, args.certificate_id)
        print(f"✓ Сертификат {certificate.certificate_code} отозван")

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="Выпуск и проверка сертификатов SmartCert",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Примеры использования:
  %(prog)s init-db
  %(prog)s seed-admin --password admin123
  %(prog)s issue --issuer-email admin@unijos.edu --recipient "Aisha Bello" --email csc045@unijos.edu \\
      --course "Computer Science" --matric CSC/2017/045 --issue-date 2024-06-01
  %(prog)s verify 3F9K2Q7Z
  %(prog)s list --issuer-email admin@unijos.edu --status ISSUED
            """
        )

        subparsers = parser.add_subparsers(dest='command', help='Доступные команды')

        subparsers.add_parser('init-db', help='Создание таблиц базы данных')

        seed_parser = subparsers.add_parser('seed-admin', help='Создание администратора')
        seed_parser.add_argument('--email', default='admin@unijos.edu', help='Email администратора')
        seed_parser.add_argument('--password', required=True, help='Пароль администратора')
        seed_parser.add_argument('--name', default='Admin User', help='Имя администратора')
        seed_parser.add_argument('--university', default='University of Jos', help='Университет')

        issue_parser = subparsers.add_parser('issue', help='Выпуск нового сертификата')
        issue_parser.add_argument('--issuer-email', required=True, help='Email издателя')
        issue_parser.add_argument('--recipient', required=True, help='Имя получателя')
        issue_parser.add_argument('--email', required=True, help='Email получателя')
        issue_parser.add_argument('--course', required=True, help='Программа обучения')
        issue_parser.add_argument('--matric', required=True, help='Номер зачетной книжки')
        issue_parser.add_argument('--issue-date', required=True, help='Дата выпуска (YYYY-MM-DD)')
        issue_parser.add_argument('--expiry-date', help='Дата окончания (YYYY-MM-DD)')
        issue_parser.add_argument('--template', help='Шаблон оформления')

        verify_parser = subparsers.add_parser('verify', help='Проверка сертификата')
        verify_parser.add_argument('candidate', help='Хеш проверки или код сертификата')

        list_parser = subparsers.add_parser('list', help='Список сертификатов издателя')
        list_parser.add_argument('--issuer-email', required=True, help='Email издателя')
        list_parser.add_argument('--status', choices=[status.value for status in CertificateStatus])
        list_parser.add_argument('--search', help='Поиск по имени, email, курсу и номеру')
        list_parser.add_argument('--page', type=int, default=1)
        list_parser.add_argument('--limit', type=int, default=self.settings.default_page_size)

        revoke_parser = subparsers.add_parser('revoke', help='Отзыв сертификата')
        revoke_parser.add_argument('--issuer-email', required=True, help='Email издателя')
        revoke_parser.add_argument('certificate_id', help='Внутренний ID сертификата')

        return parser

    def main(self, argv=None):
        """Главная функция CLI"""
        parser = self.build_parser()
        args = parser.parse_args(argv)

        if not args.command:
            parser.print_help()
            return

        commands = {
            'init-db': self.init_db,
            'seed-admin': self.seed_admin,
            'issue': self.issue_certificate,
            'verify': self.verify_certificate,
            'list': self.list_certificates,
            'revoke': self.revoke_certificate,
        }

        try:
            commands[args.command](args)
        except ValidationError as e:
            print(f"✗ Ошибка валидации: {e}")
            sys.exit(1)
        except CertificateError as e:
            print(f"✗ Ошибка: {e}")
            self.logger.error(f"Ошибка выполнения команды {args.command}: {e}")
            sys.exit(1)


def main(argv=None):
    cli = CertificateCLI()
    cli.main(argv)


if __name__ == '__main__':
    main()
