"""
Тесты для генератора идентификаторов
"""
import re
from dataclasses import replace

import pytest

from smartcert.generator import CertificateIDGenerator, HashContent


class TestCertificateIDGenerator:
    """Тесты для класса CertificateIDGenerator"""

    @pytest.fixture
    def generator(self):
        """Фикстура для генератора"""
        return CertificateIDGenerator()

    @pytest.fixture
    def content(self):
        return HashContent(
            recipient_name="Aisha Bello",
            email="csc045@unijos.edu",
            course="Computer Science",
            matriculation_number="CSC/2017/045",
            issue_date="2024-06-01",
            issuing_user_id="5f0c6f0e-3b7c-4c59-9a53-1f1f7e2b8a10",
        )

    def test_generate_code_format(self, generator):
        """Тест формата кода сертификата"""
        for _ in range(50):
            code = generator.generate_code()
            assert re.fullmatch(r'[A-Z0-9]{8}', code)

    def test_generate_hash_format(self, generator, content):
        """Тест формата хеша проверки"""
        value = generator.generate_verification_hash(content)

        assert len(value) == 64
        assert re.fullmatch(r'[0-9a-f]{64}', value)

    def test_hash_is_reproducible_for_same_timestamp(self, generator, content):
        """Тест воспроизводимости хеша при фиксированной метке времени"""
        first = generator.generate_verification_hash(content, timestamp_ns=1717200000000000000)
        second = generator.generate_verification_hash(content, timestamp_ns=1717200000000000000)

        assert first == second

    def test_identical_content_gives_distinct_hashes(self, generator, content):
        """Тест различия хешей для одинаковых данных"""
        hashes = {generator.generate_verification_hash(content) for _ in range(100)}

        assert len(hashes) == 100

    def test_hash_depends_on_issuer(self, generator, content):
        """Тест зависимости хеша от издателя"""
        other = replace(content, issuing_user_id="another-issuer")
        timestamp = 1717200000000000000

        assert (generator.generate_verification_hash(content, timestamp_ns=timestamp)
                != generator.generate_verification_hash(other, timestamp_ns=timestamp))

    def test_validate_code_format(self, generator):
        """Тест проверки формата кода"""
        assert generator.validate_code_format("AB12CD34")
        assert generator.validate_code_format("00000000")

        assert not generator.validate_code_format("")
        assert not generator.validate_code_format("ab12cd34")
        assert not generator.validate_code_format("AB12CD3")
        assert not generator.validate_code_format("AB12CD345")
        assert not generator.validate_code_format("AB12-D34")

    def test_validate_hash_format(self, generator, content):
        """Тест проверки формата хеша"""
        assert generator.validate_hash_format(generator.generate_verification_hash(content))

        assert not generator.validate_hash_format("")
        assert not generator.validate_hash_format("not-a-real-hash")
        assert not generator.validate_hash_format("A" * 64)
