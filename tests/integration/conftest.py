"""
Конфигурация и фикстуры для интеграционных тестов
"""
import os
import pytest
import pytest_asyncio

from auth.ldap_auth import LDAPAuthenticator
from config.settings import AppConfig, DirectoryAuthConfig


@pytest.fixture
def use_real_servers() -> bool:
    """Проверяет, нужно ли использовать реальный сервер каталога"""
    return os.getenv('TEST_USE_REAL_SERVERS', 'false').lower() == 'true'


@pytest.fixture
def real_ldap_credentials():
    """Логин и пароль участника группы на реальном сервере"""
    username = os.getenv('TEST_LDAP_USERNAME')
    password = os.getenv('TEST_LDAP_PASSWORD')
    if not username or not password:
        pytest.skip("TEST_LDAP_USERNAME и TEST_LDAP_PASSWORD не заданы")
    return username, password


@pytest_asyncio.fixture
async def real_ldap_authenticator(use_real_servers):
    """LDAPAuthenticator поверх реального каталога (настройки из .env)"""
    if not use_real_servers:
        pytest.skip("Тесты с реальным сервером отключены (TEST_USE_REAL_SERVERS=false)")

    try:
        auth_config = DirectoryAuthConfig.from_settings(AppConfig())
    except ValueError as e:
        pytest.skip(str(e))

    authenticator = LDAPAuthenticator(auth_config)
    yield authenticator
    await authenticator.close()
