"""
Глобальная конфигурация pytest для всех тестов
"""
import os
import sys
import logging
from pathlib import Path

import pytest

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Настройка логирования для тестов
logging.basicConfig(
    level=logging.WARNING,  # Уменьшаем уровень логирования в тестах
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Отключаем логирование для внешних библиотек
logging.getLogger('ldap3').setLevel(logging.WARNING)
logging.getLogger('asyncio').setLevel(logging.WARNING)


@pytest.fixture(scope='session', autouse=True)
def setup_test_environment():
    """Настройка тестового окружения перед запуском всех тестов"""
    os.environ.setdefault('ENVIRONMENT', 'test')
    yield


@pytest.fixture
def clean_ldap_env(monkeypatch):
    """Убирает LDAP_* и LOG_* переменные, чтобы настройки брались только из теста"""
    for name in list(os.environ):
        if name.startswith(('LDAP_', 'LOG_')):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(project_root / 'tests')
    return monkeypatch
