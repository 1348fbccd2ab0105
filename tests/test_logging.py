"""
Тесты системы логирования
"""
import json
import logging

import pytest

from app_logging import (
    ContextFilter,
    JSONFormatter,
    NoiseFilter,
    StructuredLogHandler,
    auth_context,
    current_auth_context,
    get_logger,
    log_function_call,
    mask_arguments,
    setup_logging,
)
from config.settings import LoggingConfig


def make_record(name='auth.session_manager', level=logging.INFO, msg='Сообщение %s', args=('x',)):
    return logging.LogRecord(name, level, __file__, 10, msg, args, None)


@pytest.fixture
def restore_root_logger():
    """Возвращает корневой логгер в исходное состояние после теста"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


class TestFormattersAndFilters:

    def test_json_formatter(self):
        record = make_record()
        ContextFilter().filter(record)

        data = json.loads(JSONFormatter().format(record))

        assert data['message'] == 'Сообщение x'
        assert data['level'] == 'INFO'
        assert data['logger'] == 'auth.session_manager'
        assert data['timestamp'] == record.timestamp
        assert 'process_id' in data

    def test_json_formatter_extra_fields(self):
        record = make_record()
        record.extra_fields = {'username': 'jdoe'}

        data = json.loads(JSONFormatter().format(record))

        assert data['username'] == 'jdoe'

    def test_context_filter_keeps_record(self):
        record = make_record()
        assert ContextFilter().filter(record) is True
        assert record.thread_name
        assert record.process_id

    @pytest.mark.parametrize('name, level, passed', [
        ('ldap3.strategy.base', logging.DEBUG, False),
        ('ldap3', logging.INFO, False),
        ('ldap3', logging.WARNING, True),
        ('asyncio', logging.DEBUG, False),
        ('auth.ldap_auth', logging.DEBUG, True),
    ])
    def test_noise_filter(self, name, level, passed):
        assert NoiseFilter().filter(make_record(name=name, level=level)) is passed

    def test_structured_handler_adds_fields(self):
        records = []

        class Collector(logging.Handler):
            def emit(self, record):
                records.append(record)

        handler = StructuredLogHandler(Collector(), {'component': 'directory-auth'})
        handler.handle(make_record())

        assert records[0].extra_fields == {'component': 'directory-auth'}


class TestSetupLogging:

    def test_rotating_file_handler(self, tmp_path, restore_root_logger):
        log_config = LoggingConfig(
            LOG_LEVEL='INFO',
            LOG_HANDLERS=['rotating_file'],
            LOG_DIR=str(tmp_path / 'logs'),
            LOG_FILE='auth.log',
            LOG_JSON_FORMAT=True,
        )

        setup_logging(log_config)
        logging.getLogger('auth.test').info('Пользователь вошел')
        logging.getLogger('ldap3.core').info('шум')
        for handler in restore_root_logger.handlers:
            handler.flush()

        lines = (tmp_path / 'logs' / 'auth.log').read_text(encoding='utf-8').splitlines()
        messages = [json.loads(line)['message'] for line in lines]
        assert messages == ['Пользователь вошел']

    def test_repeated_setup_does_not_duplicate_handlers(self, tmp_path, restore_root_logger):
        log_config = LoggingConfig(LOG_HANDLERS=['file'], LOG_DIR=str(tmp_path))

        setup_logging(log_config)
        manager = setup_logging(log_config)

        own = [h for h in restore_root_logger.handlers if h in manager.handlers]
        assert len(own) == 1


class TestLogFunctionCall:

    def test_logs_call_and_result(self, caplog):
        @log_function_call('tests.decorated')
        def add(a, b):
            return a + b

        with caplog.at_level(logging.DEBUG, logger='tests.decorated'):
            assert add(2, 3) == 5

        messages = [r.getMessage() for r in caplog.records if r.name == 'tests.decorated']
        assert any('Вызов add' in m for m in messages)
        assert any('вернула: 5' in m for m in messages)

    def test_reraises(self, caplog):
        @log_function_call('tests.decorated')
        def fail():
            raise KeyError('boom')

        with caplog.at_level(logging.DEBUG, logger='tests.decorated'):
            with pytest.raises(KeyError):
                fail()

        assert any('Ошибка в функции fail' in r.getMessage() for r in caplog.records)

    def test_get_logger_is_cached(self):
        assert get_logger('tests.cached') is get_logger('tests.cached')

    def test_password_is_masked(self, caplog):
        @log_function_call('tests.decorated', log_result=False)
        def login(username, password):
            return True

        with caplog.at_level(logging.DEBUG, logger='tests.decorated'):
            login('jdoe', 'correct-password')

        text = ' '.join(r.getMessage() for r in caplog.records)
        assert 'jdoe' in text
        assert 'correct-password' not in text

    def test_mask_arguments(self):
        def bind(dn, password, timeout=30):
            pass

        masked = mask_arguments(bind, ('cn=jdoe', 'secret'), {'timeout': 5})

        assert masked == {'dn': 'cn=jdoe', 'password': '***', 'timeout': 5}


class TestAuthContext:

    def test_fields_are_scoped(self):
        assert current_auth_context() == {}
        with auth_context(username='jdoe'):
            with auth_context(operation='auth_user'):
                assert current_auth_context() == {'username': 'jdoe', 'operation': 'auth_user'}
            assert current_auth_context() == {'username': 'jdoe'}
        assert current_auth_context() == {}

    def test_context_in_json_record(self):
        record = make_record()
        with auth_context(username='jdoe', operation='auth_user'):
            ContextFilter().filter(record)

        data = json.loads(JSONFormatter().format(record))

        assert record.auth_user == 'jdoe'
        assert data['auth'] == {'username': 'jdoe', 'operation': 'auth_user'}

    def test_record_without_context(self):
        record = make_record()
        ContextFilter().filter(record)

        assert record.auth_user == '-'
        assert 'auth' not in json.loads(JSONFormatter().format(record))
