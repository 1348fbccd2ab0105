# app_logging/logger.py
import functools
import inspect
import logging
import logging.handlers
import sys
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from .handlers import JSONFormatter, ContextFilter, StructuredLogHandler
from config.settings import config, LoggingConfig, LogHandler


MASK = '***'

# Имена аргументов, значения которых не попадают в лог
SENSITIVE_ARGS = ('password', 'master_pw')


class NoiseFilter(logging.Filter):
    """Подавляет отладочные сообщения сторонних библиотек"""

    def __init__(self, noisy_loggers: Iterable[str] = ('ldap3', 'asyncio')):
        super().__init__()
        # ldap3 на уровне DEBUG пишет дампы каждого LDAP-сообщения
        self.noisy_loggers = tuple(noisy_loggers)

    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        return not record.name.startswith(self.noisy_loggers)


def _file_handler(log_config: LoggingConfig) -> logging.Handler:
    return logging.FileHandler(Path(log_config.log_dir) / log_config.log_file, encoding='utf-8')


def _rotating_file_handler(log_config: LoggingConfig) -> logging.Handler:
    return logging.handlers.RotatingFileHandler(
        Path(log_config.log_dir) / log_config.log_file,
        maxBytes=log_config.max_file_size,
        backupCount=log_config.backup_count,
        encoding='utf-8'
    )


HANDLER_FACTORIES: Dict[LogHandler, Callable[[LoggingConfig], logging.Handler]] = {
    LogHandler.CONSOLE: lambda log_config: logging.StreamHandler(sys.stdout),
    LogHandler.FILE: _file_handler,
    LogHandler.ROTATING_FILE: _rotating_file_handler,
}


class LoggerManager:
    """
    Настраивает корневой логгер по LoggingConfig.

    Один экземпляр на процесс. Повторная настройка заменяет только
    обработчики, добавленные самим менеджером.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not hasattr(self, 'initialized'):
            self.initialized = True
            self._loggers: Dict[str, logging.Logger] = {}
            self._handlers: List[logging.Handler] = []
            self.configure()

    def configure(self, log_config: Optional[LoggingConfig] = None) -> None:
        log_config = log_config or config.logging
        level = getattr(logging, log_config.level.value)

        if any(h != LogHandler.CONSOLE for h in log_config.handlers):
            Path(log_config.log_dir).mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger()
        root_logger.setLevel(level)

        with self._lock:
            for handler in self._handlers:
                root_logger.removeHandler(handler)
                handler.close()
            self._handlers = []

            noise_filter = NoiseFilter()
            for handler_type in log_config.handlers:
                handler = HANDLER_FACTORIES[handler_type](log_config)
                handler.setLevel(level)
                handler.setFormatter(self._formatter(log_config))
                if log_config.enable_context_logging:
                    handler.addFilter(ContextFilter())
                handler.addFilter(noise_filter)
                root_logger.addHandler(handler)
                self._handlers.append(handler)

    @property
    def handlers(self) -> List[logging.Handler]:
        return list(self._handlers)

    @staticmethod
    def _formatter(log_config: LoggingConfig) -> logging.Formatter:
        if log_config.enable_json_logging:
            return JSONFormatter()
        return logging.Formatter(log_config.log_format, datefmt=log_config.date_format)

    def get_logger(self, name: str, extra_fields: Optional[Dict[str, Any]] = None) -> logging.Logger:
        if name not in self._loggers:
            logger = logging.getLogger(name)

            # Постоянные поля логгера пишутся через обертки над корневыми обработчиками
            if extra_fields:
                for handler in self._handlers:
                    logger.addHandler(StructuredLogHandler(handler, extra_fields))
                logger.propagate = False

            self._loggers[name] = logger

        return self._loggers[name]


# Глобальный экземпляр менеджера
_logger_manager = LoggerManager()


def get_logger(name: str, extra_fields: Optional[Dict[str, Any]] = None) -> logging.Logger:
    """
    Получает настроенный логгер

    Args:
        name: Имя логгера (обычно __name__)
        extra_fields: Постоянные поля для структурированного логирования

    Returns:
        Логгер
    """
    return _logger_manager.get_logger(name, extra_fields)


def setup_logging(log_config: Optional[LoggingConfig] = None) -> LoggerManager:
    """Перенастраивает логирование (вызывается при старте приложения)"""
    _logger_manager.configure(log_config)
    return _logger_manager


def mask_arguments(func: Callable, args: tuple, kwargs: dict,
                   hidden: Iterable[str] = SENSITIVE_ARGS) -> Dict[str, Any]:
    """Аргументы вызова по именам, секретные значения заменены на ***"""
    try:
        bound = inspect.signature(func).bind_partial(*args, **kwargs)
        arguments = dict(bound.arguments)
    except TypeError:
        arguments = {'args': args, **kwargs}
    return {name: MASK if name in hidden else value for name, value in arguments.items()}


def log_function_call(logger_name: str = None, log_args: bool = True, log_result: bool = True,
                      hidden_args: Iterable[str] = SENSITIVE_ARGS):
    """Декоратор: логирует вызов, результат и ошибку функции на уровне DEBUG"""
    hidden_args = tuple(hidden_args)

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger(logger_name or func.__module__)

            if log_args:
                logger.debug(f"Вызов {func.__name__}({mask_arguments(func, args, kwargs, hidden_args)})")

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.debug(f"Ошибка в функции {func.__name__}: {e}")
                raise

            if log_result:
                logger.debug(f"Функция {func.__name__} вернула: {result!r}")
            return result

        return wrapper
    return decorator
