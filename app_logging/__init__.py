# app_logging/__init__.py
from .logger import (
    LoggerManager,
    NoiseFilter,
    get_logger,
    log_function_call,
    mask_arguments,
    setup_logging,
)
from .handlers import (
    ContextFilter,
    JSONFormatter,
    StructuredLogHandler,
    auth_context,
    current_auth_context,
)
from config.settings import LogLevel, LogHandler

__all__ = [
    'LoggerManager',
    'get_logger',
    'setup_logging',
    'log_function_call',
    'mask_arguments',
    'NoiseFilter',
    'JSONFormatter',
    'ContextFilter',
    'StructuredLogHandler',
    'auth_context',
    'current_auth_context',
    'LogLevel',
    'LogHandler'
]
