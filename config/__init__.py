# config/__init__.py
from .settings import config, LogLevel, LogHandler, AppConfig, LoggingConfig, DirectoryAuthConfig

__all__ = [
    'config',
    'LogLevel',
    'LogHandler',
    'AppConfig',
    'LoggingConfig',
    'DirectoryAuthConfig'
]
