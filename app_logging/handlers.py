# app_logging/handlers.py
import json
import logging
import os
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional


# Поля текущего запроса аутентификации (логин, операция).
# asyncio.to_thread копирует контекст, поэтому поля видны и в потоках ldap3.
_auth_context: ContextVar[Dict[str, Any]] = ContextVar('auth_context', default={})


@contextmanager
def auth_context(**fields: Any) -> Iterator[Dict[str, Any]]:
    """Добавляет поля запроса ко всем записям лога внутри блока"""
    merged = {**_auth_context.get(), **fields}
    token = _auth_context.set(merged)
    try:
        yield merged
    finally:
        _auth_context.reset(token)


def current_auth_context() -> Dict[str, Any]:
    return dict(_auth_context.get())


class ContextFilter(logging.Filter):
    """Добавляет в запись поток, процесс, время UTC и поля запроса аутентификации"""

    def filter(self, record):
        record.thread_name = threading.current_thread().name
        record.process_id = os.getpid()
        record.timestamp = datetime.now(timezone.utc).isoformat()

        context = current_auth_context()
        record.auth_context = context
        # Для текстового формата: %(auth_user)s
        record.auth_user = context.get('username', '-')
        return True


class JSONFormatter(logging.Formatter):
    """Одна запись лога - одна строка JSON"""

    def format(self, record):
        log_entry = {
            'timestamp': getattr(record, 'timestamp', datetime.now(timezone.utc).isoformat()),
            'level': record.levelname,
            'logger': record.name,
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
            'message': record.getMessage(),
            'thread': getattr(record, 'thread_name', threading.current_thread().name),
            'process_id': getattr(record, 'process_id', os.getpid()),
        }

        context = getattr(record, 'auth_context', None)
        if context:
            log_entry['auth'] = context

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_entry.update(record.extra_fields)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class StructuredLogHandler(logging.Handler):
    """Передает запись целевому обработчику, добавив постоянные поля логгера"""

    def __init__(self, target_handler: logging.Handler, extra_fields: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.target_handler = target_handler
        self.extra_fields = extra_fields or {}

    def emit(self, record):
        if self.extra_fields:
            record.extra_fields = {**getattr(record, 'extra_fields', {}), **self.extra_fields}
        self.target_handler.handle(record)
