import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ldap3 import Server, Connection, NONE, SUBTREE, LEVEL, BASE
from ldap3.core.exceptions import LDAPException

from app_logging.logger import get_logger
from models import DirectorySearchResult
from .exceptions import BindError, DirectoryConnectionError, SearchError


logger = get_logger(__name__)

# Таймаут одного обращения к каталогу (в секундах)
DEFAULT_TIMEOUT = 30

SCOPE_SUBTREE = 'sub'

LDAP3_SCOPES = {
    'base': BASE,
    'one': LEVEL,
    SCOPE_SUBTREE: SUBTREE,
}


def _unbind_quietly(conn: Connection) -> None:
    try:
        conn.unbind()
    except LDAPException as e:
        logger.warning(f"Ошибка unbind брошенного соединения: {e}")


def _release_abandoned_bind(worker: 'asyncio.Future') -> None:
    """Закрывает соединение, которое bind успел открыть уже после таймаута"""
    if worker.cancelled() or worker.exception() is not None:
        return
    conn, _ = worker.result()
    if conn is not None:
        logger.info("Закрываем соединение bind, завершившегося после таймаута")
        asyncio.get_running_loop().run_in_executor(None, _unbind_quietly, conn)


class DirectoryClient(ABC):
    """Абстрактный клиент каталога: подключение, bind, поиск, unbind"""

    @abstractmethod
    async def connect(self, url: str) -> None:
        """Готовит подключение к серверу. Ошибка - DirectoryConnectionError"""
        pass

    @abstractmethod
    async def bind(self, dn: str, password: str) -> None:
        """Проверяет пару DN/пароль. Любая неудача - BindError"""
        pass

    @abstractmethod
    async def search(
        self,
        base_dn: str,
        search_filter: str,
        scope: str,
        attributes: List[str]
    ) -> DirectorySearchResult:
        """Выполняет поиск. Ошибка транспорта или протокола - SearchError"""
        pass

    @abstractmethod
    async def unbind(self) -> None:
        """Завершает привязанную сессию"""
        pass


class Ldap3DirectoryClient(DirectoryClient):
    """
    Клиент каталога на ldap3.

    Вызовы ldap3 блокирующие, поэтому каждый выполняется через
    asyncio.to_thread с таймаутом. Соединение создается при bind и
    закрывается при unbind; объект Server переиспользуется.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout
        self.url: Optional[str] = None
        self._server: Optional[Server] = None
        self._connection: Optional[Connection] = None

    async def connect(self, url: str) -> None:
        try:
            # Сам Server не открывает сокет, сеть понадобится только при bind
            self._server = Server(url, get_info=NONE, connect_timeout=self.timeout)
        except LDAPException as e:
            logger.error(f"Некорректный адрес сервера каталога {url}: {e}")
            raise DirectoryConnectionError(f"Не удалось подключиться к {url}: {e}") from e
        self.url = url
        logger.debug(f"Подготовлено подключение к {url}")

    async def bind(self, dn: str, password: str) -> None:
        if self._server is None:
            raise DirectoryConnectionError("Клиент каталога не подключен")

        def _sync_bind():
            conn = Connection(
                self._server,
                user=dn,
                password=password,
                receive_timeout=self.timeout,
                raise_exceptions=False
            )
            if conn.bind():
                return conn, None
            result = dict(conn.result or {})
            conn.unbind()
            return None, result

        if self._connection is not None:
            await self.unbind()

        # Поток нельзя прервать: при таймауте или отмене он доработает сам,
        # а полученное им соединение закроет _release_abandoned_bind
        worker = asyncio.ensure_future(asyncio.to_thread(_sync_bind))
        try:
            conn, result = await asyncio.wait_for(asyncio.shield(worker), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            worker.add_done_callback(_release_abandoned_bind)
            logger.warning(f"Таймаут bind к {self.url} для {dn}")
            raise BindError(f"Таймаут bind к {self.url}") from e
        except asyncio.CancelledError:
            worker.add_done_callback(_release_abandoned_bind)
            raise
        except LDAPException as e:
            logger.warning(f"Ошибка bind к {self.url} для {dn}: {e}")
            raise BindError(f"Ошибка bind к {self.url}") from e

        if conn is None:
            logger.warning(f"Bind для {dn} отклонен: {result.get('description')} ({result.get('result')})")
            raise BindError(f"Bind для {dn} отклонен")

        self._connection = conn

    async def search(
        self,
        base_dn: str,
        search_filter: str,
        scope: str,
        attributes: List[str]
    ) -> DirectorySearchResult:
        if self._connection is None:
            raise SearchError("Нет привязанной сессии для поиска")
        if scope not in LDAP3_SCOPES:
            raise SearchError(f"Неизвестная область поиска: {scope}")

        conn = self._connection

        def _sync_search():
            conn.search(
                search_base=base_dn,
                search_filter=search_filter,
                search_scope=LDAP3_SCOPES[scope],
                attributes=list(attributes)
            )
            return dict(conn.result or {}), list(conn.response or [])

        try:
            result, response = await asyncio.wait_for(asyncio.to_thread(_sync_search), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"Таймаут поиска в {base_dn}")
            raise SearchError(f"Таймаут поиска в {base_dn}") from e
        except LDAPException as e:
            logger.warning(f"Ошибка поиска в {base_dn}: {e}")
            raise SearchError(f"Ошибка поиска в {base_dn}: {e}") from e

        entries = [
            self._entry_to_dict(item)
            for item in response
            if item.get('type') == 'searchResEntry'
        ]
        status = int(result.get('result', 0) or 0)
        logger.debug(f"Поиск в {base_dn} {search_filter}: записей {len(entries)}, код {status}")
        return DirectorySearchResult(entries=entries, status=status)

    async def unbind(self) -> None:
        conn, self._connection = self._connection, None
        if conn is None:
            return
        try:
            await asyncio.wait_for(asyncio.to_thread(conn.unbind), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise DirectoryConnectionError(f"Таймаут unbind от {self.url}") from e
        except LDAPException as e:
            raise DirectoryConnectionError(f"Ошибка unbind от {self.url}: {e}") from e

    @staticmethod
    def _entry_to_dict(item: Dict[str, Any]) -> Dict[str, Any]:
        """Запись ldap3 -> словарь: однозначные атрибуты скаляром, многозначные списком"""
        entry: Dict[str, Any] = {'dn': item.get('dn', '')}
        for name, value in (item.get('attributes') or {}).items():
            if isinstance(value, list):
                if not value:
                    continue
                if len(value) == 1:
                    value = value[0]
            entry[name] = value
        return entry
