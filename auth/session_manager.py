import functools
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from config.settings import DirectoryAuthConfig
from app_logging.logger import get_logger
from .directory_client import DirectoryClient, Ldap3DirectoryClient, SCOPE_SUBTREE
from .endpoint import select_endpoint
from .exceptions import (
    BindError,
    CloseError,
    DirectoryAuthError,
    DirectorySearchFailedError,
    SearchError,
)

# Создаем logger для этого модуля
logger = get_logger(__name__)

ClientFactory = Callable[[], DirectoryClient]


class SessionRole(str, Enum):
    """Роль сессии каталога"""
    MASTER = "master"
    USER = "user"


class SessionState(str, Enum):
    """Состояние привязки сессии"""
    UNBOUND = "unbound"
    BOUND = "bound"


class DirectorySession:
    """Сессия каталога одной роли. Меняется только через DirectorySessionManager"""

    def __init__(self, role: SessionRole):
        self.role = role
        self.client: Optional[DirectoryClient] = None
        self.state = SessionState.UNBOUND

    @property
    def is_bound(self) -> bool:
        return self.state is SessionState.BOUND


class DirectorySessionManager:
    """
    Владеет мастер- и пользовательской сессиями одного LDAPAuthenticator.

    Подключения создаются лениво при первом обращении и переиспользуются.
    Экземпляр не рассчитан на одновременные запросы: состояние привязки
    меняется на месте.
    """

    def __init__(self, config: DirectoryAuthConfig, client_factory: Optional[ClientFactory] = None):
        self.config = config
        self._client_factory = client_factory or functools.partial(
            Ldap3DirectoryClient, timeout=config.timeout
        )
        self._master = DirectorySession(SessionRole.MASTER)
        self._user = DirectorySession(SessionRole.USER)
        logger.debug("DirectorySessionManager инициализирован")

    @property
    def master_state(self) -> SessionState:
        return self._master.state

    @property
    def user_state(self) -> SessionState:
        return self._user.state

    def _session(self, role: SessionRole) -> DirectorySession:
        return self._master if role is SessionRole.MASTER else self._user

    def _set_state(self, session: DirectorySession, state: SessionState) -> None:
        if state is SessionState.BOUND and session.client is None:
            raise RuntimeError(f"Сессия {session.role.value} не может быть привязана без подключения")
        session.state = state

    async def ensure_connected(self) -> None:
        """
        Создает недостающие подключения к выбранному серверу каталога.

        Клиенты закрепляются за сессиями только после того, как подключились
        все, поэтому обе сессии всегда работают с одним сервером.
        """
        missing = [s for s in (self._master, self._user) if s.client is None]
        if not missing:
            return

        url = select_endpoint(self.config.endpoint)
        connected = []
        for session in missing:
            client = self._client_factory()
            await client.connect(url)
            connected.append((session, client))

        for session, client in connected:
            session.client = client
            logger.info(f"Создано подключение {session.role.value} к {url}")

    async def bind_master(self) -> None:
        """Привязывает мастер-сессию, если она еще не привязана"""
        await self.ensure_connected()
        if self._master.is_bound:
            return

        try:
            await self._master.client.bind(self.config.master_dn, self.config.master_pw)
        except BindError:
            logger.error(f"Не удалось выполнить bind мастер-учетной записью {self.config.master_dn}")
            raise
        self._set_state(self._master, SessionState.BOUND)
        logger.debug("Мастер-сессия привязана")

    async def bind_user(self, dn: str, password: str) -> None:
        """Привязывает пользовательскую сессию. Пароль проверяется при каждом вызове"""
        # Bind с пустым паролем сервер может принять как анонимный
        if not password:
            raise BindError("Пустой пароль не допускается")

        await self.ensure_connected()
        self._set_state(self._user, SessionState.UNBOUND)
        await self._user.client.bind(dn, password)
        self._set_state(self._user, SessionState.BOUND)
        logger.debug(f"Пользовательская сессия привязана: {dn}")

    async def unbind_user(self) -> None:
        """Отвязывает пользовательскую сессию. Ошибки только логируются"""
        if not self._user.is_bound:
            return
        try:
            await self._user.client.unbind()
        except DirectoryAuthError as e:
            logger.warning(f"Ошибка при unbind пользовательской сессии: {e}")
        finally:
            self._set_state(self._user, SessionState.UNBOUND)

    async def search(
        self,
        role: SessionRole,
        base_dn: str,
        search_filter: str,
        attributes: List[str]
    ) -> List[Dict[str, Any]]:
        """
        Поиск по поддереву через привязанную сессию указанной роли.

        Returns:
            Список найденных записей

        Raises:
            SearchError: сессия не привязана или ошибка во время поиска
            DirectorySearchFailedError: поиск завершился с ненулевым кодом
        """
        session = self._session(role)
        if not session.is_bound:
            raise SearchError(f"Сессия {role.value} не привязана")

        result = await session.client.search(base_dn, search_filter, SCOPE_SUBTREE, attributes)
        if result.status != 0:
            logger.error(f"Поиск в {base_dn} завершился с кодом {result.status}")
            raise DirectorySearchFailedError(result.status)
        return result.entries

    async def close(self) -> None:
        """Отвязывает мастер-сессию. Повторный вызов ничего не делает"""
        if not self._master.is_bound:
            logger.debug("Мастер-сессия не привязана, закрывать нечего")
            return
        try:
            await self._master.client.unbind()
        except DirectoryAuthError as e:
            raise CloseError(f"Не удалось закрыть мастер-сессию: {e}") from e
        finally:
            self._set_state(self._master, SessionState.UNBOUND)
        logger.debug("Мастер-сессия закрыта")
