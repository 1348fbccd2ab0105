import asyncio
from typing import Any, Dict, List, Optional

from config.settings import config, DirectoryAuthConfig
from models import AuthResponse, MemberDescriptor
from app_logging.handlers import auth_context
from app_logging.logger import get_logger
from .exceptions import (
    CloseError,
    DirectoryAuthError,
    InvalidCredentialsError,
    UserNotFoundError,
)
from .group_resolver import GroupMembershipResolver
from .session_manager import ClientFactory, DirectorySessionManager
from .user_authenticator import UserAuthenticator


logger = get_logger(__name__)

INVALID_LOGIN_MESSAGE = 'Неверный логин или пароль'
SERVER_ERROR_MESSAGE = 'Ошибка подключения к серверу аутентификации'


class LDAPAuthenticator:
    """
    Аутентификация участников группы каталога.

    auth_user проходит этапы: участники группы -> поиск логина среди них ->
    bind пользователя -> закрытие мастер-сессии. Закрытие выполняется на
    любом пути, ошибка закрытия не подменяет ошибку аутентификации, а
    прикрепляется к ней как close_error.

    Запросы к одному экземпляру выполняются по очереди.
    """

    def __init__(self, auth_config: DirectoryAuthConfig, client_factory: Optional[ClientFactory] = None):
        self.config = auth_config
        self.sessions = DirectorySessionManager(auth_config, client_factory)
        self.resolver = GroupMembershipResolver(auth_config, self.sessions)
        self.authenticator = UserAuthenticator(auth_config, self.sessions)
        self._lock = asyncio.Lock()

    @classmethod
    def create_default(cls, client_factory: Optional[ClientFactory] = None) -> 'LDAPAuthenticator':
        """
        Создает аутентификатор с настройками из конфигурации (.env)

        Raises:
            ValueError: если обязательные настройки LDAP не заданы
        """
        logger.info("Создаем LDAPAuthenticator с настройками из конфигурации")
        return cls(DirectoryAuthConfig.from_settings(config), client_factory)

    async def __aenter__(self) -> 'LDAPAuthenticator':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            await self.close()
        else:
            await self._close_quietly(exc_val)

    async def auth_user(self, username: str, password: str) -> Dict[str, Any]:
        """
        Проверяет, что пользователь входит в группу и знает свой пароль

        Returns:
            Атрибуты пользователя (только из user_search_attributes)

        Raises:
            UserNotFoundError: логина нет среди участников группы
            InvalidCredentialsError: неверный пароль
            DirectoryAuthError: прочие ошибки каталога
        """
        async with self._lock:
            with auth_context(username=username, operation='auth_user'):
                logger.info(f"Аутентификация пользователя {username}")
                try:
                    user = await self._authenticate_member(username, password)
                except BaseException as e:
                    # В том числе CancelledError от таймаута вызывающей стороны
                    await self._close_quietly(e)
                    raise
                await self._close_quietly()
                logger.info(f"Пользователь {username} успешно аутентифицирован")
                return user

    async def get_group_members(self) -> List[MemberDescriptor]:
        """Список участников группы (мастер-сессия закрывается после запроса)"""
        async with self._lock:
            with auth_context(operation='get_group_members'):
                try:
                    members = await self.resolver.resolve_members()
                except BaseException as e:
                    await self._close_quietly(e)
                    raise
                await self._close_quietly()
                return members

    async def authenticate_user(self, username: str, password: str) -> AuthResponse:
        """Аутентификация пользователя через LDAP без исключений, для UI и API"""
        try:
            user = await self.auth_user(username, password)
        except (UserNotFoundError, InvalidCredentialsError) as e:
            logger.warning(f"Отказ в доступе пользователю {username}: {type(e).__name__}")
            return AuthResponse(success=False, message=INVALID_LOGIN_MESSAGE)
        except DirectoryAuthError as e:
            logger.error(f"Ошибка каталога при аутентификации {username}: {e}")
            return AuthResponse(success=False, message=SERVER_ERROR_MESSAGE)

        return AuthResponse(success=True, message='Успешная аутентификация', user=user)

    async def close(self) -> None:
        """Закрывает мастер-сессию. Безопасно вызывать повторно"""
        await self.sessions.close()

    async def _authenticate_member(self, username: str, password: str) -> Dict[str, Any]:
        members = await self.resolver.resolve_members()

        member = self._find_member(members, username)
        if member is None:
            raise UserNotFoundError(f"Пользователь {username} не найден в группе")

        return await self.authenticator.authenticate(member.dn, password)

    @staticmethod
    def _find_member(members: List[MemberDescriptor], username: str) -> Optional[MemberDescriptor]:
        wanted = (username or '').lower()
        for member in members:
            if member.cn == wanted:
                return member
        return None

    async def _close_quietly(self, error: Optional[BaseException] = None) -> None:
        """Закрывает мастер-сессию, не давая ошибке закрытия заменить исходную"""
        try:
            await self.sessions.close()
        except CloseError as close_error:
            if error is None:
                logger.error(f"Ошибка закрытия мастер-сессии после успешного запроса: {close_error}")
                return
            logger.error(f"Ошибка закрытия мастер-сессии после ошибки {type(error).__name__}: {close_error}")
            if isinstance(error, DirectoryAuthError):
                error.close_error = close_error
