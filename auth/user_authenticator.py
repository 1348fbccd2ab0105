from typing import Any, Dict

from config.settings import DirectoryAuthConfig
from app_logging.logger import get_logger
from .entries import pick_attributes
from .exceptions import (
    BindError,
    InvalidCredentialsError,
    UnexpectedMatchCountError,
    UserRecordNotFoundError,
)
from .session_manager import DirectorySessionManager, SessionRole


logger = get_logger(__name__)


class UserAuthenticator:
    """Проверяет пароль пользователя и читает разрешенные атрибуты его записи"""

    def __init__(self, config: DirectoryAuthConfig, sessions: DirectorySessionManager):
        self.config = config
        self.sessions = sessions

    async def authenticate(self, dn: str, password: str) -> Dict[str, Any]:
        """
        Bind пользовательской сессией и поиск собственной записи

        Args:
            dn: DN пользователя (из участников группы)
            password: Пароль

        Returns:
            Атрибуты записи, отфильтрованные по user_search_attributes

        Raises:
            InvalidCredentialsError: bind не прошел
            UserRecordNotFoundError: запись не найдена после bind
            UnexpectedMatchCountError: найдено несколько записей
        """
        await self.sessions.ensure_connected()

        try:
            await self.sessions.bind_user(dn, password)
        except BindError as e:
            logger.warning(f"Ошибка аутентификации пользователя {dn}")
            raise InvalidCredentialsError(f"Неверные учетные данные для {dn}") from e

        try:
            entries = await self.sessions.search(
                SessionRole.USER,
                dn,
                self.config.user_search_filter,
                self.config.user_search_attributes
            )
        finally:
            await self.sessions.unbind_user()

        if not entries:
            raise UserRecordNotFoundError(f"Запись пользователя {dn} не найдена")
        if len(entries) > 1:
            raise UnexpectedMatchCountError(len(entries))

        return pick_attributes(entries[0], self.config.user_search_attributes)
