from typing import List

from config.settings import DirectoryAuthConfig
from models import MemberDescriptor
from app_logging.logger import get_logger
from .dn import extract_cn
from .entries import get_attribute
from .exceptions import UnexpectedMatchCountError
from .session_manager import DirectorySessionManager, SessionRole


logger = get_logger(__name__)


class GroupMembershipResolver:
    """Получает участников настроенной группы через мастер-сессию"""

    def __init__(self, config: DirectoryAuthConfig, sessions: DirectorySessionManager):
        self.config = config
        self.sessions = sessions

    async def resolve_members(self) -> List[MemberDescriptor]:
        """
        Возвращает участников группы в порядке, в котором их отдал каталог.

        Отсутствие группы - не ошибка, а пустой список. Если под фильтр
        попало несколько групп, выбрасывается UnexpectedMatchCountError.
        """
        await self.sessions.bind_master()

        entries = await self.sessions.search(
            SessionRole.MASTER,
            self.config.group_search_dn,
            self.config.group_search_filter,
            self.config.group_search_attributes
        )

        if not entries:
            logger.warning(f"Группа не найдена: {self.config.group_search_dn} {self.config.group_search_filter}")
            return []
        if len(entries) > 1:
            logger.error(f"Фильтр группы вернул {len(entries)} записей, ожидалась одна")
            raise UnexpectedMatchCountError(len(entries))

        member_dns = get_attribute(entries[0], self.config.member_attribute)
        if member_dns is None:
            return []
        if isinstance(member_dns, str):
            member_dns = [member_dns]

        members = []
        for dn in member_dns:
            if not dn:
                continue
            cn = extract_cn(dn)
            if cn is None:
                logger.debug(f"В DN участника нет компонента cn=, пропускаем: {dn}")
                continue
            members.append(MemberDescriptor(cn=cn, dn=dn))

        logger.info(f"В группе {entries[0].get('dn', self.config.group_search_dn)} участников: {len(members)}")
        return members
