from typing import Optional

from app_logging.logger import log_function_call
from .exceptions import MissingDNError


CN_PREFIX = 'cn='


# Вызывается для каждого участника группы, в лог попадают только ошибки
@log_function_call(log_args=False, log_result=False)
def extract_cn(dn: Optional[str]) -> Optional[str]:
    """
    Извлекает первый cn из DN

    "CN=jdoe,OU=Users,DC=x,DC=com" -> "jdoe". Если компонента cn= нет,
    возвращает None.
    """
    if not dn:
        raise MissingDNError("DN не передан")

    for part in dn.lower().split(','):
        part = part.strip()
        if part.startswith(CN_PREFIX):
            return part[len(CN_PREFIX):].lstrip()
    return None
