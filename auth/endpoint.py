import random
from typing import Any

from app_logging.logger import get_logger
from .exceptions import NoValidEndpointError


logger = get_logger(__name__)


def select_endpoint(endpoint: Any) -> str:
    """
    Выбирает адрес сервера каталога.

    Список адресов - балансировка: пустые значения отбрасываются,
    из оставшихся берется случайный. Строка возвращается как есть.

    Raises:
        NoValidEndpointError: если пригодного адреса нет
    """
    if isinstance(endpoint, (list, tuple)):
        candidates = [url for url in endpoint if url]
        if not candidates:
            raise NoValidEndpointError("Список серверов каталога пуст")
        url = random.choice(candidates)
        logger.debug(f"Выбран сервер каталога {url} из {len(candidates)}")
        return url

    if isinstance(endpoint, str) and endpoint:
        return endpoint

    raise NoValidEndpointError(f"Некорректный адрес сервера каталога: {endpoint!r}")
