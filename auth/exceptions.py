from typing import Optional


class DirectoryAuthError(Exception):
    """
    Базовая ошибка аутентификации через каталог.

    close_error заполняется оркестратором, если после этой ошибки
    не удалось корректно закрыть мастер-сессию.
    """

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.close_error: Optional['CloseError'] = None


class NoValidEndpointError(DirectoryAuthError):
    """Не задан ни один пригодный адрес сервера каталога"""


class DirectoryConnectionError(DirectoryAuthError):
    """Не удалось подключиться к серверу каталога"""


class BindError(DirectoryAuthError):
    """Ошибка bind (мастер или пользователь). Причина намеренно не уточняется"""


class InvalidCredentialsError(BindError):
    """Пользователь не прошел проверку пароля"""


class SearchError(DirectoryAuthError):
    """Ошибка во время поиска в каталоге"""


class DirectorySearchFailedError(DirectoryAuthError):
    """Поиск завершился с ненулевым кодом"""

    def __init__(self, status: int):
        super().__init__(f"Поиск в каталоге завершился с кодом {status}")
        self.status = status


class UnexpectedMatchCountError(DirectoryAuthError):
    """Найдено больше записей, чем допустимо"""

    def __init__(self, count: int):
        super().__init__(f"Неожиданное количество найденных записей: {count}")
        self.count = count


class UserNotFoundError(DirectoryAuthError):
    """Пользователь не входит в группу"""


class UserRecordNotFoundError(DirectoryAuthError):
    """После успешного bind запись пользователя не найдена"""


class MissingDNError(DirectoryAuthError):
    """DN не передан"""


class CloseError(DirectoryAuthError):
    """Не удалось закрыть мастер-сессию"""
