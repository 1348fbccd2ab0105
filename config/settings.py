# config/settings.py
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional, List, Union
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class LogLevel(str, Enum):
    """Уровни логирования"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogHandler(str, Enum):
    """Типы обработчиков логов"""
    FILE = "file"
    CONSOLE = "console"
    ROTATING_FILE = "rotating_file"


def split_csv(v):
    """Разбивает строку вида 'a, b,c' на список непустых значений"""
    if isinstance(v, str):
        return [item.strip() for item in v.split(',') if item.strip()]
    return v


class LoggingConfig(BaseSettings):
    """Конфигурация системы логирования"""

    # Основные настройки
    level: LogLevel = Field(default=LogLevel.INFO, alias="LOG_LEVEL")
    handlers: Annotated[List[LogHandler], NoDecode] = Field(
        default=[LogHandler.CONSOLE],
        alias="LOG_HANDLERS"
    )

    # Настройки файлового логирования
    log_dir: Path = Field(default=Path("logs"), alias="LOG_DIR")
    log_file: str = Field(default='directory_auth.log', alias="LOG_FILE")
    max_file_size: int = Field(default=10 * 1024 * 1024, alias="LOG_MAX_FILE_SIZE")  # 10MB
    backup_count: int = Field(default=5, alias="LOG_BACKUP_COUNT")

    # Настройки форматирования
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(lineno)d - %(message)s",
        alias="LOG_FORMAT"
    )
    date_format: str = Field(default="%Y-%m-%d %H:%M:%S", alias="LOG_DATE_FORMAT")

    # Дополнительные настройки
    enable_json_logging: bool = Field(default=False, alias="LOG_JSON_FORMAT")
    enable_context_logging: bool = Field(default=True, alias="LOG_CONTEXT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore"
    )

    @field_validator('handlers', mode='before')
    @classmethod
    def parse_handlers(cls, v):
        """Парсит строку handlers из .env в список"""
        if isinstance(v, str):
            return [LogHandler(h) for h in split_csv(v)]
        return v

    @field_validator('log_dir', mode='before')
    @classmethod
    def parse_log_dir(cls, v):
        """Преобразует строку в Path"""
        if isinstance(v, str):
            return Path(v)
        return v


class AppConfig(BaseSettings):
    """Основная конфигурация приложения"""

    # Настройки приложения
    app_name: str = Field(default="Directory Group Auth", alias="APP_NAME")
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # Настройки LDAP
    ldap_endpoints: Annotated[List[str], NoDecode] = Field(default_factory=list, alias="LDAP_ENDPOINTS")
    ldap_master_dn: str = Field(default="", alias="LDAP_MASTER_DN")
    ldap_master_password: str = Field(default="", alias="LDAP_MASTER_PASSWORD")
    ldap_group_search_dn: str = Field(default="", alias="LDAP_GROUP_SEARCH_DN")
    ldap_group_search_filter: str = Field(default="(objectClass=*)", alias="LDAP_GROUP_SEARCH_FILTER")
    ldap_group_search_attributes: Annotated[List[str], NoDecode] = Field(
        default=['member'],
        alias="LDAP_GROUP_SEARCH_ATTRIBUTES"
    )
    ldap_member_attribute: str = Field(default="member", alias="LDAP_MEMBER_ATTRIBUTE")
    ldap_user_search_filter: str = Field(default="(objectClass=*)", alias="LDAP_USER_SEARCH_FILTER")
    ldap_user_search_attributes: Annotated[List[str], NoDecode] = Field(
        default=['cn', 'distinguishedName', 'sn', 'mail'],
        alias="LDAP_USER_SEARCH_ATTRIBUTES"
    )
    ldap_timeout: float = Field(default=30.0, alias="LDAP_TIMEOUT")  # секунд на один запрос к каталогу

    # Логирование
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore"
    )

    @field_validator(
        'ldap_endpoints',
        'ldap_group_search_attributes',
        'ldap_user_search_attributes',
        mode='before'
    )
    @classmethod
    def parse_csv_lists(cls, v):
        """Списки в .env задаются через запятую"""
        return split_csv(v)


class DirectoryAuthConfig(BaseModel):
    """
    Неизменяемая конфигурация оркестратора аутентификации.

    Создается один раз при конструировании LDAPAuthenticator и не меняется
    в течение его жизни. Адрес(а) сервера проверяются только в момент
    подключения (см. auth.endpoint.select_endpoint).
    """

    endpoint: Union[str, List[Optional[str]]]
    group_search_filter: str
    group_search_attributes: List[str]
    group_search_dn: str
    master_dn: str
    master_pw: str = Field(repr=False)
    user_search_filter: str
    user_search_attributes: List[str]
    member_attribute: str = "member"
    timeout: float = Field(default=30.0, gt=0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator('group_search_attributes', 'user_search_attributes', mode='before')
    @classmethod
    def wrap_single_attribute(cls, v):
        """Одиночный атрибут ('member') превращается в список из одного элемента"""
        if isinstance(v, str):
            return [v]
        return v

    @model_validator(mode='after')
    def check_member_attribute(self):
        requested = {attr.lower() for attr in self.group_search_attributes}
        if self.member_attribute.lower() not in requested:
            raise ValueError(
                f"Атрибут членства '{self.member_attribute}' должен входить в group_search_attributes"
            )
        return self

    @classmethod
    def from_settings(cls, settings: AppConfig) -> 'DirectoryAuthConfig':
        """Собирает конфигурацию из настроек окружения (.env)"""
        required = {
            'LDAP_ENDPOINTS': settings.ldap_endpoints,
            'LDAP_MASTER_DN': settings.ldap_master_dn,
            'LDAP_MASTER_PASSWORD': settings.ldap_master_password,
            'LDAP_GROUP_SEARCH_DN': settings.ldap_group_search_dn,
        }
        for env_name, value in required.items():
            if not value:
                raise ValueError(f"LDAP не настроен. Установите переменную {env_name} в файле .env")

        endpoints = settings.ldap_endpoints
        return cls(
            endpoint=endpoints[0] if len(endpoints) == 1 else list(endpoints),
            group_search_filter=settings.ldap_group_search_filter,
            group_search_attributes=settings.ldap_group_search_attributes,
            group_search_dn=settings.ldap_group_search_dn,
            master_dn=settings.ldap_master_dn,
            master_pw=settings.ldap_master_password,
            user_search_filter=settings.ldap_user_search_filter,
            user_search_attributes=settings.ldap_user_search_attributes,
            member_attribute=settings.ldap_member_attribute,
            timeout=settings.ldap_timeout,
        )


# Глобальный экземпляр конфигурации
config = AppConfig()
