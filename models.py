import pydantic
from typing import Optional, Any, List, Dict
from pydantic import ConfigDict


class MemberDescriptor(pydantic.BaseModel):
    """Участник группы: cn в нижнем регистре и полный DN записи"""
    cn: str
    dn: str

    model_config = ConfigDict(frozen=True)


class DirectorySearchResult(pydantic.BaseModel):
    """
    Результат поиска в каталоге: все полученные записи и итоговый код.

    Каждая запись - словарь с ключом 'dn' и атрибутами записи.
    Однозначные атрибуты хранятся скаляром, многозначные - списком.
    """
    entries: List[Dict[str, Any]] = []
    status: int = 0


class AuthResponse(pydantic.BaseModel):
    success: bool
    message: str
    user: Optional[Dict[str, Any]] = None
