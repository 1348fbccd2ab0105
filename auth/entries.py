from typing import Any, Dict, List


def get_attribute(entry: Dict[str, Any], name: str, default: Any = None) -> Any:
    """Значение атрибута записи без учета регистра имени"""
    if name in entry:
        return entry[name]
    wanted = name.lower()
    for key, value in entry.items():
        if key.lower() == wanted:
            return value
    return default


def pick_attributes(entry: Dict[str, Any], names: List[str]) -> Dict[str, Any]:
    """Оставляет только разрешенные атрибуты, ключи - в написании из конфигурации"""
    missing = object()
    picked = {}
    for name in names:
        value = get_attribute(entry, name, missing)
        if value is not missing:
            picked[name] = value
    return picked
